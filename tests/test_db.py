"""Database layer tests — host model and relation store.

All tests use an in-memory SQLite database so they are fast, isolated and
write nothing to ~/.relmap_data.
"""

from __future__ import annotations

import sqlite3
from typing import Generator

import pytest

from relmap.db.connection import get_connection
from relmap.db.entities import (
    create_data_type,
    create_property_type,
    get_data_type,
    get_entity,
    get_entity_id_by_key,
    get_object_type,
    get_property_type,
    get_property_types,
    persist_entity,
)
from relmap.db.schema import init_db
from relmap.db.models import Entity, Relation
from relmap.db.relations import (
    create_relation_type,
    delete_relation,
    get_relation,
    get_relation_type_by_alias,
    get_relations_by_type,
    list_relation_types,
    save_relation,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def conn() -> Generator[sqlite3.Connection, None, None]:
    """In-memory connection with the schema initialised."""
    connection = get_connection(db_path=":memory:")  # type: ignore[arg-type]
    init_db(connection)
    yield connection
    connection.close()


# ---------------------------------------------------------------------------
# connection / init
# ---------------------------------------------------------------------------

class TestConnection:
    def test_foreign_keys_enabled(self, conn: sqlite3.Connection) -> None:
        row = conn.execute("PRAGMA foreign_keys").fetchone()
        assert row[0] == 1

    def test_wal_mode(self, conn: sqlite3.Connection) -> None:
        row = conn.execute("PRAGMA journal_mode").fetchone()
        # In-memory DBs always return 'memory', on-disk returns 'wal'
        assert row[0] in ("wal", "memory")


class TestInitDb:
    def test_tables_exist(self, conn: sqlite3.Connection) -> None:
        tables = {
            r[0]
            for r in conn.execute(
                "SELECT name FROM sqlite_master WHERE type = 'table'"
            ).fetchall()
        }
        assert {"data_types", "property_types", "entities", "relation_types", "relations"} <= tables

    def test_init_db_is_idempotent(self, conn: sqlite3.Connection) -> None:
        rt = create_relation_type(conn, "related", "content", "content")
        init_db(conn)
        assert get_relation_type_by_alias(conn, "related") == rt


# ---------------------------------------------------------------------------
# Host model
# ---------------------------------------------------------------------------

class TestPropertyTypes:
    def test_property_types_carry_editor_alias(self, conn: sqlite3.Connection) -> None:
        dt = create_data_type(conn, "Picker.CheckBox", {"saveFormat": "csv"})
        pt = create_property_type(conn, "article", "tags", dt.id)
        assert pt.editor_alias == "Picker.CheckBox"
        assert pt.data_type_id == dt.id
        assert get_data_type(conn, dt.id).config == {"saveFormat": "csv"}

    def test_get_property_types_in_definition_order(self, conn: sqlite3.Connection) -> None:
        dt = create_data_type(conn, "Textbox")
        create_property_type(conn, "article", "title", dt.id)
        create_property_type(conn, "article", "body", dt.id)
        create_property_type(conn, "image", "alt", dt.id)
        assert [p.alias for p in get_property_types(conn, "article")] == ["title", "body"]

    def test_get_property_type_missing(self, conn: sqlite3.Connection) -> None:
        assert get_property_type(conn, "article", "nope") is None

    def test_alias_unique_per_entity_type(self, conn: sqlite3.Connection) -> None:
        dt = create_data_type(conn, "Textbox")
        create_property_type(conn, "article", "title", dt.id)
        with pytest.raises(sqlite3.IntegrityError):
            create_property_type(conn, "article", "title", dt.id)


class TestEntities:
    def test_new_entity_is_dirty_until_persisted(self, conn: sqlite3.Connection) -> None:
        entity = Entity(kind="content", entity_type="article")
        assert entity.id is None
        assert entity.is_dirty()
        persist_entity(conn, entity)
        assert entity.id is not None
        assert not entity.is_dirty()

    def test_set_value_marks_dirty(self, conn: sqlite3.Connection) -> None:
        entity = persist_entity(conn, Entity(kind="content", entity_type="article"))
        entity.set_value("title", "Hello")
        assert entity.is_dirty()
        persist_entity(conn, entity)
        assert get_entity(conn, entity.id).properties == {"title": "Hello"}

    def test_key_lookup_and_object_type(self, conn: sqlite3.Connection) -> None:
        entity = persist_entity(conn, Entity(kind="media", entity_type="image"))
        assert get_entity_id_by_key(conn, entity.key) == entity.id
        assert get_object_type(conn, entity.id) == "media"
        assert get_object_type(conn, 9999) is None

    def test_unknown_kind_rejected(self) -> None:
        with pytest.raises(ValueError):
            Entity(kind="document", entity_type="article")


# ---------------------------------------------------------------------------
# Relation store
# ---------------------------------------------------------------------------

class TestRelationTypes:
    def test_create_and_lookup(self, conn: sqlite3.Connection) -> None:
        rt = create_relation_type(conn, "related", "content", "content", is_bidirectional=True)
        assert rt.is_bidirectional is True
        assert rt.name == "related"
        assert get_relation_type_by_alias(conn, "related") == rt
        assert get_relation_type_by_alias(conn, "missing") is None

    def test_unknown_object_type_rejected(self, conn: sqlite3.Connection) -> None:
        with pytest.raises(ValueError):
            create_relation_type(conn, "bad", "document", "content")

    def test_list_relation_types_sorted(self, conn: sqlite3.Connection) -> None:
        create_relation_type(conn, "zeta", "content", "content")
        create_relation_type(conn, "alpha", "media", "content")
        assert [rt.alias for rt in list_relation_types(conn)] == ["alpha", "zeta"]


class TestRelations:
    def test_save_inserts_then_updates(self, conn: sqlite3.Connection) -> None:
        rt = create_relation_type(conn, "related", "content", "content")
        with conn:
            relation = save_relation(conn, Relation(parent_id=1, child_id=2, relation_type_id=rt.id))
        assert relation.id is not None
        assert relation.created_at is not None

        relation.comment = "<RelationMapping />"
        with conn:
            save_relation(conn, relation)
        assert get_relation(conn, relation.id).comment == "<RelationMapping />"

    def test_relations_by_type_oldest_first(self, conn: sqlite3.Connection) -> None:
        rt = create_relation_type(conn, "related", "content", "content")
        other = create_relation_type(conn, "other", "content", "content")
        with conn:
            first = save_relation(conn, Relation(parent_id=1, child_id=2, relation_type_id=rt.id))
            save_relation(conn, Relation(parent_id=1, child_id=2, relation_type_id=other.id))
            second = save_relation(conn, Relation(parent_id=3, child_id=2, relation_type_id=rt.id))
        assert [r.id for r in get_relations_by_type(conn, rt.id)] == [first.id, second.id]

    def test_delete_relation(self, conn: sqlite3.Connection) -> None:
        rt = create_relation_type(conn, "related", "content", "content")
        with conn:
            relation = save_relation(conn, Relation(parent_id=1, child_id=2, relation_type_id=rt.id))
            delete_relation(conn, relation)
        assert get_relation(conn, relation.id) is None

    def test_delete_unsaved_relation_is_noop(self, conn: sqlite3.Connection) -> None:
        delete_relation(conn, Relation(parent_id=1, child_id=2, relation_type_id=1))

    def test_writes_roll_back_with_transaction(self, conn: sqlite3.Connection) -> None:
        rt = create_relation_type(conn, "related", "content", "content")
        with pytest.raises(RuntimeError):
            with conn:
                save_relation(conn, Relation(parent_id=1, child_id=2, relation_type_id=rt.id))
                raise RuntimeError("boom")
        assert get_relations_by_type(conn, rt.id) == []
