"""Host-side storage: data types, property types and entities.

This is the model the save lifecycle runs over.  Entities are persisted by
:func:`persist_entity`; the relation mapping engine only reads them.
"""

from __future__ import annotations

import json
import sqlite3
from time import time
from typing import Any, Optional

from relmap.db.models import DataType, Entity, PropertyType


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _row_to_entity(row: sqlite3.Row) -> Entity:
    return Entity(
        id=row["id"],
        key=row["key"],
        kind=row["kind"],
        entity_type=row["entity_type"],
        parent_id=row["parent_id"],
        properties=json.loads(row["properties"] or "{}"),
    )


def _row_to_property_type(row: sqlite3.Row) -> PropertyType:
    return PropertyType(
        id=row["id"],
        entity_type=row["entity_type"],
        alias=row["alias"],
        data_type_id=row["data_type_id"],
        editor_alias=row["editor_alias"],
    )


_PROPERTY_TYPE_SELECT = """
    SELECT pt.id, pt.entity_type, pt.alias, pt.data_type_id, dt.editor_alias
    FROM   property_types pt
    JOIN   data_types dt ON dt.id = pt.data_type_id
"""


# ---------------------------------------------------------------------------
# Data types
# ---------------------------------------------------------------------------

def create_data_type(
    conn: sqlite3.Connection,
    editor_alias: str,
    config: Optional[dict[str, Any]] = None,
) -> DataType:
    """Insert a data-type definition (an editor plus its configuration)."""
    with conn:
        cur = conn.execute(
            "INSERT INTO data_types (editor_alias, config) VALUES (?, ?)",
            (editor_alias, json.dumps(config or {})),
        )
    return get_data_type(conn, cur.lastrowid)  # type: ignore[return-value]


def get_data_type(conn: sqlite3.Connection, data_type_id: int) -> Optional[DataType]:
    """Fetch a data-type definition by id.  Returns ``None`` if not found."""
    row = conn.execute(
        "SELECT * FROM data_types WHERE id = ?", (data_type_id,)
    ).fetchone()
    if row is None:
        return None
    return DataType(
        id=row["id"],
        editor_alias=row["editor_alias"],
        config=json.loads(row["config"] or "{}"),
    )


# ---------------------------------------------------------------------------
# Property types
# ---------------------------------------------------------------------------

def create_property_type(
    conn: sqlite3.Connection,
    entity_type: str,
    alias: str,
    data_type_id: int,
) -> PropertyType:
    """Add a property to an entity type definition."""
    with conn:
        cur = conn.execute(
            "INSERT INTO property_types (entity_type, alias, data_type_id) VALUES (?, ?, ?)",
            (entity_type, alias, data_type_id),
        )
    row = conn.execute(
        _PROPERTY_TYPE_SELECT + " WHERE pt.id = ?", (cur.lastrowid,)
    ).fetchone()
    return _row_to_property_type(row)


def get_property_types(conn: sqlite3.Connection, entity_type: str) -> list[PropertyType]:
    """Return every property defined on *entity_type*, in definition order."""
    rows = conn.execute(
        _PROPERTY_TYPE_SELECT + " WHERE pt.entity_type = ? ORDER BY pt.id",
        (entity_type,),
    ).fetchall()
    return [_row_to_property_type(r) for r in rows]


def get_property_type(
    conn: sqlite3.Connection, entity_type: str, alias: str
) -> Optional[PropertyType]:
    row = conn.execute(
        _PROPERTY_TYPE_SELECT + " WHERE pt.entity_type = ? AND pt.alias = ?",
        (entity_type, alias),
    ).fetchone()
    return _row_to_property_type(row) if row else None


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------

def persist_entity(conn: sqlite3.Connection, entity: Entity) -> Entity:
    """Insert or update *entity*, assigning ``entity.id`` on first save.

    The entity's dirty state is reset once the row is written.
    """
    now = int(time())
    with conn:
        if entity.id is None:
            cur = conn.execute(
                """
                INSERT INTO entities (key, kind, entity_type, parent_id, properties, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entity.key,
                    entity.kind,
                    entity.entity_type,
                    entity.parent_id,
                    entity.properties_json(),
                    now,
                    now,
                ),
            )
            entity.id = cur.lastrowid
        else:
            conn.execute(
                """
                UPDATE entities
                SET    parent_id = ?, properties = ?, updated_at = ?
                WHERE  id = ?
                """,
                (entity.parent_id, entity.properties_json(), now, entity.id),
            )
    entity.reset_dirty()
    return entity


def get_entity(conn: sqlite3.Connection, entity_id: int) -> Optional[Entity]:
    """Fetch a single entity by id.  Returns ``None`` if not found."""
    row = conn.execute("SELECT * FROM entities WHERE id = ?", (entity_id,)).fetchone()
    return _row_to_entity(row) if row else None


def get_entity_id_by_key(conn: sqlite3.Connection, key: str) -> Optional[int]:
    row = conn.execute("SELECT id FROM entities WHERE key = ?", (key,)).fetchone()
    return row["id"] if row else None


def get_object_type(conn: sqlite3.Connection, entity_id: int) -> Optional[str]:
    """Return the kind (content / media / member) of *entity_id*, or ``None``."""
    row = conn.execute("SELECT kind FROM entities WHERE id = ?", (entity_id,)).fetchone()
    return row["kind"] if row else None
