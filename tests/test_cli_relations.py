"""Tests for the relmap CLI command groups."""

import pytest
from typer.testing import CliRunner

from relmap.db import get_connection, init_db
from relmap.db.entities import create_data_type, create_property_type, persist_entity
from relmap.db.models import Entity
from relmap.db.relations import create_relation_type
from relmap.mapping import update_relation_mapping
from cli.commands.relations import relations_app, type_app
from cli.main import app

runner = CliRunner()


@pytest.fixture
def clean_db(tmp_path, monkeypatch):
    """Point the workspace at a fresh temporary directory."""
    monkeypatch.setattr("relmap.config.settings.workspace_dir", tmp_path)
    return tmp_path


@pytest.fixture
def mapped(clean_db):
    """An article (id 3) tagged with two pages (ids 1 and 2)."""
    conn = get_connection()
    init_db(conn)
    dt = create_data_type(conn, "Picker.CheckBox", {"relationMapping": {"relationTypeAlias": "tagged"}})
    create_property_type(conn, "article", "tags", dt.id)
    create_relation_type(conn, "tagged", "content", "content")
    pages = [persist_entity(conn, Entity(kind="content", entity_type="page")) for _ in range(2)]
    article = persist_entity(conn, Entity(kind="content", entity_type="article"))
    update_relation_mapping(conn, article.id, "tags", "tagged", False, [pages[1].id, pages[0].id])
    conn.close()
    return article


def test_db_init(clean_db):
    result = runner.invoke(app, ["db", "init"])
    assert result.exit_code == 0
    assert "Database ready" in result.stdout
    assert (clean_db / "relmap.db").exists()


def test_type_add_and_list(clean_db):
    result = runner.invoke(type_app, ["add", "related", "--parent", "content", "--child", "content", "--bidirectional"])
    assert result.exit_code == 0
    assert "'related'" in result.stdout

    result = runner.invoke(type_app, ["list"])
    assert result.exit_code == 0
    assert "related  content <-> content" in result.stdout


def test_type_add_rejects_unknown_kind(clean_db):
    result = runner.invoke(type_app, ["add", "bad", "--parent", "document", "--child", "content"])
    assert result.exit_code == 1
    assert "Unknown object type" in result.stdout


def test_type_list_empty(clean_db):
    result = runner.invoke(type_app, ["list"])
    assert result.exit_code == 0
    assert "No relation types found" in result.stdout


def test_relations_list(mapped):
    result = runner.invoke(relations_app, ["list", "tagged"])
    assert result.exit_code == 0
    assert "2 -> 3" in result.stdout
    assert "property='tags'" in result.stdout
    assert "order=-1/2" in result.stdout


def test_relations_list_unknown_type(clean_db):
    result = runner.invoke(relations_app, ["list", "missing"])
    assert result.exit_code == 1


def test_relations_related(mapped):
    result = runner.invoke(relations_app, ["related", str(mapped.id), "tags", "--type", "tagged"])
    assert result.exit_code == 0
    assert result.stdout.strip() == "2,1"


def test_relations_related_unknown_property(mapped):
    result = runner.invoke(relations_app, ["related", str(mapped.id), "nope", "--type", "tagged"])
    assert result.exit_code == 1
    assert "Unable to find property type" in result.stdout


def test_relations_decode():
    comment = '<RelationMapping PropertyAlias="tags" PropertyTypeId="4" DataTypeDefinitionId="2" />'
    result = runner.invoke(relations_app, ["decode", comment])
    assert result.exit_code == 0
    assert "PropertyTypeId       : 4" in result.stdout
    assert "ChildSortOrder       : -1" in result.stdout
