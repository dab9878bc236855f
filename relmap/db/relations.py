"""Operations on the ``relation_types`` and ``relations`` tables.

Relation writes (:func:`save_relation`, :func:`delete_relation`) do **not**
commit.  Callers group them into a transaction with ``with conn:`` so a whole
reconciliation is applied or rolled back as one unit.
"""

from __future__ import annotations

import sqlite3
from time import time
from typing import Optional

from relmap.db.models import OBJECT_KINDS, Relation, RelationType


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _row_to_relation_type(row: sqlite3.Row) -> RelationType:
    return RelationType(
        id=row["id"],
        alias=row["alias"],
        name=row["name"],
        is_bidirectional=bool(row["is_bidirectional"]),
        parent_object_type=row["parent_object_type"],
        child_object_type=row["child_object_type"],
    )


def _row_to_relation(row: sqlite3.Row) -> Relation:
    return Relation(
        id=row["id"],
        parent_id=row["parent_id"],
        child_id=row["child_id"],
        relation_type_id=row["relation_type_id"],
        comment=row["comment"],
        created_at=row["created_at"],
    )


# ---------------------------------------------------------------------------
# Relation types
# ---------------------------------------------------------------------------

def create_relation_type(
    conn: sqlite3.Connection,
    alias: str,
    parent_object_type: str,
    child_object_type: str,
    is_bidirectional: bool = False,
    name: Optional[str] = None,
) -> RelationType:
    """Define a relation type and return it.

    Raises:
        ValueError: If either object type is not a known entity kind.
    """
    for kind in (parent_object_type, child_object_type):
        if kind not in OBJECT_KINDS:
            raise ValueError(f"Unknown object type {kind!r}")

    with conn:
        conn.execute(
            """
            INSERT INTO relation_types (alias, name, is_bidirectional, parent_object_type, child_object_type)
            VALUES (?, ?, ?, ?, ?)
            """,
            (alias, name or alias, int(is_bidirectional), parent_object_type, child_object_type),
        )
    return get_relation_type_by_alias(conn, alias)  # type: ignore[return-value]


def get_relation_type_by_alias(conn: sqlite3.Connection, alias: str) -> Optional[RelationType]:
    """Look up a relation type by alias.  Returns ``None`` if not found."""
    row = conn.execute(
        "SELECT * FROM relation_types WHERE alias = ?", (alias,)
    ).fetchone()
    return _row_to_relation_type(row) if row else None


def list_relation_types(conn: sqlite3.Connection) -> list[RelationType]:
    rows = conn.execute("SELECT * FROM relation_types ORDER BY alias").fetchall()
    return [_row_to_relation_type(r) for r in rows]


# ---------------------------------------------------------------------------
# Relations
# ---------------------------------------------------------------------------

def get_relations_by_type(conn: sqlite3.Connection, relation_type_id: int) -> list[Relation]:
    """Return all relations of one type, oldest first."""
    rows = conn.execute(
        "SELECT * FROM relations WHERE relation_type_id = ? ORDER BY id",
        (relation_type_id,),
    ).fetchall()
    return [_row_to_relation(r) for r in rows]


def get_relation(conn: sqlite3.Connection, relation_id: int) -> Optional[Relation]:
    row = conn.execute("SELECT * FROM relations WHERE id = ?", (relation_id,)).fetchone()
    return _row_to_relation(row) if row else None


def save_relation(conn: sqlite3.Connection, relation: Relation) -> Relation:
    """Insert *relation* (when it has no id yet) or update it in place."""
    if relation.id is None:
        relation.created_at = int(time())
        cur = conn.execute(
            """
            INSERT INTO relations (parent_id, child_id, relation_type_id, comment, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                relation.parent_id,
                relation.child_id,
                relation.relation_type_id,
                relation.comment,
                relation.created_at,
            ),
        )
        relation.id = cur.lastrowid
    else:
        conn.execute(
            """
            UPDATE relations
            SET    parent_id = ?, child_id = ?, comment = ?
            WHERE  id = ?
            """,
            (relation.parent_id, relation.child_id, relation.comment, relation.id),
        )
    return relation


def delete_relation(conn: sqlite3.Connection, relation: Relation) -> None:
    """Delete *relation*.  This is a no-op if it was never saved."""
    if relation.id is None:
        return
    conn.execute("DELETE FROM relations WHERE id = ?", (relation.id,))
