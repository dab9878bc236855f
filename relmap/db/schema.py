"""Schema initialisation.

``init_db(conn)`` runs the bundled ``schema.sql``; every statement in it is
``IF NOT EXISTS`` so it is safe to call on an existing database.
"""

from __future__ import annotations

import sqlite3

from relmap.config import settings


def init_db(conn: sqlite3.Connection) -> None:
    """Create the host-model and relation-store tables and their indexes."""
    sql = settings.schema_path.read_text(encoding="utf-8")
    # executescript() issues an implicit COMMIT first, fine for DDL-only scripts.
    conn.executescript(sql)
