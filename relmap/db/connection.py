"""SQLite connection factory.

One connection is shared by the entity services, the relation mapping
events and the CLI commands.  Relation writes rely on the connection's
implicit transactions, so callers group a reconciliation with ``with conn:``.

Usage::

    from relmap.db.connection import get_connection

    conn = get_connection()
    init_db(conn)
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Optional

from relmap.config import settings


def get_connection(db_path: Optional[Path] = None) -> sqlite3.Connection:
    """Open the relmap database.

    Rows come back as :class:`sqlite3.Row`.  Foreign keys are enforced so
    relations disappear with their relation type, and WAL lets the CLI read
    while a save batch is writing.

    Args:
        db_path: Override the DB path (``":memory:"`` in tests).  Defaults to
            ``settings.db_path``, creating the workspace directory if needed.
    """
    path = db_path or settings.db_path
    if str(path) != ":memory:":
        settings.ensure_workspace()

    conn = sqlite3.connect(str(path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    conn.execute("PRAGMA journal_mode = WAL")
    return conn
