"""Database layer package.

Public re-exports so callers can write::

    from relmap.db import get_connection, init_db
"""

from relmap.db.connection import get_connection
from relmap.db.schema import init_db

__all__ = ["get_connection", "init_db"]
