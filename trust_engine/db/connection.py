"""
SQLite connection management.

``get_connection()`` is a context manager that:
  - Creates the database file's parent directory when needed.
  - Sets a busy timeout so concurrent CLI runs wait instead of failing.
  - Optionally switches to WAL journal mode.
  - Uses ``sqlite3.Row`` so rows support access by column name.
  - Commits on clean exit, rolls back on exception, always closes.

Usage::

    from trust_engine.db.connection import get_connection

    with get_connection(config.database.db_path) as conn:
        store = SqliteContentStore(conn)
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

logger = logging.getLogger(__name__)


@contextmanager
def get_connection(
    db_path: str,
    wal_mode: bool = True,
    busy_timeout_ms: int = 5000,
) -> Generator[sqlite3.Connection, None, None]:
    """Yield a configured SQLite connection.

    Args:
        db_path: Database file path, or ``":memory:"``.
        wal_mode: Enable WAL journal mode (ignored for in-memory databases).
        busy_timeout_ms: How long to wait on a locked database.

    Raises:
        sqlite3.OperationalError: If the database cannot be opened or stays locked.
    """
    in_memory = db_path == ":memory:"
    if not in_memory:
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path, timeout=busy_timeout_ms / 1000)
    conn.row_factory = sqlite3.Row
    logger.debug("Opened SQLite connection | path=%s", db_path)

    try:
        conn.execute(f"PRAGMA busy_timeout = {int(busy_timeout_ms)};")
        if wal_mode and not in_memory:
            conn.execute("PRAGMA journal_mode = WAL;")

        yield conn
        conn.commit()

    except Exception:
        conn.rollback()
        raise

    finally:
        conn.close()
