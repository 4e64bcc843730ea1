"""
SQLite schema for the submissions the spam detectors look back over.

Two tables mirror the host application's submission tables, reduced to the
columns the detectors read:

  listings  (author_id, notes, created_at)    notes may be NULL
  comments  (user_id, content, created_at)

``created_at`` holds fixed-width UTC strings from
``trust_engine.utils.time_utils.to_db_timestamp`` so string comparison is
chronological.  Every statement uses ``IF NOT EXISTS``; ``apply_schema()``
is idempotent.
"""

from __future__ import annotations

import logging
import sqlite3

logger = logging.getLogger(__name__)

_DDL_LISTINGS = """
CREATE TABLE IF NOT EXISTS listings (
    listing_id  INTEGER PRIMARY KEY AUTOINCREMENT,
    author_id   TEXT    NOT NULL,
    notes       TEXT,
    created_at  TEXT    NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_listings_author_created
    ON listings (author_id, created_at);
"""

_DDL_COMMENTS = """
CREATE TABLE IF NOT EXISTS comments (
    comment_id  INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id     TEXT    NOT NULL,
    content     TEXT    NOT NULL,
    created_at  TEXT    NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_comments_user_created
    ON comments (user_id, created_at);
"""

_ALL_DDL = (_DDL_LISTINGS, _DDL_COMMENTS)

ALL_TABLE_NAMES = ("listings", "comments")


def apply_schema(conn: sqlite3.Connection) -> None:
    """Create all tables and indexes on ``conn`` (idempotent)."""
    for ddl in _ALL_DDL:
        for statement in _split_ddl(ddl):
            conn.execute(statement)

    conn.commit()
    logger.info("Schema applied: %d tables verified.", len(ALL_TABLE_NAMES))


def _split_ddl(ddl: str) -> list[str]:
    return [s.strip() for s in ddl.split(";") if s.strip()]


def get_existing_tables(conn: sqlite3.Connection) -> list[str]:
    """Table names present in the database, sorted."""
    rows = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%' "
        "ORDER BY name;"
    ).fetchall()
    return [row[0] for row in rows]
