"""
SQLite-backed ``ContentStore`` for the spam detectors.

``SqliteContentStore`` satisfies ``trust_engine.spam.store.ContentStore``
over the ``listings`` and ``comments`` tables, and adds
``record_submission()`` so the CLI can persist accepted submissions.

The async methods run their query inline on the calling thread: sqlite3
connections are bound to the thread that created them, and the look-back
queries are single indexed range scans.  Because they never yield to the
event loop, the pipeline's per-detector timeout cannot interrupt them; a
locked database is bounded by ``DatabaseConfig.busy_timeout_ms`` instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from trust_engine.db.repositories.base import BaseRepository
from trust_engine.models.spam import EntityType
from trust_engine.spam.store import RecentContent
from trust_engine.utils.time_utils import to_db_timestamp, utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _TableSpec:
    table: str
    author_column: str
    text_column: str


_TABLES: dict[EntityType, _TableSpec] = {
    EntityType.LISTING: _TableSpec("listings", "author_id", "notes"),
    EntityType.COMMENT: _TableSpec("comments", "user_id", "content"),
}


class SqliteContentStore(BaseRepository):
    """Read/write access to submission history in ``listings`` / ``comments``."""

    async def count_recent_by_author(
        self,
        entity_type: EntityType,
        author_id: str,
        since: datetime,
    ) -> int:
        spec = _TABLES[EntityType(entity_type)]
        row = self.fetchone(
            f"""
            SELECT COUNT(*) AS n FROM {spec.table}
            WHERE {spec.author_column} = ? AND created_at >= ?;
            """,
            (author_id, to_db_timestamp(since)),
        )
        return int(row["n"]) if row else 0

    async def find_recent_content_by_author(
        self,
        entity_type: EntityType,
        author_id: str,
        since: datetime,
        limit: int,
        most_recent_first: bool = True,
    ) -> list[RecentContent]:
        spec = _TABLES[EntityType(entity_type)]
        order = "DESC" if most_recent_first else "ASC"
        rows = self.fetchall(
            f"""
            SELECT {spec.text_column} AS text, created_at FROM {spec.table}
            WHERE {spec.author_column} = ? AND created_at >= ?
            ORDER BY created_at {order}, rowid {order}
            LIMIT ?;
            """,
            (author_id, to_db_timestamp(since), limit),
        )
        return [
            RecentContent(text=row["text"], created_at=_parse_db_timestamp(row["created_at"]))
            for row in rows
        ]

    def record_submission(
        self,
        entity_type: EntityType,
        author_id: str,
        text: Optional[str],
        created_at: Optional[datetime] = None,
    ) -> int:
        """Insert a submission and return its row id.

        Comments require text; an empty or ``None`` comment body is stored
        as ``""``.
        """
        spec = _TABLES[EntityType(entity_type)]
        if entity_type == EntityType.COMMENT and text is None:
            text = ""
        cursor = self.execute(
            f"""
            INSERT INTO {spec.table} ({spec.author_column}, {spec.text_column}, created_at)
            VALUES (?, ?, ?);
            """,
            (author_id, text, to_db_timestamp(created_at or utcnow())),
        )
        logger.debug(
            "Recorded %s | author=%s | rowid=%s",
            EntityType(entity_type).value, author_id, cursor.lastrowid,
        )
        return int(cursor.lastrowid)


def _parse_db_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))
