"""
Storage collaborator the spam detectors query.

``ContentStore`` is a structural protocol: any object with these two async
methods works, e.g. ``trust_engine.db.repositories.content_repo.SqliteContentStore``
or an ``AsyncMock`` in tests.  The detectors only ever read through it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol, runtime_checkable

from trust_engine.models.spam import EntityType


@dataclass(frozen=True)
class RecentContent:
    """One prior submission by the same author.

    ``text`` is the listing notes or comment body; listings may have none.
    """

    text: Optional[str]
    created_at: Optional[datetime] = None


@runtime_checkable
class ContentStore(Protocol):
    """Read access to an author's recent submissions."""

    async def count_recent_by_author(
        self,
        entity_type: EntityType,
        author_id: str,
        since: datetime,
    ) -> int:
        """Number of ``entity_type`` records by ``author_id`` created at or after ``since``."""
        ...

    async def find_recent_content_by_author(
        self,
        entity_type: EntityType,
        author_id: str,
        since: datetime,
        limit: int,
        most_recent_first: bool = True,
    ) -> list[RecentContent]:
        """Up to ``limit`` of the author's records created at or after ``since``."""
        ...
