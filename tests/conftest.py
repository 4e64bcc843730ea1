"""
Shared pytest fixtures for the Content Trust Engine test suite.

Provides:
  - ``in_memory_db``: A fresh in-memory SQLite connection with the schema
    applied.  Created anew for each test that requests it.
  - ``now``: A fixed reference time so recency and window maths are stable.
  - ``make_listing``: Factory for ``ScoringListing`` objects with sensible
    defaults and optional emulator / system associations.
  - ``fake_store``: ``AsyncMock``-backed ``ContentStore`` reporting an empty
    history by default.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from typing import Callable, Generator, Optional
from unittest.mock import AsyncMock

import pytest

from trust_engine.db.schema import apply_schema
from trust_engine.models.listing import (
    DeveloperVerification,
    EmulatorRef,
    GameRef,
    ListingAuthor,
    ScoringListing,
    SystemRef,
)

FIXED_NOW = datetime(2026, 3, 15, 12, 0, 0, tzinfo=timezone.utc)


# ── Database fixture ──────────────────────────────────────────────────────────

@pytest.fixture
def in_memory_db() -> Generator[sqlite3.Connection, None, None]:
    """Yield a fresh in-memory SQLite connection with the schema applied."""
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    apply_schema(conn)
    yield conn
    conn.close()


# ── Time ──────────────────────────────────────────────────────────────────────

@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


# ── Listing factory ───────────────────────────────────────────────────────────

@pytest.fixture
def make_listing() -> Callable[..., ScoringListing]:
    """Return a factory building ``ScoringListing`` objects.

    Keyword arguments:
        emulator:   emulator id (name derived as ``"Emu <id>"``); ``None`` skips.
        system:     system id (name derived as ``"System <id>"``); ``None`` skips.
        game:       game id; defaults to ``"game-<listing id>"``.
        trust:      author trust score.
        author_id:  author id.
        verifications: number of explicit developer verifications.
        Anything else is passed to ``ScoringListing`` unchanged.
    """
    counter = {"n": 0}

    def _make(
        performance_rank: int = 1,
        success_rate: float = 0.0,
        vote_count: int = 0,
        emulator: Optional[str] = "emu-1",
        system: Optional[str] = "sys-1",
        game: Optional[str] = None,
        trust: Optional[float] = None,
        author_id: Optional[str] = "author-1",
        verifications: int = 0,
        **kwargs,
    ) -> ScoringListing:
        counter["n"] += 1
        listing_id = kwargs.pop("id", f"listing-{counter['n']}")
        game_ref = None
        if system is not None or game is not None:
            game_ref = GameRef(
                id=game or f"game-{listing_id}",
                system=SystemRef(id=system, name=f"System {system}") if system else None,
            )
        return ScoringListing(
            id=listing_id,
            performance_rank=performance_rank,
            success_rate=success_rate,
            vote_count=vote_count,
            author=ListingAuthor(id=author_id, trust_score=trust),
            emulator=EmulatorRef(id=emulator, name=f"Emu {emulator}") if emulator else None,
            game=game_ref,
            developer_verifications=[
                DeveloperVerification(id=f"v{i}") for i in range(verifications)
            ],
            **kwargs,
        )

    return _make


# ── Spam store fake ───────────────────────────────────────────────────────────

@pytest.fixture
def fake_store() -> AsyncMock:
    """A ``ContentStore`` fake: no recent submissions unless a test says so."""
    store = AsyncMock()
    store.count_recent_by_author.return_value = 0
    store.find_recent_content_by_author.return_value = []
    return store
