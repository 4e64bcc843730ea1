"""
Compatibility report (listing) models consumed by the scoring engine.

``ScoringListing`` is the only input the scoring functions need.  It is
assembled by the host application from its relational store; the scoring
engine never loads or persists it.

Every field that the scoring formulas read has a neutral default so a
half-populated record still scores (to 0 if nothing useful is present)
instead of aborting a batch aggregation.

All models are frozen.  ``tag_verified_developers()`` in
``trust_engine.scoring.device_report`` uses ``model_copy(update=...)`` to
derive the ``is_verified_developer`` flag.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ListingAuthor(BaseModel):
    """Author of a listing.

    Attributes:
        id: User identifier.
        trust_score: Signed community reputation.  ``None`` is treated as 0.
    """

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    trust_score: Optional[float] = None

    @field_validator("trust_score")
    @classmethod
    def finite_trust_score(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and not math.isfinite(v):
            return None
        return v


class EmulatorRef(BaseModel):
    """Emulator association, used only for grouping."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    logo: Optional[str] = None


class SystemRef(BaseModel):
    """Game system (console/platform) association.

    Attributes:
        id: System identifier.
        name: Display name, e.g. ``"Nintendo Switch"``.
        key: Optional slug, e.g. ``"nintendo_switch"``.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    key: Optional[str] = None


class GameRef(BaseModel):
    """Game association; the nested ``system`` drives per-system grouping."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: Optional[str] = None
    system: Optional[SystemRef] = None


class DeveloperVerification(BaseModel):
    """An explicit endorsement by a recognized developer.

    Only the number of verifications affects scoring.
    """

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    developer_id: Optional[str] = None
    verified_at: Optional[datetime] = None


class ScoringListing(BaseModel):
    """One compatibility report as seen by the scoring engine.

    Attributes:
        id: Listing identifier.
        performance_rank: Author's self-reported tier, 1 (perfect) – 8 (nothing).
        success_rate: Caller-supplied community confidence in [0, 1]
            (e.g. a Wilson lower bound over up/down votes).
        vote_count: Total votes cast on the listing.
        upvote_count: Upvotes.
        downvote_count: Downvotes.
        is_verified_developer: Author is a recognized developer of the emulator.
        developer_verifications: Explicit developer endorsements.
        author: Author reference carrying the trust score.
        emulator: Emulator association (grouping only).
        game: Game association with nested system (grouping only).
        device_id: Device the report was made on (SoC fallback bookkeeping).
        created_at: Submission time; ``None`` disables recency weighting
            for this record.
    """

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    performance_rank: int = 0
    success_rate: float = 0.0
    vote_count: int = 0
    upvote_count: int = 0
    downvote_count: int = 0
    is_verified_developer: bool = False
    developer_verifications: list[DeveloperVerification] = Field(default_factory=list)
    author: Optional[ListingAuthor] = None
    emulator: Optional[EmulatorRef] = None
    game: Optional[GameRef] = None
    device_id: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator(
        "performance_rank", "vote_count", "upvote_count", "downvote_count", mode="before"
    )
    @classmethod
    def clamp_counts(cls, v: object) -> object:
        # Missing or negative values are data errors upstream; treat them as 0.
        if v is None:
            return 0
        if isinstance(v, (int, float)) and v < 0:
            return 0
        return v

    @field_validator("success_rate", mode="before")
    @classmethod
    def none_success_rate(cls, v: object) -> object:
        return 0.0 if v is None else v

    @field_validator("success_rate")
    @classmethod
    def finite_success_rate(cls, v: float) -> float:
        return v if math.isfinite(v) else 0.0

    @field_validator("developer_verifications", mode="before")
    @classmethod
    def none_to_empty(cls, v: object) -> object:
        return [] if v is None else v

    @property
    def trust_score(self) -> float:
        """Author trust score with ``None`` / missing author mapped to 0."""
        if self.author is None or self.author.trust_score is None:
            return 0.0
        return self.author.trust_score

    @property
    def verification_count(self) -> int:
        return len(self.developer_verifications)

    @property
    def system(self) -> Optional[SystemRef]:
        """The associated system, if the game association carries one."""
        return self.game.system if self.game is not None else None
