"""
Aggregation of many listing scores into group scores.

Usage flow
----------
1. aggregate_system_score(listings)
   -> int  (vote-weighted mean of calculate_listing_score, 0–100)

2. calculate_confidence_level(listing_count, total_votes)
   -> "low" | "medium" | "high"

3. aggregate_by_emulator(listings)
   -> list[EmulatorScoring]  (one per emulator id, best score first)

4. aggregate_by_system(listings)
   -> list[SystemScoring]    (one per system id, best score first, each with
                              a nested per-emulator breakdown)

Weighting
---------
    composite_weight = vote_weight * weights.vote_count
                     + recency_weight * weights.recency

    vote_weight    = log10(vote_count + 10)          # 0 votes → 1.0, 100 → 2.04
    recency_weight = 0.9 ** (age_days / 180)         # new → 1.0, 180d → 0.9

With the default weights (vote_count=1.0, recency=0.0) recency is ignored and
listings with more community votes dominate the mean, with diminishing
returns.

Nothing here raises on bad data: empty input gives 0 / [] and records
lacking an emulator or system association are left out of that grouping.
"""

from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Literal, Optional

from trust_engine.config import (
    DEFAULT_SCORING_CONFIG,
    AggregationWeights,
    ConfidenceThresholds,
    RecencyConfig,
    ScoringConfig,
    VoteWeightConfig,
)
from trust_engine.models.listing import EmulatorRef, ScoringListing, SystemRef
from trust_engine.scoring.listing_score import calculate_listing_score, round_half_up
from trust_engine.utils.time_utils import age_in_days, ensure_utc, utcnow

ConfidenceLevel = Literal["low", "medium", "high"]


# ── Weights ───────────────────────────────────────────────────────────────────


def calculate_vote_weight(
    vote_count: int,
    config: VoteWeightConfig = DEFAULT_SCORING_CONFIG.vote_weight,
) -> float:
    """Logarithmic weight for a listing's vote count.

    With defaults: 0 votes → 1.0, 1 → 1.04, 10 → 1.3, 100 → 2.04, 1000 → 3.0.
    """
    votes = max(vote_count, 0)
    return math.log(votes + config.offset) / math.log(config.log_base)


def calculate_recency_weight(
    created_at: Optional[datetime],
    now: Optional[datetime] = None,
    config: RecencyConfig = DEFAULT_SCORING_CONFIG.recency,
) -> float:
    """Exponential-decay weight for a listing's age.

    With defaults: 0 days → 1.0, 180 days → 0.9, 360 days → 0.81.
    Listings without ``created_at`` or dated in the future weigh 1.0.
    """
    if created_at is None:
        return 1.0
    age_days = age_in_days(created_at, now or utcnow())
    if age_days <= 0:
        return 1.0
    return config.decay_rate ** (age_days / config.half_life_days)


# ── Group score ───────────────────────────────────────────────────────────────


def aggregate_system_score(
    listings: Iterable[ScoringListing],
    weights: Optional[AggregationWeights] = None,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
    now: Optional[datetime] = None,
) -> int:
    """Weighted mean of listing scores.

    Args:
        listings: Reports to aggregate.
        weights:  Vote-count / recency mix; defaults to ``config.aggregation``.
        config:   Scoring configuration used for each listing score.
        now:      Reference time for recency (defaults to current UTC time).

    Returns:
        Rounded score in [0, 100]; 0 for empty input or zero total weight.
    """
    weights = weights or config.aggregation
    now = now or utcnow()

    total_weighted_score = 0.0
    total_weight = 0.0

    for listing in listings:
        listing_score = calculate_listing_score(listing, config=config)

        vote_weight = calculate_vote_weight(listing.vote_count, config.vote_weight)
        recency_weight = calculate_recency_weight(listing.created_at, now, config.recency)
        composite_weight = (
            vote_weight * weights.vote_count + recency_weight * weights.recency
        )

        total_weighted_score += listing_score * composite_weight
        total_weight += composite_weight

    if total_weight <= 0:
        return 0
    return round_half_up(total_weighted_score / total_weight)


def calculate_confidence_level(
    listing_count: int,
    total_votes: int,
    thresholds: ConfidenceThresholds = DEFAULT_SCORING_CONFIG.confidence,
) -> ConfidenceLevel:
    """Coarse confidence tier from data quantity.

    A tier is reached only when BOTH its listing and vote thresholds are met:
    10 listings with 5 votes is "medium", 2 listings with 30 votes is "low".
    """
    high = thresholds.medium_to_high
    if listing_count >= high.listings and total_votes >= high.votes:
        return "high"

    medium = thresholds.low_to_medium
    if listing_count >= medium.listings and total_votes >= medium.votes:
        return "medium"

    return "low"


# ── Grouping ──────────────────────────────────────────────────────────────────


@dataclass
class EmulatorScoring:
    """Aggregated scores for one emulator.

    Attributes:
        emulator_id:                Grouping key.
        emulator:                   Emulator reference (from the first listing).
        listings:                   Listings in this group, input order.
        avg_compatibility_score:    ``aggregate_system_score`` of the group.
        avg_performance_rank:       Arithmetic mean performance rank.
        avg_success_rate:           Mean success rate over listings with
                                    votes; ``None`` when none have votes.
        developer_verified_count:   Listings with ≥1 explicit verification.
        authored_by_developer_count: Listings written by a verified developer.
    """

    emulator_id:                 str
    emulator:                    EmulatorRef
    listings:                    list[ScoringListing]
    avg_compatibility_score:     int
    avg_performance_rank:        float
    avg_success_rate:            Optional[float]
    developer_verified_count:    int
    authored_by_developer_count: int

    @property
    def total_votes(self) -> int:
        return sum(l.vote_count for l in self.listings)


@dataclass
class SystemScoring:
    """Aggregated scores for one game system.

    Attributes:
        system_id:                  Grouping key.
        system:                     System reference (from the first listing).
        listings:                   Listings in this group, input order.
        unique_games:               Distinct game ids.
        compatibility_score:        ``aggregate_system_score`` of the group.
        avg_performance_rank:       Arithmetic mean performance rank.
        avg_success_rate:           Mean success rate over listings with votes.
        developer_verified_count:   Listings with ≥1 explicit verification.
        authored_by_developer_count: Listings written by a verified developer.
        total_votes:                Sum of vote counts.
        last_updated:               Most recent ``created_at``; ``None`` if no
                                    listing carries one.
        emulator_breakdown:         ``aggregate_by_emulator`` of the group.
    """

    system_id:                   str
    system:                      SystemRef
    listings:                    list[ScoringListing]
    unique_games:                set[str]
    compatibility_score:         int
    avg_performance_rank:        float
    avg_success_rate:            Optional[float]
    developer_verified_count:    int
    authored_by_developer_count: int
    total_votes:                 int
    last_updated:                Optional[datetime]
    emulator_breakdown:          list[EmulatorScoring] = field(default_factory=list)


def aggregate_by_emulator(
    listings: Iterable[ScoringListing],
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
    now: Optional[datetime] = None,
) -> list[EmulatorScoring]:
    """Group listings by emulator id and score each group.

    Listings without an emulator association are skipped.

    Returns:
        One ``EmulatorScoring`` per emulator, highest score first.
    """
    groups: dict[str, list[ScoringListing]] = defaultdict(list)
    for listing in listings:
        if listing.emulator is None:
            continue
        groups[listing.emulator.id].append(listing)

    results: list[EmulatorScoring] = []
    for emulator_id, group in groups.items():
        results.append(
            EmulatorScoring(
                emulator_id=emulator_id,
                emulator=group[0].emulator,
                listings=group,
                avg_compatibility_score=aggregate_system_score(group, config=config, now=now),
                avg_performance_rank=_mean_performance_rank(group),
                avg_success_rate=_mean_voted_success_rate(group),
                developer_verified_count=_count_developer_verified(group),
                authored_by_developer_count=_count_authored_by_developer(group),
            )
        )

    results.sort(key=lambda r: r.avg_compatibility_score, reverse=True)
    return results


def aggregate_by_system(
    listings: Iterable[ScoringListing],
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
    now: Optional[datetime] = None,
) -> list[SystemScoring]:
    """Group listings by the game's system id and score each group.

    Listings without a game → system association are skipped.

    Returns:
        One ``SystemScoring`` per system, highest score first.
    """
    groups: dict[str, list[ScoringListing]] = defaultdict(list)
    for listing in listings:
        system = listing.system
        if system is None:
            continue
        groups[system.id].append(listing)

    results: list[SystemScoring] = []
    for system_id, group in groups.items():
        results.append(
            SystemScoring(
                system_id=system_id,
                system=group[0].system,
                listings=group,
                unique_games={l.game.id for l in group},
                compatibility_score=aggregate_system_score(group, config=config, now=now),
                avg_performance_rank=_mean_performance_rank(group),
                avg_success_rate=_mean_voted_success_rate(group),
                developer_verified_count=_count_developer_verified(group),
                authored_by_developer_count=_count_authored_by_developer(group),
                total_votes=sum(l.vote_count for l in group),
                last_updated=_latest_created_at(group),
                emulator_breakdown=aggregate_by_emulator(group, config=config, now=now),
            )
        )

    results.sort(key=lambda r: r.compatibility_score, reverse=True)
    return results


# ── Helpers ───────────────────────────────────────────────────────────────────


def _mean_performance_rank(listings: list[ScoringListing]) -> float:
    if not listings:
        return 0.0
    return sum(l.performance_rank for l in listings) / len(listings)


def _mean_voted_success_rate(listings: list[ScoringListing]) -> Optional[float]:
    voted = [l for l in listings if l.vote_count > 0]
    if not voted:
        return None
    return sum(l.success_rate for l in voted) / len(voted)


def _count_developer_verified(listings: list[ScoringListing]) -> int:
    return sum(1 for l in listings if l.verification_count > 0)


def _count_authored_by_developer(listings: list[ScoringListing]) -> int:
    return sum(1 for l in listings if l.is_verified_developer)


def _latest_created_at(listings: list[ScoringListing]) -> Optional[datetime]:
    stamps = [ensure_utc(l.created_at) for l in listings if l.created_at is not None]
    return max(stamps) if stamps else None
