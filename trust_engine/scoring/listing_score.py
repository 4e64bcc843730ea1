"""
Single-listing compatibility score (0–100).

Score formula
-------------
Untrusted author (trust_score < 0):
    score = 0                         # hard exclusion, not a partial penalty

No votes yet (vote_count == 0):
    score = min(100, performance_quality + verification_boost + trust_boost)

Has votes:
    score = min(100,
        performance_quality * weights.performance        # default 0.5
        + success_rate * 100 * weights.vote_confidence   # default 0.3
        + verification_boost                             # additive, 0–20
    )

The two branches differ: without community votes the
author's rating stands almost alone (plus small trust/verification boosts);
once votes exist the community signal takes 30% of the weight and the trust
boost no longer applies.

Component explanations
----------------------
performance_quality (0–100):
    Fixed lookup from the 8-tier performance rank. Unknown ranks → 0.

verification_boost (0–20):
    +10 when the author is a verified developer of the emulator, plus 5 per
    explicit developer verification capped at 10. Total capped at 20.

trust_boost (0–5):
    trust_score * 0.1 capped at 5. Zero or negative trust → 0.

The final score is rounded half-up to an integer.
"""

from __future__ import annotations

import math
from typing import Optional

from trust_engine.config import (
    DEFAULT_SCORING_CONFIG,
    ScoreWeights,
    ScoringConfig,
    TrustConfig,
    VerificationConfig,
)
from trust_engine.models.listing import ScoringListing

# Rank → quality score (lower rank = better performance)
PERFORMANCE_RANK_TO_QUALITY: dict[int, int] = {
    1: 100,   # Perfect: plays perfectly
    2: 85,    # Great: very few non-game-breaking issues
    3: 70,    # Playable: minor issues or frame drops
    4: 40,    # Poor: FPS in single digits
    5: 30,    # Ingame: major issues
    6: 15,    # Intro: doesn't play past intro/menu
    7: 5,     # Loadable: loads but doesn't play
    8: 0,     # Nothing: doesn't work at all
}

MAX_SCORE = 100


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives.

    ``round()`` uses banker's rounding (``round(78.5) == 78``), which would
    shift scores sitting exactly on a half point.
    """
    return int(math.floor(value + 0.5))


def get_performance_quality_score(performance_rank: Optional[int]) -> int:
    """Quality score (0–100) for a performance rank; unknown ranks → 0."""
    if performance_rank is None:
        return 0
    return PERFORMANCE_RANK_TO_QUALITY.get(performance_rank, 0)


def get_verification_boost(
    is_verified_developer: bool,
    verification_count: int,
    config: VerificationConfig = DEFAULT_SCORING_CONFIG.verification,
) -> float:
    """Developer verification boost (0–20 points with default config).

    Args:
        is_verified_developer: Author is a verified developer of the emulator.
        verification_count:    Number of explicit developer verifications.
        config:                Point values and caps.

    Returns:
        Boost in points, never above ``config.total_cap``.
    """
    boost = 0.0

    if is_verified_developer:
        boost += config.author_is_verified_developer

    if verification_count > 0:
        boost += min(
            verification_count * config.per_explicit_verification,
            config.max_from_verifications,
        )

    return min(boost, config.total_cap)


def listing_verification_boost(
    listing: ScoringListing,
    config: VerificationConfig = DEFAULT_SCORING_CONFIG.verification,
) -> float:
    """``get_verification_boost`` applied to a listing."""
    return get_verification_boost(
        listing.is_verified_developer, listing.verification_count, config
    )


def calculate_trust_boost(
    trust_score: Optional[float],
    config: TrustConfig = DEFAULT_SCORING_CONFIG.trust,
) -> float:
    """Positive-only trust boost (0–5 points with default config).

    50 trust → 5 points, 25 trust → 2.5 points, 10 trust → 1 point.
    """
    if trust_score is None or trust_score <= 0:
        return 0.0
    return min(config.max_boost, trust_score * config.multiplier)


def calculate_listing_score(
    listing: ScoringListing,
    weights: Optional[ScoreWeights] = None,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> int:
    """Compute one listing's compatibility score (integer in [0, 100]).

    Args:
        listing: The compatibility report.
        weights: Weights for the has-votes branch; defaults to ``config.weights``.
        config:  Scoring configuration (verification and trust settings).

    Returns:
        Rounded score. 0 when the author's trust score is negative.
    """
    weights = weights or config.weights

    trust_score = listing.trust_score
    if trust_score < 0:
        return 0

    performance_score = get_performance_quality_score(listing.performance_rank)
    verification_boost = listing_verification_boost(listing, config.verification)

    if listing.vote_count == 0:
        trust_boost = calculate_trust_boost(trust_score, config.trust)
        final_score = min(MAX_SCORE, performance_score + verification_boost + trust_boost)
        return _clamp_score(final_score)

    vote_confidence = listing.success_rate * 100
    base_score = (
        performance_score * weights.performance
        + vote_confidence * weights.vote_confidence
    )
    final_score = min(MAX_SCORE, base_score + verification_boost)
    return _clamp_score(final_score)


def _clamp_score(value: float) -> int:
    if math.isnan(value):
        return 0
    return max(0, min(MAX_SCORE, round_half_up(value)))
