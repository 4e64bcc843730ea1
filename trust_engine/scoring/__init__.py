"""
Compatibility scoring engine: turns compatibility reports into 0–100 scores.

Modules
-------
listing_score : quality lookup, verification/trust boosts and
                calculate_listing_score(); pure functions, no I/O.
aggregate     : vote/recency weights, aggregate_system_score(),
                calculate_confidence_level(), aggregate_by_emulator(),
                aggregate_by_system().
device_report : per-device report with same-SoC fallback.
"""

from trust_engine.scoring.aggregate import (
    EmulatorScoring,
    SystemScoring,
    aggregate_by_emulator,
    aggregate_by_system,
    aggregate_system_score,
    calculate_confidence_level,
    calculate_recency_weight,
    calculate_vote_weight,
)
from trust_engine.scoring.listing_score import (
    PERFORMANCE_RANK_TO_QUALITY,
    calculate_listing_score,
    calculate_trust_boost,
    get_performance_quality_score,
    get_verification_boost,
)

__all__ = [
    "PERFORMANCE_RANK_TO_QUALITY",
    "EmulatorScoring",
    "SystemScoring",
    "aggregate_by_emulator",
    "aggregate_by_system",
    "aggregate_system_score",
    "calculate_confidence_level",
    "calculate_listing_score",
    "calculate_recency_weight",
    "calculate_trust_boost",
    "calculate_vote_weight",
    "get_performance_quality_score",
    "get_verification_boost",
]
