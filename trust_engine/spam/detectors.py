"""
The four spam detectors, in pipeline order.

Each detector is an ``async`` callable taking a ``DetectionContext`` and
returning a ``SpamDetectionResult``.  A clean result carries the detector's
own ``method`` and confidence 0.  Detectors raise freely; the pipeline
runner turns a failure into an abstention.

    rate_limiting        store count over the trailing rate-limit window
    duplicate_detection  store fetch over the trailing duplicate window
    content_analysis     heuristics.analyze_content (no I/O)
    pattern_matching     heuristics.match_spam_patterns (no I/O)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from trust_engine.config import SpamDetectionConfig
from trust_engine.models.spam import (
    DetectionMethod,
    SpamCheckRequest,
    SpamDetectionResult,
)
from trust_engine.spam.heuristics import analyze_content, match_spam_patterns
from trust_engine.spam.store import ContentStore
from trust_engine.spam.text import calculate_similarity, normalize_content
from trust_engine.utils.time_utils import window_start

logger = logging.getLogger(__name__)

RATE_LIMIT_CONFIDENCE = 0.95
DUPLICATE_CONFIDENCE = 0.9


@dataclass(frozen=True)
class DetectionContext:
    """Everything a detector may look at for one request.

    Attributes:
        request: The original request.
        content: Request content after truncation to ``max_content_length``.
        store:   Read access to the author's history.
        config:  Detector thresholds.
        now:     Reference time for the trailing windows.
    """

    request: SpamCheckRequest
    content: str
    store: ContentStore
    config: SpamDetectionConfig
    now: datetime


async def check_rate_limit(ctx: DetectionContext) -> SpamDetectionResult:
    """Flag authors posting ``rate_limit_max`` or more items inside the window."""
    config = ctx.config
    entity_type = ctx.request.entity_type
    since = window_start(ctx.now, minutes=config.rate_limit_window_minutes)

    count = await ctx.store.count_recent_by_author(entity_type, ctx.request.user_id, since)

    if count >= config.rate_limit_max:
        return SpamDetectionResult(
            is_spam=True,
            confidence=RATE_LIMIT_CONFIDENCE,
            method=DetectionMethod.RATE_LIMITING,
            reason=(
                f"Exceeded rate limit: {count} {entity_type.value}s in "
                f"{config.rate_limit_window_minutes:g} minutes"
            ),
        )
    return SpamDetectionResult.clean(DetectionMethod.RATE_LIMITING)


async def check_duplicate_content(ctx: DetectionContext) -> SpamDetectionResult:
    """Flag content nearly identical to several of the author's recent items."""
    config = ctx.config
    entity_type = ctx.request.entity_type
    since = window_start(ctx.now, hours=config.duplicate_window_hours)

    recent = await ctx.store.find_recent_content_by_author(
        entity_type,
        ctx.request.user_id,
        since,
        limit=config.max_recent_items,
        most_recent_first=True,
    )

    candidate = normalize_content(ctx.content)
    duplicates = 0
    for item in recent:
        if not item.text:
            continue
        similarity = calculate_similarity(candidate, normalize_content(item.text))
        if similarity > config.duplicate_similarity_threshold:
            duplicates += 1

    logger.debug(
        "Duplicate check | user=%s | recent=%d | duplicates=%d",
        ctx.request.user_id, len(recent), duplicates,
    )

    if duplicates >= config.duplicate_min_count:
        return SpamDetectionResult(
            is_spam=True,
            confidence=DUPLICATE_CONFIDENCE,
            method=DetectionMethod.DUPLICATE_DETECTION,
            reason=(
                f"Found {duplicates} very similar {entity_type.value}s in the last "
                f"{config.duplicate_window_hours:g} hours"
            ),
        )
    return SpamDetectionResult.clean(DetectionMethod.DUPLICATE_DETECTION)


async def check_content_analysis(ctx: DetectionContext) -> SpamDetectionResult:
    score = analyze_content(ctx.content)
    if score.is_spam:
        return SpamDetectionResult(
            is_spam=True,
            confidence=score.confidence,
            method=DetectionMethod.CONTENT_ANALYSIS,
            reason="Spam characteristics detected: " + ", ".join(score.reasons),
        )
    return SpamDetectionResult.clean(DetectionMethod.CONTENT_ANALYSIS)


async def check_spam_patterns(ctx: DetectionContext) -> SpamDetectionResult:
    score = match_spam_patterns(ctx.content)
    if score.is_spam:
        return SpamDetectionResult(
            is_spam=True,
            confidence=score.confidence,
            method=DetectionMethod.PATTERN_MATCHING,
            reason="Matched spam patterns: " + ", ".join(score.reasons),
        )
    return SpamDetectionResult.clean(DetectionMethod.PATTERN_MATCHING)
