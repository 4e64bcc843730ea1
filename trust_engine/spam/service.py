"""
Spam detection service.

Usage::

    service = SpamDetectionService(store, config=app_config.spam)
    result = await service.detect_spam(
        SpamCheckRequest(user_id="u-1", content=text, entity_type=EntityType.COMMENT)
    )
    if result.is_spam:
        reject(result.reason)

The service holds no per-request state and can be shared across tasks.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from trust_engine.config import DEFAULT_SPAM_CONFIG, SpamDetectionConfig
from trust_engine.models.spam import (
    DetectionMethod,
    SpamCheckRequest,
    SpamDetectionResult,
)
from trust_engine.spam.detectors import (
    DetectionContext,
    check_content_analysis,
    check_duplicate_content,
    check_rate_limit,
    check_spam_patterns,
)
from trust_engine.spam.pipeline import NamedDetector, run_detectors
from trust_engine.spam.store import ContentStore
from trust_engine.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


class SpamDetectionService:
    """Classifies submissions with rate limit → duplicate → content → pattern checks.

    Args:
        store:  Read access to authors' recent submissions.
        config: Detector switches and thresholds.
        clock:  Returns the current UTC time; injectable for tests.
    """

    def __init__(
        self,
        store: ContentStore,
        config: SpamDetectionConfig = DEFAULT_SPAM_CONFIG,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.store = store
        self.config = config
        self._clock = clock or utcnow
        self.detectors: tuple[NamedDetector, ...] = (
            NamedDetector(DetectionMethod.RATE_LIMITING, check_rate_limit,
                          config.enable_rate_limiting),
            NamedDetector(DetectionMethod.DUPLICATE_DETECTION, check_duplicate_content,
                          config.enable_duplicate_detection),
            NamedDetector(DetectionMethod.CONTENT_ANALYSIS, check_content_analysis,
                          config.enable_content_analysis),
            NamedDetector(DetectionMethod.PATTERN_MATCHING, check_spam_patterns,
                          config.enable_pattern_matching),
        )

    async def detect_spam(self, request: SpamCheckRequest) -> SpamDetectionResult:
        """Classify one submission.

        Content longer than ``max_content_length`` is truncated before any
        detector sees it.  Never raises for detector or store failures.

        Returns:
            The first spam verdict, or a clean ``content_analysis`` result.
        """
        content = request.content
        if len(content) > self.config.max_content_length:
            logger.debug(
                "Truncating content from %d to %d chars | user=%s",
                len(content), self.config.max_content_length, request.user_id,
            )
            content = content[: self.config.max_content_length]

        ctx = DetectionContext(
            request=request,
            content=content,
            store=self.store,
            config=self.config,
            now=self._clock(),
        )

        verdict = await run_detectors(
            self.detectors, ctx, timeout_seconds=self.config.detector_timeout_seconds
        )
        return verdict or SpamDetectionResult.clean()
