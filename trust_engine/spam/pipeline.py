"""
Ordered, short-circuiting detector runner.

``run_detectors()`` awaits each enabled ``NamedDetector`` in turn and returns
the first spam verdict.  A detector that raises or exceeds its timeout
abstains: the failure is logged at WARNING and the next detector runs.
Only ``asyncio.CancelledError`` (a ``BaseException``) propagates.

Detectors are awaited one at a time, so a later detector's store query is
never issued once an earlier one has returned a verdict.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Sequence

from trust_engine.models.spam import DetectionMethod, SpamDetectionResult
from trust_engine.spam.detectors import DetectionContext

logger = logging.getLogger(__name__)

DetectorFn = Callable[[DetectionContext], Awaitable[SpamDetectionResult]]


@dataclass(frozen=True)
class NamedDetector:
    """A detector plus the config switch that enables it."""

    method: DetectionMethod
    check: DetectorFn
    enabled: bool = True


async def run_detectors(
    detectors: Sequence[NamedDetector],
    ctx: DetectionContext,
    timeout_seconds: Optional[float] = None,
) -> Optional[SpamDetectionResult]:
    """Run ``detectors`` in order; return the first spam verdict or ``None``.

    Args:
        detectors:       Pipeline in execution order.  Disabled entries are
                         skipped without being awaited.
        ctx:             Per-request detection context.
        timeout_seconds: Per-detector time limit.  ``None`` or ``0`` waits
                         indefinitely.

    Returns:
        The winning ``SpamDetectionResult``, or ``None`` when every enabled
        detector reported clean or abstained.
    """
    for detector in detectors:
        if not detector.enabled:
            continue

        log_extra = {
            "detector": detector.method.value,
            "user_id": ctx.request.user_id,
        }
        try:
            if timeout_seconds:
                result = await asyncio.wait_for(detector.check(ctx), timeout=timeout_seconds)
            else:
                result = await detector.check(ctx)
        except asyncio.TimeoutError:
            logger.warning(
                "Detector %s timed out after %.1fs, continuing with other checks",
                detector.method.value, timeout_seconds,
                extra=log_extra,
            )
            continue
        except Exception:
            logger.warning(
                "Detector %s failed, continuing with other checks",
                detector.method.value,
                exc_info=True,
                extra=log_extra,
            )
            continue

        if result.is_spam:
            logger.info(
                "Spam detected | method=%s | confidence=%.2f | user=%s",
                result.method.value, result.confidence, ctx.request.user_id,
                extra=log_extra,
            )
            return result

    return None
