"""
Spam check request and result models.

``SpamCheckRequest`` describes one freshly submitted piece of text.
``SpamDetectionResult`` is the single verdict the pipeline returns.

Both are frozen and transient: they live for one ``detect_spam()`` call.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class EntityType(str, Enum):
    """Kind of user submission being checked."""

    LISTING = "listing"
    COMMENT = "comment"


class DetectionMethod(str, Enum):
    """Detector that produced a verdict, in pipeline order."""

    RATE_LIMITING       = "rate_limiting"
    DUPLICATE_DETECTION = "duplicate_detection"
    CONTENT_ANALYSIS    = "content_analysis"
    PATTERN_MATCHING    = "pattern_matching"


class SpamCheckRequest(BaseModel):
    """A submission to classify.

    Attributes:
        user_id: Author of the submission.
        content: Free text.  Over-long content is truncated by the service
            before analysis, never rejected here.
        entity_type: ``listing`` or ``comment``.
    """

    model_config = ConfigDict(frozen=True)

    user_id: str
    content: str = ""
    entity_type: EntityType

    @field_validator("content", mode="before")
    @classmethod
    def none_to_empty(cls, v: object) -> object:
        return "" if v is None else v


class SpamDetectionResult(BaseModel):
    """Classification verdict.

    Attributes:
        is_spam: Whether the submission was classified as spam.
        confidence: Detector confidence in [0, 1]; 0 for clean results.
        method: Detector that produced this result.
        reason: Human-readable explanation, set on spam verdicts.
    """

    model_config = ConfigDict(frozen=True)

    is_spam: bool
    confidence: float
    method: DetectionMethod
    reason: Optional[str] = None

    @field_validator("confidence")
    @classmethod
    def validate_confidence(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"confidence must be in [0.0, 1.0], got {v}.")
        return v

    @classmethod
    def clean(
        cls, method: DetectionMethod = DetectionMethod.CONTENT_ANALYSIS
    ) -> "SpamDetectionResult":
        """Neutral non-spam result."""
        return cls(is_spam=False, confidence=0.0, method=method)
