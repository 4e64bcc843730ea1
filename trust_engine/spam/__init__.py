"""
Spam detection for user-submitted listings and comments.

Modules
-------
text       : normalize_content(), calculate_similarity()
heuristics : content-analysis and pattern-matching scorers (pure)
store      : ContentStore protocol + RecentContent
detectors  : the four async detectors
pipeline   : NamedDetector + run_detectors() (first verdict wins, fail-open)
service    : SpamDetectionService.detect_spam()
"""

from trust_engine.spam.service import SpamDetectionService
from trust_engine.spam.store import ContentStore, RecentContent
from trust_engine.spam.text import calculate_similarity, normalize_content

__all__ = [
    "ContentStore",
    "RecentContent",
    "SpamDetectionService",
    "calculate_similarity",
    "normalize_content",
]
