"""
Stateless text heuristics behind the content-analysis and pattern-matching
detectors.

Two independent scoring passes
------------------------------
analyze_content(text)      -> HeuristicScore
    Surface signals (shouting, punctuation runs, stretched words, shortener
    keywords, emoji floods).  Every triggered signal adds 0.75.

match_spam_patterns(text)  -> HeuristicScore
    Weighted regex buckets:

    ======================  ======  =====================================
    bucket                  weight  examples
    ======================  ======  =====================================
    classic spam phrases    0.75    click here, online pharmacy, casino
    modern scam phrasing    0.80    airdrop, seed phrase, DM me
    suspicious TLDs         0.70    .xyz, .top, .icu
    URL shortener services  0.75    bit.ly, t.co, cutt.ly
    leetspeak               0–1.0   fr33, c4$h, b1tc01n
    unicode obfuscation     0–1.0   Cyrillic look-alikes, zero-width chars
    excessive URLs          0–1.2   0.4 per URL beyond the second, max 3
    ======================  ======  =====================================

Either pass reports spam once its total reaches ``SPAM_SCORE_THRESHOLD``
(0.7); confidence is the total capped at ``MAX_CONFIDENCE`` (0.99).

All patterns are compiled once at import time.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional

SPAM_SCORE_THRESHOLD = 0.7
MAX_CONFIDENCE = 0.99

# ── Content analysis ──────────────────────────────────────────────────────────

CONTENT_SIGNAL_WEIGHT = 0.75
CAPS_RATIO = 0.5
CAPS_MIN_LENGTH = 20
PUNCTUATION_MIN_MATCHES = 2
EMOJI_MAX_COUNT = 10

_UPPERCASE = re.compile(r"[A-Z]")
_PUNCTUATION_RUN = re.compile(r"[!?]{2,}")
_REPEATED_CHAR = re.compile(r"(.)\1{4,}")
_SHORTENER_KEYWORD = re.compile(
    r"\b(bit\.ly|tinyurl|goo\.gl|shortened|redirect|click-here)\b", re.IGNORECASE
)
_EMOJI = re.compile(r"[\U0001F300-\U0001F9FF]")

# ── Pattern matching ──────────────────────────────────────────────────────────

CLASSIC_PHRASE_WEIGHT = 0.75
MODERN_SCAM_WEIGHT = 0.8
SUSPICIOUS_TLD_WEIGHT = 0.7
URL_SHORTENER_WEIGHT = 0.75
URL_EXCESS_WEIGHT = 0.4
URL_EXCESS_FREE = 2          # URLs tolerated before the bonus starts
URL_EXCESS_MAX_STEPS = 3

CLASSIC_SPAM_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"\b(click here|buy now|limited time|act now|free money|get rich|work from home)\b",
        r"\b(viagra|cialis|casino|poker|lottery)\b",
        r"\b(congratulations!? you['’]?ve won|you are a winner)\b",
        r"\b(cheap (meds|pills|drugs)|online pharmacy)\b",
        r"\b(mlm|multi-level marketing|pyramid scheme)\b",
    )
)

MODERN_SCAM_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"\b(airdrop|claim your tokens?|connect (your )?wallet|seed phrase)\b",
        r"\b(dm me|whitelist spot|guaranteed returns?)\b",
        r"\b(double your (crypto|bitcoin|btc|eth)|\d+x gains)\b",
        r"\b(exclusive discord|free nfts?)\b",
    )
)

SUSPICIOUS_TLD_PATTERN = re.compile(
    r"\b[a-z0-9-]+\.(xyz|top|click|loan|work|tk|ml|ga|cf|gq|buzz|rest|icu|cam)\b",
    re.IGNORECASE,
)

URL_SHORTENER_PATTERN = re.compile(
    r"\b(bit\.ly|tinyurl\.com|goo\.gl|t\.co|ow\.ly|is\.gd|buff\.ly|rebrand\.ly"
    r"|cutt\.ly|shorturl\.at)/",
    re.IGNORECASE,
)

URL_PATTERN = re.compile(r"https?://\S+|www\.\S+", re.IGNORECASE)

# Leetspeak: substitution density plus obfuscated keywords.  The word patterns
# also match the plain spelling.
LEET_SUBSTITUTION_CHARS = frozenset("@4$!")
LEET_DENSITY_RATIO = 0.05
LEET_DENSITY_MIN_COUNT = 3
LEET_DENSITY_WEIGHT = 0.3
LEET_SINGLE_WORD_WEIGHT = 0.4
LEET_MULTI_WORD_WEIGHT = 0.7

LEETSPEAK_WORD_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"\bfr[e3]{2}\b",
        r"\bw[i1!]n\b",
        r"\bc[a@4][s$5]h\b",
        r"\bb[i1!]tc[o0][i1!]n\b",
        r"\bm[o0]n[e3]y\b",
        r"\bpr[i1!]z[e3]\b",
    )
)

# Unicode obfuscation: Latin text salted with look-alike letters or
# invisible formatting characters.
_LATIN_LETTER = re.compile(r"[A-Za-z\u00C0-\u024F]")
_LOOKALIKE_LETTER = re.compile(r"[\u0370-\u03FF\u0400-\u04FF]")   # Greek, Cyrillic
_INVISIBLE_CHAR = re.compile(r"[\u200B-\u200F\u202A-\u202E\u2060-\u2064\uFEFF\u00AD]")
MIXED_SCRIPT_MIN_LATIN = 5
MIXED_SCRIPT_RATIO_BOUNDS = (0.1, 0.9)
MIXED_SCRIPT_WEIGHT = 0.6
INVISIBLE_CHAR_MAX = 2
INVISIBLE_CHAR_WEIGHT = 0.5


@dataclass
class HeuristicScore:
    """Accumulated score of one heuristic pass.

    Attributes:
        score:   Sum of triggered weights (uncapped).
        reasons: Human-readable label per triggered signal, in check order.
    """

    score: float = 0.0
    reasons: list[str] = field(default_factory=list)

    def add(self, weight: float, reason: str) -> None:
        self.score += weight
        self.reasons.append(reason)

    @property
    def is_spam(self) -> bool:
        return self.score >= SPAM_SCORE_THRESHOLD

    @property
    def confidence(self) -> float:
        return min(self.score, MAX_CONFIDENCE)


# ── Content analysis ──────────────────────────────────────────────────────────


def analyze_content(content: str) -> HeuristicScore:
    """Score surface-level spam characteristics of ``content``."""
    result = HeuristicScore()
    if not content:
        return result

    caps_ratio = len(_UPPERCASE.findall(content)) / len(content)
    if caps_ratio > CAPS_RATIO and len(content) > CAPS_MIN_LENGTH:
        result.add(CONTENT_SIGNAL_WEIGHT, "excessive capitalization")

    if len(_PUNCTUATION_RUN.findall(content)) >= PUNCTUATION_MIN_MATCHES:
        result.add(CONTENT_SIGNAL_WEIGHT, "excessive punctuation")

    if _REPEATED_CHAR.search(content):
        result.add(CONTENT_SIGNAL_WEIGHT, "repeated characters")

    if _SHORTENER_KEYWORD.search(content):
        result.add(CONTENT_SIGNAL_WEIGHT, "suspicious shortened URLs")

    if len(_EMOJI.findall(content)) > EMOJI_MAX_COUNT:
        result.add(CONTENT_SIGNAL_WEIGHT, "excessive emoji usage")

    return result


# ── Pattern matching ──────────────────────────────────────────────────────────


def _first_match(patterns: tuple[re.Pattern[str], ...], content: str) -> Optional[str]:
    for pattern in patterns:
        match = pattern.search(content)
        if match:
            return match.group(0)
    return None


def leetspeak_score(content: str) -> float:
    """Leetspeak obfuscation sub-score in [0, 1].

    +0.3 when ``@ 4 $ !`` are at least 3 in number and more than 5% of the
    non-whitespace characters.  Independently, +0.7 for two or more
    obfuscated-keyword hits or +0.4 for exactly one.
    """
    score = 0.0

    non_whitespace = [c for c in content if not c.isspace()]
    if non_whitespace:
        substitutions = sum(1 for c in non_whitespace if c in LEET_SUBSTITUTION_CHARS)
        if (
            substitutions >= LEET_DENSITY_MIN_COUNT
            and substitutions / len(non_whitespace) > LEET_DENSITY_RATIO
        ):
            score += LEET_DENSITY_WEIGHT

    word_hits = sum(1 for p in LEETSPEAK_WORD_PATTERNS if p.search(content))
    if word_hits >= 2:
        score += LEET_MULTI_WORD_WEIGHT
    elif word_hits == 1:
        score += LEET_SINGLE_WORD_WEIGHT

    return min(score, 1.0)


def unicode_obfuscation_score(content: str) -> float:
    """Mixed-script / invisible-character sub-score in [0, 1].

    +0.6 when more than 5 Latin letters are mixed with Greek or Cyrillic
    letters and the non-Latin share lies strictly between 0.1 and 0.9.
    +0.5 for more than 2 zero-width or bidi formatting characters.
    """
    score = 0.0

    latin = len(_LATIN_LETTER.findall(content))
    lookalike = len(_LOOKALIKE_LETTER.findall(content))
    if latin > MIXED_SCRIPT_MIN_LATIN and lookalike > 0:
        ratio = lookalike / (latin + lookalike)
        low, high = MIXED_SCRIPT_RATIO_BOUNDS
        if low < ratio < high:
            score += MIXED_SCRIPT_WEIGHT

    if len(_INVISIBLE_CHAR.findall(content)) > INVISIBLE_CHAR_MAX:
        score += INVISIBLE_CHAR_WEIGHT

    return min(score, 1.0)


def count_urls(content: str) -> int:
    return len(URL_PATTERN.findall(content))


def excess_url_score(url_count: int) -> float:
    """0.4 per URL beyond the second, at most 3 steps (1.2)."""
    if url_count <= URL_EXCESS_FREE:
        return 0.0
    return URL_EXCESS_WEIGHT * min(url_count - URL_EXCESS_FREE, URL_EXCESS_MAX_STEPS)


def match_spam_patterns(content: str) -> HeuristicScore:
    """Score ``content`` against every pattern bucket.

    Every triggered bucket contributes its weight and a reason; phrase
    buckets quote the first matched text.
    """
    result = HeuristicScore()
    if not content:
        return result

    classic = _first_match(CLASSIC_SPAM_PATTERNS, content)
    if classic is not None:
        result.add(CLASSIC_PHRASE_WEIGHT, f'classic spam phrase "{classic}"')

    modern = _first_match(MODERN_SCAM_PATTERNS, content)
    if modern is not None:
        result.add(MODERN_SCAM_WEIGHT, f'scam phrase "{modern}"')

    tld = SUSPICIOUS_TLD_PATTERN.search(content)
    if tld:
        result.add(SUSPICIOUS_TLD_WEIGHT, f'suspicious domain "{tld.group(0)}"')

    shortener = URL_SHORTENER_PATTERN.search(content)
    if shortener:
        result.add(URL_SHORTENER_WEIGHT, f'URL shortener "{shortener.group(1)}"')

    leet = leetspeak_score(content)
    if leet > 0:
        result.add(leet, f"leetspeak obfuscation ({leet:.2f})")

    obfuscation = unicode_obfuscation_score(content)
    if obfuscation > 0:
        result.add(obfuscation, f"unicode obfuscation ({obfuscation:.2f})")

    urls = count_urls(content)
    excess = excess_url_score(urls)
    if excess > 0:
        result.add(excess, f"excessive URLs ({urls})")

    return result
