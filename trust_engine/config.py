"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      : committed static defaults
  2. ``config/local.toml``        : optional local overrides (gitignored)
  3. ``.env``                     : local secrets and env overrides (gitignored)
  4. Environment variables        : ``TRUST_ENGINE_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

The scoring functions and ``SpamDetectionService`` receive their config
section as an argument (``ScoringConfig`` / ``SpamDetectionConfig``).  When
omitted they fall back to the module-level ``DEFAULT_*`` instances below,
which are frozen and therefore safe to share.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

# ── Scoring sub-config models ─────────────────────────────────────────────────


class ScoreWeights(BaseModel):
    """Weights for the has-votes branch of the single-listing score.

    ``developer_verification`` is informational: the verification boost is
    added outside the weighted sum at full value (capped at 20 points).
    """

    model_config = ConfigDict(frozen=True)

    performance: float = 0.5
    vote_confidence: float = 0.3
    developer_verification: float = 0.2

    @field_validator("performance", "vote_confidence", "developer_verification")
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"Score weights must be non-negative, got {v}.")
        return v


class AggregationWeights(BaseModel):
    """Composite weight = vote_weight * vote_count + recency_weight * recency."""

    model_config = ConfigDict(frozen=True)

    vote_count: float = 1.0
    recency: float = 0.0     # recency bias disabled by default

    @field_validator("vote_count", "recency")
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"Aggregation weights must be non-negative, got {v}.")
        return v


class VerificationConfig(BaseModel):
    """Developer verification boost points."""

    model_config = ConfigDict(frozen=True)

    author_is_verified_developer: float = 10.0
    per_explicit_verification: float = 5.0
    max_from_verifications: float = 10.0
    total_cap: float = 20.0


class TrustConfig(BaseModel):
    """Author trust boost (positive-only)."""

    model_config = ConfigDict(frozen=True)

    max_boost: float = 5.0
    multiplier: float = 0.1    # 50 trust → 5 points


class VoteWeightConfig(BaseModel):
    """Logarithmic vote weight: log_base(vote_count + offset)."""

    model_config = ConfigDict(frozen=True)

    log_base: float = 10.0
    offset: float = 10.0

    @model_validator(mode="after")
    def validate_log_domain(self) -> "VoteWeightConfig":
        if self.log_base <= 1.0:
            raise ValueError(f"log_base must be > 1, got {self.log_base}.")
        if self.offset <= 0:
            raise ValueError(f"offset must be > 0, got {self.offset}.")
        return self


class RecencyConfig(BaseModel):
    """Exponential decay: decay_rate ** (age_days / half_life_days)."""

    model_config = ConfigDict(frozen=True)

    half_life_days: float = 180.0
    decay_rate: float = 0.9

    @field_validator("half_life_days")
    @classmethod
    def validate_half_life(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"half_life_days must be > 0, got {v}.")
        return v


class TierThreshold(BaseModel):
    """Minimum listings AND votes required to reach a confidence tier."""

    model_config = ConfigDict(frozen=True)

    listings: int
    votes: int


class ConfidenceThresholds(BaseModel):
    """Ordered threshold pairs for the low/medium/high confidence tiers."""

    model_config = ConfigDict(frozen=True)

    low_to_medium: TierThreshold = TierThreshold(listings=3, votes=5)
    medium_to_high: TierThreshold = TierThreshold(listings=10, votes=20)


class ScoringConfig(BaseModel):
    """Compatibility scoring engine settings."""

    model_config = ConfigDict(frozen=True)

    weights: ScoreWeights = ScoreWeights()
    aggregation: AggregationWeights = AggregationWeights()
    verification: VerificationConfig = VerificationConfig()
    trust: TrustConfig = TrustConfig()
    vote_weight: VoteWeightConfig = VoteWeightConfig()
    recency: RecencyConfig = RecencyConfig()
    confidence: ConfidenceThresholds = ConfidenceThresholds()
    minimum_device_listings: int = 5   # below this, SoC fallback kicks in


# ── Spam detection config ─────────────────────────────────────────────────────


class SpamDetectionConfig(BaseModel):
    """Spam detection pipeline settings.

    Frozen: a ``SpamDetectionService`` is constructed once with one of these
    and reused for every request.

    ``detector_timeout_seconds`` only bounds detectors that yield to the event
    loop.  ``SqliteContentStore`` queries run inline, so for that store the
    SQLite busy timeout is the effective limit.
    """

    model_config = ConfigDict(frozen=True)

    enable_rate_limiting: bool = True
    enable_duplicate_detection: bool = True
    enable_content_analysis: bool = True
    enable_pattern_matching: bool = True

    rate_limit_window_minutes: float = 5
    rate_limit_max: int = 3

    duplicate_window_hours: float = 24
    duplicate_similarity_threshold: float = 0.9
    duplicate_min_count: int = 2
    max_recent_items: int = 100

    max_content_length: int = 10_000
    detector_timeout_seconds: Optional[float] = 5.0   # None or 0 → no timeout

    @field_validator("rate_limit_max", "duplicate_min_count", "max_recent_items")
    @classmethod
    def validate_positive_int(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Value must be >= 1, got {v}.")
        return v

    @field_validator("rate_limit_window_minutes", "duplicate_window_hours")
    @classmethod
    def validate_positive_window(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"Window must be > 0, got {v}.")
        return v

    @field_validator("duplicate_similarity_threshold")
    @classmethod
    def validate_similarity(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"duplicate_similarity_threshold must be in [0, 1], got {v}.")
        return v


# ── Ambient sub-config models ─────────────────────────────────────────────────


class DatabaseConfig(BaseModel):
    """SQLite database connection settings."""

    model_config = ConfigDict(frozen=True)

    db_path: str = "data/db/trust_engine.db"
    wal_mode: bool = True
    busy_timeout_ms: int = 5000


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = "data/logs/trust_engine.log"
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration.

    Constructed by ``load_config()`` which merges TOML + .env + env vars.
    """

    model_config = ConfigDict(frozen=True)

    scoring: ScoringConfig = ScoringConfig()
    spam: SpamDetectionConfig = SpamDetectionConfig()
    database: DatabaseConfig = DatabaseConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


DEFAULT_SCORING_CONFIG = ScoringConfig()
DEFAULT_SPAM_CONFIG = SpamDetectionConfig()


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the specified ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    # 1. Load .env file (silently skip if missing)
    load_dotenv(dotenv_path=root / ".env", override=False)

    # 2. Load TOML config
    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Create config/default.toml or pass --config."
        )

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    # 3. Apply TRUST_ENGINE_* environment variable overrides
    raw = _apply_env_overrides(raw)

    # 4. Build and validate AppConfig
    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply TRUST_ENGINE_* env vars to the raw config dict.

    Supported overrides:
      TRUST_ENGINE_DB_PATH                    → raw["database"]["db_path"]
      TRUST_ENGINE_LOG_LEVEL                  → raw["logging"]["level"]
      TRUST_ENGINE_DEBUG                      → raw["debug"]
      TRUST_ENGINE_RATE_LIMIT_MAX             → raw["spam"]["rate_limit_max"]
      TRUST_ENGINE_RATE_LIMIT_WINDOW_MINUTES  → raw["spam"]["rate_limit_window_minutes"]
      TRUST_ENGINE_DETECTOR_TIMEOUT_SECONDS   → raw["spam"]["detector_timeout_seconds"]
    """
    if db_path := os.environ.get("TRUST_ENGINE_DB_PATH"):
        raw.setdefault("database", {})["db_path"] = db_path

    if log_level := os.environ.get("TRUST_ENGINE_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if debug := os.environ.get("TRUST_ENGINE_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    if rate_max := os.environ.get("TRUST_ENGINE_RATE_LIMIT_MAX"):
        raw.setdefault("spam", {})["rate_limit_max"] = int(rate_max)

    if rate_window := os.environ.get("TRUST_ENGINE_RATE_LIMIT_WINDOW_MINUTES"):
        raw.setdefault("spam", {})["rate_limit_window_minutes"] = float(rate_window)

    if timeout := os.environ.get("TRUST_ENGINE_DETECTOR_TIMEOUT_SECONDS"):
        raw.setdefault("spam", {})["detector_timeout_seconds"] = float(timeout)

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    return AppConfig(
        scoring=ScoringConfig.model_validate(raw.get("scoring", {})),
        spam=SpamDetectionConfig(**raw.get("spam", {})),
        database=DatabaseConfig(**raw.get("database", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
