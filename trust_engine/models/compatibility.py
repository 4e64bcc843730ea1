"""
Device compatibility report models.

``DeviceCompatibilityReport`` is the output of
``trust_engine.scoring.device_report.build_device_compatibility()``: one
``SystemCompatibility`` per game system tested on a device, each with a
confidence tier, headline metrics, and an optional per-emulator breakdown.

When a device has too few reports for a system, reports from other devices
sharing its SoC are borrowed; ``data_source`` is then ``"soc"`` and
``data_source_info`` records how much was borrowed.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator

DataSource = Literal["device", "soc"]
ConfidenceTier = Literal["low", "medium", "high"]


class DeviceRef(BaseModel):
    """The device the report is about."""

    model_config = ConfigDict(frozen=True)

    id: str
    model_name: Optional[str] = None
    brand_name: Optional[str] = None
    soc_id: Optional[str] = None
    soc_name: Optional[str] = None

    @property
    def has_soc(self) -> bool:
        return self.soc_id is not None


class EmulatorCompatibility(BaseModel):
    """Per-emulator line of a system's breakdown."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    key: str
    logo: Optional[str] = None
    listing_count: int
    avg_compatibility_score: int
    avg_performance_rank: float
    avg_success_rate: Optional[float] = None
    developer_verified_count: int


class DataSourceInfo(BaseModel):
    """How much SoC data backed a system's score.

    Attributes:
        device_listing_count: Reports from the device itself.
        soc_listing_count: Reports borrowed from same-SoC devices.
        other_devices_used: Distinct other devices that contributed.
    """

    model_config = ConfigDict(frozen=True)

    device_listing_count: int
    soc_listing_count: int
    other_devices_used: int


class SystemMetrics(BaseModel):
    """Headline numbers behind a system score."""

    model_config = ConfigDict(frozen=True)

    total_listings: int
    unique_games: int
    avg_performance_rank: float
    avg_success_rate: Optional[float] = None
    developer_verified_count: int
    total_votes: int
    authored_by_developer_count: int


class SystemCompatibility(BaseModel):
    """Compatibility summary for one game system on one device."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    key: str
    compatibility_score: int
    confidence: ConfidenceTier
    data_source: DataSource = "device"
    data_source_info: Optional[DataSourceInfo] = None
    metrics: SystemMetrics
    emulators: list[EmulatorCompatibility] = []
    last_updated: Optional[datetime] = None

    @field_validator("compatibility_score")
    @classmethod
    def validate_score_range(cls, v: int) -> int:
        if not 0 <= v <= 100:
            raise ValueError(f"compatibility_score must be in [0, 100], got {v}.")
        return v


class DeviceCompatibilityReport(BaseModel):
    """All system summaries for a device."""

    model_config = ConfigDict(frozen=True)

    device: DeviceRef
    systems: list[SystemCompatibility] = []
    generated_at: datetime
