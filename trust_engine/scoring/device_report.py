"""
Per-device compatibility report with SoC fallback.

Builds a ``DeviceCompatibilityReport`` from the reports made on one device.
Everything is in-memory; the caller fetches the listings.

SoC fallback
------------
A device with fewer than ``minimum_device_listings`` (default 5) reports for
a system gives a noisy score.  When the device has a known SoC, reports for
that system from *other* devices with the same SoC are added before
aggregating, and the system is marked ``data_source="soc"``.  Systems the
device has no reports for at all are not created from SoC data.

Typical call sequence::

    tagged = tag_verified_developers(device_listings, verified_pairs)
    needed = systems_needing_fallback(tagged)
    soc    = fetch_soc_listings(device.soc_id, system_ids=needed)   # caller
    report = build_device_compatibility(device, tagged, soc)
"""

from __future__ import annotations

import logging
import re
from collections import defaultdict
from datetime import datetime
from typing import Iterable, Optional

from trust_engine.config import DEFAULT_SCORING_CONFIG, ScoringConfig
from trust_engine.models.compatibility import (
    DataSourceInfo,
    DeviceCompatibilityReport,
    DeviceRef,
    EmulatorCompatibility,
    SystemCompatibility,
    SystemMetrics,
)
from trust_engine.models.listing import ScoringListing
from trust_engine.scoring.aggregate import (
    EmulatorScoring,
    SystemScoring,
    aggregate_by_system,
    calculate_confidence_level,
)
from trust_engine.utils.time_utils import utcnow

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def tag_verified_developers(
    listings: Iterable[ScoringListing],
    verified_pairs: set[tuple[str, str]],
) -> list[ScoringListing]:
    """Set ``is_verified_developer`` from known (user_id, emulator_id) pairs.

    Listings without an author id or emulator keep their current flag.
    """
    tagged: list[ScoringListing] = []
    for listing in listings:
        author_id = listing.author.id if listing.author else None
        if author_id is None or listing.emulator is None:
            tagged.append(listing)
            continue
        is_dev = (author_id, listing.emulator.id) in verified_pairs
        tagged.append(listing.model_copy(update={"is_verified_developer": is_dev}))
    return tagged


def systems_needing_fallback(
    device_listings: Iterable[ScoringListing],
    minimum_listings: int = DEFAULT_SCORING_CONFIG.minimum_device_listings,
) -> list[str]:
    """System ids with fewer than ``minimum_listings`` device reports."""
    counts: dict[str, int] = defaultdict(int)
    for listing in device_listings:
        system = listing.system
        if system is not None:
            counts[system.id] += 1
    return [system_id for system_id, n in counts.items() if n < minimum_listings]


def build_device_compatibility(
    device: DeviceRef,
    device_listings: list[ScoringListing],
    soc_listings: Iterable[ScoringListing] = (),
    min_listing_count: int = 1,
    include_emulator_breakdown: bool = True,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
    now: Optional[datetime] = None,
) -> DeviceCompatibilityReport:
    """Aggregate a device's reports into per-system compatibility summaries.

    Args:
        device:                     The device being reported on.
        device_listings:            Reports made on ``device``.
        soc_listings:               Reports from other devices with the same
                                    SoC.  Ignored when ``device.soc_id`` is
                                    ``None``.  Listings for systems that do
                                    not need fallback are ignored.
        min_listing_count:          Systems with fewer combined listings are
                                    dropped from the report.
        include_emulator_breakdown: Populate ``SystemCompatibility.emulators``.
        config:                     Scoring configuration.
        now:                        Reference time for recency weighting and
                                    ``generated_at``.

    Returns:
        ``DeviceCompatibilityReport`` with systems ordered best score first.
    """
    now = now or utcnow()

    if not device_listings:
        return DeviceCompatibilityReport(device=device, systems=[], generated_at=now)

    device_counts: dict[str, int] = defaultdict(int)
    for listing in device_listings:
        if listing.system is not None:
            device_counts[listing.system.id] += 1

    combined = list(device_listings)
    source_info: dict[str, DataSourceInfo] = {}

    needing = set(systems_needing_fallback(device_listings, config.minimum_device_listings))
    if device.has_soc and needing:
        borrowed = [
            l for l in soc_listings
            if l.system is not None
            and l.system.id in needing
            and l.device_id != device.id
        ]
        borrowed_by_system: dict[str, list[ScoringListing]] = defaultdict(list)
        for listing in borrowed:
            borrowed_by_system[listing.system.id].append(listing)

        for system_id, extra in borrowed_by_system.items():
            source_info[system_id] = DataSourceInfo(
                device_listing_count=device_counts[system_id],
                soc_listing_count=len(extra),
                other_devices_used=len({l.device_id for l in extra if l.device_id}),
            )
        combined.extend(borrowed)

        logger.debug(
            "SoC fallback for device %s | systems=%d | borrowed=%d",
            device.id, len(borrowed_by_system), len(borrowed),
        )

    systems: list[SystemCompatibility] = []
    for agg in aggregate_by_system(combined, config=config, now=now):
        if len(agg.listings) < min_listing_count:
            continue
        info = source_info.get(agg.system_id)
        systems.append(
            _to_system_compatibility(
                agg,
                info,
                include_emulator_breakdown=include_emulator_breakdown,
                config=config,
            )
        )

    return DeviceCompatibilityReport(device=device, systems=systems, generated_at=now)


def _to_system_compatibility(
    agg: SystemScoring,
    info: Optional[DataSourceInfo],
    include_emulator_breakdown: bool,
    config: ScoringConfig,
) -> SystemCompatibility:
    emulators = (
        [_to_emulator_compatibility(e) for e in agg.emulator_breakdown]
        if include_emulator_breakdown
        else []
    )
    return SystemCompatibility(
        id=agg.system.id,
        name=agg.system.name,
        key=agg.system.key or _slugify(agg.system.name),
        compatibility_score=agg.compatibility_score,
        confidence=calculate_confidence_level(
            len(agg.listings), agg.total_votes, config.confidence
        ),
        data_source="soc" if info is not None else "device",
        data_source_info=info,
        metrics=SystemMetrics(
            total_listings=len(agg.listings),
            unique_games=len(agg.unique_games),
            avg_performance_rank=_round2(agg.avg_performance_rank),
            avg_success_rate=_round2(agg.avg_success_rate),
            developer_verified_count=agg.developer_verified_count,
            total_votes=agg.total_votes,
            authored_by_developer_count=agg.authored_by_developer_count,
        ),
        emulators=emulators,
        last_updated=agg.last_updated,
    )


def _to_emulator_compatibility(agg: EmulatorScoring) -> EmulatorCompatibility:
    return EmulatorCompatibility(
        id=agg.emulator.id,
        name=agg.emulator.name,
        key=_slugify(agg.emulator.name),
        logo=agg.emulator.logo,
        listing_count=len(agg.listings),
        avg_compatibility_score=agg.avg_compatibility_score,
        avg_performance_rank=_round2(agg.avg_performance_rank),
        avg_success_rate=_round2(agg.avg_success_rate),
        developer_verified_count=agg.developer_verified_count,
    )


def _slugify(name: str) -> str:
    return _WHITESPACE.sub("_", name.lower())


def _round2(value: Optional[float]) -> Optional[float]:
    # half-up to 2 decimals
    if value is None:
        return None
    return int(value * 100 + 0.5) / 100
