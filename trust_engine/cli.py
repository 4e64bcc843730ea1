"""
Content Trust Engine CLI entry point.

Every command follows the same pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging (stderr + optional log file).
  3. Validate inputs.
  4. Run the scoring engine or spam pipeline.
  5. Write JSON results to stdout.

Install and run::

    pip install -e .
    trust-engine --help
    trust-engine init-db
    trust-engine validate-config --full
    trust-engine score-listings --file listings.json --group-by system
    trust-engine device-compatibility --device-id d1 --file device.json \\
        --soc-id snapdragon-8g2 --soc-file soc.json
    trust-engine check-spam --user-id u1 --entity-type comment --content "hi" --record
"""

from __future__ import annotations

import asyncio
import json
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import typer
from pydantic import ValidationError

app = typer.Typer(
    name="trust-engine",
    help="Content Trust Engine: compatibility scoring and spam detection.",
    add_completion=False,
)

SPAM_EXIT_CODE = 2


class GroupBy(str, Enum):
    LISTING = "listing"
    EMULATOR = "emulator"
    SYSTEM = "system"


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from trust_engine.config import load_config

    try:
        return load_config(Path(config_path) if config_path else None)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except (ValidationError, ValueError) as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config) -> None:
    from trust_engine.utils.logging import configure_logging
    configure_logging(config.logging)


def _read_json_array(path: Path) -> list[Any]:
    if not path.exists():
        typer.echo(f"[ERROR] File not found: {path}", err=True)
        raise typer.Exit(code=1)
    try:
        with open(path, encoding="utf-8") as f:
            raw = json.load(f)
    except (json.JSONDecodeError, OSError) as exc:
        typer.echo(f"[ERROR] JSON parse error in {path}: {exc}", err=True)
        raise typer.Exit(code=1)

    if not isinstance(raw, list):
        typer.echo(f"[ERROR] {path} must contain a JSON array.", err=True)
        raise typer.Exit(code=1)
    return raw


def _read_listings(path: Path):
    """Parse a JSON array of listings, reporting the first few invalid records."""
    from trust_engine.models.listing import ScoringListing

    listings: list[ScoringListing] = []
    errors: list[tuple[int, str]] = []
    for i, raw in enumerate(_read_json_array(path)):
        try:
            listings.append(ScoringListing.model_validate(raw))
        except ValidationError as exc:
            errors.append((i, str(exc)))

    if errors:
        typer.echo(f"[ERROR] {len(errors)} listing(s) in {path} failed validation:", err=True)
        for idx, msg in errors[:5]:
            typer.echo(f"  Listing #{idx}: {msg}", err=True)
        if len(errors) > 5:
            typer.echo(f"  ... and {len(errors) - 5} more.", err=True)
        raise typer.Exit(code=1)
    return listings


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, default=str))


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("init-db")
def init_db(
    db_path: Optional[str] = typer.Option(
        None, "--db-path", help="Override DB path from config.",
    ),
    config_path: Optional[str] = typer.Option(
        None, "--config", help="Path to TOML config file.",
    ),
) -> None:
    """Create the SQLite database and apply the schema.

    Safe to run repeatedly; all DDL uses IF NOT EXISTS.
    """
    from trust_engine.db.connection import get_connection
    from trust_engine.db.schema import ALL_TABLE_NAMES, apply_schema

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    target_path = db_path or config.database.db_path
    typer.echo(f"Initializing database at: {target_path}")

    with get_connection(
        target_path,
        wal_mode=config.database.wal_mode,
        busy_timeout_ms=config.database.busy_timeout_ms,
    ) as conn:
        apply_schema(conn)

    typer.echo(f"  Tables: {len(ALL_TABLE_NAMES)} created/verified.")
    typer.echo("[OK] Database ready.")


@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None, "--config", help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False, "--full", help="Print the full config as JSON.",
    ),
) -> None:
    """Validate the configuration and print the key values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)
    scoring, spam = config.scoring, config.spam

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Database path:      {config.database.db_path}")
    typer.echo(
        f"  Score weights:      performance={scoring.weights.performance} "
        f"vote_confidence={scoring.weights.vote_confidence}"
    )
    typer.echo(f"  SoC fallback below: {scoring.minimum_device_listings} listings")
    typer.echo(
        f"  Rate limit:         {spam.rate_limit_max} per "
        f"{spam.rate_limit_window_minutes:g} min"
    )
    typer.echo(f"  Detector timeout:   {spam.detector_timeout_seconds or 'none'}")
    typer.echo(f"  Log level:          {config.logging.level}")
    typer.echo(f"  Debug mode:         {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        _echo_json(config.model_dump())

    typer.echo("")
    typer.echo("[OK] Config is valid.")


@app.command("score-listings")
def score_listings(
    file: Path = typer.Option(..., "--file", help="JSON array of listings."),
    group_by: GroupBy = typer.Option(
        GroupBy.LISTING, "--group-by", help="listing | emulator | system",
    ),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Score listings individually or aggregated per emulator / system."""
    from trust_engine.scoring.aggregate import (
        aggregate_by_emulator,
        aggregate_by_system,
        calculate_confidence_level,
    )
    from trust_engine.scoring.listing_score import calculate_listing_score

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    scoring = config.scoring

    listings = _read_listings(file)

    if group_by == GroupBy.LISTING:
        _echo_json([
            {"id": l.id, "score": calculate_listing_score(l, config=scoring)}
            for l in listings
        ])
        return

    if group_by == GroupBy.EMULATOR:
        _echo_json([
            {
                "emulator_id": e.emulator_id,
                "name": e.emulator.name,
                "listing_count": len(e.listings),
                "avg_compatibility_score": e.avg_compatibility_score,
                "avg_performance_rank": e.avg_performance_rank,
                "avg_success_rate": e.avg_success_rate,
                "developer_verified_count": e.developer_verified_count,
                "confidence": calculate_confidence_level(
                    len(e.listings), e.total_votes, scoring.confidence
                ),
            }
            for e in aggregate_by_emulator(listings, config=scoring)
        ])
        return

    _echo_json([
        {
            "system_id": s.system_id,
            "name": s.system.name,
            "listing_count": len(s.listings),
            "unique_games": len(s.unique_games),
            "compatibility_score": s.compatibility_score,
            "total_votes": s.total_votes,
            "confidence": calculate_confidence_level(
                len(s.listings), s.total_votes, scoring.confidence
            ),
            "emulators": [
                {"emulator_id": e.emulator_id, "score": e.avg_compatibility_score}
                for e in s.emulator_breakdown
            ],
        }
        for s in aggregate_by_system(listings, config=scoring)
    ])


@app.command("device-compatibility")
def device_compatibility(
    device_id: str = typer.Option(..., "--device-id", help="Device the report is for."),
    file: Path = typer.Option(..., "--file", help="JSON array of the device's listings."),
    soc_id: Optional[str] = typer.Option(
        None, "--soc-id", help="Device SoC; enables same-SoC fallback.",
    ),
    soc_file: Optional[Path] = typer.Option(
        None, "--soc-file", help="JSON array of listings from devices sharing the SoC.",
    ),
    min_listings: int = typer.Option(
        1, "--min-listings", help="Drop systems with fewer listings than this.",
    ),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Per-system compatibility report for one device."""
    from trust_engine.models.compatibility import DeviceRef
    from trust_engine.scoring.device_report import build_device_compatibility

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    if soc_file is not None and soc_id is None:
        typer.echo("[ERROR] --soc-file requires --soc-id.", err=True)
        raise typer.Exit(code=1)

    device_listings = _read_listings(file)
    soc_listings = _read_listings(soc_file) if soc_file is not None else []

    report = build_device_compatibility(
        DeviceRef(id=device_id, soc_id=soc_id),
        device_listings,
        soc_listings,
        min_listing_count=min_listings,
        config=config.scoring,
    )
    _echo_json(report.model_dump(mode="json"))


@app.command("check-spam")
def check_spam(
    user_id: str = typer.Option(..., "--user-id", help="Author of the submission."),
    entity_type: str = typer.Option(..., "--entity-type", help="listing | comment"),
    content: Optional[str] = typer.Option(None, "--content", help="Submission text."),
    file: Optional[Path] = typer.Option(None, "--file", help="Read submission text from a file."),
    record: bool = typer.Option(
        False, "--record", help="Store the submission when it is not spam.",
    ),
    db_path: Optional[str] = typer.Option(None, "--db-path", help="Override DB path from config."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Run the spam pipeline on one submission.

    Prints the verdict as JSON.  Exits with code 2 when the submission is spam.
    """
    from trust_engine.db.connection import get_connection
    from trust_engine.db.repositories.content_repo import SqliteContentStore
    from trust_engine.db.schema import apply_schema
    from trust_engine.models.spam import EntityType, SpamCheckRequest
    from trust_engine.spam.service import SpamDetectionService

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    try:
        kind = EntityType(entity_type.lower())
    except ValueError:
        typer.echo(
            f"[ERROR] Invalid --entity-type '{entity_type}'. Use listing or comment.", err=True
        )
        raise typer.Exit(code=1)

    if (content is None) == (file is None):
        typer.echo("[ERROR] Pass exactly one of --content or --file.", err=True)
        raise typer.Exit(code=1)

    if file is not None:
        try:
            content = file.read_text(encoding="utf-8")
        except OSError as exc:
            typer.echo(f"[ERROR] Cannot read {file}: {exc}", err=True)
            raise typer.Exit(code=1)

    request = SpamCheckRequest(user_id=user_id, content=content, entity_type=kind)

    with get_connection(
        db_path or config.database.db_path,
        wal_mode=config.database.wal_mode,
        busy_timeout_ms=config.database.busy_timeout_ms,
    ) as conn:
        apply_schema(conn)
        store = SqliteContentStore(conn)
        service = SpamDetectionService(store, config=config.spam)
        result = asyncio.run(service.detect_spam(request))

        if record and not result.is_spam:
            store.record_submission(kind, user_id, request.content)

    _echo_json(result.model_dump(mode="json"))

    if result.is_spam:
        raise typer.Exit(code=SPAM_EXIT_CODE)


# ── Entry point ───────────────────────────────────────────────────────────────

if __name__ == "__main__":
    app()
