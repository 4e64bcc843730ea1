"""
Tests for trust_engine/cli.py via typer's CliRunner.

Each test writes a small TOML config into ``tmp_path`` so the database and
logs stay out of the working tree.  Logging is set to WARNING to keep
stdout parseable as JSON.
"""

from __future__ import annotations

import json
import logging
import os
import sqlite3
from pathlib import Path

import pytest
from typer.testing import CliRunner

from trust_engine.cli import SPAM_EXIT_CODE, app

runner = CliRunner()


# ── Helpers ────────────────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("TRUST_ENGINE_"):
            monkeypatch.delenv(key)


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def config_file(tmp_path) -> Path:
    path = tmp_path / "app.toml"
    path.write_text(
        "[database]\n"
        f"db_path = \"{(tmp_path / 'trust.db').as_posix()}\"\n"
        "wal_mode = false\n"
        "[logging]\n"
        "level = \"WARNING\"\n"
        "log_file = \"\"\n",
        encoding="utf-8",
    )
    return path


def _listing(listing_id: str, rank: int, system: str = "switch", emulator: str = "eden",
             device_id: str = "dev-1", **extra) -> dict:
    return {
        "id": listing_id,
        "performance_rank": rank,
        "emulator": {"id": emulator, "name": emulator.title()},
        "game": {"id": f"g-{listing_id}", "system": {"id": system, "name": system.upper()}},
        "device_id": device_id,
        **extra,
    }


def _write_json(path: Path, payload) -> Path:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


# ── validate-config / init-db ─────────────────────────────────────────────────

class TestConfigCommands:
    def test_validate_config(self, config_file):
        result = runner.invoke(app, ["validate-config", "--config", str(config_file)])
        assert result.exit_code == 0
        assert "[OK] Config is valid." in result.output

    def test_validate_config_full(self, config_file):
        result = runner.invoke(app, ["validate-config", "--config", str(config_file), "--full"])
        assert result.exit_code == 0
        assert "\"rate_limit_max\": 3" in result.output

    def test_missing_config(self, tmp_path):
        result = runner.invoke(app, ["validate-config", "--config", str(tmp_path / "none.toml")])
        assert result.exit_code == 1

    def test_invalid_config(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("[spam]\nrate_limit_max = 0\n", encoding="utf-8")
        result = runner.invoke(app, ["validate-config", "--config", str(path)])
        assert result.exit_code == 1

    def test_init_db(self, config_file, tmp_path):
        result = runner.invoke(app, ["init-db", "--config", str(config_file)])

        assert result.exit_code == 0
        conn = sqlite3.connect(tmp_path / "trust.db")
        tables = {r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table';")}
        conn.close()
        assert {"listings", "comments"} <= tables


# ── score-listings ────────────────────────────────────────────────────────────

class TestScoreListings:
    def test_per_listing(self, config_file, tmp_path):
        listings = _write_json(tmp_path / "l.json", [
            _listing("a", 1, success_rate=0.95, vote_count=10),
            _listing("b", 2),
        ])

        result = runner.invoke(
            app, ["score-listings", "--file", str(listings), "--config", str(config_file)]
        )

        assert result.exit_code == 0
        assert json.loads(result.stdout) == [{"id": "a", "score": 79}, {"id": "b", "score": 85}]

    def test_group_by_system(self, config_file, tmp_path):
        listings = _write_json(tmp_path / "l.json", [
            _listing("a", 1, system="ps2"),
            _listing("b", 3, system="switch"),
            _listing("c", 3, system="switch", emulator="ryujinx"),
        ])

        result = runner.invoke(app, [
            "score-listings", "--file", str(listings), "--group-by", "system",
            "--config", str(config_file),
        ])

        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert [s["system_id"] for s in payload] == ["ps2", "switch"]
        assert payload[1]["compatibility_score"] == 70
        assert len(payload[1]["emulators"]) == 2

    def test_group_by_emulator(self, config_file, tmp_path):
        listings = _write_json(tmp_path / "l.json", [_listing("a", 4), _listing("b", 2)])

        result = runner.invoke(app, [
            "score-listings", "--file", str(listings), "--group-by", "emulator",
            "--config", str(config_file),
        ])

        payload = json.loads(result.stdout)
        assert payload[0]["emulator_id"] == "eden"
        assert payload[0]["listing_count"] == 2

    def test_invalid_listing(self, config_file, tmp_path):
        listings = _write_json(tmp_path / "l.json", [{"performance_rank": "fast"}])

        result = runner.invoke(
            app, ["score-listings", "--file", str(listings), "--config", str(config_file)]
        )

        assert result.exit_code == 1

    def test_null_fields_do_not_abort_batch(self, config_file, tmp_path):
        listings = _write_json(tmp_path / "l.json", [
            {"id": "a", "performance_rank": 1},
            {"id": "b", "performance_rank": None, "vote_count": None},
        ])

        result = runner.invoke(
            app, ["score-listings", "--file", str(listings), "--config", str(config_file)]
        )

        assert result.exit_code == 0
        assert json.loads(result.stdout) == [{"id": "a", "score": 100}, {"id": "b", "score": 0}]

    def test_not_an_array(self, config_file, tmp_path):
        listings = _write_json(tmp_path / "l.json", {"id": "a"})

        result = runner.invoke(
            app, ["score-listings", "--file", str(listings), "--config", str(config_file)]
        )

        assert result.exit_code == 1


# ── device-compatibility ──────────────────────────────────────────────────────

class TestDeviceCompatibility:
    def test_soc_fallback(self, config_file, tmp_path):
        device = _write_json(tmp_path / "d.json", [_listing("a", 1), _listing("b", 1)])
        soc = _write_json(tmp_path / "s.json", [
            _listing("c", 8, device_id="dev-2"),
            _listing("d", 8, device_id="dev-3"),
        ])

        result = runner.invoke(app, [
            "device-compatibility", "--device-id", "dev-1", "--file", str(device),
            "--soc-id", "sd8g2", "--soc-file", str(soc), "--config", str(config_file),
        ])

        assert result.exit_code == 0
        report = json.loads(result.stdout)
        system = report["systems"][0]
        assert system["data_source"] == "soc"
        assert system["data_source_info"]["other_devices_used"] == 2
        assert system["compatibility_score"] == 50

    def test_soc_file_requires_soc_id(self, config_file, tmp_path):
        device = _write_json(tmp_path / "d.json", [_listing("a", 1)])

        result = runner.invoke(app, [
            "device-compatibility", "--device-id", "dev-1", "--file", str(device),
            "--soc-file", str(device), "--config", str(config_file),
        ])

        assert result.exit_code == 1


# ── check-spam ────────────────────────────────────────────────────────────────

class TestCheckSpam:
    def test_spam_exit_code(self, config_file):
        result = runner.invoke(app, [
            "check-spam", "--user-id", "u1", "--entity-type", "comment",
            "--content", "Click here to get free items", "--config", str(config_file),
        ])

        assert result.exit_code == SPAM_EXIT_CODE
        verdict = json.loads(result.stdout)
        assert verdict["is_spam"] is True
        assert verdict["method"] == "pattern_matching"

    def test_clean_submission_recorded(self, config_file, tmp_path):
        args = [
            "check-spam", "--user-id", "u1", "--entity-type", "listing",
            "--content", "Runs at a steady 60fps", "--record", "--config", str(config_file),
        ]

        result = runner.invoke(app, args)

        assert result.exit_code == 0
        assert json.loads(result.stdout)["is_spam"] is False
        conn = sqlite3.connect(tmp_path / "trust.db")
        assert conn.execute("SELECT COUNT(*) FROM listings;").fetchone()[0] == 1
        conn.close()

    def test_rate_limit_from_recorded_history(self, config_file):
        base = [
            "check-spam", "--user-id", "u1", "--entity-type", "comment",
            "--record", "--config", str(config_file),
        ]
        for text in ("first post", "second thought", "third idea"):
            assert runner.invoke(app, base + ["--content", text]).exit_code == 0

        result = runner.invoke(app, base + ["--content", "fourth remark"])

        assert result.exit_code == SPAM_EXIT_CODE
        assert json.loads(result.stdout)["method"] == "rate_limiting"

    def test_content_from_file(self, config_file, tmp_path):
        text = tmp_path / "post.txt"
        text.write_text("THIS IS ALL CAPS AND LOOKS LIKE SPAM!!!", encoding="utf-8")

        result = runner.invoke(app, [
            "check-spam", "--user-id", "u1", "--entity-type", "listing",
            "--file", str(text), "--config", str(config_file),
        ])

        assert result.exit_code == SPAM_EXIT_CODE
        assert json.loads(result.stdout)["method"] == "content_analysis"

    def test_requires_exactly_one_source(self, config_file):
        result = runner.invoke(app, [
            "check-spam", "--user-id", "u1", "--entity-type", "listing",
            "--config", str(config_file),
        ])
        assert result.exit_code == 1

    def test_invalid_entity_type(self, config_file):
        result = runner.invoke(app, [
            "check-spam", "--user-id", "u1", "--entity-type", "post",
            "--content", "hi", "--config", str(config_file),
        ])
        assert result.exit_code == 1
