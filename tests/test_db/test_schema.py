"""Tests for trust_engine/db/schema.py and trust_engine/db/connection.py."""

from __future__ import annotations

import sqlite3

import pytest

from trust_engine.db.connection import get_connection
from trust_engine.db.schema import ALL_TABLE_NAMES, apply_schema, get_existing_tables


class TestApplySchema:
    def test_creates_all_tables(self, in_memory_db):
        assert set(get_existing_tables(in_memory_db)) == set(ALL_TABLE_NAMES)

    def test_idempotent(self, in_memory_db):
        apply_schema(in_memory_db)
        apply_schema(in_memory_db)
        assert sorted(get_existing_tables(in_memory_db)) == sorted(ALL_TABLE_NAMES)

    def test_comment_content_required(self, in_memory_db):
        with pytest.raises(sqlite3.IntegrityError):
            in_memory_db.execute(
                "INSERT INTO comments (user_id, content, created_at) VALUES (?, NULL, ?);",
                ("u", "2026-01-01T00:00:00.000000Z"),
            )


class TestGetConnection:
    def test_creates_parent_directory(self, tmp_path):
        db_path = tmp_path / "nested" / "dir" / "trust.db"
        with get_connection(str(db_path)) as conn:
            apply_schema(conn)
        assert db_path.exists()

    def test_commits_on_success(self, tmp_path):
        db_path = str(tmp_path / "trust.db")
        with get_connection(db_path) as conn:
            apply_schema(conn)
            conn.execute(
                "INSERT INTO comments (user_id, content, created_at) VALUES ('u', 'c', 't');"
            )
        with get_connection(db_path) as conn:
            assert conn.execute("SELECT COUNT(*) FROM comments;").fetchone()[0] == 1

    def test_rolls_back_on_error(self, tmp_path):
        db_path = str(tmp_path / "trust.db")
        with get_connection(db_path) as conn:
            apply_schema(conn)

        with pytest.raises(RuntimeError):
            with get_connection(db_path) as conn:
                conn.execute(
                    "INSERT INTO comments (user_id, content, created_at) VALUES ('u', 'c', 't');"
                )
                raise RuntimeError("boom")

        with get_connection(db_path) as conn:
            assert conn.execute("SELECT COUNT(*) FROM comments;").fetchone()[0] == 0

    def test_in_memory(self):
        with get_connection(":memory:") as conn:
            apply_schema(conn)
            assert set(get_existing_tables(conn)) == set(ALL_TABLE_NAMES)

    def test_busy_timeout_applied(self, tmp_path):
        # Inline store queries are bounded by this, not the detector timeout.
        with get_connection(str(tmp_path / "trust.db"), busy_timeout_ms=1234) as conn:
            assert conn.execute("PRAGMA busy_timeout;").fetchone()[0] == 1234
