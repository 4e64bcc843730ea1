"""Repositories over the SQLite schema."""
