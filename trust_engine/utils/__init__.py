"""Shared helpers: logging setup and UTC time utilities."""
