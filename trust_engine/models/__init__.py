"""Pydantic models for scoring inputs, spam checks and reports."""
