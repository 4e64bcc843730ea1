"""SQLite persistence for submission history (spam detector look-back)."""
