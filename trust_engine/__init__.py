"""Content Trust Engine: compatibility scoring and spam detection."""

__version__ = "0.1.0"
