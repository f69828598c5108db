from __future__ import annotations


class ConfigurationError(ValueError):
    """League settings cannot produce a valid team; raised before any placement."""
