"""Configuration helpers for league rules."""

from .leagues import PRESETS_BY_ID, get_preset, iter_presets, resolve_config

__all__ = [
    "PRESETS_BY_ID",
    "get_preset",
    "iter_presets",
    "resolve_config",
]
