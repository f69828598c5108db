"""Roster and league models."""

from .league import LeagueConfig
from .player import (
    GENDERS,
    MAX_GROUP_SIZE,
    Gender,
    GroupFullError,
    Player,
    PlayerGroup,
    UnfulfilledRequest,
    clamp_skill,
)

__all__ = [
    "GENDERS",
    "MAX_GROUP_SIZE",
    "Gender",
    "GroupFullError",
    "LeagueConfig",
    "Player",
    "PlayerGroup",
    "UnfulfilledRequest",
    "clamp_skill",
]
