"""Effective skill lookups used by every balancing calculation."""

from __future__ import annotations

from typing import Iterable

from teambuilder.models import Player


def effective_skill(player: Player) -> float:
    """Return the override rating when one is set (0 included), else the base rating."""

    if player.exec_skill_rating is not None:
        return player.exec_skill_rating
    return player.skill_rating


def average_skill(players: Iterable[Player]) -> float:
    total = 0.0
    count = 0
    for player in players:
        total += effective_skill(player)
        count += 1
    return total / count if count else 0.0
