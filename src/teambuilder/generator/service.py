"""Entry point that runs the full team generation pipeline."""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from teambuilder.generator.assignment import AssignmentOutcome, GenerationMode, TeamSlot, assign_units
from teambuilder.generator.capacity import plan_capacity
from teambuilder.generator.grouping import NearMissGroup, resolve_groups
from teambuilder.generator.preferences import PreferenceGraph, RequestConflict, build_preference_graph
from teambuilder.generator.skill import average_skill
from teambuilder.generator.stats import (
    GenerationStats,
    broken_one_way_conflicts,
    collect_unfulfilled,
    compute_stats,
)
from teambuilder.models import LeagueConfig, Player, PlayerGroup, UnfulfilledRequest


logger = logging.getLogger(__name__)

_SWAP_PASSES_ENV = "TEAMBUILDER_SWAP_PASSES"
_BALANCE_TOLERANCE_ENV = "TEAMBUILDER_BALANCE_TOLERANCE"

_SWAP_PASSES_DEFAULT = 50
_BALANCE_TOLERANCE_DEFAULT = 0.5


def _env_float(name: str, default: float, *, clamp_min: float | None = None, clamp_max: float | None = None) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid float for %s: %s; using default %.2f", name, raw, default)
        return default
    if clamp_min is not None:
        value = max(clamp_min, value)
    if clamp_max is not None:
        value = min(clamp_max, value)
    return value


def _env_int(name: str, default: int, *, min_value: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid int for %s: %s; using default %d", name, raw, default)
        return default
    if min_value is not None:
        value = max(min_value, value)
    return value


def _swap_passes() -> int:
    return _env_int(_SWAP_PASSES_ENV, _SWAP_PASSES_DEFAULT, min_value=0)


def _balance_tolerance() -> float:
    return _env_float(_BALANCE_TOLERANCE_ENV, _BALANCE_TOLERANCE_DEFAULT, clamp_min=0.0)


@dataclass(frozen=True)
class Team:
    team_id: str
    name: str
    players: Tuple[Player, ...]
    average_skill: float
    gender_breakdown: Mapping[str, int]
    handler_count: int


@dataclass(frozen=True)
class GenerationResult:
    teams: Tuple[Team, ...]
    unassigned_players: Tuple[Player, ...]
    stats: GenerationStats
    conflicts: Tuple[RequestConflict, ...]
    near_misses: Tuple[NearMissGroup, ...]
    mode: GenerationMode
    seed: Optional[int] = None
    unfulfilled_requests: Mapping[str, Tuple[UnfulfilledRequest, ...]] = field(default_factory=dict)

    def team_of(self, player_id: str) -> Optional[Team]:
        for team in self.teams:
            if any(player.player_id == player_id for player in team.players):
                return team
        return None


def _dedupe_players(players: Sequence[Player]) -> List[Player]:
    seen: set[str] = set()
    roster: List[Player] = []
    for player in players:
        if player.player_id in seen:
            logger.warning("Duplicate player id %s (%s); keeping the first record", player.player_id, player.name)
            continue
        seen.add(player.player_id)
        roster.append(player)
    return roster


def _team_label(index: int, team_names: Optional[Sequence[str]]) -> str:
    if team_names and index < len(team_names) and team_names[index].strip():
        return team_names[index].strip()
    return f"Team {index + 1}"


def _build_team(
    slot: TeamSlot,
    graph: PreferenceGraph,
    unfulfilled: Mapping[str, Tuple[UnfulfilledRequest, ...]],
    team_names: Optional[Sequence[str]],
) -> Team:
    team_id = f"team-{slot.index + 1}"
    players = tuple(
        graph.players[idx].model_copy(
            update={
                "team_id": team_id,
                "unfulfilled_requests": list(unfulfilled.get(graph.players[idx].player_id, ())),
            }
        )
        for idx in slot.members
    )
    breakdown: Dict[str, int] = {"M": 0, "F": 0, "Other": 0}
    for player in players:
        breakdown[player.gender] += 1
    return Team(
        team_id=team_id,
        name=_team_label(slot.index, team_names),
        players=players,
        average_skill=average_skill(players),
        gender_breakdown=breakdown,
        handler_count=slot.handlers,
    )


def generate_teams(
    players: Sequence[Player],
    config: LeagueConfig,
    groups: Sequence[PlayerGroup] = (),
    mode: GenerationMode | str = GenerationMode.BALANCED,
    seed: Optional[int] = None,
    *,
    team_names: Optional[Sequence[str]] = None,
) -> GenerationResult:
    """Partition ``players`` into teams.

    Raises ConfigurationError (before any placement) when the league settings
    are infeasible. Every other problem is reported on the result: players
    that fit nowhere are unassigned, groups that could not stay together are
    near misses, and request tensions are conflicts.
    """

    started = time.perf_counter()
    mode = GenerationMode(mode)
    roster = _dedupe_players(players)

    plan = plan_capacity(
        len(roster),
        config,
        females=sum(1 for player in roster if player.gender == "F"),
        males=sum(1 for player in roster if player.gender == "M"),
    )
    graph = build_preference_graph(roster)
    resolution = resolve_groups(
        graph,
        groups,
        max_team_size=config.max_team_size,
        link_mutual_requests=mode is GenerationMode.BALANCED,
    )
    outcome: AssignmentOutcome = assign_units(
        mode,
        graph,
        resolution,
        plan,
        seed=seed,
        swap_passes=_swap_passes(),
        balance_tolerance=_balance_tolerance(),
    )

    team_of: List[Optional[int]] = [None] * len(graph)
    for slot in outcome.slots:
        for idx in slot.members:
            team_of[idx] = slot.index

    unfulfilled = collect_unfulfilled(graph, team_of)
    teams = tuple(_build_team(slot, graph, unfulfilled, team_names) for slot in outcome.slots)
    unassigned = tuple(
        graph.players[idx].model_copy(
            update={
                "team_id": None,
                "unfulfilled_requests": list(unfulfilled.get(graph.players[idx].player_id, ())),
            }
        )
        for idx in outcome.unassigned
    )
    conflicts = (*graph.conflicts, *broken_one_way_conflicts(graph, team_of))
    stats = compute_stats(
        graph,
        team_of,
        team_averages=[team.average_skill for team in teams if team.players],
        started=started,
    )
    logger.info(
        "Generated %s teams (%s mode): %s assigned, %s unassigned in %.1f ms",
        len(teams),
        mode.value,
        stats.assigned_players,
        stats.unassigned_players,
        stats.generation_time,
    )
    return GenerationResult(
        teams=teams,
        unassigned_players=unassigned,
        stats=stats,
        conflicts=tuple(conflicts),
        near_misses=(*resolution.near_misses, *outcome.near_misses),
        mode=mode,
        seed=outcome.seed,
        unfulfilled_requests=unfulfilled,
    )
