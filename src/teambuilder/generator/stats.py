"""Post-placement metrics, broken-request conflicts and unfulfilled request reports."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from teambuilder.generator.preferences import PreferenceGraph, RequestConflict
from teambuilder.models import UnfulfilledRequest


@dataclass(frozen=True)
class GenerationStats:
    total_players: int
    assigned_players: int
    unassigned_players: int
    mutual_requests_honored: int
    mutual_requests_broken: int
    avoid_requests_violated: int
    generation_time: float
    skill_spread: float = 0.0


def _same_team(team_of: Sequence[Optional[int]], a: int, b: int) -> bool:
    return team_of[a] is not None and team_of[a] == team_of[b]


def count_must_have_requests(graph: PreferenceGraph, team_of: Sequence[Optional[int]]) -> Tuple[int, int]:
    """Return (honoured, broken) over each player's first request.

    A must-have counts as honoured only when it is reciprocated and both
    players ended up on the same team.
    """

    honored = broken = 0
    for idx, target in enumerate(graph.must_have):
        if target is None:
            continue
        if graph.requested(target, idx) and _same_team(team_of, idx, target):
            honored += 1
        else:
            broken += 1
    return honored, broken


def count_avoid_violations(graph: PreferenceGraph, team_of: Sequence[Optional[int]]) -> int:
    return sum(
        1
        for idx, avoided in enumerate(graph.avoids)
        for other in avoided
        if _same_team(team_of, idx, other)
    )


def compute_stats(
    graph: PreferenceGraph,
    team_of: Sequence[Optional[int]],
    *,
    team_averages: Sequence[float],
    started: float,
) -> GenerationStats:
    """``started`` is a ``time.perf_counter()`` reading taken when the run began."""

    assigned = sum(1 for team in team_of if team is not None)
    honored, broken = count_must_have_requests(graph, team_of)
    spread = max(team_averages) - min(team_averages) if team_averages else 0.0
    return GenerationStats(
        total_players=len(graph),
        assigned_players=assigned,
        unassigned_players=len(graph) - assigned,
        mutual_requests_honored=honored,
        mutual_requests_broken=broken,
        avoid_requests_violated=count_avoid_violations(graph, team_of),
        generation_time=(time.perf_counter() - started) * 1000.0,
        skill_spread=spread,
    )


def broken_one_way_conflicts(graph: PreferenceGraph, team_of: Sequence[Optional[int]]) -> List[RequestConflict]:
    players = graph.players
    conflicts: List[RequestConflict] = []
    for a, b in graph.one_way_edges():
        if _same_team(team_of, a, b):
            continue
        conflicts.append(
            RequestConflict(
                conflict_type="one-way-request",
                player_id=players[a].player_id,
                target_id=players[b].player_id,
                message=f"{players[a].name} requested {players[b].name}, who did not request them back",
            )
        )
    return conflicts


def collect_unfulfilled(
    graph: PreferenceGraph,
    team_of: Sequence[Optional[int]],
) -> Dict[str, Tuple[UnfulfilledRequest, ...]]:
    """Map player id to every teammate request that did not end on the same team."""

    players = graph.players
    report: Dict[str, Tuple[UnfulfilledRequest, ...]] = {}
    for idx, targets in enumerate(graph.requests):
        missed: List[UnfulfilledRequest] = []
        for target in targets:
            if _same_team(team_of, idx, target):
                continue
            reason = "group-full" if graph.requested(target, idx) else "non-reciprocal"
            missed.append(
                UnfulfilledRequest(name=players[target].name, player_id=players[target].player_id, reason=reason)
            )
        for name in graph.unresolved_requests[idx]:
            missed.append(UnfulfilledRequest(name=name, reason="non-reciprocal"))
        if missed:
            report[players[idx].player_id] = tuple(missed)
    return report
