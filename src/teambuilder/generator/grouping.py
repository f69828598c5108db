"""Turn explicit groups and mutual requests into atomic placement units."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Literal, Optional, Sequence, Set, Tuple

from teambuilder.generator.preferences import PreferenceGraph
from teambuilder.generator.skill import effective_skill
from teambuilder.models import MAX_GROUP_SIZE, PlayerGroup


logger = logging.getLogger(__name__)

NearMissReason = Literal[
    "group-too-large",
    "avoid-conflict",
    "would-exceed-team-size",
    "no-eligible-team",
    "gender-shortfall",
]
UnitKind = Literal["group", "cluster", "single"]


@dataclass(frozen=True)
class NearMissGroup:
    """A set of players that could not be kept together, with the blocking reason."""

    player_ids: Tuple[str, ...]
    reason: NearMissReason
    group_id: Optional[str] = None
    message: str = ""


@dataclass(frozen=True)
class PlacementUnit:
    members: Tuple[int, ...]
    kind: UnitKind
    order: int
    females: int
    males: int
    skill_total: float
    handlers: int
    group_id: Optional[str] = None
    oversized: bool = False

    @property
    def size(self) -> int:
        return len(self.members)


@dataclass
class GroupResolution:
    units: List[PlacementUnit]
    near_misses: List[NearMissGroup] = field(default_factory=list)


def make_unit(
    graph: PreferenceGraph,
    members: Sequence[int],
    kind: UnitKind,
    order: int,
    *,
    group_id: Optional[str] = None,
    max_team_size: Optional[int] = None,
) -> PlacementUnit:
    players = [graph.players[idx] for idx in members]
    return PlacementUnit(
        members=tuple(members),
        kind=kind,
        order=order,
        females=sum(1 for player in players if player.gender == "F"),
        males=sum(1 for player in players if player.gender == "M"),
        skill_total=sum(effective_skill(player) for player in players),
        handlers=sum(1 for player in players if player.is_handler),
        group_id=group_id,
        oversized=max_team_size is not None and len(members) > max_team_size,
    )


def _player_ids(graph: PreferenceGraph, members: Iterable[int]) -> Tuple[str, ...]:
    return tuple(graph.players[idx].player_id for idx in sorted(members))


def _has_internal_avoid(graph: PreferenceGraph, members: Sequence[int]) -> bool:
    return any(
        graph.avoids_each_other(a, b)
        for pos, a in enumerate(members)
        for b in members[pos + 1:]
    )


def _crosses_avoid(graph: PreferenceGraph, left: Iterable[int], right: Iterable[int]) -> bool:
    right_list = list(right)
    return any(graph.avoids_each_other(a, b) for a in left for b in right_list)


class _DisjointSet:
    def __init__(self, size: int) -> None:
        self.parent = list(range(size))
        self.members: Dict[int, List[int]] = {idx: [idx] for idx in range(size)}

    def find(self, idx: int) -> int:
        root = idx
        while self.parent[root] != root:
            root = self.parent[root]
        while self.parent[idx] != root:
            self.parent[idx], idx = root, self.parent[idx]
        return root

    def union(self, a: int, b: int) -> None:
        ra, rb = self.find(a), self.find(b)
        if ra == rb:
            return
        if len(self.members[ra]) < len(self.members[rb]):
            ra, rb = rb, ra
        self.parent[rb] = ra
        self.members[ra].extend(self.members.pop(rb))


def _explicit_members(
    graph: PreferenceGraph,
    group: PlayerGroup,
    claimed: Set[int],
) -> List[int]:
    members: List[int] = []
    for player_id in group.player_ids:
        idx = graph.index_by_id.get(player_id)
        if idx is None:
            logger.warning("Group %s references unknown player %s; dropping it", group.group_id, player_id)
            continue
        if idx in claimed:
            logger.warning(
                "Player %s already belongs to another group; dropping them from group %s",
                player_id,
                group.group_id,
            )
            continue
        members.append(idx)
    return members


def resolve_groups(
    graph: PreferenceGraph,
    groups: Sequence[PlayerGroup],
    *,
    max_team_size: int,
    link_mutual_requests: bool = True,
) -> GroupResolution:
    """Build placement units: explicit groups, mutual-request clusters, then singletons."""

    units: List[PlacementUnit] = []
    near_misses: Dict[Tuple[str, Tuple[str, ...]], NearMissGroup] = {}
    claimed: Set[int] = set()

    def note(members: Iterable[int], reason: NearMissReason, message: str, group_id: Optional[str] = None) -> None:
        ids = _player_ids(graph, members)
        near_misses.setdefault((reason, ids), NearMissGroup(ids, reason, group_id, message))

    for group in groups:
        members = _explicit_members(graph, group, claimed)
        if not members:
            continue
        claimed.update(members)
        label = group.label or group.group_id
        if _has_internal_avoid(graph, members):
            note(members, "avoid-conflict", f"Group {label} contains players who avoid each other", group.group_id)
            continue
        unit = make_unit(graph, members, "group", len(units), group_id=group.group_id, max_team_size=max_team_size)
        if unit.oversized:
            note(
                members,
                "would-exceed-team-size",
                f"Group {label} has {unit.size} players but teams hold {max_team_size}",
                group.group_id,
            )
        units.append(unit)

    free = [idx for idx in range(len(graph)) if idx not in claimed]
    clusters = _DisjointSet(len(graph))
    if link_mutual_requests:
        for a, b in graph.mutual_edges():
            if a in claimed or b in claimed:
                continue
            ra, rb = clusters.find(a), clusters.find(b)
            if ra == rb:
                continue
            left, right = clusters.members[ra], clusters.members[rb]
            names = f"{graph.players[a].name} and {graph.players[b].name}"
            if len(left) + len(right) > MAX_GROUP_SIZE:
                note(
                    [*left, *right],
                    "group-too-large",
                    f"Linking {names} would exceed {MAX_GROUP_SIZE} players",
                )
                continue
            if _crosses_avoid(graph, left, right):
                note([*left, *right], "avoid-conflict", f"Linking {names} would join players who avoid each other")
                continue
            clusters.union(a, b)

    emitted: Set[int] = set()
    for idx in free:
        root = clusters.find(idx)
        if root in emitted:
            continue
        emitted.add(root)
        members = sorted(clusters.members[root])
        if len(members) == 1:
            continue
        unit = make_unit(graph, members, "cluster", len(units), max_team_size=max_team_size)
        if unit.oversized:
            note(
                members,
                "would-exceed-team-size",
                f"Mutual-request cluster of {unit.size} exceeds the team size of {max_team_size}",
            )
        units.append(unit)

    grouped = {member for unit in units for member in unit.members}
    for idx in range(len(graph)):
        if idx not in grouped:
            units.append(make_unit(graph, [idx], "single", len(units)))

    logger.debug(
        "Resolved %s placement units (%s groups, %s clusters)",
        len(units),
        sum(1 for unit in units if unit.kind == "group"),
        sum(1 for unit in units if unit.kind == "cluster"),
    )
    return GroupResolution(units=units, near_misses=list(near_misses.values()))
