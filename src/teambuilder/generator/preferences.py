"""Resolve name-based teammate/avoid requests into an index-based graph."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional, Sequence, Tuple

from teambuilder.models import Player


logger = logging.getLogger(__name__)

ConflictType = Literal["one-way-request", "avoid-vs-request"]


@dataclass(frozen=True)
class RequestConflict:
    """Tension between requests that the generator reports rather than resolves."""

    conflict_type: ConflictType
    player_id: str
    target_id: str
    blocking_player_id: Optional[str] = None
    message: str = ""


def _name_key(name: str) -> str:
    return name.strip().lower()


@dataclass
class PreferenceGraph:
    """Relationship graph over player indices.

    ``requests[i]`` keeps the resolved teammate requests of player ``i`` in the
    order they were listed; ``must_have[i]`` is the resolution of the first
    listed name only.
    """

    players: Sequence[Player]
    index_by_id: Dict[str, int]
    requests: List[Tuple[int, ...]]
    must_have: List[Optional[int]]
    avoids: List[frozenset]
    unresolved_requests: List[Tuple[str, ...]]
    conflicts: List[RequestConflict] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.players)

    def requested(self, a: int, b: int) -> bool:
        return b in self.requests[a]

    def is_mutual(self, a: int, b: int) -> bool:
        return b in self.requests[a] and a in self.requests[b]

    def avoids_each_other(self, a: int, b: int) -> bool:
        return b in self.avoids[a] or a in self.avoids[b]

    def mutual_partners(self, a: int) -> List[int]:
        return [b for b in self.requests[a] if a in self.requests[b]]

    def mutual_edges(self) -> List[Tuple[int, int]]:
        edges: List[Tuple[int, int]] = []
        for a, targets in enumerate(self.requests):
            for b in targets:
                if a < b and a in self.requests[b]:
                    edges.append((a, b))
        return edges

    def one_way_edges(self) -> List[Tuple[int, int]]:
        return [
            (a, b)
            for a, targets in enumerate(self.requests)
            for b in targets
            if a not in self.requests[b]
        ]

    def link_weight(self, a: int, b: int) -> int:
        """2 when ``b`` is ``a``'s must-have, 1 for a nice-to-have request, else 0."""

        if self.must_have[a] == b:
            return 2
        if b in self.requests[a]:
            return 1
        return 0


def _resolve_names(
    names: Sequence[str],
    lookup: Dict[str, int],
    owner: int,
) -> Tuple[List[Optional[int]], List[str]]:
    resolved: List[Optional[int]] = []
    unresolved: List[str] = []
    for name in names:
        idx = lookup.get(_name_key(name))
        if idx is None:
            unresolved.append(name)
            resolved.append(None)
        elif idx == owner:
            resolved.append(None)
        else:
            resolved.append(idx)
    return resolved, unresolved


def _detect_avoid_conflicts(graph: PreferenceGraph) -> List[RequestConflict]:
    players = graph.players
    found: Dict[Tuple[int, int, Optional[int]], RequestConflict] = {}

    def record(a: int, b: int, blocker: Optional[int], message: str) -> None:
        key = (a, b, blocker)
        if key in found:
            return
        found[key] = RequestConflict(
            conflict_type="avoid-vs-request",
            player_id=players[a].player_id,
            target_id=players[b].player_id,
            blocking_player_id=players[blocker].player_id if blocker is not None else None,
            message=message,
        )

    for a, targets in enumerate(graph.requests):
        for b in targets:
            if graph.avoids_each_other(a, b):
                record(
                    a,
                    b,
                    None,
                    f"{players[a].name} requests {players[b].name} but one of them avoids the other",
                )
                continue
            for c in graph.mutual_partners(a):
                if c != b and graph.avoids_each_other(c, b):
                    record(
                        a,
                        b,
                        c,
                        f"{players[a].name} requests {players[b].name}, who cannot share a team "
                        f"with {players[a].name}'s partner {players[c].name}",
                    )
            for c in graph.mutual_partners(b):
                if c != a and graph.avoids_each_other(c, a):
                    record(
                        a,
                        b,
                        c,
                        f"{players[a].name} requests {players[b].name}, whose partner "
                        f"{players[c].name} cannot share a team with {players[a].name}",
                    )
    return list(found.values())


def build_preference_graph(players: Sequence[Player]) -> PreferenceGraph:
    """Build the request/avoid graph using case-insensitive exact name matches."""

    lookup: Dict[str, int] = {}
    for idx, player in enumerate(players):
        key = _name_key(player.name)
        if key in lookup:
            logger.warning(
                "Duplicate player name %r (ids %s, %s); requests resolve to the first",
                player.name,
                players[lookup[key]].player_id,
                player.player_id,
            )
            continue
        lookup[key] = idx

    requests: List[Tuple[int, ...]] = []
    must_have: List[Optional[int]] = []
    avoids: List[frozenset] = []
    unresolved_requests: List[Tuple[str, ...]] = []

    for idx, player in enumerate(players):
        resolved, unresolved = _resolve_names(player.teammate_requests, lookup, idx)
        ordered: List[int] = []
        for target in resolved:
            if target is not None and target not in ordered:
                ordered.append(target)
        requests.append(tuple(ordered))
        must_have.append(resolved[0] if resolved else None)
        unresolved_requests.append(tuple(unresolved))

        avoid_resolved, _ = _resolve_names(player.avoid_requests, lookup, idx)
        avoids.append(frozenset(target for target in avoid_resolved if target is not None))

    graph = PreferenceGraph(
        players=players,
        index_by_id={player.player_id: idx for idx, player in enumerate(players)},
        requests=requests,
        must_have=must_have,
        avoids=avoids,
        unresolved_requests=unresolved_requests,
    )
    graph.conflicts = _detect_avoid_conflicts(graph)
    if graph.conflicts:
        logger.info("Detected %s avoid-vs-request conflicts", len(graph.conflicts))
    return graph
