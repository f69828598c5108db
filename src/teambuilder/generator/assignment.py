"""Place units onto teams for the balanced, randomized and manual modes.

All three modes share one board that owns the hard constraints (capacity,
avoid relationships, gender floors); a mode only decides the order units are
visited in and which eligible team a unit goes to.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, List, Optional, Sequence, Set

from teambuilder.generator.capacity import CapacityPlan
from teambuilder.generator.grouping import (
    GroupResolution,
    NearMissGroup,
    NearMissReason,
    PlacementUnit,
    make_unit,
)
from teambuilder.generator.preferences import PreferenceGraph
from teambuilder.generator.skill import effective_skill


logger = logging.getLogger(__name__)

_EPSILON = 1e-9


class GenerationMode(str, Enum):
    BALANCED = "balanced"
    RANDOMIZED = "randomized"
    MANUAL = "manual"


@dataclass
class TeamSlot:
    index: int
    open: bool = True
    members: List[int] = field(default_factory=list)
    females: int = 0
    males: int = 0
    skill_total: float = 0.0
    handlers: int = 0

    @property
    def size(self) -> int:
        return len(self.members)

    @property
    def average(self) -> float:
        return self.skill_total / len(self.members) if self.members else 0.0


@dataclass
class AssignmentOutcome:
    slots: List[TeamSlot]
    unassigned: List[int]
    near_misses: List[NearMissGroup]
    seed: Optional[int] = None


ChooseTeam = Callable[[List[TeamSlot], PlacementUnit], Optional[TeamSlot]]


class _Board:
    """Mutable placement state; every eligibility decision goes through ``fits``."""

    def __init__(self, graph: PreferenceGraph, plan: CapacityPlan) -> None:
        self.graph = graph
        self.quota = plan.quota
        self.slots = [TeamSlot(index=idx, open=idx < plan.viable_teams) for idx in range(plan.team_count)]
        self.skill = [effective_skill(player) for player in graph.players]
        self.unplaced_females = sum(1 for player in graph.players if player.gender == "F")
        self.unplaced_males = sum(1 for player in graph.players if player.gender == "M")
        self.unassigned: List[int] = []
        self.near_misses: List[NearMissGroup] = []
        self.bound: Set[int] = set()

    def _gender(self, idx: int) -> str:
        return self.graph.players[idx].gender

    def _deficits(self) -> tuple[int, int]:
        females = males = 0
        for slot in self.slots:
            if slot.open:
                females += max(0, self.quota.min_females - slot.females)
                males += max(0, self.quota.min_males - slot.males)
        return females, males

    def fits(self, slot: TeamSlot, unit: PlacementUnit) -> bool:
        if not slot.open:
            return False
        size = slot.size + unit.size
        if size > self.quota.max_size:
            return False
        if any(self.graph.avoids_each_other(a, b) for a in unit.members for b in slot.members):
            return False
        females = slot.females + unit.females
        males = slot.males + unit.males
        if self.quota.shortfall(size, females, males) > 0:
            return False

        # The players still waiting must be able to cover every open team's floors;
        # once that is already impossible, a placement may not make it worse.
        deficit_f, deficit_m = self._deficits()
        quota = self.quota
        after_f = deficit_f - max(0, quota.min_females - slot.females) + max(0, quota.min_females - females)
        after_m = deficit_m - max(0, quota.min_males - slot.males) + max(0, quota.min_males - males)
        slack_f = self.unplaced_females - deficit_f
        slack_m = self.unplaced_males - deficit_m
        if self.unplaced_females - unit.females - after_f < min(0, slack_f):
            return False
        if self.unplaced_males - unit.males - after_m < min(0, slack_m):
            return False
        return True

    def eligible(self, unit: PlacementUnit) -> List[TeamSlot]:
        return [slot for slot in self.slots if self.fits(slot, unit)]

    def add_member(self, slot: TeamSlot, idx: int) -> None:
        slot.members.append(idx)
        gender = self._gender(idx)
        if gender == "F":
            slot.females += 1
        elif gender == "M":
            slot.males += 1
        slot.skill_total += self.skill[idx]
        if self.graph.players[idx].is_handler:
            slot.handlers += 1

    def remove_member(self, slot: TeamSlot, idx: int) -> None:
        slot.members.remove(idx)
        gender = self._gender(idx)
        if gender == "F":
            slot.females -= 1
        elif gender == "M":
            slot.males -= 1
        slot.skill_total -= self.skill[idx]
        if self.graph.players[idx].is_handler:
            slot.handlers -= 1

    def _consume(self, idx: int) -> None:
        gender = self._gender(idx)
        if gender == "F":
            self.unplaced_females -= 1
        elif gender == "M":
            self.unplaced_males -= 1

    def place(self, slot: TeamSlot, unit: PlacementUnit) -> None:
        for idx in unit.members:
            self.add_member(slot, idx)
            self._consume(idx)
            if unit.size > 1:
                self.bound.add(idx)

    def drop(self, idx: int) -> None:
        self._consume(idx)
        self.unassigned.append(idx)

    def note(self, members: Iterable[int], reason: NearMissReason, message: str, group_id: Optional[str] = None) -> None:
        ids = tuple(self.graph.players[idx].player_id for idx in sorted(members))
        self.near_misses.append(NearMissGroup(ids, reason, group_id, message))

    def is_loose(self, idx: int, slot: TeamSlot) -> bool:
        """True when moving ``idx`` off ``slot`` breaks no group and no honoured request."""

        if idx in self.bound:
            return False
        graph = self.graph
        return not any(
            graph.requested(idx, other) or graph.requested(other, idx)
            for other in slot.members
            if other != idx
        )

    def can_swap(self, left: TeamSlot, a: int, right: TeamSlot, b: int) -> bool:
        if not (self.is_loose(a, left) and self.is_loose(b, right)):
            return False
        graph = self.graph
        if any(graph.avoids_each_other(a, other) for other in right.members if other != b):
            return False
        if any(graph.avoids_each_other(b, other) for other in left.members if other != a):
            return False
        gender_a, gender_b = self._gender(a), self._gender(b)
        if gender_a == gender_b:
            return True
        df = (gender_b == "F") - (gender_a == "F")
        dm = (gender_b == "M") - (gender_a == "M")
        return self.quota.floors_met(left.females + df, left.males + dm) and self.quota.floors_met(
            right.females - df, right.males - dm
        )

    def swap(self, left: TeamSlot, a: int, right: TeamSlot, b: int) -> None:
        self.remove_member(left, a)
        self.remove_member(right, b)
        self.add_member(left, b)
        self.add_member(right, a)


def _place_or_split(board: _Board, unit: PlacementUnit, choose: ChooseTeam) -> None:
    if not unit.oversized:
        slot = choose(board.eligible(unit), unit)
        if slot is not None:
            board.place(slot, unit)
            return
        if unit.size > 1:
            board.note(
                unit.members,
                "no-eligible-team",
                f"No team can take all {unit.size} players together; placing them individually",
                unit.group_id,
            )

    members = sorted(unit.members, key=lambda idx: (-board.skill[idx], idx))
    for idx in members:
        single = make_unit(board.graph, [idx], "single", unit.order)
        slot = choose(board.eligible(single), single)
        if slot is None:
            logger.info("No team can take %s; leaving them unassigned", board.graph.players[idx].name)
            board.drop(idx)
        else:
            board.place(slot, single)


def _balanced_choice(board: _Board) -> ChooseTeam:
    graph = board.graph

    def choose(candidates: List[TeamSlot], unit: PlacementUnit) -> Optional[TeamSlot]:
        if not candidates:
            return None

        def key(slot: TeamSlot):
            links = sum(
                graph.link_weight(member, other) + graph.link_weight(other, member)
                for member in unit.members
                for other in slot.members
            )
            handler_load = slot.handlers if unit.handlers else 0
            return (-links, slot.size, slot.average, handler_load, slot.index)

        return min(candidates, key=key)

    return choose


def _refine_balance(board: _Board, passes: int, tolerance: float) -> int:
    """Swap loose singletons between the weakest and strongest teams while it narrows their gap."""

    swaps = 0
    for _ in range(passes):
        active = [slot for slot in board.slots if slot.members]
        if len(active) < 2:
            break
        low = min(active, key=lambda slot: (slot.average, slot.index))
        high = max(active, key=lambda slot: (slot.average, -slot.index))
        gap = high.average - low.average
        if gap < tolerance or gap <= _EPSILON:
            break

        best = None
        best_gap = gap
        for a in low.members:
            for b in high.members:
                delta = board.skill[b] - board.skill[a]
                if delta <= 0:
                    continue
                new_low = (low.skill_total + delta) / low.size
                new_high = (high.skill_total - delta) / high.size
                if new_low > high.average + _EPSILON or new_high < low.average - _EPSILON:
                    continue
                new_gap = abs(new_high - new_low)
                if new_gap >= best_gap - _EPSILON:
                    continue
                if not board.can_swap(low, a, high, b):
                    continue
                best, best_gap = (a, b), new_gap
        if best is None:
            break
        board.swap(low, best[0], high, best[1])
        swaps += 1
    return swaps


def _enforce_gender_floors(board: _Board) -> None:
    quota = board.quota
    graph = board.graph
    for slot in board.slots:
        if not slot.members or quota.floors_met(slot.females, slot.males):
            continue
        for gender, floor in (("F", quota.min_females), ("M", quota.min_males)):
            while (slot.females if gender == "F" else slot.males) < floor and slot.size < quota.max_size:
                candidate = next(
                    (
                        idx
                        for idx in board.unassigned
                        if graph.players[idx].gender == gender
                        and not any(graph.avoids_each_other(idx, other) for other in slot.members)
                    ),
                    None,
                )
                if candidate is None:
                    break
                board.unassigned.remove(candidate)
                board.add_member(slot, candidate)
        if quota.floors_met(slot.females, slot.males):
            continue
        evicted = list(slot.members)
        for idx in evicted:
            board.remove_member(slot, idx)
        board.unassigned.extend(evicted)
        board.note(
            evicted,
            "gender-shortfall",
            f"Team {slot.index + 1} could not reach {quota.min_females} F / {quota.min_males} M",
        )
        logger.warning("Team %s could not meet gender minimums; %s players unassigned", slot.index + 1, len(evicted))


def _assign_manual(board: _Board, units: Sequence[PlacementUnit]) -> None:
    placed: Set[int] = set()
    for unit in units:
        if unit.kind != "group" or unit.oversized:
            continue
        candidates = board.eligible(unit)
        if not candidates:
            board.note(unit.members, "no-eligible-team", "No team has room for this group", unit.group_id)
            continue
        board.place(candidates[0], unit)
        placed.update(unit.members)
    for idx in range(len(board.graph)):
        if idx not in placed:
            board.drop(idx)


def assign_units(
    mode: GenerationMode | str,
    graph: PreferenceGraph,
    resolution: GroupResolution,
    plan: CapacityPlan,
    *,
    seed: Optional[int] = None,
    swap_passes: int = 0,
    balance_tolerance: float = 0.5,
) -> AssignmentOutcome:
    mode = GenerationMode(mode)
    board = _Board(graph, plan)

    if mode is GenerationMode.MANUAL:
        _assign_manual(board, resolution.units)
        board.unassigned.sort()
        return AssignmentOutcome(board.slots, board.unassigned, board.near_misses)

    if mode is GenerationMode.RANDOMIZED:
        if seed is None:
            seed = time.time_ns() & 0xFFFFFFFF
        rng = random.Random(seed)
        units = list(resolution.units)
        rng.shuffle(units)

        def choose(candidates: List[TeamSlot], unit: PlacementUnit) -> Optional[TeamSlot]:
            return rng.choice(candidates) if candidates else None

    else:
        seed = None
        units = sorted(resolution.units, key=lambda unit: (-unit.skill_total, -unit.size, unit.order))
        choose = _balanced_choice(board)

    for unit in units:
        _place_or_split(board, unit, choose)

    if mode is GenerationMode.BALANCED and swap_passes > 0:
        swaps = _refine_balance(board, swap_passes, balance_tolerance)
        logger.debug("Balance refinement made %s swaps", swaps)

    _enforce_gender_floors(board)
    board.unassigned.sort()
    return AssignmentOutcome(board.slots, board.unassigned, board.near_misses, seed)
