"""Derive team count and per-team quotas from league settings and headcount."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from teambuilder.generator.errors import ConfigurationError
from teambuilder.models import LeagueConfig


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TeamQuota:
    min_size: int
    max_size: int
    min_females: int
    min_males: int

    def shortfall(self, size: int, females: int, males: int) -> int:
        """Open slots needed to reach the gender floors minus slots still free (>0 means unreachable)."""

        needed = max(0, self.min_females - females) + max(0, self.min_males - males)
        return needed - (self.max_size - size)

    def floors_met(self, females: int, males: int) -> bool:
        return females >= self.min_females and males >= self.min_males


@dataclass(frozen=True)
class CapacityPlan:
    team_count: int
    quota: TeamQuota
    viable_teams: int

    @property
    def total_capacity(self) -> int:
        return self.viable_teams * self.quota.max_size


def plan_capacity(
    headcount: int,
    config: LeagueConfig,
    *,
    females: int = 0,
    males: int = 0,
) -> CapacityPlan:
    """Return the capacity plan, raising ConfigurationError for infeasible settings."""

    min_females = config.min_females
    min_males = config.min_males
    if not config.allow_single_gender_teams:
        min_females = max(1, min_females)
        min_males = max(1, min_males)

    if min_females + min_males > config.max_team_size:
        raise ConfigurationError(
            f"Gender minimums ({min_females} F + {min_males} M) exceed the maximum team size "
            f"of {config.max_team_size}"
        )

    if config.target_teams is not None:
        team_count = config.target_teams
        if headcount and team_count > headcount:
            raise ConfigurationError(
                f"{team_count} teams for {headcount} players leaves teams with fewer than one player"
            )
    else:
        team_count = max(1, math.ceil(headcount / config.max_team_size))

    viable = team_count
    if min_females:
        viable = min(viable, females // min_females)
    if min_males:
        viable = min(viable, males // min_males)
    if viable < team_count:
        logger.warning(
            "Only %s of %s teams can meet gender minimums (%s F available, %s M available)",
            viable,
            team_count,
            females,
            males,
        )

    quota = TeamQuota(
        min_size=min_females + min_males,
        max_size=config.max_team_size,
        min_females=min_females,
        min_males=min_males,
    )
    plan = CapacityPlan(team_count=team_count, quota=quota, viable_teams=viable)
    if plan.total_capacity < headcount:
        logger.warning(
            "Capacity for %s players across %s usable teams is below the roster size of %s",
            plan.total_capacity,
            viable,
            headcount,
        )
    return plan
