"""Constraint-based team generation engine."""

from .assignment import GenerationMode
from .capacity import CapacityPlan, TeamQuota, plan_capacity
from .errors import ConfigurationError
from .grouping import NearMissGroup, PlacementUnit, resolve_groups
from .preferences import PreferenceGraph, RequestConflict, build_preference_graph
from .service import GenerationResult, Team, generate_teams
from .skill import average_skill, effective_skill
from .stats import GenerationStats

__all__ = [
    "CapacityPlan",
    "ConfigurationError",
    "GenerationMode",
    "GenerationResult",
    "GenerationStats",
    "NearMissGroup",
    "PlacementUnit",
    "PreferenceGraph",
    "RequestConflict",
    "Team",
    "TeamQuota",
    "average_skill",
    "build_preference_graph",
    "effective_skill",
    "generate_teams",
    "plan_capacity",
    "resolve_groups",
]
