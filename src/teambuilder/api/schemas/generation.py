from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from teambuilder.models import LeagueConfig, Player, PlayerGroup


class GenerateRequest(BaseModel):
    players: List[Player] = Field(default_factory=list)
    groups: List[PlayerGroup] = Field(default_factory=list)
    config: Optional[LeagueConfig] = None
    preset: Optional[str] = None
    mode: Literal["balanced", "randomized", "manual"] = "balanced"
    seed: Optional[int] = None
    team_names: Optional[List[str]] = None


class TeamResponse(BaseModel):
    team_id: str
    name: str
    players: List[Player]
    average_skill: float
    gender_breakdown: dict[str, int]
    handler_count: int


class StatsResponse(BaseModel):
    total_players: int
    assigned_players: int
    unassigned_players: int
    mutual_requests_honored: int
    mutual_requests_broken: int
    avoid_requests_violated: int
    generation_time: float
    skill_spread: float


class ConflictResponse(BaseModel):
    conflict_type: str
    player_id: str
    target_id: str
    blocking_player_id: Optional[str] = None
    message: str = ""


class NearMissResponse(BaseModel):
    player_ids: List[str]
    reason: str
    group_id: Optional[str] = None
    message: str = ""


class GenerationResponse(BaseModel):
    config: LeagueConfig
    mode: str
    seed: Optional[int] = None
    teams: List[TeamResponse]
    unassigned_players: List[Player]
    stats: StatsResponse
    conflicts: List[ConflictResponse] = Field(default_factory=list)
    near_misses: List[NearMissResponse] = Field(default_factory=list)


class RosterPreviewResponse(BaseModel):
    mapping: dict[str, str]
    players: List[Player]
    groups: List[PlayerGroup] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
