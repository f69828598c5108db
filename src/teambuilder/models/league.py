"""League configuration consumed by the capacity planner."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


class LeagueConfig(BaseModel):
    config_id: str = Field(default="default", min_length=1)
    name: str = "Default League"
    max_team_size: int = Field(default=12, ge=1)
    min_females: int = Field(default=0, ge=0)
    min_males: int = Field(default=0, ge=0)
    target_teams: Optional[int] = Field(default=None, ge=1)
    # False forbids teams that are not gender-mixed (at least one F and one M).
    allow_single_gender_teams: bool = True

    model_config = ConfigDict(frozen=True)
