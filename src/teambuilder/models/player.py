"""Canonical roster models shared across ingestion, generation and API layers."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict


Gender = Literal["M", "F", "Other"]
GENDERS: tuple[str, ...] = ("M", "F", "Other")

SKILL_MIN = 0.0
SKILL_MAX = 10.0
MAX_GROUP_SIZE = 4


class GroupFullError(ValueError):
    """Raised when a player would be added to a group that already has four members."""


def clamp_skill(value: float) -> float:
    return max(SKILL_MIN, min(SKILL_MAX, float(value)))


def _clean_names(values: List[str]) -> List[str]:
    cleaned: List[str] = []
    for value in values:
        name = value.strip()
        if name:
            cleaned.append(name)
    return cleaned


class UnfulfilledRequest(BaseModel):
    """Teammate request that could not be honoured in a generated result."""

    name: str
    player_id: Optional[str] = None
    reason: Literal["non-reciprocal", "group-full"]

    model_config = ConfigDict(frozen=True)


class Player(BaseModel):
    """Normalized player record consumed by the team generator."""

    player_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    gender: Gender = "Other"
    skill_rating: float
    # None means "no override"; 0.0 is a real rating.
    exec_skill_rating: Optional[float] = None
    teammate_requests: List[str] = Field(default_factory=list)
    avoid_requests: List[str] = Field(default_factory=list)
    is_handler: bool = False
    group_id: Optional[str] = None
    team_id: Optional[str] = None
    email: Optional[str] = None
    unfulfilled_requests: List[UnfulfilledRequest] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @field_validator("skill_rating")
    @classmethod
    def _clamp_base_skill(cls, value: float) -> float:
        return clamp_skill(value)

    @field_validator("exec_skill_rating")
    @classmethod
    def _clamp_override_skill(cls, value: Optional[float]) -> Optional[float]:
        if value is None:
            return None
        return clamp_skill(value)

    @field_validator("teammate_requests", "avoid_requests")
    @classmethod
    def _strip_request_names(cls, value: List[str]) -> List[str]:
        return _clean_names(value)

    @property
    def must_have_request(self) -> Optional[str]:
        return self.teammate_requests[0] if self.teammate_requests else None

    @property
    def nice_to_have_requests(self) -> List[str]:
        return list(self.teammate_requests[1:])


class PlayerGroup(BaseModel):
    """Pre-formed cluster of players that must land on the same team."""

    group_id: str = Field(..., min_length=1)
    label: str = ""
    color: Optional[str] = None
    player_ids: List[str] = Field(default_factory=list, max_length=MAX_GROUP_SIZE)

    model_config = ConfigDict(frozen=True)

    @field_validator("player_ids", mode="before")
    @classmethod
    def _dedupe_members(cls, value):
        if not isinstance(value, (list, tuple)):
            return value
        seen: set = set()
        members = []
        for player_id in value:
            if player_id in seen:
                continue
            seen.add(player_id)
            members.append(player_id)
        return members

    @property
    def is_full(self) -> bool:
        return len(self.player_ids) >= MAX_GROUP_SIZE

    def with_player(self, player_id: str) -> "PlayerGroup":
        """Return a copy with ``player_id`` added, enforcing the four-member cap."""

        if player_id in self.player_ids:
            return self
        if self.is_full:
            raise GroupFullError(
                f"Group {self.label or self.group_id!r} already has {MAX_GROUP_SIZE} players"
            )
        return self.model_copy(update={"player_ids": [*self.player_ids, player_id]})

    def without_player(self, player_id: str) -> "PlayerGroup":
        return self.model_copy(
            update={"player_ids": [pid for pid in self.player_ids if pid != player_id]}
        )
