"""Pydantic models for API I/O."""

from .generation import (
    ConflictResponse,
    GenerateRequest,
    GenerationResponse,
    NearMissResponse,
    RosterPreviewResponse,
    StatsResponse,
    TeamResponse,
)

__all__ = [
    "ConflictResponse",
    "GenerateRequest",
    "GenerationResponse",
    "NearMissResponse",
    "RosterPreviewResponse",
    "StatsResponse",
    "TeamResponse",
]
