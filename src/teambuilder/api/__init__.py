"""REST API for the team generator."""

from __future__ import annotations

import csv
import json
from dataclasses import asdict
from io import StringIO

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.responses import Response

from teambuilder.api.schemas import (
    ConflictResponse,
    GenerateRequest,
    GenerationResponse,
    NearMissResponse,
    RosterPreviewResponse,
    StatsResponse,
    TeamResponse,
)
from teambuilder.config import get_preset, iter_presets
from teambuilder.export import export_teams_to_csv
from teambuilder.generator import ConfigurationError, GenerationResult, generate_teams
from teambuilder.ingest import infer_roster_mapping, parse_roster_csv, rows_to_players
from teambuilder.models import LeagueConfig


def _parse_mapping(mapping_str: str | None) -> dict[str, str]:
    if not mapping_str:
        return {}
    try:
        mapping = json.loads(mapping_str)
    except json.JSONDecodeError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid mapping JSON: {exc}") from exc
    if not isinstance(mapping, dict):
        raise HTTPException(status_code=400, detail="Mapping JSON must be an object")
    return {str(key): str(value) for key, value in mapping.items()}


def _resolve_league(request: GenerateRequest) -> LeagueConfig:
    if request.config is not None:
        return request.config
    if request.preset:
        try:
            return get_preset(request.preset)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=f"Unknown league preset {request.preset!r}") from exc
    return LeagueConfig()


def _run_generation(request: GenerateRequest) -> tuple[LeagueConfig, GenerationResult]:
    config = _resolve_league(request)
    try:
        result = generate_teams(
            request.players,
            config,
            request.groups,
            mode=request.mode,
            seed=request.seed,
            team_names=request.team_names,
        )
    except ConfigurationError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return config, result


def _to_response(config: LeagueConfig, result: GenerationResult) -> GenerationResponse:
    return GenerationResponse(
        config=config,
        mode=result.mode.value,
        seed=result.seed,
        teams=[
            TeamResponse(
                team_id=team.team_id,
                name=team.name,
                players=list(team.players),
                average_skill=team.average_skill,
                gender_breakdown=dict(team.gender_breakdown),
                handler_count=team.handler_count,
            )
            for team in result.teams
        ],
        unassigned_players=list(result.unassigned_players),
        stats=StatsResponse(**asdict(result.stats)),
        conflicts=[ConflictResponse(**asdict(conflict)) for conflict in result.conflicts],
        near_misses=[
            NearMissResponse(
                player_ids=list(miss.player_ids),
                reason=miss.reason,
                group_id=miss.group_id,
                message=miss.message,
            )
            for miss in result.near_misses
        ],
    )


def create_app() -> FastAPI:
    app = FastAPI(title="teambuilder")

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/presets", response_model=list[LeagueConfig])
    async def presets() -> list[LeagueConfig]:
        return list(iter_presets())

    @app.post("/roster/preview", response_model=RosterPreviewResponse)
    async def roster_preview(
        roster: UploadFile = File(...),
        mapping: str | None = Form(None),
    ) -> RosterPreviewResponse:
        contents = await roster.read()
        if not contents:
            raise HTTPException(status_code=400, detail="roster file is empty")
        try:
            text = contents.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise HTTPException(status_code=400, detail="roster file is not UTF-8 text") from exc

        column_mapping = _parse_mapping(mapping)
        if not column_mapping:
            column_mapping = infer_roster_mapping(next(csv.reader(StringIO(text)), []))

        try:
            rows = parse_roster_csv(text, mapping=column_mapping)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        players, groups, report = rows_to_players(rows)
        return RosterPreviewResponse(
            mapping=column_mapping,
            players=players,
            groups=groups,
            warnings=report.warnings,
            errors=report.errors,
        )

    @app.post("/teams", response_model=GenerationResponse)
    async def teams(request: GenerateRequest) -> GenerationResponse:
        config, result = _run_generation(request)
        return _to_response(config, result)

    @app.post("/teams/export.csv")
    async def teams_export(request: GenerateRequest) -> Response:
        _, result = _run_generation(request)
        return Response(
            content=export_teams_to_csv(result, groups=request.groups),
            media_type="text/csv",
            headers={"Content-Disposition": "attachment; filename=teams.csv"},
        )

    return app
