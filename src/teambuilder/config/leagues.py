"""Named league presets for common recreational formats."""

from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Optional

from teambuilder.models import LeagueConfig


_LEAGUE_PRESETS: Dict[str, LeagueConfig] = {
    "DEFAULT": LeagueConfig(
        config_id="default",
        name="Default League",
        max_team_size=12,
        min_females=2,
        min_males=0,
    ),
    "OPEN": LeagueConfig(
        config_id="open",
        name="Open League",
        max_team_size=10,
        min_females=0,
        min_males=0,
    ),
    "COED_ULTIMATE": LeagueConfig(
        config_id="coed_ultimate",
        name="Coed Ultimate",
        max_team_size=14,
        min_females=5,
        min_males=5,
        allow_single_gender_teams=False,
    ),
    "COED_VOLLEYBALL": LeagueConfig(
        config_id="coed_volleyball",
        name="Coed Volleyball",
        max_team_size=8,
        min_females=2,
        min_males=2,
        allow_single_gender_teams=False,
    ),
    "COED_SOFTBALL": LeagueConfig(
        config_id="coed_softball",
        name="Coed Softball",
        max_team_size=15,
        min_females=4,
        min_males=4,
        allow_single_gender_teams=False,
    ),
}


def _preset_key(name: str) -> str:
    return name.strip().upper().replace("-", "_").replace(" ", "_")


def iter_presets() -> Iterable[LeagueConfig]:
    """Return an iterator of all configured league presets."""

    return _LEAGUE_PRESETS.values()


def get_preset(name: str) -> LeagueConfig:
    """Fetch a preset by name ("coed-ultimate", "COED_ULTIMATE"), raising KeyError if missing."""

    key = _preset_key(name)
    if key not in _LEAGUE_PRESETS:
        raise KeyError(f"No league preset configured for {name!r}")
    return _LEAGUE_PRESETS[key]


def resolve_config(preset: Optional[str] = None, **overrides: Any) -> LeagueConfig:
    """Start from a preset (or the defaults) and apply non-None overrides with validation."""

    base = get_preset(preset) if preset else LeagueConfig()
    updates = {key: value for key, value in overrides.items() if value is not None}
    if not updates:
        return base
    return LeagueConfig.model_validate({**base.model_dump(), **updates})


# Presets keyed by config_id.
PRESETS_BY_ID: Mapping[str, LeagueConfig] = {
    config.config_id: config for config in _LEAGUE_PRESETS.values()
}
