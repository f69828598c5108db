"""Input adapters that normalize raw roster data."""

from .roster import (
    DEFAULT_ROSTER_MAPPING,
    RosterReport,
    RosterRow,
    infer_roster_mapping,
    load_players_from_csv,
    load_roster_csv,
    parse_roster_csv,
    rows_to_players,
)

__all__ = [
    "DEFAULT_ROSTER_MAPPING",
    "RosterReport",
    "RosterRow",
    "infer_roster_mapping",
    "load_players_from_csv",
    "load_roster_csv",
    "parse_roster_csv",
    "rows_to_players",
]
