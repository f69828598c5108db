"""Export helpers for generated teams."""

from .teams import RosterExportError, export_team_summary_to_csv, export_teams_to_csv

__all__ = [
    "RosterExportError",
    "export_team_summary_to_csv",
    "export_teams_to_csv",
]
