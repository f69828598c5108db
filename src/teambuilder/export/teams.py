"""CSV export helpers for generated teams."""

from __future__ import annotations

import csv
from io import StringIO
from statistics import pvariance
from typing import Dict, Mapping, Optional, Sequence

from teambuilder.generator import GenerationResult, Team, effective_skill
from teambuilder.models import LeagueConfig, Player, PlayerGroup


class RosterExportError(RuntimeError):
    """Raised when generated teams cannot be exported as requested."""


TEAM_HEADERS = (
    "Team",
    "Player",
    "Gender",
    "Skill Rating",
    "Exec Skill Rating",
    "Handler",
    "Group",
    "Email",
    "Unfulfilled Requests",
    "Team Size",
    "Team Average",
)

SUMMARY_HEADERS = (
    "Team",
    "Players",
    "Average Skill",
    "Skill Variance",
    "Males",
    "Females",
    "Other",
    "Handlers",
    "Groups",
    "Roster",
)


def _group_labels(groups: Sequence[PlayerGroup]) -> Dict[str, str]:
    return {group.group_id: group.label or group.group_id for group in groups}


def _team_names(result: GenerationResult, team_names: Sequence[str] | None) -> list[str]:
    if team_names is None:
        return [team.name for team in result.teams]
    if len(team_names) != len(result.teams):
        raise RosterExportError("team_names length must match the number of teams")
    return list(team_names)


def _player_row(team_name: str, player: Player, labels: Mapping[str, str]) -> list[str]:
    return [
        team_name,
        player.name,
        player.gender,
        f"{player.skill_rating:g}",
        "" if player.exec_skill_rating is None else f"{player.exec_skill_rating:g}",
        "Y" if player.is_handler else "",
        labels.get(player.group_id or "", ""),
        player.email or "",
        "; ".join(request.name for request in player.unfulfilled_requests),
    ]


def export_teams_to_csv(
    result: GenerationResult,
    *,
    groups: Sequence[PlayerGroup] = (),
    team_names: Sequence[str] | None = None,
) -> str:
    """One row per player; team size and average appear on each team's first row."""

    names = _team_names(result, team_names)
    labels = _group_labels(groups)

    buffer = StringIO()
    writer = csv.writer(buffer)
    writer.writerow(TEAM_HEADERS)

    for name, team in zip(names, result.teams):
        for position, player in enumerate(team.players):
            row = _player_row(name, player, labels)
            if position == 0:
                row.extend([str(len(team.players)), f"{team.average_skill:.2f}"])
            else:
                row.extend(["", ""])
            writer.writerow(row)
        writer.writerow([])

    if result.unassigned_players:
        writer.writerow(["UNASSIGNED"])
        for player in result.unassigned_players:
            writer.writerow([*_player_row("Unassigned", player, labels), "", ""])

    return buffer.getvalue()


def _skill_variance(team: Team) -> float:
    skills = [effective_skill(player) for player in team.players]
    return pvariance(skills) if len(skills) > 1 else 0.0


def export_team_summary_to_csv(
    result: GenerationResult,
    *,
    config: Optional[LeagueConfig] = None,
    groups: Sequence[PlayerGroup] = (),
) -> str:
    labels = _group_labels(groups)

    buffer = StringIO()
    writer = csv.writer(buffer)
    writer.writerow(SUMMARY_HEADERS)

    for team in result.teams:
        team_groups = sorted(
            {labels[player.group_id] for player in team.players if player.group_id in labels}
        )
        writer.writerow(
            [
                team.name,
                len(team.players),
                f"{team.average_skill:.2f}",
                f"{_skill_variance(team):.2f}",
                team.gender_breakdown.get("M", 0),
                team.gender_breakdown.get("F", 0),
                team.gender_breakdown.get("Other", 0),
                team.handler_count,
                "; ".join(team_groups),
                "; ".join(player.name for player in team.players),
            ]
        )

    stats = result.stats
    writer.writerow([])
    writer.writerow(["Total Players", stats.total_players])
    writer.writerow(["Assigned", stats.assigned_players])
    writer.writerow(["Unassigned", stats.unassigned_players])
    writer.writerow(["Must-have Requests Honored", stats.mutual_requests_honored])
    writer.writerow(["Must-have Requests Broken", stats.mutual_requests_broken])
    writer.writerow(["Avoid Requests Violated", stats.avoid_requests_violated])
    writer.writerow(["Skill Spread", f"{stats.skill_spread:.2f}"])

    if config is not None:
        writer.writerow([])
        writer.writerow(["League", config.name])
        writer.writerow(["Max Team Size", config.max_team_size])
        writer.writerow(["Min Females", config.min_females])
        writer.writerow(["Min Males", config.min_males])
        writer.writerow(["Target Teams", config.target_teams if config.target_teams is not None else ""])
        writer.writerow(["Single-gender Teams Allowed", "Y" if config.allow_single_gender_teams else "N"])

    return buffer.getvalue()


__all__ = [
    "RosterExportError",
    "export_team_summary_to_csv",
    "export_teams_to_csv",
]
