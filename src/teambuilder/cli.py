"""Command-line interface for generating teams from a roster CSV."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Optional, Sequence

from pydantic import ValidationError

from teambuilder.config import resolve_config
from teambuilder.config_loader import MappingProfile
from teambuilder.export import export_team_summary_to_csv, export_teams_to_csv
from teambuilder.generator import ConfigurationError, GenerationMode, GenerationResult, generate_teams
from teambuilder.ingest import load_players_from_csv


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate balanced teams from a roster CSV")
    parser.add_argument("roster", type=Path, help="Path to roster CSV")
    parser.add_argument("--preset", default=None, help="League preset (e.g., coed-ultimate, open)")
    parser.add_argument("--max-team-size", type=int, default=None, help="Maximum players per team")
    parser.add_argument("--min-females", type=int, default=None, help="Minimum females per team")
    parser.add_argument("--min-males", type=int, default=None, help="Minimum males per team")
    parser.add_argument("--target-teams", type=int, default=None, help="Fixed number of teams")
    parser.add_argument(
        "--require-mixed",
        action="store_true",
        help="Require at least one female and one male on every team",
    )
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in GenerationMode],
        default=GenerationMode.BALANCED.value,
        help="Generation mode",
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for randomized mode")
    parser.add_argument(
        "--team-name",
        action="append",
        default=[],
        help="Team name, repeat in team order",
    )
    parser.add_argument(
        "--column",
        action="append",
        default=[],
        help="Mapping for roster CSV columns (e.g., skill=Rating)",
    )
    parser.add_argument("--load-profile", type=Path, help="Load column mapping JSON", default=None)
    parser.add_argument("--save-profile", type=Path, help="Save column mapping JSON", default=None)
    parser.add_argument("--output", type=Path, default=Path("teams.csv"), help="Output CSV path")
    parser.add_argument("--summary", type=Path, default=None, help="Optional team summary CSV path")
    parser.add_argument(
        "--report",
        type=Path,
        default=None,
        help="Optional path to write generation report JSON",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def _parse_mapping(entries: list[str]) -> dict[str, str]:
    mapping: dict[str, str] = {}
    for entry in entries:
        if "=" not in entry:
            raise ValueError(f"Invalid mapping entry '{entry}', expected key=value")
        key, value = entry.split("=", 1)
        mapping[key.strip()] = value.strip()
    return mapping


def _preview(values: list[str], limit: int = 5) -> str:
    more = len(values) - limit
    suffix = f", +{more} more" if more > 0 else ""
    return ", ".join(values[:limit]) + suffix


def _report_payload(result: GenerationResult, warnings: list[str]) -> dict:
    stats = result.stats
    return {
        "mode": result.mode.value,
        "seed": result.seed,
        "stats": {
            "total_players": stats.total_players,
            "assigned_players": stats.assigned_players,
            "unassigned_players": stats.unassigned_players,
            "mutual_requests_honored": stats.mutual_requests_honored,
            "mutual_requests_broken": stats.mutual_requests_broken,
            "avoid_requests_violated": stats.avoid_requests_violated,
            "skill_spread": stats.skill_spread,
            "generation_time_ms": stats.generation_time,
        },
        "teams": [
            {
                "team_id": team.team_id,
                "name": team.name,
                "average_skill": team.average_skill,
                "players": [player.name for player in team.players],
            }
            for team in result.teams
        ],
        "unassigned": [player.name for player in result.unassigned_players],
        "conflicts": [conflict.message for conflict in result.conflicts],
        "near_misses": [
            {"reason": miss.reason, "player_ids": list(miss.player_ids), "message": miss.message}
            for miss in result.near_misses
        ],
        "roster_warnings": warnings,
    }


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    roster_mapping = _parse_mapping(args.column)
    team_names = list(args.team_name)
    preset = args.preset
    if args.load_profile:
        profile = MappingProfile.load(args.load_profile)
        roster_mapping = profile.roster_mapping | roster_mapping
        team_names = team_names or profile.team_names
        preset = preset or profile.preset

    try:
        players, groups, report = load_players_from_csv(args.roster, mapping=roster_mapping or None)
    except ValueError as exc:
        print(f"Cannot read roster: {exc}")
        return 1
    if args.save_profile:
        MappingProfile(roster_mapping, preset=preset, team_names=team_names).save(args.save_profile)
        print(f"Saved mapping profile to {args.save_profile}")
    for message in report.errors:
        print(f"Skipped: {message}")
    if not players:
        print("No players to place")
        return 1

    try:
        config = resolve_config(
            preset,
            max_team_size=args.max_team_size,
            min_females=args.min_females,
            min_males=args.min_males,
            target_teams=args.target_teams,
            allow_single_gender_teams=False if args.require_mixed else None,
        )
    except KeyError as exc:
        print(f"Unknown preset: {exc.args[0]}")
        return 2
    except ValidationError as exc:
        print(f"Invalid league configuration: {exc}")
        return 2

    try:
        result = generate_teams(
            players,
            config,
            groups,
            mode=args.mode,
            seed=args.seed,
            team_names=team_names or None,
        )
    except ConfigurationError as exc:
        print(f"Invalid league configuration: {exc}")
        return 2

    args.output.write_text(export_teams_to_csv(result, groups=groups), encoding="utf-8")
    print(f"Wrote {len(result.teams)} teams to {args.output}")
    if args.summary:
        args.summary.write_text(
            export_team_summary_to_csv(result, config=config, groups=groups),
            encoding="utf-8",
        )
        print(f"Wrote team summary to {args.summary}")
    if args.report:
        args.report.write_text(json.dumps(_report_payload(result, report.warnings), indent=2), encoding="utf-8")
        print(f"Wrote generation report to {args.report}")

    stats = result.stats
    print(
        f"Assigned {stats.assigned_players}/{stats.total_players} players; "
        f"must-have requests honored {stats.mutual_requests_honored}, broken {stats.mutual_requests_broken}; "
        f"skill spread {stats.skill_spread:.2f}"
    )
    if result.seed is not None:
        print(f"Seed: {result.seed}")
    if result.unassigned_players:
        print(f"Unassigned: {_preview([player.name for player in result.unassigned_players])}")
    if result.conflicts:
        print(f"Request conflicts: {_preview([conflict.message for conflict in result.conflicts])}")
    if result.near_misses:
        print(f"Groups split up: {_preview([miss.message for miss in result.near_misses])}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
