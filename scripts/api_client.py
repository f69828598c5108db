"""Lightweight REST client for the teambuilder API."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

import httpx


def build_mapping(name: str) -> dict[str, str]:
    if not name:
        return {}
    try:
        return json.loads(name)
    except json.JSONDecodeError as exc:
        raise SystemExit(f"Invalid mapping JSON: {exc}") from exc


def main() -> None:
    parser = argparse.ArgumentParser(description="Interact with the teambuilder REST API")
    parser.add_argument("base_url", help="Base URL of the API, e.g. http://localhost:8000")
    parser.add_argument("roster", type=Path, nargs="?", help="Roster CSV")
    parser.add_argument("--mapping", default="", help="JSON mapping for roster columns")
    parser.add_argument("--preset", default=None, help="League preset to generate against")
    parser.add_argument("--mode", default="balanced", help="balanced, randomized or manual")
    parser.add_argument("--seed", type=int, default=None, help="Seed for randomized mode")
    parser.add_argument("--preview-only", action="store_true", help="Parse the roster without generating teams")
    parser.add_argument("--list-presets", action="store_true", help="List league presets and exit")
    parser.add_argument("--export-path", type=Path, help="Download the generated teams as CSV to this path")
    args = parser.parse_args()

    if args.list_presets:
        with httpx.Client(base_url=args.base_url) as client:
            resp = client.get("/presets")
            resp.raise_for_status()
            print(json.dumps(resp.json(), indent=2))
        return

    if args.roster is None:
        raise SystemExit("roster file is required unless using --list-presets")

    mapping = build_mapping(args.mapping)
    files = {"roster": (args.roster.name, args.roster.read_bytes(), "text/csv")}
    data = {"mapping": json.dumps(mapping)} if mapping else {}

    with httpx.Client(base_url=args.base_url) as client:
        resp = client.post("/roster/preview", files=files, data=data)
        resp.raise_for_status()
        preview = resp.json()
        print(f"Parsed {len(preview['players'])} players, {len(preview['groups'])} groups")
        for message in preview["errors"] + preview["warnings"]:
            print(f"  {message}")

        if args.preview_only:
            return

        body = {
            "players": preview["players"],
            "groups": preview["groups"],
            "preset": args.preset,
            "mode": args.mode,
            "seed": args.seed,
        }
        resp = client.post("/teams", json=body)
        if resp.status_code == 422:
            raise SystemExit(f"League configuration rejected: {resp.json().get('detail')}")
        resp.raise_for_status()
        payload = resp.json()
        print("Stats:", json.dumps(payload["stats"], indent=2))
        for team in payload["teams"]:
            names = ", ".join(player["name"] for player in team["players"])
            print(f"{team['name']} ({team['average_skill']:.2f}): {names}")
        if payload["unassigned_players"]:
            print("Unassigned:", ", ".join(player["name"] for player in payload["unassigned_players"]))

        if args.export_path:
            if payload["seed"] is not None:
                body["seed"] = payload["seed"]
            resp = client.post("/teams/export.csv", json=body)
            resp.raise_for_status()
            args.export_path.write_text(resp.text)
            print(f"CSV export saved to {args.export_path}")


if __name__ == "__main__":
    main()
