import csv
from io import StringIO

import pytest

from teambuilder.export import RosterExportError, export_team_summary_to_csv, export_teams_to_csv
from teambuilder.export.teams import SUMMARY_HEADERS, TEAM_HEADERS
from teambuilder.generator import generate_teams
from teambuilder.models import LeagueConfig, Player, PlayerGroup


def _result(dan_avoids=(), **config):
    players = [
        Player(player_id="a", name="Ann", gender="F", skill_rating=8, group_id="g1", email="ann@example.com"),
        Player(player_id="b", name="Ben", gender="M", skill_rating=6, group_id="g1", exec_skill_rating=0),
        Player(player_id="c", name="Cat", gender="F", skill_rating=4, is_handler=True),
        Player(player_id="d", name="Dan", gender="M", skill_rating=2, avoid_requests=list(dan_avoids)),
    ]
    groups = [PlayerGroup(group_id="g1", label="Carpool", player_ids=["a", "b"])]
    league = LeagueConfig(**config)
    return generate_teams(players, league, groups), groups, league


def _rows(text: str) -> list[list[str]]:
    return list(csv.reader(StringIO(text)))


def test_export_teams_lists_every_player():
    result, groups, _ = _result(max_team_size=2)

    rows = _rows(export_teams_to_csv(result, groups=groups))

    assert tuple(rows[0]) == TEAM_HEADERS
    player_rows = [row for row in rows[1:] if row]
    assert sorted(row[1] for row in player_rows) == ["Ann", "Ben", "Cat", "Dan"]
    first = player_rows[0]
    assert first[0] == "Team 1"
    assert first[-2] == "2"
    ben = next(row for row in player_rows if row[1] == "Ben")
    assert ben[4] == "0"
    assert ben[6] == "Carpool"


def test_export_teams_has_unassigned_section():
    result, groups, _ = _result(dan_avoids=["Cat"], max_team_size=4, target_teams=1)

    rows = _rows(export_teams_to_csv(result, groups=groups))

    assert ["UNASSIGNED"] in rows
    tail = rows[rows.index(["UNASSIGNED"]) + 1:]
    assert [row[1] for row in tail] == ["Dan"]
    assert tail[0][0] == "Unassigned"


def test_export_teams_with_custom_names():
    result, _, _ = _result(max_team_size=2)

    rows = _rows(export_teams_to_csv(result, team_names=["Red", "Blue"]))

    assert {row[0] for row in rows[1:] if row} == {"Red", "Blue"}
    with pytest.raises(RosterExportError):
        export_teams_to_csv(result, team_names=["Only One"])


def test_export_summary_includes_league_block():
    result, groups, league = _result(max_team_size=2)

    rows = _rows(export_team_summary_to_csv(result, config=league, groups=groups))

    assert tuple(rows[0]) == SUMMARY_HEADERS
    team_rows = rows[1:3]
    assert [row[0] for row in team_rows] == ["Team 1", "Team 2"]
    assert ["Total Players", "4"] in rows
    assert ["Max Team Size", "2"] in rows
    carpool = next(row for row in team_rows if "Carpool" in row[8])
    assert "Ann" in carpool[9] and "Ben" in carpool[9]
