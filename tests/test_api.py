import csv
import json
from io import StringIO

import pytest
from httpx import ASGITransport, AsyncClient

from teambuilder.api import create_app


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def client():
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client


def _sample_roster() -> str:
    return """Name,Gender,Skill Rating,Exec Skill Rating,Teammate Requests,Avoid Requests
Ann,F,8,,Ben,
Ben,M,6,0,Ann,
Cat,F,4,,,Dan
Dan,M,2,,,
"""


def _players(cat_avoids_dan: bool = True) -> list[dict]:
    return [
        {"player_id": "a", "name": "Ann", "gender": "F", "skill_rating": 8, "teammate_requests": ["Ben"]},
        {"player_id": "b", "name": "Ben", "gender": "M", "skill_rating": 6, "exec_skill_rating": 0,
         "teammate_requests": ["Ann"]},
        {"player_id": "c", "name": "Cat", "gender": "F", "skill_rating": 4, "avoid_requests": ["Dan"] if cat_avoids_dan else []},
        {"player_id": "d", "name": "Dan", "gender": "M", "skill_rating": 2},
    ]


@pytest.mark.anyio
async def test_health(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


@pytest.mark.anyio
async def test_presets(client: AsyncClient):
    resp = await client.get("/presets")
    assert resp.status_code == 200
    ids = {preset["config_id"] for preset in resp.json()}
    assert "coed_ultimate" in ids


@pytest.mark.anyio
async def test_roster_preview(client: AsyncClient):
    files = {"roster": ("roster.csv", _sample_roster().encode("utf-8"), "text/csv")}
    resp = await client.post("/roster/preview", files=files)
    assert resp.status_code == 200
    payload = resp.json()
    assert payload["mapping"]["exec_skill"] == "Exec Skill Rating"
    assert [player["name"] for player in payload["players"]] == ["Ann", "Ben", "Cat", "Dan"]
    ben = payload["players"][1]
    assert ben["exec_skill_rating"] == 0.0
    assert payload["players"][0]["exec_skill_rating"] is None
    assert payload["errors"] == []


@pytest.mark.anyio
async def test_roster_preview_with_mapping(client: AsyncClient):
    files = {"roster": ("roster.csv", b"Who,Level\nAnn,7\n", "text/csv")}
    data = {"mapping": json.dumps({"name": "Who", "skill": "Level"})}
    resp = await client.post("/roster/preview", files=files, data=data)
    assert resp.status_code == 200
    assert resp.json()["players"][0]["skill_rating"] == 7.0


@pytest.mark.anyio
async def test_roster_preview_rejects_bad_input(client: AsyncClient):
    files = {"roster": ("roster.csv", b"Level\n7\n", "text/csv")}
    resp = await client.post("/roster/preview", files=files)
    assert resp.status_code == 400
    assert "no name column" in resp.json()["detail"]

    files = {"roster": ("roster.csv", b"Name\nAnn\n", "text/csv")}
    resp = await client.post("/roster/preview", files=files, data={"mapping": "{not json"})
    assert resp.status_code == 400


@pytest.mark.anyio
async def test_generate_teams(client: AsyncClient):
    body = {"players": _players(), "config": {"max_team_size": 2}}
    resp = await client.post("/teams", json=body)
    assert resp.status_code == 200
    payload = resp.json()

    assert payload["mode"] == "balanced"
    assert payload["config"]["max_team_size"] == 2
    teams = payload["teams"]
    assert [team["team_id"] for team in teams] == ["team-1", "team-2"]
    first = {player["player_id"]: player for player in teams[0]["players"]}
    assert set(first) == {"a", "b"}
    assert first["b"]["exec_skill_rating"] == 0.0
    assert first["a"]["exec_skill_rating"] is None
    assert first["a"]["team_id"] == "team-1"
    assert payload["stats"]["total_players"] == 4
    assert payload["stats"]["mutual_requests_honored"] == 2
    assert [player["player_id"] for player in payload["unassigned_players"]] == ["d"]


@pytest.mark.anyio
async def test_generate_teams_with_preset_and_seed(client: AsyncClient):
    body = {"players": _players(), "preset": "open", "mode": "randomized", "seed": 7}
    resp = await client.post("/teams", json=body)
    assert resp.status_code == 200
    payload = resp.json()
    assert payload["seed"] == 7
    assert payload["config"]["config_id"] == "open"

    again = await client.post("/teams", json=body)
    assert again.json()["teams"] == payload["teams"]


@pytest.mark.anyio
async def test_generate_teams_rejects_infeasible_config(client: AsyncClient):
    body = {"players": _players(), "config": {"max_team_size": 2, "min_females": 2, "min_males": 1}}
    resp = await client.post("/teams", json=body)
    assert resp.status_code == 422
    assert "exceed" in resp.json()["detail"]


@pytest.mark.anyio
async def test_generate_teams_unknown_preset(client: AsyncClient):
    resp = await client.post("/teams", json={"players": _players(), "preset": "curling"})
    assert resp.status_code == 404


@pytest.mark.anyio
async def test_export_csv(client: AsyncClient):
    body = {"players": _players(cat_avoids_dan=False), "config": {"max_team_size": 2}, "team_names": ["Red", "Blue"]}
    resp = await client.post("/teams/export.csv", json=body)
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    rows = [row for row in csv.reader(StringIO(resp.text)) if row]
    assert rows[0][:2] == ["Team", "Player"]
    assert {row[0] for row in rows[1:]} == {"Red", "Blue"}
