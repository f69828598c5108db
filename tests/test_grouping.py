from teambuilder.generator import build_preference_graph, resolve_groups
from teambuilder.models import Player, PlayerGroup


def _player(name: str, requests=(), avoids=(), skill=5.0, gender="Other") -> Player:
    return Player(
        player_id=name.lower(),
        name=name,
        gender=gender,
        skill_rating=skill,
        teammate_requests=list(requests),
        avoid_requests=list(avoids),
    )


def _kinds(resolution):
    return sorted((unit.kind, tuple(sorted(unit.members))) for unit in resolution.units)


def test_mutual_pair_becomes_cluster():
    graph = build_preference_graph([
        _player("A", requests=["B"]),
        _player("B", requests=["A"]),
        _player("C", requests=["A"]),
    ])

    resolution = resolve_groups(graph, [], max_team_size=10)

    assert _kinds(resolution) == [("cluster", (0, 1)), ("single", (2,))]
    assert resolution.near_misses == []


def test_mutual_chain_is_capped_at_four():
    names = ["A", "B", "C", "D", "E"]
    players = []
    for pos, name in enumerate(names):
        neighbours = [names[n] for n in (pos - 1, pos + 1) if 0 <= n < len(names)]
        players.append(_player(name, requests=neighbours))
    graph = build_preference_graph(players)

    resolution = resolve_groups(graph, [], max_team_size=10)

    assert _kinds(resolution) == [("cluster", (0, 1, 2, 3)), ("single", (4,))]
    assert len(resolution.near_misses) == 1
    miss = resolution.near_misses[0]
    assert miss.reason == "group-too-large"
    assert miss.player_ids == ("a", "b", "c", "d", "e")


def test_cluster_link_blocked_by_avoid():
    graph = build_preference_graph([
        _player("A", requests=["B"], avoids=["C"]),
        _player("B", requests=["A", "C"]),
        _player("C", requests=["B"]),
    ])

    resolution = resolve_groups(graph, [], max_team_size=10)

    assert _kinds(resolution) == [("cluster", (0, 1)), ("single", (2,))]
    assert [miss.reason for miss in resolution.near_misses] == ["avoid-conflict"]


def test_explicit_group_takes_precedence():
    graph = build_preference_graph([
        _player("A", requests=["B"]),
        _player("B", requests=["A"]),
        _player("C"),
    ])
    group = PlayerGroup(group_id="g1", label="Carpool", player_ids=["a", "c", "ghost"])

    resolution = resolve_groups(graph, [group], max_team_size=10)

    assert _kinds(resolution) == [("group", (0, 2)), ("single", (1,))]
    assert resolution.units[0].group_id == "g1"


def test_player_in_two_groups_stays_with_first():
    graph = build_preference_graph([_player("A"), _player("B"), _player("C")])
    groups = [
        PlayerGroup(group_id="g1", player_ids=["a", "b"]),
        PlayerGroup(group_id="g2", player_ids=["b", "c"]),
    ]

    resolution = resolve_groups(graph, groups, max_team_size=10)

    assert _kinds(resolution) == [("group", (0, 1)), ("group", (2,))]


def test_group_with_internal_avoid_is_split():
    graph = build_preference_graph([
        _player("A", avoids=["B"]),
        _player("B"),
    ])
    group = PlayerGroup(group_id="g1", label="Rivals", player_ids=["a", "b"])

    resolution = resolve_groups(graph, [group], max_team_size=10)

    assert _kinds(resolution) == [("single", (0,)), ("single", (1,))]
    assert resolution.near_misses[0].reason == "avoid-conflict"
    assert resolution.near_misses[0].group_id == "g1"


def test_oversized_group_is_flagged():
    graph = build_preference_graph([_player(name) for name in "ABCD"])
    group = PlayerGroup(group_id="g1", player_ids=["a", "b", "c", "d"])

    resolution = resolve_groups(graph, [group], max_team_size=3)

    assert resolution.units[0].oversized
    assert resolution.near_misses[0].reason == "would-exceed-team-size"


def test_mutual_linking_can_be_disabled():
    graph = build_preference_graph([
        _player("A", requests=["B"]),
        _player("B", requests=["A"]),
    ])

    resolution = resolve_groups(graph, [], max_team_size=10, link_mutual_requests=False)

    assert _kinds(resolution) == [("single", (0,)), ("single", (1,))]


def test_unit_totals():
    graph = build_preference_graph([
        _player("A", requests=["B"], skill=8, gender="F"),
        _player("B", requests=["A"], skill=4, gender="M"),
    ])

    unit = resolve_groups(graph, [], max_team_size=10).units[0]

    assert (unit.females, unit.males, unit.skill_total, unit.size) == (1, 1, 12.0, 2)
