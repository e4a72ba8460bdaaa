"""
Tests for group distribution and group-phase generation.
"""

import random
from dataclasses import replace

from fixture_engine.fixtures.groups import (
    create_groups,
    generate_groups,
    group_label,
    qualified_teams,
    resolve_groups_count,
)
from fixture_engine.fixtures.types import PhaseConfig
from fixture_engine.results.types import TeamStanding

from tests.factories import make_teams


def group_ids(groups):
    return [[t.id for t in g.teams] for g in groups]


def test_group_labels():
    assert group_label(0) == "A"
    assert group_label(25) == "Z"
    assert group_label(26) == "AA"


def test_resolve_groups_count():
    assert resolve_groups_count(8, PhaseConfig(phase_type="groups", groups_count=2)) == 2
    assert resolve_groups_count(9, PhaseConfig(phase_type="groups")) == 3
    assert resolve_groups_count(12, PhaseConfig(phase_type="groups", teams_per_group=6)) == 2


def test_seeds_are_dealt_one_per_group():
    groups = create_groups(make_teams(8, seeded=True), PhaseConfig(phase_type="groups", groups_count=2))

    assert [g.id for g in groups] == ["group_a", "group_b"]
    assert [g.name for g in groups] == ["Group A", "Group B"]
    assert group_ids(groups) == [["t1", "t3", "t5", "t7"], ["t2", "t4", "t6", "t8"]]


def test_top_seeds_never_share_a_group():
    teams = [replace(t, seed=i + 1) if i < 3 else t for i, t in enumerate(make_teams(12))]

    groups = create_groups(teams, PhaseConfig(phase_type="groups", groups_count=3), random.Random(7))

    for group, seed_id in zip(groups, ["t1", "t2", "t3"]):
        assert group.teams[0].id == seed_id
        assert len(group.teams) == 4


def test_draw_is_reproducible_with_the_same_seed():
    config = PhaseConfig(phase_type="groups", groups_count=4)

    first = create_groups(make_teams(16), config, random.Random(2024))
    second = create_groups(make_teams(16), config, random.Random(2024))

    assert group_ids(first) == group_ids(second)
    assert sorted(t for ids in group_ids(first) for t in ids) == sorted(f"t{i}" for i in range(1, 17))


def test_generate_groups_tags_matches_with_their_group():
    result = generate_groups(
        make_teams(8, seeded=True), PhaseConfig(phase_type="groups", groups_count=2), random.Random(1)
    )

    assert result.success
    assert len(result.matches) == 12
    assert result.metadata.total_rounds == 3
    assert {m.group_id for m in result.matches} == {"group_a", "group_b"}
    for group_id in ("group_a", "group_b"):
        assert len([m for m in result.matches if m.group_id == group_id]) == 6


def test_generate_groups_with_odd_group_sizes():
    result = generate_groups(make_teams(9), PhaseConfig(phase_type="groups"), random.Random(3))

    real = [m for m in result.matches if not m.is_bye]
    assert len({m.group_id for m in result.matches}) == 3
    assert len(real) == 9
    assert result.metadata.byes_generated == 9


def test_no_match_crosses_groups():
    result = generate_groups(make_teams(8), PhaseConfig(phase_type="groups", groups_count=2), random.Random(5))
    groups = create_groups(make_teams(8), PhaseConfig(phase_type="groups", groups_count=2), random.Random(5))
    members = {g.id: {t.id for t in g.teams} for g in groups}

    for match in result.matches:
        assert {match.home_team_id, match.away_team_id} <= members[match.group_id]


def test_qualified_teams_takes_top_positions():
    standings = {
        "group_b": [TeamStanding("t4", "Team 4", position=2), TeamStanding("t3", "Team 3", position=1)],
        "group_a": [
            TeamStanding("t1", "Team 1", position=3),
            TeamStanding("t2", "Team 2", position=1),
            TeamStanding("t5", "Team 5", position=2),
        ],
    }

    assert qualified_teams(standings, 2) == {"group_a": ["t2", "t5"], "group_b": ["t3", "t4"]}
