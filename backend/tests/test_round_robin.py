"""
Tests for circle-method round robin generation.
"""

from collections import Counter

import pytest

from fixture_engine.fixtures.round_robin import (
    ALGORITHM,
    generate_round_robin,
    padded_team_count,
    rounds_per_pass,
    validate_round_robin,
)
from fixture_engine.fixtures.types import BYE_TEAM_ID, PhaseConfig

from tests.factories import make_teams


def real_matches(matches):
    return [m for m in matches if not m.is_bye]


@pytest.mark.parametrize("team_count", [2, 3, 4, 5, 6, 7, 8, 11, 16])
def test_single_round_robin_pairs_every_team_once(team_count):
    """N teams -> N*(N-1)/2 matches, each unordered pair exactly once"""
    result = generate_round_robin(make_teams(team_count), PhaseConfig())

    assert result.success
    matches = real_matches(result.matches)
    assert len(matches) == team_count * (team_count - 1) // 2

    pairs = Counter(m.pair_key() for m in matches)
    assert len(pairs) == team_count * (team_count - 1) // 2
    assert set(pairs.values()) == {1}
    assert validate_round_robin(result.matches, 1)


def test_four_teams_six_matches_three_rounds():
    result = generate_round_robin(make_teams(4), PhaseConfig())

    assert len(result.matches) == 6
    assert result.metadata.total_rounds == 3
    assert result.metadata.byes_generated == 0
    assert result.metadata.algorithm_used == ALGORITHM
    assert sorted({m.round_number for m in result.matches}) == [1, 2, 3]


def test_odd_team_count_gives_each_team_one_bye():
    """5 teams -> 5 rounds, one bye per team, 10 real matches"""
    result = generate_round_robin(make_teams(5), PhaseConfig())

    assert result.metadata.total_rounds == 5
    assert result.metadata.byes_generated == 5
    assert len(real_matches(result.matches)) == 10

    byes = [m for m in result.matches if m.is_bye]
    assert Counter(m.home_team_id for m in byes) == {f"t{i}": 1 for i in range(1, 6)}
    assert all(m.away_team_id is None for m in byes)
    assert all(BYE_TEAM_ID not in (m.home_team_id, m.away_team_id) for m in result.matches)


def test_every_team_plays_once_per_round():
    result = generate_round_robin(make_teams(6), PhaseConfig())

    for round_number in range(1, 6):
        in_round = [m for m in result.matches if m.round_number == round_number]
        teams = [t for m in in_round for t in (m.home_team_id, m.away_team_id)]
        assert sorted(teams) == sorted(f"t{i}" for i in range(1, 7))


def test_double_round_robin_reverses_home_and_away():
    """4 teams, rounds=2 -> each pair twice with sides swapped"""
    result = generate_round_robin(make_teams(4), PhaseConfig(rounds=2))

    matches = real_matches(result.matches)
    assert len(matches) == 12
    assert result.metadata.total_rounds == 6
    assert validate_round_robin(result.matches, 2)

    by_pair = {}
    for match in matches:
        by_pair.setdefault(match.pair_key(), []).append(match)

    for first, second in by_pair.values():
        assert first.pass_number == 1
        assert second.pass_number == 2
        assert (first.home_team_id, first.away_team_id) == (second.away_team_id, second.home_team_id)


def test_second_pass_rounds_follow_the_first():
    result = generate_round_robin(make_teams(4), PhaseConfig(rounds=2))

    second_pass = [m for m in result.matches if m.pass_number == 2]
    assert sorted({m.round_number for m in second_pass}) == [4, 5, 6]


def test_home_games_are_balanced():
    result = generate_round_robin(make_teams(6), PhaseConfig())

    home_counts = Counter(m.home_team_id for m in result.matches)
    assert max(home_counts.values()) - min(home_counts.values()) <= 3


def test_empty_roster_yields_no_matches():
    result = generate_round_robin([], PhaseConfig())

    assert result.success
    assert result.matches == []
    assert result.metadata.total_rounds == 0


def test_helpers():
    assert padded_team_count(5) == 6
    assert padded_team_count(6) == 6
    assert rounds_per_pass(5) == 5
    assert rounds_per_pass(6) == 5
    assert rounds_per_pass(0) == 0


def test_validate_round_robin_detects_missing_rematch():
    result = generate_round_robin(make_teams(4), PhaseConfig(rounds=2))

    assert not validate_round_robin(result.matches[:-1], 2)
