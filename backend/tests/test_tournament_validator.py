"""
Tests for structural and fixture-level tournament validation.
"""

from datetime import date, datetime, timedelta

from fixture_engine.fixtures.types import Match
from fixture_engine.results.types import ClassificationConfig
from fixture_engine.validation.tournament_validator import (
    PhaseDefinition,
    TournamentConstraints,
    TournamentDefinition,
    TournamentValidator,
    create_default_constraints,
    is_power_of_two,
)

DAY0 = datetime(2026, 9, 5, 18, 0)
TOURNAMENT = TournamentDefinition("Autumn League", date(2026, 9, 1), date(2026, 12, 1))


def codes(issues):
    return [issue.code for issue in issues]


def teams(n):
    return [f"t{i}" for i in range(1, n + 1)]


def test_default_constraints():
    constraints = create_default_constraints()

    assert (constraints.min_teams, constraints.max_teams) == (2, 64)
    assert constraints.min_rest_days == 3
    assert constraints.max_matches_per_day == 8
    assert constraints.venue_window_hours == 2


def test_is_power_of_two():
    assert [n for n in range(0, 17) if is_power_of_two(n)] == [1, 2, 4, 8, 16]


# ============================================================================
# Structural
# ============================================================================


def test_valid_tournament():
    phases = [
        PhaseDefinition("League", "league", 1, teams(8), ClassificationConfig()),
        PhaseDefinition("Playoffs", "knockout", 2, teams(4)),
    ]

    result = TournamentValidator().validate_tournament(TOURNAMENT, phases)

    assert result.is_valid
    assert result.errors == []
    assert result.warnings == []


def test_start_must_precede_end():
    tournament = TournamentDefinition("Same day", date(2026, 9, 1), date(2026, 9, 1))

    result = TournamentValidator().validate_tournament(tournament, [])

    assert not result.is_valid
    assert codes(result.errors) == ["INVALID_DATE_RANGE"]


def test_duplicate_phase_order():
    phases = [PhaseDefinition("A", "league", 1, teams(4)), PhaseDefinition("B", "knockout", 1, teams(4))]

    result = TournamentValidator().validate_tournament(TOURNAMENT, phases)

    assert codes(result.errors) == ["DUPLICATE_PHASE_ORDER"]


def test_league_needs_three_teams():
    result = TournamentValidator().validate_phase(PhaseDefinition("Tiny", "league", 1, teams(2)))

    assert codes(result.errors) == ["INSUFFICIENT_TEAMS_LEAGUE"]
    assert result.errors[0].field == "participants"


def test_knockout_non_power_of_two_is_a_warning():
    result = TournamentValidator().validate_phase(PhaseDefinition("Cup", "knockout", 1, teams(6)))

    assert result.is_valid
    assert codes(result.warnings) == ["NON_POWER_OF_TWO_KNOCKOUT"]
    assert result.warnings[0].suggestion


def test_league_points_must_be_positive():
    phase = PhaseDefinition("League", "league", 1, teams(4), ClassificationConfig(points_for_win=0))

    result = TournamentValidator().validate_phase(phase)

    assert codes(result.errors) == ["INVALID_POINTS_CONFIG"]


def test_team_count_limits():
    validator = TournamentValidator(TournamentConstraints(min_teams=4, max_teams=6))

    assert codes(validator.validate_phase(PhaseDefinition("Big", "groups", 1, teams(7))).errors) == ["TOO_MANY_TEAMS"]
    assert codes(validator.validate_phase(PhaseDefinition("Small", "groups", 1, teams(3))).errors) == [
        "TOO_FEW_TEAMS"
    ]


# ============================================================================
# Fixture level
# ============================================================================


def test_venue_double_booking_is_an_error():
    matches = [
        Match("t1", "t2", 1, 1, match_date=DAY0, venue_id="north"),
        Match("t3", "t4", 1, 2, match_date=DAY0 + timedelta(hours=1), venue_id="north"),
        Match("t5", "t6", 1, 3, match_date=DAY0 + timedelta(hours=3), venue_id="north"),
    ]

    result = TournamentValidator().validate_fixtures(matches)

    assert codes(result.errors) == ["VENUE_CONFLICT"]


def test_short_rest_is_a_warning():
    matches = [
        Match("t1", "t2", 2, 1, match_date=DAY0 + timedelta(days=2)),
        Match("t1", "t3", 1, 1, match_date=DAY0),
    ]

    result = TournamentValidator().validate_fixtures(matches)

    assert result.is_valid
    assert codes(result.warnings) == ["INSUFFICIENT_REST"]
    assert "Team t1" in result.warnings[0].message


def test_blackout_date_is_an_error():
    validator = TournamentValidator(TournamentConstraints(blackout_dates=frozenset({DAY0.date()})))

    result = validator.validate_fixtures([Match("t1", "t2", 1, 1, match_date=DAY0)])

    assert codes(result.errors) == ["BLACKOUT_DATE"]


def test_too_many_matches_in_a_day():
    validator = TournamentValidator(TournamentConstraints(max_matches_per_day=2, min_rest_days=0))
    matches = [Match(f"a{i}", f"b{i}", 1, i, match_date=DAY0 + timedelta(hours=i)) for i in range(1, 4)]

    result = validator.validate_fixtures(matches)

    assert codes(result.warnings) == ["TOO_MANY_MATCHES_PER_DAY"]


def test_undated_matches_and_byes_are_skipped():
    matches = [
        Match("t1", "t2", 1, 1),
        Match("t1", None, 1, 2, is_bye=True, match_date=DAY0),
        Match("t1", "t3", 2, 1, match_date=DAY0 + timedelta(days=7)),
    ]

    result = TournamentValidator().validate_fixtures(matches)

    assert result.errors == []
    assert result.warnings == []
