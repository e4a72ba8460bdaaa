"""
Tests for hard/soft scheduling constraint enforcement.
"""

from datetime import date, datetime, timedelta

from fixture_engine.fixtures.constraints import apply_constraints, parse_dates
from fixture_engine.fixtures.generator import generate_fixtures
from fixture_engine.fixtures.types import Match, PhaseConfig, SchedulingConstraint

from tests.factories import make_teams

DAY0 = datetime(2026, 5, 2, 15, 0)
CONFIG = PhaseConfig()


def day(n: int, hours: int = 0) -> datetime:
    return DAY0 + timedelta(days=n, hours=hours)


def rest(min_days: int, hard: bool, **kwargs) -> SchedulingConstraint:
    return SchedulingConstraint("team_rest_days", {"min_days": min_days}, is_hard_constraint=hard, **kwargs)


def test_parse_dates_accepts_mixed_inputs():
    assert parse_dates(["2026-05-02", date(2026, 5, 3), datetime(2026, 5, 4, 12)]) == {
        date(2026, 5, 2),
        date(2026, 5, 3),
        date(2026, 5, 4),
    }


def test_apply_constraints_leaves_input_untouched():
    matches = [Match("t1", "t2", 1, 1, match_date=day(0)), Match("t1", "t3", 2, 1, match_date=day(1))]

    report = apply_constraints(matches, [rest(3, hard=True)], CONFIG)

    assert matches[1].match_date == day(1)
    assert report.matches[1].match_date == day(3)


# ============================================================================
# Team rest days
# ============================================================================


def test_hard_rest_days_reschedules_the_later_match():
    matches = [
        Match("t1", "t2", 1, 1, match_date=day(0)),
        Match("t1", "t3", 2, 1, match_date=day(1)),
        Match("t3", "t2", 3, 1, match_date=day(2)),
    ]

    report = apply_constraints(matches, [rest(3, hard=True)], CONFIG)

    assert report.satisfied
    assert report.warnings == []
    dates = {m.round_number: m.match_date for m in report.matches}
    assert dates[2] == day(3)
    assert dates[3] == day(6)


def test_soft_rest_days_only_warns():
    matches = [Match("t1", "t2", 1, 1, match_date=day(0)), Match("t1", "t3", 2, 1, match_date=day(1))]

    report = apply_constraints(matches, [rest(3, hard=False)], CONFIG)

    assert report.satisfied
    assert report.matches[1].match_date == day(1)
    assert len(report.warnings) == 1
    assert "Team t1" in report.warnings[0]


def test_rest_days_default_to_phase_config():
    matches = [Match("t1", "t2", 1, 1, match_date=day(0)), Match("t1", "t3", 2, 1, match_date=day(1))]
    constraint = SchedulingConstraint("team_rest_days", {}, is_hard_constraint=False)

    report = apply_constraints(matches, [constraint], PhaseConfig(min_rest_days=2))

    assert len(report.warnings) == 1


def test_team_scoped_rest_days():
    matches = [Match("t1", "t2", 1, 1, match_date=day(0)), Match("t3", "t2", 2, 1, match_date=day(1))]

    report = apply_constraints(matches, [rest(3, hard=False, team_id="t1")], CONFIG)

    assert report.warnings == []


def test_undated_matches_are_ignored():
    matches = [Match("t1", "t2", 1, 1), Match("t1", "t3", 2, 1)]

    report = apply_constraints(matches, [rest(3, hard=True)], CONFIG)

    assert report.satisfied
    assert all(m.match_date is None for m in report.matches)


# ============================================================================
# No consecutive home/away
# ============================================================================


def test_hard_home_away_flips_the_breaking_match():
    matches = [Match("t1", "t2", 1, 1), Match("t1", "t3", 2, 1), Match("t1", "t4", 3, 1)]
    constraint = SchedulingConstraint("no_consecutive_home_away", {"max_consecutive": 2}, is_hard_constraint=True)

    report = apply_constraints(matches, [constraint], CONFIG)

    assert report.satisfied
    third = report.matches[2]
    assert (third.home_team_id, third.away_team_id) == ("t4", "t1")


def test_hard_home_away_reports_when_flipping_breaks_the_opponent():
    matches = [
        Match("t2", "t5", 1, 2),
        Match("t1", "t3", 1, 1),
        Match("t2", "t6", 2, 2),
        Match("t1", "t4", 2, 1),
        Match("t1", "t2", 3, 1),
    ]
    constraint = SchedulingConstraint("no_consecutive_home_away", {"max_consecutive": 2}, is_hard_constraint=True)

    report = apply_constraints(matches, [constraint], CONFIG)

    assert not report.satisfied
    assert report.violations == ["Team t1 plays more than 2 consecutive home matches at round 3"]
    assert report.matches[4].home_team_id == "t1"


def test_soft_home_away_warns_once_per_run():
    matches = [Match("t1", f"t{i}", i, 1) for i in range(2, 7)]
    constraint = SchedulingConstraint("no_consecutive_home_away", {"max_consecutive": 2})

    report = apply_constraints(matches, [constraint], CONFIG)

    assert report.warnings == ["Team t1 plays more than 2 consecutive home matches at round 4"]
    assert [m.home_team_id for m in report.matches] == ["t1"] * 5


# ============================================================================
# Venue availability
# ============================================================================


def test_hard_venue_pushes_overlapping_match_past_the_window():
    matches = [
        Match("t1", "t2", 1, 1, match_date=day(0), venue_id="v1"),
        Match("t3", "t4", 1, 2, match_date=day(0, hours=1), venue_id="v1"),
    ]
    constraint = SchedulingConstraint("venue_availability", {"window_hours": 2}, is_hard_constraint=True)

    report = apply_constraints(matches, [constraint], CONFIG)

    assert report.satisfied
    assert report.matches[1].match_date == day(0, hours=2)


def test_soft_venue_conflict_warns():
    matches = [
        Match("t1", "t2", 1, 1, match_date=day(0), venue_id="v1"),
        Match("t3", "t4", 1, 2, match_date=day(0), venue_id="v1"),
        Match("t5", "t6", 1, 3, match_date=day(0), venue_id="v2"),
    ]
    constraint = SchedulingConstraint("venue_availability", {})

    report = apply_constraints(matches, [constraint], CONFIG)

    assert len(report.warnings) == 1
    assert "Venue v1 double-booked" in report.warnings[0]


def test_unavailable_venue_date_is_a_violation():
    matches = [Match("t1", "t2", 1, 1, match_date=day(0), venue_id="v1")]
    constraint = SchedulingConstraint(
        "venue_availability", {"unavailable_dates": [day(0).date().isoformat()]}, is_hard_constraint=True, venue_id="v1"
    )

    report = apply_constraints(matches, [constraint], CONFIG)

    assert not report.satisfied
    assert "unavailable" in report.violations[0]


# ============================================================================
# Blackout dates
# ============================================================================


def test_hard_blackout_moves_to_next_free_day():
    matches = [Match("t1", "t2", 1, 1, match_date=day(0))]
    constraint = SchedulingConstraint(
        "blackout_dates", {"dates": [day(0).date(), day(1).date()]}, is_hard_constraint=True
    )

    report = apply_constraints(matches, [constraint], CONFIG)

    assert report.satisfied
    assert report.matches[0].match_date == day(2)


def test_soft_blackout_warns_without_moving():
    matches = [Match("t1", "t2", 1, 1, match_date=day(0))]
    constraint = SchedulingConstraint("blackout_dates", {"dates": [day(0).date()]})

    report = apply_constraints(matches, [constraint], CONFIG)

    assert report.matches[0].match_date == day(0)
    assert len(report.warnings) == 1


def test_byes_are_never_constrained():
    matches = [Match("t1", None, 1, 1, is_bye=True, match_date=day(0))]
    constraint = SchedulingConstraint("blackout_dates", {"dates": [day(0).date()]}, is_hard_constraint=True)

    report = apply_constraints(matches, [constraint], CONFIG)

    assert report.satisfied
    assert report.matches[0].match_date == day(0)


# ============================================================================
# Through the generation pipeline
# ============================================================================


def test_hard_constraint_failure_fails_generation():
    constraint = SchedulingConstraint(
        "blackout_dates", {"dates": [DAY0.date()], "max_shift_days": 0}, is_hard_constraint=True
    )

    result = generate_fixtures(make_teams(4), CONFIG, constraints=[constraint], start_date=DAY0)

    assert not result.success
    assert result.error.startswith("Hard constraint violated: Match in round 1 scheduled on blackout date")
    assert result.matches == []


def test_soft_constraint_warnings_reach_the_result():
    constraint = SchedulingConstraint("blackout_dates", {"dates": [DAY0.date()]})

    result = generate_fixtures(make_teams(4), CONFIG, constraints=[constraint], start_date=DAY0)

    assert result.success
    assert len(result.warnings) == 2


def test_hard_rest_days_through_generation():
    result = generate_fixtures(
        make_teams(4), CONFIG, constraints=[rest(2, hard=True)], start_date=DAY0, round_interval_days=1
    )

    assert result.success, result.error
    for team in ("t1", "t2", "t3", "t4"):
        dates = sorted(m.match_date for m in result.matches if m.involves(team))
        assert all(b - a >= timedelta(days=2) for a, b in zip(dates, dates[1:]))


def test_blackout_shift_that_breaks_rest_days_is_repaired():
    # Round 2 moves from Jan 8 to Jan 14, one day before round 3
    blackout = [f"2024-01-{d:02d}" for d in range(8, 14)]
    constraints = [
        SchedulingConstraint("team_rest_days", {"min_days": 3}, priority=0, is_hard_constraint=True),
        SchedulingConstraint("blackout_dates", {"dates": blackout}, priority=1, is_hard_constraint=True),
    ]

    result = generate_fixtures(make_teams(4), CONFIG, constraints=constraints, start_date=datetime(2024, 1, 1))

    assert result.success, result.error
    blocked = parse_dates(blackout)
    assert all(m.match_date.date() not in blocked for m in result.matches)
    for team in ("t1", "t2", "t3", "t4"):
        dates = sorted(m.match_date for m in result.matches if m.involves(team))
        assert all(b - a >= timedelta(days=3) for a, b in zip(dates, dates[1:]))


def test_unresolvable_hard_blackout_is_reported_on_the_final_schedule():
    matches = [Match("t1", "t2", 1, 1, match_date=day(0)), Match("t1", "t3", 2, 1, match_date=day(3))]
    constraints = [
        rest(3, hard=True),
        SchedulingConstraint(
            "blackout_dates", {"dates": [day(3).date()], "max_shift_days": 0}, priority=1, is_hard_constraint=True
        ),
    ]

    report = apply_constraints(matches, constraints, CONFIG)

    assert not report.satisfied
    assert report.violations == [f"Match in round 2 scheduled on blackout date {day(3).date().isoformat()}"]


def test_second_legs_respect_hard_blackout():
    constraint = SchedulingConstraint("blackout_dates", {"dates": ["2024-01-29"]}, is_hard_constraint=True)

    result = generate_fixtures(
        make_teams(4), PhaseConfig(home_away_legs=2), constraints=[constraint], start_date=datetime(2024, 1, 1)
    )

    assert result.success, result.error
    assert all(m.match_date.date() != date(2024, 1, 29) for m in result.matches)
    moved = [m for m in result.matches if m.leg_number == 2 and m.round_number == 2]
    assert len(moved) == 2
    assert all(m.match_date.date() == date(2024, 1, 30) for m in moved)
