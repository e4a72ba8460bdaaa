"""
Scheduling constraint engine

Constraints are applied in ascending priority. Each rule has two modes:
- hard: reschedule (or flip home/away) to satisfy the rule; anything still
  unsatisfied is reported as a violation and fails generation
- soft: never changes a match; every breach becomes a warning

With enforce=False a handler only reports, which is how the final schedule
is checked after all hard rules have moved matches.

Rules:
- team_rest_days           config.min_days (default: PhaseConfig.min_rest_days)
- no_consecutive_home_away config.max_consecutive (default 2)
- venue_availability       config.window_hours (default 2), config.unavailable_dates
- blackout_dates           config.dates, config.max_shift_days (default 366)

Date-based rules skip undated matches. Bye matches are never constrained.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set

from fixture_engine.fixtures.types import Match, PhaseConfig, SchedulingConstraint

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONSECUTIVE = 2
DEFAULT_VENUE_WINDOW_HOURS = 2
DEFAULT_MAX_SHIFT_DAYS = 366
MAX_ENFORCE_PASSES = 5


@dataclass
class ConstraintReport:
    matches: List[Match]
    warnings: List[str] = field(default_factory=list)
    violations: List[str] = field(default_factory=list)

    @property
    def satisfied(self) -> bool:
        return not self.violations

    def breach(self, constraint: SchedulingConstraint, message: str) -> None:
        if constraint.is_hard_constraint:
            self.violations.append(message)
        else:
            self.warnings.append(message)


def apply_constraints(
    matches: Sequence[Match], constraints: Iterable[SchedulingConstraint], config: PhaseConfig
) -> ConstraintReport:
    """
    Apply every constraint to copies of the matches and report the outcome.

    Hard rules are enforced in priority order. A later rule can move a match
    and break an earlier one, so the hard pass repeats (at most
    MAX_ENFORCE_PASSES times) until a check of every hard rule comes back
    clean. Warnings and violations always describe the final schedule.
    """
    matches = [replace(m) for m in matches]

    known: List[SchedulingConstraint] = []
    for constraint in sorted(constraints, key=lambda c: c.priority):
        if constraint.type not in _HANDLERS:
            logger.warning("Ignoring unknown constraint type %s", constraint.type)
            continue
        known.append(constraint)
    hard = [c for c in known if c.is_hard_constraint]

    for attempt in range(1, MAX_ENFORCE_PASSES + 1):
        scratch = ConstraintReport(matches=matches)
        for constraint in hard:
            _HANDLERS[constraint.type](scratch, constraint, config)
        if check_constraints(matches, hard, config).satisfied:
            break
        logger.debug("Hard constraints still broken after pass %d", attempt)

    report = check_constraints(matches, known, config)
    if report.violations:
        logger.info("Hard constraints unsatisfied: %d violation(s)", len(report.violations))
    return report


def check_constraints(
    matches: List[Match], constraints: Iterable[SchedulingConstraint], config: PhaseConfig
) -> ConstraintReport:
    """Report breaches of the given constraints without moving any match"""
    report = ConstraintReport(matches=matches)
    for constraint in constraints:
        handler = _HANDLERS.get(constraint.type)
        if handler is not None:
            handler(report, constraint, config, enforce=False)
    return report


# ============================================================================
# Helpers
# ============================================================================


def parse_dates(values: Iterable) -> Set[date]:
    """Accept date, datetime or ISO strings"""
    parsed: Set[date] = set()
    for value in values or []:
        if isinstance(value, datetime):
            parsed.add(value.date())
        elif isinstance(value, date):
            parsed.add(value)
        else:
            parsed.add(date.fromisoformat(str(value)[:10]))
    return parsed


def _is_playable(match: Match) -> bool:
    return not match.is_bye and match.home_team_id is not None and match.away_team_id is not None


def _team_ids(matches: Sequence[Match]) -> List[str]:
    ids = set()
    for match in matches:
        if _is_playable(match):
            ids.add(match.home_team_id)
            ids.add(match.away_team_id)
    return sorted(ids)


def _dated_team_matches(matches: Sequence[Match], team_id: str) -> List[Match]:
    dated = [m for m in matches if _is_playable(m) and m.match_date is not None and m.involves(team_id)]
    return sorted(dated, key=lambda m: (m.match_date, m.round_number, m.match_number))


def _round_ordered_team_matches(matches: Sequence[Match], team_id: str) -> List[Match]:
    own = [m for m in matches if _is_playable(m) and m.involves(team_id)]
    return sorted(own, key=lambda m: (m.leg_number, m.round_number, m.match_number))


# ============================================================================
# Team rest days
# ============================================================================


def _apply_rest_days(
    report: ConstraintReport, constraint: SchedulingConstraint, config: PhaseConfig, enforce: bool = True
) -> None:
    min_days = constraint.config.get("min_days", config.min_rest_days)
    if not min_days:
        return
    required = timedelta(days=min_days)
    teams = [constraint.team_id] if constraint.team_id else _team_ids(report.matches)

    if constraint.is_hard_constraint and enforce:
        moved = 0
        # Pushing a match forward can break a later gap; repeat until stable
        for _ in range(len(report.matches) + 1):
            changed = False
            for team_id in teams:
                ordered = _dated_team_matches(report.matches, team_id)
                for earlier, later in zip(ordered, ordered[1:]):
                    if later.match_date - earlier.match_date < required:
                        later.match_date = earlier.match_date + required
                        changed = True
                        moved += 1
            if not changed:
                break
        if moved:
            logger.info("Rescheduled %d match(es) to respect %s rest day(s)", moved, min_days)

    for team_id in teams:
        ordered = _dated_team_matches(report.matches, team_id)
        for earlier, later in zip(ordered, ordered[1:]):
            gap = later.match_date - earlier.match_date
            if gap < required:
                report.breach(
                    constraint,
                    f"Team {team_id} has {gap.total_seconds() / 86400:.1f} rest day(s) before round "
                    f"{later.round_number} (minimum {min_days})",
                )


# ============================================================================
# No consecutive home/away
# ============================================================================


def _longest_run(matches: Sequence[Match], team_id: str) -> int:
    longest = run = 0
    previous = None
    for match in _round_ordered_team_matches(matches, team_id):
        side = match.home_team_id == team_id
        run = run + 1 if side == previous else 1
        previous = side
        longest = max(longest, run)
    return longest


def _flip(match: Match) -> None:
    match.home_team_id, match.away_team_id = match.away_team_id, match.home_team_id


def _apply_home_away(
    report: ConstraintReport, constraint: SchedulingConstraint, config: PhaseConfig, enforce: bool = True
) -> None:
    max_run = int(constraint.config.get("max_consecutive", DEFAULT_MAX_CONSECUTIVE))
    teams = [constraint.team_id] if constraint.team_id else _team_ids(report.matches)

    for team_id in teams:
        previous_side: Optional[bool] = None
        run = 0
        for match in _round_ordered_team_matches(report.matches, team_id):
            is_home = match.home_team_id == team_id
            run = run + 1 if is_home == previous_side else 1
            previous_side = is_home
            if run <= max_run:
                continue

            side_label = "home" if is_home else "away"
            if constraint.is_hard_constraint and enforce:
                opponent = match.away_team_id if is_home else match.home_team_id
                _flip(match)
                if _longest_run(report.matches, opponent) <= max_run:
                    previous_side = not is_home
                    run = 1
                    continue
                _flip(match)
                report.breach(
                    constraint,
                    f"Team {team_id} plays more than {max_run} consecutive {side_label} matches "
                    f"at round {match.round_number}",
                )
            elif run == max_run + 1:
                report.breach(
                    constraint,
                    f"Team {team_id} plays more than {max_run} consecutive {side_label} matches "
                    f"at round {match.round_number}",
                )


# ============================================================================
# Venue availability
# ============================================================================


def _apply_venue(
    report: ConstraintReport, constraint: SchedulingConstraint, config: PhaseConfig, enforce: bool = True
) -> None:
    window = timedelta(hours=float(constraint.config.get("window_hours", DEFAULT_VENUE_WINDOW_HOURS)))
    unavailable = parse_dates(constraint.config.get("unavailable_dates", []))

    if constraint.venue_id:
        venues = [constraint.venue_id]
    else:
        venues = sorted({m.venue_id for m in report.matches if m.venue_id})

    for venue_id in venues:

        def at_venue() -> List[Match]:
            dated = [
                m for m in report.matches if _is_playable(m) and m.venue_id == venue_id and m.match_date is not None
            ]
            return sorted(dated, key=lambda m: (m.match_date, m.round_number, m.match_number))

        if constraint.is_hard_constraint and enforce:
            for _ in range(len(report.matches) + 1):
                changed = False
                ordered = at_venue()
                for earlier, later in zip(ordered, ordered[1:]):
                    if later.match_date - earlier.match_date < window:
                        later.match_date = earlier.match_date + window
                        changed = True
                if not changed:
                    break

        ordered = at_venue()
        for earlier, later in zip(ordered, ordered[1:]):
            if later.match_date - earlier.match_date < window:
                report.breach(
                    constraint,
                    f"Venue {venue_id} double-booked at {later.match_date.isoformat()} (round {later.round_number})",
                )
        for match in ordered:
            if match.match_date.date() in unavailable:
                report.breach(
                    constraint,
                    f"Venue {venue_id} unavailable on {match.match_date.date().isoformat()} "
                    f"(round {match.round_number})",
                )


# ============================================================================
# Blackout dates
# ============================================================================


def _apply_blackout(
    report: ConstraintReport, constraint: SchedulingConstraint, config: PhaseConfig, enforce: bool = True
) -> None:
    blackout = parse_dates(constraint.config.get("dates", []))
    if not blackout:
        return
    max_shift = int(constraint.config.get("max_shift_days", DEFAULT_MAX_SHIFT_DAYS))

    for match in report.matches:
        if not _is_playable(match) or match.match_date is None:
            continue
        if constraint.team_id and not match.involves(constraint.team_id):
            continue
        if constraint.venue_id and match.venue_id != constraint.venue_id:
            continue
        if match.match_date.date() not in blackout:
            continue

        if constraint.is_hard_constraint and enforce:
            for shift in range(1, max_shift + 1):
                candidate = match.match_date + timedelta(days=shift)
                if candidate.date() not in blackout:
                    match.match_date = candidate
                    break
            else:
                report.breach(constraint, f"No free date for round {match.round_number} within {max_shift} days")
        else:
            report.breach(
                constraint,
                f"Match in round {match.round_number} scheduled on blackout date "
                f"{match.match_date.date().isoformat()}",
            )


_HANDLERS: Dict[str, Callable[..., None]] = {
    "team_rest_days": _apply_rest_days,
    "no_consecutive_home_away": _apply_home_away,
    "venue_availability": _apply_venue,
    "blackout_dates": _apply_blackout,
}
