"""
Tournament Validator

Two independent checks:
1. Structural: tournament dates, per-phase team counts and points config,
   unique phase execution order
2. Fixture-level: a finalized, dated, venue-assigned match list is scanned
   chronologically for venue double-bookings, short rest, blackout dates and
   overloaded days

Errors block downstream commit; warnings are advisory.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Sequence

from fixture_engine.fixtures.constraints import parse_dates
from fixture_engine.fixtures.types import Match
from fixture_engine.results.types import ClassificationConfig

MIN_LEAGUE_TEAMS = 3


@dataclass(frozen=True)
class TournamentConstraints:
    min_teams: int = 2
    max_teams: int = 64
    min_rest_days: int = 3
    max_matches_per_day: int = 8
    venue_window_hours: float = 2
    blackout_dates: frozenset = frozenset()


def create_default_constraints() -> TournamentConstraints:
    return TournamentConstraints()


@dataclass(frozen=True)
class TournamentDefinition:
    name: str
    start_date: date
    end_date: date


@dataclass(frozen=True)
class PhaseDefinition:
    name: str
    phase_type: str
    order: int
    participants: Sequence[str] = ()
    classification: Optional[ClassificationConfig] = None


@dataclass
class ValidationIssue:
    code: str
    message: str
    severity: str = "error"  # "error" | "warning"
    field: Optional[str] = None
    suggestion: Optional[str] = None


@dataclass
class ValidationResult:
    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def error(self, code: str, message: str, field: Optional[str] = None) -> None:
        self.errors.append(ValidationIssue(code=code, message=message, severity="error", field=field))

    def warning(self, code: str, message: str, suggestion: Optional[str] = None) -> None:
        self.warnings.append(ValidationIssue(code=code, message=message, severity="warning", suggestion=suggestion))

    def merge(self, other: "ValidationResult") -> None:
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)


def is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


class TournamentValidator:
    def __init__(self, constraints: Optional[TournamentConstraints] = None):
        self.constraints = constraints or create_default_constraints()

    def validate_tournament(self, tournament: TournamentDefinition, phases: Sequence[PhaseDefinition]) -> ValidationResult:
        result = ValidationResult()

        if tournament.start_date >= tournament.end_date:
            result.error("INVALID_DATE_RANGE", "Start date must be before end date", field="dates")

        for phase in phases:
            result.merge(self.validate_phase(phase))

        orders = [phase.order for phase in phases]
        if len(set(orders)) != len(orders):
            result.error("DUPLICATE_PHASE_ORDER", "Several phases share the same execution order", field="order")

        return result

    def validate_phase(self, phase: PhaseDefinition) -> ValidationResult:
        result = ValidationResult()
        team_count = len(phase.participants or ())

        if phase.phase_type == "knockout" and team_count > 2 and not is_power_of_two(team_count):
            result.warning(
                "NON_POWER_OF_TWO_KNOCKOUT",
                f"Knockout phase '{phase.name}' with {team_count} teams will need automatic byes",
                suggestion="Use a power of two team count for a balanced bracket",
            )

        if phase.phase_type == "league" and team_count < MIN_LEAGUE_TEAMS:
            result.error(
                "INSUFFICIENT_TEAMS_LEAGUE",
                f"League phase '{phase.name}' requires at least {MIN_LEAGUE_TEAMS} teams",
                field="participants",
            )

        if team_count > self.constraints.max_teams:
            result.error(
                "TOO_MANY_TEAMS",
                f"Phase '{phase.name}' has {team_count} teams (maximum {self.constraints.max_teams})",
                field="participants",
            )
        if team_count < self.constraints.min_teams:
            result.error(
                "TOO_FEW_TEAMS",
                f"Phase '{phase.name}' has {team_count} teams (minimum {self.constraints.min_teams})",
                field="participants",
            )

        if phase.phase_type == "league" and phase.classification is not None:
            if phase.classification.points_for_win <= 0:
                result.error("INVALID_POINTS_CONFIG", "Points for a win must be greater than 0", field="classification")

        return result

    def validate_fixtures(self, matches: Sequence[Match]) -> ValidationResult:
        """Undated matches and byes are skipped"""
        result = ValidationResult()
        window = timedelta(hours=self.constraints.venue_window_hours)
        blackout = parse_dates(self.constraints.blackout_dates)

        dated = sorted(
            (m for m in matches if m.match_date is not None and not m.is_bye),
            key=lambda m: (m.match_date, m.round_number, m.match_number),
        )

        venue_schedule: Dict[str, List[datetime]] = defaultdict(list)
        last_played: Dict[str, datetime] = {}
        per_day: Dict[date, int] = defaultdict(int)

        for match in dated:
            when = match.match_date

            if match.venue_id:
                booked = venue_schedule[match.venue_id]
                if any(abs(when - other) < window for other in booked):
                    result.error(
                        "VENUE_CONFLICT",
                        f"Venue {match.venue_id} double-booked on {when.date().isoformat()} (round {match.round_number})",
                    )
                booked.append(when)

            for team_id in (match.home_team_id, match.away_team_id):
                if team_id is None:
                    continue
                previous = last_played.get(team_id)
                if previous is not None:
                    rest_days = (when - previous).total_seconds() / 86400
                    if rest_days < self.constraints.min_rest_days:
                        result.warning(
                            "INSUFFICIENT_REST",
                            f"Team {team_id} has less than {self.constraints.min_rest_days} rest days "
                            f"before round {match.round_number}",
                            suggestion="Consider rescheduling the match",
                        )
                last_played[team_id] = when

            if when.date() in blackout:
                result.error("BLACKOUT_DATE", f"Match scheduled on blackout date {when.date().isoformat()}")

            per_day[when.date()] += 1

        for day, count in sorted(per_day.items()):
            if count > self.constraints.max_matches_per_day:
                result.warning(
                    "TOO_MANY_MATCHES_PER_DAY",
                    f"{count} matches on {day.isoformat()} (maximum {self.constraints.max_matches_per_day})",
                    suggestion="Spread matches over more days",
                )

        return result
