"""
Fixture generation orchestrator

Pipeline:
1. validate inputs (InputValidationError)
2. dispatch on phase_type to the matching generator
3. optionally date rounds from start_date
4. apply scheduling constraints (hard violations fail, soft ones warn)
5. expand home/away legs when home_away_legs == 2, then re-apply the
   constraints to the full set so second legs obey them too
6. structural validation of the final set

Never raises: every failure is reported as success=False with no matches.
"""

import logging
import random
import time
from collections import defaultdict
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from fixture_engine.errors import ConstraintViolation, FixtureEngineError, InputValidationError
from fixture_engine.fixtures.constraints import apply_constraints
from fixture_engine.fixtures.groups import generate_groups, resolve_groups_count
from fixture_engine.fixtures.knockout import generate_knockout
from fixture_engine.fixtures.legs import expand_legs
from fixture_engine.fixtures.levels import generate_levels
from fixture_engine.fixtures.round_robin import generate_round_robin
from fixture_engine.fixtures.types import (
    BYE_TEAM_ID,
    FixtureGenerationResult,
    Match,
    PhaseConfig,
    SchedulingConstraint,
    Team,
)

logger = logging.getLogger(__name__)

MIN_TEAMS = 2
MIN_KNOCKOUT_TEAMS = 4
MIN_GROUPS = 2


def generate_fixtures(
    teams: Sequence[Team],
    config: PhaseConfig,
    constraints: Iterable[SchedulingConstraint] = (),
    rng: Optional[random.Random] = None,
    start_date: Optional[datetime] = None,
    round_interval_days: int = 7,
) -> FixtureGenerationResult:
    """
    Generate the complete fixture set for one phase.

    Args:
        teams: phase participants (read-only)
        config: phase configuration (read-only)
        constraints: scheduling constraints to enforce
        rng: seeded random source for group draws; a fresh Random() if omitted
        start_date: when given, round r is dated start_date + (r-1) * round_interval_days
        round_interval_days: spacing between rounds and between the two legs

    Returns:
        FixtureGenerationResult; success=False carries the error and no matches
    """
    start = time.perf_counter()

    try:
        validate_inputs(teams, config)

        result = _generate_base_fixtures(teams, config, rng)
        if not result.success:
            return result

        matches = result.matches
        if start_date is not None:
            matches = assign_round_dates(matches, start_date, round_interval_days)

        constraints = list(constraints)
        warnings: List[str] = []
        if constraints:
            matches, warnings = _constrain(matches, constraints, config)

        if config.home_away_legs == 2:
            matches = expand_legs(matches, round_interval_days)
            if constraints:
                # Second legs are dated from the constrained first legs; check the full set again
                matches, warnings = _constrain(matches, constraints, config)
        result.warnings.extend(warnings)

        errors = validate_generated_fixtures(matches)
        if errors:
            logger.warning("Fixture validation failed for %s phase: %s", config.phase_type, errors)
            return FixtureGenerationResult.failure(
                f"Fixture validation failed: {', '.join(errors)}",
                algorithm_used=result.metadata.algorithm_used,
                generation_time_ms=_elapsed_ms(start),
            )

        result.matches = matches
        result.metadata.total_matches = len(matches)
        result.metadata.generation_time_ms = _elapsed_ms(start)
        return result

    except ConstraintViolation as exc:
        return FixtureGenerationResult.failure(f"Hard constraint violated: {exc}")
    except FixtureEngineError as exc:
        logger.info("Fixture generation rejected: %s", exc)
        return FixtureGenerationResult.failure(str(exc))
    except Exception as exc:
        logger.exception("Fixture generation failed for %s phase", config.phase_type)
        return FixtureGenerationResult.failure(str(exc) or exc.__class__.__name__)


def _constrain(
    matches: Sequence[Match], constraints: Sequence[SchedulingConstraint], config: PhaseConfig
) -> Tuple[List[Match], List[str]]:
    report = apply_constraints(matches, constraints, config)
    if not report.satisfied:
        raise ConstraintViolation(report.violations)
    return report.matches, report.warnings


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


def validate_inputs(teams: Sequence[Team], config: PhaseConfig) -> None:
    if len(teams) < MIN_TEAMS:
        raise InputValidationError(f"At least {MIN_TEAMS} teams are required")

    ids = [team.id for team in teams]
    if len(set(ids)) != len(ids):
        raise InputValidationError("Team ids must be unique")
    if BYE_TEAM_ID in ids:
        raise InputValidationError(f"Team id '{BYE_TEAM_ID}' is reserved for byes")

    if config.phase_type == "knockout" and len(teams) < MIN_KNOCKOUT_TEAMS:
        raise InputValidationError(f"Knockout tournaments require at least {MIN_KNOCKOUT_TEAMS} teams")

    if config.phase_type == "groups":
        groups_count = resolve_groups_count(len(teams), config)
        if groups_count < MIN_GROUPS:
            raise InputValidationError(f"Group phase requires at least {MIN_GROUPS} groups")


def _generate_base_fixtures(
    teams: Sequence[Team], config: PhaseConfig, rng: Optional[random.Random]
) -> FixtureGenerationResult:
    phase_type = config.phase_type
    if phase_type == "league":
        return generate_round_robin(teams, config)
    if phase_type == "knockout":
        return generate_knockout(teams, config)
    if phase_type == "groups":
        return generate_groups(teams, config, rng)
    if phase_type == "levels":
        return generate_levels(teams, config)

    # combined phases have no dedicated generator yet
    logger.info("Phase type %s generated as groups", phase_type)
    return generate_groups(teams, config, rng)


def assign_round_dates(matches: Sequence[Match], start_date: datetime, round_interval_days: int) -> List[Match]:
    """Date every match of round r at start_date + (r-1) * round_interval_days"""
    return [
        replace(match, match_date=start_date + timedelta(days=(match.round_number - 1) * round_interval_days))
        for match in matches
    ]


def validate_generated_fixtures(matches: Sequence[Match]) -> List[str]:
    """
    Structural checks on a generated set.

    - a pair of teams meets at most once per (group, pass, leg) scope
    - no team plays itself
    - round numbers are >= 1
    Placeholder matches (teams unresolved) are not pairings.
    """
    errors: List[str] = []
    seen = set()

    for match in matches:
        if match.round_number < 1:
            errors.append(f"Invalid round number: {match.round_number}")

        if match.is_bye or match.home_team_id is None or match.away_team_id is None:
            continue

        if match.home_team_id == match.away_team_id:
            errors.append(f"Team cannot play against itself: {match.home_team_id}")
            continue

        key = (match.group_id, match.pass_number, match.leg_number, match.pair_key())
        if key in seen:
            errors.append(f"Duplicate match found: {'-'.join(match.pair_key())}")
        seen.add(key)

    return errors


@dataclass
class FixtureStatistics:
    total_matches: int
    matches_per_round: Dict[int, int] = field(default_factory=dict)
    team_match_counts: Dict[str, int] = field(default_factory=dict)
    bye_count: int = 0


def fixture_statistics(matches: Sequence[Match]) -> FixtureStatistics:
    """Matches per round, matches per team (byes included) and bye count"""
    per_round: Dict[int, int] = defaultdict(int)
    per_team: Dict[str, int] = defaultdict(int)
    byes = 0

    for match in matches:
        per_round[match.round_number] += 1
        if match.is_bye:
            byes += 1
        for team_id in (match.home_team_id, match.away_team_id):
            if team_id is not None:
                per_team[team_id] += 1

    return FixtureStatistics(
        total_matches=len(matches),
        matches_per_round=dict(per_round),
        team_match_counts=dict(per_team),
        bye_count=byes,
    )

