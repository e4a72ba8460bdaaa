"""
Fixture API Routes
Generates a phase's fixtures, persists them, and validates stored schedules.
"""

import logging
import random
from dataclasses import replace
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, field_validator
from sqlmodel import Session, select

from fixture_engine.database import get_session
from fixture_engine.fixtures.constraints import parse_dates
from fixture_engine.fixtures.generator import generate_fixtures
from fixture_engine.fixtures.types import Match as CoreMatch
from fixture_engine.fixtures.types import PhaseConfig, SchedulingConstraint
from fixture_engine.models.match import Match
from fixture_engine.models.phase import Phase
from fixture_engine.routes.tournaments import ValidationResponse, get_phase_or_404, phase_teams, validation_response
from fixture_engine.validation.tournament_validator import TournamentValidator, create_default_constraints

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class FixtureGenerateRequest(BaseModel):
    seed: Optional[int] = None  # group draw seed; random when omitted
    start_date: Optional[datetime] = None
    round_interval_days: int = 7
    replace_existing: bool = False

    @field_validator("round_interval_days")
    @classmethod
    def validate_interval(cls, v):
        if v < 1:
            raise ValueError("round_interval_days must be >= 1")
        return v


class MatchResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    phase_id: str
    group_id: Optional[str] = None
    round_number: int
    match_number: int
    leg_number: int
    pass_number: int
    match_type: str
    is_bye: bool
    home_team_id: Optional[str] = None
    away_team_id: Optional[str] = None
    venue_id: Optional[str] = None
    match_date: Optional[datetime] = None
    status: str
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    winner_team_id: Optional[str] = None


class GenerationMetadataResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_matches: int
    total_rounds: int
    algorithm_used: str
    generation_time_ms: float
    byes_generated: int


class FixtureGenerateResponse(BaseModel):
    phase_id: str
    metadata: GenerationMetadataResponse
    warnings: List[str]
    validation: ValidationResponse
    matches: List[MatchResponse]


# ============================================================================
# Helpers
# ============================================================================


def phase_constraints(phase: Phase) -> List[SchedulingConstraint]:
    return [SchedulingConstraint.from_dict(data) for data in phase.constraints_json or []]


def phase_validator(phase: Phase) -> TournamentValidator:
    """Fixture validator using the phase's rest days and hard blackout dates"""
    config = PhaseConfig.from_dict(phase.config_json)
    defaults = create_default_constraints()

    blackout = set()
    for constraint in phase_constraints(phase):
        if (
            constraint.type == "blackout_dates"
            and constraint.is_hard_constraint
            and not constraint.team_id
            and not constraint.venue_id
        ):
            blackout |= parse_dates(constraint.config.get("dates", []))

    return TournamentValidator(
        replace(
            defaults,
            min_rest_days=config.min_rest_days or defaults.min_rest_days,
            blackout_dates=frozenset(blackout),
        )
    )


def to_core_match(row: Match) -> CoreMatch:
    return CoreMatch(
        id=row.id,
        home_team_id=row.home_team_id,
        away_team_id=row.away_team_id,
        round_number=row.round_number,
        match_number=row.match_number,
        is_bye=row.is_bye,
        match_type=row.match_type,
        group_id=row.group_id,
        match_date=row.match_date,
        venue_id=row.venue_id,
        leg_number=row.leg_number,
        pass_number=row.pass_number,
    )


def phase_matches(session: Session, phase_id: str) -> List[Match]:
    rows = session.exec(select(Match).where(Match.phase_id == phase_id)).all()
    return sorted(rows, key=lambda m: (m.group_id or "", m.leg_number, m.round_number, m.match_number))


# ============================================================================
# Endpoints
# ============================================================================


@router.post("/phases/{phase_id}/fixtures", response_model=FixtureGenerateResponse, status_code=201)
def generate_phase_fixtures(
    phase_id: str, request: Optional[FixtureGenerateRequest] = None, session: Session = Depends(get_session)
):
    """
    Generate and persist the fixtures of a phase.

    Nothing is written unless generation succeeds and the fixture-level
    validation has no errors. Existing fixtures are only replaced on request,
    and never once a result has been recorded.
    """
    request = request or FixtureGenerateRequest()
    phase = get_phase_or_404(session, phase_id)

    existing = session.exec(select(Match).where(Match.phase_id == phase_id)).all()
    if existing:
        if not request.replace_existing:
            raise HTTPException(status_code=409, detail="Phase already has fixtures; set replace_existing to regenerate")
        if any(m.status != "scheduled" for m in existing):
            raise HTTPException(status_code=409, detail="Cannot regenerate fixtures after results were recorded")

    config = PhaseConfig.from_dict(phase.config_json)
    teams = phase_teams(session, phase)
    rng = random.Random(request.seed) if request.seed is not None else None

    result = generate_fixtures(
        teams,
        config,
        constraints=phase_constraints(phase),
        rng=rng,
        start_date=request.start_date or phase.start_date,
        round_interval_days=request.round_interval_days,
    )
    if not result.success:
        raise HTTPException(status_code=422, detail=result.error)

    validation = phase_validator(phase).validate_fixtures(result.matches)
    if not validation.is_valid:
        raise HTTPException(
            status_code=422,
            detail={
                "message": "Generated fixtures failed validation",
                "errors": [issue.message for issue in validation.errors],
            },
        )

    for row in existing:
        session.delete(row)

    rows = [
        Match(
            phase_id=phase.id,
            group_id=m.group_id,
            round_number=m.round_number,
            match_number=m.match_number,
            leg_number=m.leg_number,
            pass_number=m.pass_number,
            match_type=m.match_type,
            is_bye=m.is_bye,
            venue_id=m.venue_id,
            match_date=m.match_date,
            home_team_id=m.home_team_id,
            away_team_id=m.away_team_id,
        )
        for m in result.matches
    ]
    session.add_all(rows)
    phase.status = "generated"
    session.add(phase)
    session.commit()

    logger.info(
        "Generated %d fixtures for phase %s using %s", len(rows), phase.id, result.metadata.algorithm_used
    )

    return FixtureGenerateResponse(
        phase_id=phase.id,
        metadata=GenerationMetadataResponse.model_validate(result.metadata),
        warnings=result.warnings,
        validation=validation_response(validation),
        matches=[MatchResponse.model_validate(row) for row in phase_matches(session, phase.id)],
    )


@router.get("/phases/{phase_id}/fixtures", response_model=List[MatchResponse])
def list_phase_fixtures(phase_id: str, session: Session = Depends(get_session)):
    get_phase_or_404(session, phase_id)
    return phase_matches(session, phase_id)


@router.get("/phases/{phase_id}/fixtures/validation", response_model=ValidationResponse)
def validate_phase_fixtures(phase_id: str, session: Session = Depends(get_session)):
    """Fixture-level validation of the stored schedule (venues, rest, blackout dates)"""
    phase = get_phase_or_404(session, phase_id)
    matches = [to_core_match(row) for row in phase_matches(session, phase_id)]
    return validation_response(phase_validator(phase).validate_fixtures(matches))
