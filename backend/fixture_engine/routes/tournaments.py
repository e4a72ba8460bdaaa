"""
Tournament, Team and Phase API Routes
Creates the structures fixtures are generated for, plus structural validation.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from sqlmodel import Session, select

from fixture_engine.database import get_session
from fixture_engine.errors import InputValidationError
from fixture_engine.fixtures.knockout import seed_sort_key
from fixture_engine.fixtures.types import PhaseConfig, SchedulingConstraint, Team as CoreTeam
from fixture_engine.models.phase import Phase
from fixture_engine.models.team import Team
from fixture_engine.models.tournament import Tournament
from fixture_engine.results.types import ClassificationConfig
from fixture_engine.validation.tournament_validator import (
    PhaseDefinition,
    TournamentDefinition,
    TournamentValidator,
    ValidationResult,
)

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class TournamentCreate(BaseModel):
    name: str
    start_date: date
    end_date: date
    notes: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name is required")
        return v.strip()

    @model_validator(mode="after")
    def validate_date_range(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must be >= start_date")
        return self


class TournamentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    start_date: date
    end_date: date
    notes: Optional[str] = None
    created_at: datetime


class TeamCreateRequest(BaseModel):
    name: str
    short_name: Optional[str] = None
    seed: Optional[int] = None

    @field_validator("seed")
    @classmethod
    def validate_seed(cls, v):
        if v is not None and v < 1:
            raise ValueError("seed must be >= 1")
        return v


class TeamResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    tournament_id: str
    name: str
    short_name: Optional[str] = None
    seed: Optional[int] = None


class PhaseCreateRequest(BaseModel):
    name: str
    phase_type: str
    order: int
    participants: List[str] = []
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    config: Dict[str, Any] = {}
    classification: Dict[str, Any] = {}
    constraints: List[Dict[str, Any]] = []


class PhaseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    tournament_id: str
    name: str
    phase_type: str
    order: int
    status: str
    participants: List[str]
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    config_json: Dict[str, Any]
    classification_json: Dict[str, Any]
    constraints_json: List[Dict[str, Any]]


class ValidationIssueResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    code: str
    message: str
    severity: str
    field: Optional[str] = None
    suggestion: Optional[str] = None


class ValidationResponse(BaseModel):
    is_valid: bool
    errors: List[ValidationIssueResponse]
    warnings: List[ValidationIssueResponse]


def validation_response(result: ValidationResult) -> ValidationResponse:
    return ValidationResponse(
        is_valid=result.is_valid,
        errors=[ValidationIssueResponse.model_validate(issue) for issue in result.errors],
        warnings=[ValidationIssueResponse.model_validate(issue) for issue in result.warnings],
    )


# ============================================================================
# Shared helpers
# ============================================================================


def get_tournament_or_404(session: Session, tournament_id: str) -> Tournament:
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise HTTPException(status_code=404, detail="Tournament not found")
    return tournament


def get_phase_or_404(session: Session, phase_id: str) -> Phase:
    phase = session.get(Phase, phase_id)
    if not phase:
        raise HTTPException(status_code=404, detail="Phase not found")
    return phase


def phase_teams(session: Session, phase: Phase) -> List[CoreTeam]:
    """
    Participants of a phase as core teams, in deterministic order.

    Order: seed ascending (nulls last), then name. A phase without explicit
    participants takes every team of its tournament.
    """
    query = select(Team).where(Team.tournament_id == phase.tournament_id)
    if phase.participants:
        query = query.where(Team.id.in_(phase.participants))
    rows = session.exec(query).all()

    teams = [CoreTeam(id=row.id, name=row.name, short_name=row.short_name, seed=row.seed) for row in rows]
    return sorted(teams, key=lambda t: (seed_sort_key(t), t.name, t.id))


def phase_definition(session: Session, phase: Phase) -> PhaseDefinition:
    return PhaseDefinition(
        name=phase.name,
        phase_type=phase.phase_type,
        order=phase.order,
        participants=[team.id for team in phase_teams(session, phase)],
        classification=ClassificationConfig.from_dict(phase.classification_json),
    )


# ============================================================================
# Tournament Endpoints
# ============================================================================


@router.post("/tournaments", response_model=TournamentResponse, status_code=201)
def create_tournament(tournament_data: TournamentCreate, session: Session = Depends(get_session)):
    tournament = Tournament(**tournament_data.model_dump())
    session.add(tournament)
    session.commit()
    session.refresh(tournament)
    return tournament


@router.get("/tournaments/{tournament_id}", response_model=TournamentResponse)
def get_tournament(tournament_id: str, session: Session = Depends(get_session)):
    return get_tournament_or_404(session, tournament_id)


@router.get("/tournaments/{tournament_id}/validation", response_model=ValidationResponse)
def validate_tournament(tournament_id: str, session: Session = Depends(get_session)):
    """Structural validation of the tournament and all of its phases"""
    tournament = get_tournament_or_404(session, tournament_id)
    phases = session.exec(select(Phase).where(Phase.tournament_id == tournament_id).order_by(Phase.order)).all()

    result = TournamentValidator().validate_tournament(
        TournamentDefinition(name=tournament.name, start_date=tournament.start_date, end_date=tournament.end_date),
        [phase_definition(session, phase) for phase in phases],
    )
    return validation_response(result)


# ============================================================================
# Team Endpoints
# ============================================================================


@router.post("/tournaments/{tournament_id}/teams", response_model=TeamResponse, status_code=201)
def create_team(tournament_id: str, team_data: TeamCreateRequest, session: Session = Depends(get_session)):
    get_tournament_or_404(session, tournament_id)

    existing = session.exec(
        select(Team).where(Team.tournament_id == tournament_id, Team.name == team_data.name)
    ).first()
    if existing:
        raise HTTPException(status_code=409, detail=f"Team '{team_data.name}' already exists in this tournament")

    team = Team(tournament_id=tournament_id, **team_data.model_dump())
    session.add(team)
    session.commit()
    session.refresh(team)
    return team


@router.get("/tournaments/{tournament_id}/teams", response_model=List[TeamResponse])
def list_teams(tournament_id: str, session: Session = Depends(get_session)):
    get_tournament_or_404(session, tournament_id)
    teams = session.exec(select(Team).where(Team.tournament_id == tournament_id)).all()
    return sorted(teams, key=lambda t: (t.seed is None, t.seed or 0, t.name))


# ============================================================================
# Phase Endpoints
# ============================================================================


@router.post("/tournaments/{tournament_id}/phases", response_model=PhaseResponse, status_code=201)
def create_phase(tournament_id: str, phase_data: PhaseCreateRequest, session: Session = Depends(get_session)):
    """
    Create a phase. Config payloads are checked up front so generation never
    sees a malformed configuration.
    """
    get_tournament_or_404(session, tournament_id)

    try:
        PhaseConfig.from_dict({**phase_data.config, "phase_type": phase_data.phase_type})
        ClassificationConfig.from_dict(phase_data.classification)
        for constraint in phase_data.constraints:
            SchedulingConstraint.from_dict(constraint)
    except (InputValidationError, KeyError, TypeError, ValueError) as e:
        raise HTTPException(status_code=422, detail=f"Invalid phase configuration: {e}")

    if phase_data.participants:
        known = set(
            session.exec(
                select(Team.id).where(Team.tournament_id == tournament_id, Team.id.in_(phase_data.participants))
            ).all()
        )
        unknown = [team_id for team_id in phase_data.participants if team_id not in known]
        if unknown:
            raise HTTPException(status_code=422, detail=f"Unknown participants: {', '.join(unknown)}")

    phase = Phase(
        tournament_id=tournament_id,
        name=phase_data.name,
        phase_type=phase_data.phase_type,
        order=phase_data.order,
        participants=list(dict.fromkeys(phase_data.participants)),
        start_date=phase_data.start_date,
        end_date=phase_data.end_date,
        config_json={**phase_data.config, "phase_type": phase_data.phase_type},
        classification_json=phase_data.classification,
        constraints_json=phase_data.constraints,
    )
    session.add(phase)
    session.commit()
    session.refresh(phase)
    return phase


@router.get("/phases/{phase_id}", response_model=PhaseResponse)
def get_phase(phase_id: str, session: Session = Depends(get_session)):
    return get_phase_or_404(session, phase_id)
