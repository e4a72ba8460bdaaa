"""
Results API Routes
Match result submission, standings and head-to-head queries.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field, model_validator
from sqlmodel import Session

from fixture_engine.database import get_session
from fixture_engine.models.match import Match
from fixture_engine.models.phase import Phase
from fixture_engine.models.team import Team
from fixture_engine.results.calculator import ResultsCalculator
from fixture_engine.results.store import SqlModelResultsStore
from fixture_engine.results.types import ClassificationConfig, MatchEvent, MatchResult
from fixture_engine.routes.tournaments import get_phase_or_404

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class MatchEventRequest(BaseModel):
    team_id: str
    event_type: str = Field(pattern="^(goal|yellow_card|red_card|substitution|other)$")
    minute: int = Field(ge=0)
    player_name: Optional[str] = None
    description: Optional[str] = None


class MatchResultRequest(BaseModel):
    home_score: int = Field(ge=0)
    away_score: int = Field(ge=0)
    home_score_et: Optional[int] = Field(default=None, ge=0)
    away_score_et: Optional[int] = Field(default=None, ge=0)
    home_score_pen: Optional[int] = Field(default=None, ge=0)
    away_score_pen: Optional[int] = Field(default=None, ge=0)
    status: str = Field(default="completed", pattern="^(completed|live|suspended)$")
    match_events: List[MatchEventRequest] = []

    @model_validator(mode="after")
    def validate_pairs(self):
        if (self.home_score_et is None) != (self.away_score_et is None):
            raise ValueError("extra time scores must be given for both teams")
        if (self.home_score_pen is None) != (self.away_score_pen is None):
            raise ValueError("penalty scores must be given for both teams")
        return self


class TeamStandingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    team_id: str
    team_name: str
    position: int
    matches_played: int
    wins: int
    draws: int
    losses: int
    goals_for: int
    goals_against: int
    goal_difference: int
    points: int
    form: List[str]
    head_to_head_points: Optional[int] = None
    head_to_head_goal_diff: Optional[int] = None
    fair_play_points: Optional[int] = None


class MatchResultResponse(BaseModel):
    match_id: str
    status: str
    winner_team_id: Optional[str] = None
    group_id: Optional[str] = None
    last_updated: Optional[datetime] = None
    standings: List[TeamStandingResponse]


class StandingsResponse(BaseModel):
    phase_id: str
    group_id: Optional[str] = None
    standings: List[TeamStandingResponse]


class HeadToHeadResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    team_a_id: str
    team_b_id: str
    team_a_points: int
    team_b_points: int
    team_a_goals: int
    team_b_goals: int


def calculator_for(session: Session, phase: Phase, group_id: Optional[str] = None) -> ResultsCalculator:
    return ResultsCalculator(
        phase_id=phase.id,
        config=ClassificationConfig.from_dict(phase.classification_json),
        store=SqlModelResultsStore(session),
        group_id=group_id,
    )


# ============================================================================
# Endpoints
# ============================================================================


@router.post("/matches/{match_id}/result", response_model=MatchResultResponse)
def record_match_result(match_id: str, request: MatchResultRequest, session: Session = Depends(get_session)):
    """
    Record a match outcome and rebuild the standings of its phase/group.

    Lifecycle: scheduled -> live -> completed; suspended is terminal and a
    completed match may be corrected with another completed submission.
    """
    match = session.get(Match, match_id)
    if not match:
        raise HTTPException(status_code=404, detail="Match not found")
    if match.is_bye or match.home_team_id is None or match.away_team_id is None:
        raise HTTPException(status_code=422, detail="Match has no opponents to score")

    for event in request.match_events:
        if event.team_id not in (match.home_team_id, match.away_team_id):
            raise HTTPException(status_code=422, detail=f"Event team {event.team_id} is not playing this match")

    result = MatchResult(
        match_id=match_id,
        home_score=request.home_score,
        away_score=request.away_score,
        home_score_et=request.home_score_et,
        away_score_et=request.away_score_et,
        home_score_pen=request.home_score_pen,
        away_score_pen=request.away_score_pen,
        status=request.status,
        match_events=[MatchEvent(match_id=match_id, **event.model_dump()) for event in request.match_events],
    )

    phase = session.get(Phase, match.phase_id)
    outcome = calculator_for(session, phase).record_match_result(result)
    if not outcome.success:
        raise HTTPException(status_code=422, detail=outcome.error)

    return MatchResultResponse(
        match_id=match_id,
        status=request.status,
        winner_team_id=outcome.winner_team_id,
        group_id=outcome.update.group_id,
        last_updated=outcome.update.last_updated,
        standings=[TeamStandingResponse.model_validate(s) for s in outcome.standings],
    )


@router.get("/phases/{phase_id}/standings", response_model=StandingsResponse)
def get_phase_standings(
    phase_id: str,
    group_id: Optional[str] = Query(default=None),
    recalculate: bool = Query(default=False),
    session: Session = Depends(get_session),
):
    """
    Stored standings ordered by position.

    recalculate=true rebuilds the table from completed matches instead of
    reading the materialized rows.
    """
    phase = get_phase_or_404(session, phase_id)
    calculator = calculator_for(session, phase, group_id)
    standings = calculator.recalculate_standings() if recalculate else calculator.get_standings()
    return StandingsResponse(
        phase_id=phase_id,
        group_id=group_id,
        standings=[TeamStandingResponse.model_validate(s) for s in standings],
    )


@router.get("/phases/{phase_id}/head-to-head", response_model=HeadToHeadResponse)
def get_head_to_head(
    phase_id: str,
    team_a: str = Query(...),
    team_b: str = Query(...),
    session: Session = Depends(get_session),
):
    phase = get_phase_or_404(session, phase_id)
    for team_id in (team_a, team_b):
        if not session.get(Team, team_id):
            raise HTTPException(status_code=404, detail=f"Team not found: {team_id}")

    record = calculator_for(session, phase).calculate_head_to_head(team_a, team_b)
    return HeadToHeadResponse(
        team_a_id=team_a,
        team_b_id=team_b,
        team_a_points=record.team_a_points,
        team_b_points=record.team_b_points,
        team_a_goals=record.team_a_goals,
        team_b_goals=record.team_b_goals,
    )
