"""Types for results recording and standings"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from fixture_engine.errors import InputValidationError

ResultStatus = Literal["completed", "live", "suspended"]
EventType = Literal["goal", "yellow_card", "red_card", "substitution", "other"]
RuleType = Literal["points", "goal_difference", "goals_for", "goals_against", "head_to_head", "fair_play", "random"]

MATCH_SCHEDULED = "scheduled"
MATCH_LIVE = "live"
MATCH_COMPLETED = "completed"
MATCH_SUSPENDED = "suspended"

RULE_TYPES = ("points", "goal_difference", "goals_for", "goals_against", "head_to_head", "fair_play", "random")
FORM_LENGTH = 5


@dataclass
class MatchEvent:
    match_id: str
    team_id: str
    event_type: EventType
    minute: int
    player_name: Optional[str] = None
    description: Optional[str] = None
    id: Optional[str] = None


@dataclass
class MatchResult:
    match_id: str
    home_score: int
    away_score: int
    home_score_et: Optional[int] = None  # extra time
    away_score_et: Optional[int] = None
    home_score_pen: Optional[int] = None  # penalties
    away_score_pen: Optional[int] = None
    status: ResultStatus = "completed"
    match_events: List[MatchEvent] = field(default_factory=list)


@dataclass
class TeamStanding:
    team_id: str
    team_name: str
    matches_played: int = 0
    wins: int = 0
    draws: int = 0
    losses: int = 0
    goals_for: int = 0
    goals_against: int = 0
    goal_difference: int = 0
    points: int = 0
    position: int = 0
    form: List[str] = field(default_factory=list)  # chronological, last 5 of W/D/L
    head_to_head_points: Optional[int] = None
    head_to_head_goal_diff: Optional[int] = None
    fair_play_points: Optional[int] = None


@dataclass(frozen=True)
class TiebreakingRule:
    type: RuleType
    order: Literal["asc", "desc"] = "desc"
    priority: int = 0

    def __post_init__(self):
        if self.type not in RULE_TYPES:
            raise InputValidationError(f"Unknown tiebreaking rule: {self.type}")
        if self.order not in ("asc", "desc"):
            raise InputValidationError(f"Rule order must be asc or desc, got {self.order}")


DEFAULT_TIEBREAKING_RULES = (
    TiebreakingRule("points", "desc", 1),
    TiebreakingRule("goal_difference", "desc", 2),
    TiebreakingRule("goals_for", "desc", 3),
)


@dataclass(frozen=True)
class ClassificationConfig:
    points_for_win: int = 3
    points_for_draw: int = 1
    points_for_loss: int = 0
    tiebreaking_rules: tuple = DEFAULT_TIEBREAKING_RULES
    count_extra_time_as_draw: bool = False
    penalty_shootout_winner_points: Optional[int] = None
    random_seed: Optional[int] = None  # seeds the "random" tie-break rule

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ClassificationConfig":
        data = dict(data or {})
        rules = data.pop("tiebreaking_rules", None)
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__ and v is not None}
        if rules:
            known["tiebreaking_rules"] = tuple(
                TiebreakingRule(r["type"], r.get("order", "desc"), int(r.get("priority", 0))) for r in rules
            )
        return cls(**known)


@dataclass
class HeadToHead:
    team_a_points: int = 0
    team_b_points: int = 0
    team_a_goals: int = 0
    team_b_goals: int = 0


@dataclass
class StandingsUpdate:
    phase_id: str
    group_id: Optional[str]
    standings: List[TeamStanding]
    last_updated: datetime


@dataclass
class RecordOutcome:
    success: bool
    error: Optional[str] = None
    winner_team_id: Optional[str] = None
    standings: List[TeamStanding] = field(default_factory=list)
    update: Optional[StandingsUpdate] = None


@dataclass
class CompletedMatch:
    """A finished match as read back from storage"""

    id: str
    home_team_id: str
    away_team_id: str
    home_score: int = 0
    away_score: int = 0
    home_score_et: Optional[int] = None
    away_score_et: Optional[int] = None
    home_score_pen: Optional[int] = None
    away_score_pen: Optional[int] = None
    winner_team_id: Optional[str] = None
    round_number: int = 1
    match_number: int = 1
    leg_number: int = 1
    match_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    group_id: Optional[str] = None
