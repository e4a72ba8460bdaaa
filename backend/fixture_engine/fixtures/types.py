"""
Plain-data types shared by every fixture generator.

Field names are the interchange schema consumed by the storage and
presentation layers; keep them stable.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from fixture_engine.errors import InputValidationError

PhaseType = Literal["knockout", "league", "groups", "levels", "combined"]
MatchType = Literal["regular", "playoff", "final", "consolation"]
ConstraintType = Literal["venue_availability", "team_rest_days", "no_consecutive_home_away", "blackout_dates"]

PHASE_TYPES = ("knockout", "league", "groups", "levels", "combined")
MATCH_TYPES = ("regular", "playoff", "final", "consolation")
CONSTRAINT_TYPES = ("venue_availability", "team_rest_days", "no_consecutive_home_away", "blackout_dates")

# Reserved id of the synthetic team padding odd round-robin rosters
BYE_TEAM_ID = "bye"


@dataclass(frozen=True)
class Team:
    id: str
    name: str
    short_name: Optional[str] = None
    seed: Optional[int] = None  # 1 = strongest


@dataclass
class Match:
    home_team_id: Optional[str]
    away_team_id: Optional[str]
    round_number: int
    match_number: int
    is_bye: bool = False
    match_type: MatchType = "regular"
    group_id: Optional[str] = None
    match_date: Optional[datetime] = None
    venue_id: Optional[str] = None
    id: Optional[str] = None  # assigned by persistence
    leg_number: int = 1
    pass_number: int = 1  # outer round-robin pass (2 = return fixtures)

    def involves(self, team_id: str) -> bool:
        return self.home_team_id == team_id or self.away_team_id == team_id

    def pair_key(self) -> tuple:
        """Unordered pairing key (home/away independent)"""
        return tuple(sorted((self.home_team_id or "", self.away_team_id or "")))


@dataclass(frozen=True)
class PhaseConfig:
    phase_type: PhaseType = "league"
    home_away_legs: int = 1
    rounds: int = 1  # 1 = single round robin, 2 = double
    min_rest_days: int = 0
    points_for_win: int = 3
    points_for_draw: int = 1
    points_for_loss: int = 0
    has_consolation: bool = False
    groups_count: Optional[int] = None
    teams_per_group: Optional[int] = None
    qualified_per_group: Optional[int] = None
    promoted_per_level: Optional[int] = None
    relegated_per_level: Optional[int] = None
    teams_per_level: int = 8

    def __post_init__(self):
        if self.phase_type not in PHASE_TYPES:
            raise InputValidationError(f"Unsupported phase type: {self.phase_type}")
        if self.home_away_legs not in (1, 2):
            raise InputValidationError(f"home_away_legs must be 1 or 2, got {self.home_away_legs}")
        if self.rounds < 1:
            raise InputValidationError(f"rounds must be >= 1, got {self.rounds}")
        if self.teams_per_level < 2:
            raise InputValidationError(f"teams_per_level must be >= 2, got {self.teams_per_level}")

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "PhaseConfig":
        """Build a config from stored JSON, ignoring unknown keys"""
        data = data or {}
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__ and v is not None}
        return cls(**known)


@dataclass
class GenerationMetadata:
    total_matches: int = 0
    total_rounds: int = 0
    algorithm_used: str = "unknown"
    generation_time_ms: float = 0.0
    byes_generated: int = 0


@dataclass
class FixtureGenerationResult:
    matches: List[Match]
    success: bool
    metadata: GenerationMetadata
    error: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    @classmethod
    def failure(cls, error: str, algorithm_used: str = "unknown", generation_time_ms: float = 0.0):
        return cls(
            matches=[],
            success=False,
            error=error,
            metadata=GenerationMetadata(algorithm_used=algorithm_used, generation_time_ms=generation_time_ms),
        )


@dataclass(frozen=True)
class SchedulingConstraint:
    type: ConstraintType
    config: Dict[str, Any] = field(default_factory=dict)
    priority: int = 0
    is_hard_constraint: bool = False
    team_id: Optional[str] = None
    venue_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SchedulingConstraint":
        if data.get("type") not in CONSTRAINT_TYPES:
            raise InputValidationError(f"Unknown constraint type: {data.get('type')}")
        return cls(
            type=data["type"],
            config=dict(data.get("config") or {}),
            priority=int(data.get("priority", 0)),
            is_hard_constraint=bool(data.get("is_hard_constraint", False)),
            team_id=data.get("team_id"),
            venue_id=data.get("venue_id"),
        )


@dataclass
class Group:
    id: str
    name: str
    teams: List[Team]


@dataclass
class Level:
    id: str
    name: str
    level_number: int
    teams: List[Team]
