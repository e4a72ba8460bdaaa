from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlmodel import Field, Relationship, SQLModel

from fixture_engine.models.tournament import new_id

if TYPE_CHECKING:
    from fixture_engine.models.phase import Phase


class Match(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    phase_id: str = Field(foreign_key="phase.id", index=True)
    group_id: Optional[str] = Field(default=None, index=True)  # group_a, level_1, ...
    round_number: int
    match_number: int
    leg_number: int = Field(default=1)
    pass_number: int = Field(default=1)
    match_type: str = Field(default="regular")  # "regular" | "playoff" | "final" | "consolation"
    is_bye: bool = Field(default=False)
    venue_id: Optional[str] = Field(default=None)
    match_date: Optional[datetime] = Field(default=None)

    # Nullable for byes and unresolved knockout placeholders
    home_team_id: Optional[str] = Field(default=None, foreign_key="team.id")
    away_team_id: Optional[str] = Field(default=None, foreign_key="team.id")

    status: str = Field(default="scheduled")  # scheduled | live | completed | suspended
    home_score: Optional[int] = Field(default=None)
    away_score: Optional[int] = Field(default=None)
    home_score_et: Optional[int] = Field(default=None)
    away_score_et: Optional[int] = Field(default=None)
    home_score_pen: Optional[int] = Field(default=None)
    away_score_pen: Optional[int] = Field(default=None)
    winner_team_id: Optional[str] = Field(default=None, foreign_key="team.id")
    completed_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    phase: "Phase" = Relationship(back_populates="matches")
