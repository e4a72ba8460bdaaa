from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from sqlalchemy import JSON
from sqlmodel import Column, Field, Relationship, SQLModel

from fixture_engine.models.tournament import new_id

if TYPE_CHECKING:
    from fixture_engine.models.match import Match
    from fixture_engine.models.tournament import Tournament


class Phase(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    tournament_id: str = Field(foreign_key="tournament.id", index=True)
    name: str
    phase_type: str  # "league" | "knockout" | "groups" | "levels" | "combined"
    order: int
    start_date: Optional[datetime] = Field(default=None)
    end_date: Optional[datetime] = Field(default=None)
    status: str = Field(default="draft")  # "draft" | "generated"

    # Team ids taking part in this phase (all tournament teams when empty)
    participants: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    # PhaseConfig / ClassificationConfig / SchedulingConstraint payloads
    config_json: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    classification_json: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    constraints_json: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    tournament: "Tournament" = Relationship(back_populates="phases")
    matches: List["Match"] = Relationship(back_populates="phase")
