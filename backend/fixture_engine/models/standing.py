from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, SQLModel

from fixture_engine.models.tournament import new_id


class Standing(SQLModel, table=True):
    """Materialized standings row; rebuilt in full after every result"""

    __table_args__ = (SAUniqueConstraint("phase_id", "group_id", "team_id", name="uq_standing_scope_team"),)

    id: str = Field(default_factory=new_id, primary_key=True)
    phase_id: str = Field(foreign_key="phase.id", index=True)
    group_id: Optional[str] = Field(default=None, index=True)
    team_id: str = Field(foreign_key="team.id")
    team_name: str
    position: int
    matches_played: int = 0
    wins: int = 0
    draws: int = 0
    losses: int = 0
    goals_for: int = 0
    goals_against: int = 0
    goal_difference: int = 0
    points: int = 0
    form: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    head_to_head_points: Optional[int] = None
    head_to_head_goal_diff: Optional[int] = None
    fair_play_points: Optional[int] = None
    updated_at: datetime = Field(default_factory=datetime.utcnow)
