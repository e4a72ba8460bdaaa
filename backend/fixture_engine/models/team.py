from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

from fixture_engine.models.tournament import new_id

if TYPE_CHECKING:
    from fixture_engine.models.tournament import Tournament


class Team(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("tournament_id", "name", name="uq_tournament_team_name"),)

    id: str = Field(default_factory=new_id, primary_key=True)
    tournament_id: str = Field(foreign_key="tournament.id", index=True)
    name: str
    short_name: Optional[str] = None
    seed: Optional[int] = Field(default=None)  # 1-based (1=strongest)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    tournament: "Tournament" = Relationship(back_populates="teams")
