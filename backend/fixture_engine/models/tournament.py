import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING, List, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from fixture_engine.models.phase import Phase
    from fixture_engine.models.team import Team


def new_id() -> str:
    return uuid.uuid4().hex


class Tournament(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    name: str
    start_date: date
    end_date: date
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    # Relationships
    phases: List["Phase"] = Relationship(back_populates="tournament")
    teams: List["Team"] = Relationship(back_populates="tournament")
