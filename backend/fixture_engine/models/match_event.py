from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel

from fixture_engine.models.tournament import new_id


class MatchEvent(SQLModel, table=True):
    __tablename__ = "matchevent"

    id: str = Field(default_factory=new_id, primary_key=True)
    match_id: str = Field(foreign_key="match.id", index=True)
    team_id: str = Field(foreign_key="team.id")
    event_type: str  # goal | yellow_card | red_card | substitution | other
    minute: int
    player_name: Optional[str] = None
    description: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
