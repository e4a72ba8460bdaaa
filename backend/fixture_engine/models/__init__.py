from fixture_engine.models.match import Match
from fixture_engine.models.match_event import MatchEvent
from fixture_engine.models.phase import Phase
from fixture_engine.models.standing import Standing
from fixture_engine.models.team import Team
from fixture_engine.models.tournament import Tournament

__all__ = [
    "Tournament",
    "Team",
    "Phase",
    "Match",
    "MatchEvent",
    "Standing",
]
