"""
Storage collaborator for the results calculator

ResultsStore is the protocol the calculator depends on. SqlModelResultsStore
backs it with a SQLModel session: methods only flush, transaction() owns the
commit/rollback so a match write and its standings rebuild land together.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterator, List, Optional, Protocol, Sequence

from sqlmodel import Session, select

from fixture_engine.models.match import Match as MatchRow
from fixture_engine.models.match_event import MatchEvent as MatchEventRow
from fixture_engine.models.phase import Phase as PhaseRow
from fixture_engine.models.standing import Standing as StandingRow
from fixture_engine.models.team import Team as TeamRow
from fixture_engine.results.types import (
    MATCH_COMPLETED,
    CompletedMatch,
    MatchEvent,
    MatchResult,
    TeamStanding,
)


@dataclass
class MatchRecord:
    id: str
    phase_id: str
    group_id: Optional[str]
    home_team_id: Optional[str]
    away_team_id: Optional[str]
    status: str


class ResultsStore(Protocol):
    def transaction(self): ...

    def get_match(self, match_id: str) -> Optional[MatchRecord]: ...

    def save_match_result(self, result: MatchResult, winner_team_id: Optional[str]) -> None: ...

    def save_events(self, match_id: str, events: Sequence[MatchEvent]) -> None: ...

    def completed_matches(self, phase_id: str, group_id: Optional[str]) -> List[CompletedMatch]: ...

    def scope_teams(self, phase_id: str, group_id: Optional[str]) -> Dict[str, str]: ...

    def events_for_matches(self, match_ids: Sequence[str]) -> Dict[str, List[MatchEvent]]: ...

    def upsert_standings(self, phase_id: str, group_id: Optional[str], standings: Sequence[TeamStanding]) -> None: ...

    def load_standings(self, phase_id: str, group_id: Optional[str]) -> List[TeamStanding]: ...


class SqlModelResultsStore:
    """group_id=None scopes queries to the whole phase"""

    def __init__(self, session: Session):
        self.session = session

    @contextmanager
    def transaction(self) -> Iterator["SqlModelResultsStore"]:
        try:
            yield self
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

    def get_match(self, match_id: str) -> Optional[MatchRecord]:
        row = self.session.get(MatchRow, match_id)
        if row is None:
            return None
        return MatchRecord(
            id=row.id,
            phase_id=row.phase_id,
            group_id=row.group_id,
            home_team_id=row.home_team_id,
            away_team_id=row.away_team_id,
            status=row.status,
        )

    def save_match_result(self, result: MatchResult, winner_team_id: Optional[str]) -> None:
        row = self.session.get(MatchRow, result.match_id)
        row.home_score = result.home_score
        row.away_score = result.away_score
        row.home_score_et = result.home_score_et
        row.away_score_et = result.away_score_et
        row.home_score_pen = result.home_score_pen
        row.away_score_pen = result.away_score_pen
        row.status = result.status
        row.winner_team_id = winner_team_id if result.status == MATCH_COMPLETED else None
        if result.status == MATCH_COMPLETED and row.completed_at is None:
            row.completed_at = datetime.utcnow()
        self.session.add(row)
        self.session.flush()

    def save_events(self, match_id: str, events: Sequence[MatchEvent]) -> None:
        # A resubmission carries the full event list
        for row in self.session.exec(select(MatchEventRow).where(MatchEventRow.match_id == match_id)).all():
            self.session.delete(row)
        for event in events:
            self.session.add(
                MatchEventRow(
                    match_id=match_id,
                    team_id=event.team_id,
                    event_type=event.event_type,
                    minute=event.minute,
                    player_name=event.player_name,
                    description=event.description,
                )
            )
        self.session.flush()

    def _scope(self, query, phase_id: str, group_id: Optional[str]):
        query = query.where(MatchRow.phase_id == phase_id)
        if group_id is not None:
            query = query.where(MatchRow.group_id == group_id)
        return query

    def completed_matches(self, phase_id: str, group_id: Optional[str]) -> List[CompletedMatch]:
        query = self._scope(select(MatchRow), phase_id, group_id).where(
            MatchRow.status == MATCH_COMPLETED, MatchRow.is_bye == False  # noqa: E712
        )
        return [
            CompletedMatch(
                id=row.id,
                home_team_id=row.home_team_id,
                away_team_id=row.away_team_id,
                home_score=row.home_score or 0,
                away_score=row.away_score or 0,
                home_score_et=row.home_score_et,
                away_score_et=row.away_score_et,
                home_score_pen=row.home_score_pen,
                away_score_pen=row.away_score_pen,
                winner_team_id=row.winner_team_id,
                round_number=row.round_number,
                match_number=row.match_number,
                leg_number=row.leg_number,
                match_date=row.match_date,
                completed_at=row.completed_at,
                group_id=row.group_id,
            )
            for row in self.session.exec(query).all()
            if row.home_team_id is not None and row.away_team_id is not None
        ]

    def scope_teams(self, phase_id: str, group_id: Optional[str]) -> Dict[str, str]:
        """Every team scheduled in the scope (id -> name), played or not"""
        ids = set()
        for row in self.session.exec(self._scope(select(MatchRow), phase_id, group_id)).all():
            ids.update(team_id for team_id in (row.home_team_id, row.away_team_id) if team_id is not None)

        if not ids and group_id is None:
            phase = self.session.get(PhaseRow, phase_id)
            if phase is not None:
                ids.update(phase.participants or [])

        if not ids:
            return {}
        teams = self.session.exec(select(TeamRow).where(TeamRow.id.in_(ids))).all()
        return {team.id: team.name for team in teams}

    def events_for_matches(self, match_ids: Sequence[str]) -> Dict[str, List[MatchEvent]]:
        if not match_ids:
            return {}
        rows = self.session.exec(
            select(MatchEventRow).where(MatchEventRow.match_id.in_(list(match_ids))).order_by(MatchEventRow.minute)
        ).all()
        events: Dict[str, List[MatchEvent]] = {}
        for row in rows:
            events.setdefault(row.match_id, []).append(
                MatchEvent(
                    match_id=row.match_id,
                    team_id=row.team_id,
                    event_type=row.event_type,
                    minute=row.minute,
                    player_name=row.player_name,
                    description=row.description,
                    id=row.id,
                )
            )
        return events

    def _standings_query(self, query, phase_id: str, group_id: Optional[str]):
        query = query.where(StandingRow.phase_id == phase_id)
        if group_id is None:
            return query.where(StandingRow.group_id.is_(None))
        return query.where(StandingRow.group_id == group_id)

    def upsert_standings(self, phase_id: str, group_id: Optional[str], standings: Sequence[TeamStanding]) -> None:
        existing = {
            row.team_id: row
            for row in self.session.exec(self._standings_query(select(StandingRow), phase_id, group_id)).all()
        }
        now = datetime.utcnow()
        for standing in standings:
            row = existing.pop(standing.team_id, None)
            if row is None:
                row = StandingRow(phase_id=phase_id, group_id=group_id, team_id=standing.team_id, team_name="", position=0)
            row.team_name = standing.team_name
            row.position = standing.position
            row.matches_played = standing.matches_played
            row.wins = standing.wins
            row.draws = standing.draws
            row.losses = standing.losses
            row.goals_for = standing.goals_for
            row.goals_against = standing.goals_against
            row.goal_difference = standing.goal_difference
            row.points = standing.points
            row.form = list(standing.form)
            row.head_to_head_points = standing.head_to_head_points
            row.head_to_head_goal_diff = standing.head_to_head_goal_diff
            row.fair_play_points = standing.fair_play_points
            row.updated_at = now
            self.session.add(row)

        # Teams no longer in scope
        for row in existing.values():
            self.session.delete(row)
        self.session.flush()

    def load_standings(self, phase_id: str, group_id: Optional[str]) -> List[TeamStanding]:
        rows = self.session.exec(
            self._standings_query(select(StandingRow), phase_id, group_id).order_by(StandingRow.position)
        ).all()
        return [
            TeamStanding(
                team_id=row.team_id,
                team_name=row.team_name,
                matches_played=row.matches_played,
                wins=row.wins,
                draws=row.draws,
                losses=row.losses,
                goals_for=row.goals_for,
                goals_against=row.goals_against,
                goal_difference=row.goal_difference,
                points=row.points,
                position=row.position,
                form=list(row.form or []),
                head_to_head_points=row.head_to_head_points,
                head_to_head_goal_diff=row.head_to_head_goal_diff,
                fair_play_points=row.fair_play_points,
            )
            for row in rows
        ]
