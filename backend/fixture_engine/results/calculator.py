"""
Results recording and standings calculation

Standings are never patched incrementally: every submission rescans all
completed matches of the phase/group and rebuilds the table from scratch.
The match write and the standings rebuild happen inside one store
transaction, serialized per (phase_id, group_id) with an exclusive lock.

Outcome rules:
- winner = first strictly greater aggregate of regular time, + extra time, + penalties
- shootout-decided matches: winner gets penalty_shootout_winner_points
  (default points_for_win), loser gets points_for_draw
- goals for/against count regular time plus extra time, never penalties
- count_extra_time_as_draw: matches level after regular time are treated
  like shootouts (winner by extra time or penalties)
"""

import logging
import random
import threading
import weakref
from collections import defaultdict
from datetime import datetime
from functools import cmp_to_key
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from fixture_engine.errors import FixtureEngineError, InvalidStatusTransition, MatchNotFound, PersistenceFailure
from fixture_engine.results.store import MatchRecord, ResultsStore
from fixture_engine.results.types import (
    FORM_LENGTH,
    MATCH_COMPLETED,
    MATCH_LIVE,
    MATCH_SCHEDULED,
    MATCH_SUSPENDED,
    ClassificationConfig,
    CompletedMatch,
    HeadToHead,
    MatchEvent,
    MatchResult,
    RecordOutcome,
    StandingsUpdate,
    TeamStanding,
    TiebreakingRule,
)

logger = logging.getLogger(__name__)

# yellow = 1, red = 3 (lower is better)
FAIR_PLAY_WEIGHTS = {"yellow_card": 1, "red_card": 3}

# current status -> statuses a result may move it to
ALLOWED_TRANSITIONS = {
    MATCH_SCHEDULED: {MATCH_LIVE, MATCH_COMPLETED, MATCH_SUSPENDED},
    MATCH_LIVE: {MATCH_LIVE, MATCH_COMPLETED, MATCH_SUSPENDED},
    MATCH_COMPLETED: {MATCH_COMPLETED},  # corrections
    MATCH_SUSPENDED: set(),
}


# ============================================================================
# Scope locks
# ============================================================================

# Entries disappear once no caller holds the lock
_scope_locks = weakref.WeakValueDictionary()
_registry_lock = threading.Lock()


def scope_lock(phase_id: str, group_id: Optional[str]) -> threading.Lock:
    """One exclusive lock per (phase_id, group_id); different scopes run in parallel"""
    key = (phase_id, group_id)
    with _registry_lock:
        lock = _scope_locks.get(key)
        if lock is None:
            lock = _scope_locks[key] = threading.Lock()
        return lock


# ============================================================================
# Pure helpers
# ============================================================================


def determine_winner(result: MatchResult, home_team_id: str, away_team_id: str) -> Optional[str]:
    """Winning team id, or None for a draw"""
    home = result.home_score
    away = result.away_score
    if home != away:
        return home_team_id if home > away else away_team_id

    if result.home_score_et is not None and result.away_score_et is not None:
        home += result.home_score_et
        away += result.away_score_et
        if home != away:
            return home_team_id if home > away else away_team_id

    if result.home_score_pen is not None and result.away_score_pen is not None:
        if result.home_score_pen != result.away_score_pen:
            return home_team_id if result.home_score_pen > result.away_score_pen else away_team_id

    return None


def validate_status_transition(current: str, new: str) -> None:
    if new not in ALLOWED_TRANSITIONS.get(current or MATCH_SCHEDULED, set()):
        raise InvalidStatusTransition(current, new)


def _goals(match: CompletedMatch) -> Tuple[int, int]:
    return (
        (match.home_score or 0) + (match.home_score_et or 0),
        (match.away_score or 0) + (match.away_score_et or 0),
    )


def _outcome(match: CompletedMatch, config: ClassificationConfig) -> Tuple[Optional[str], bool]:
    """(winner_team_id, decided_after_level_score); (None, False) is a draw"""
    if config.count_extra_time_as_draw:
        home, away = match.home_score or 0, match.away_score or 0
    else:
        home, away = _goals(match)

    if home > away:
        return match.home_team_id, False
    if away > home:
        return match.away_team_id, False
    if match.winner_team_id in (match.home_team_id, match.away_team_id):
        return match.winner_team_id, True
    return None, False


def _points(match: CompletedMatch, config: ClassificationConfig) -> Dict[str, int]:
    """Points earned by each side of a completed match"""
    winner, shootout = _outcome(match, config)
    if winner is None:
        return {match.home_team_id: config.points_for_draw, match.away_team_id: config.points_for_draw}

    loser = match.away_team_id if winner == match.home_team_id else match.home_team_id
    if shootout:
        winner_points = config.points_for_win
        if config.penalty_shootout_winner_points is not None:
            winner_points = config.penalty_shootout_winner_points
        return {winner: winner_points, loser: config.points_for_draw}
    return {winner: config.points_for_win, loser: config.points_for_loss}


def chronological_key(match: CompletedMatch):
    when = match.match_date or match.completed_at
    return (when is None, when or datetime.min, match.leg_number, match.round_number, match.match_number)


def compute_standings(
    matches: Iterable[CompletedMatch],
    config: ClassificationConfig,
    team_names: Optional[Dict[str, str]] = None,
    events_by_match: Optional[Dict[str, List[MatchEvent]]] = None,
) -> List[TeamStanding]:
    """
    Build a sorted standings table from completed matches only.

    team_names (id -> name) lists every team in scope, including those
    without a completed match yet. Deterministic for identical input.
    """
    team_names = dict(team_names or {})
    completed = sorted(
        (m for m in matches if m.home_team_id is not None and m.away_team_id is not None), key=chronological_key
    )

    for match in completed:
        team_names.setdefault(match.home_team_id, "Unknown")
        team_names.setdefault(match.away_team_id, "Unknown")

    table: Dict[str, TeamStanding] = {
        team_id: TeamStanding(team_id=team_id, team_name=name) for team_id, name in sorted(team_names.items())
    }

    for match in completed:
        home = table[match.home_team_id]
        away = table[match.away_team_id]
        home_goals, away_goals = _goals(match)

        home.matches_played += 1
        away.matches_played += 1
        home.goals_for += home_goals
        home.goals_against += away_goals
        away.goals_for += away_goals
        away.goals_against += home_goals

        points = _points(match, config)
        home.points += points[home.team_id]
        away.points += points[away.team_id]

        winner, _ = _outcome(match, config)
        if winner is None:
            home.draws += 1
            away.draws += 1
            home.form.append("D")
            away.form.append("D")
        else:
            won, lost = (home, away) if winner == home.team_id else (away, home)
            won.wins += 1
            lost.losses += 1
            won.form.append("W")
            lost.form.append("L")

    for standing in table.values():
        standing.goal_difference = standing.goals_for - standing.goals_against
        standing.form = standing.form[-FORM_LENGTH:]

    _apply_head_to_head(table, completed, config)
    if events_by_match is not None:
        _apply_fair_play(table, completed, events_by_match)

    return sort_standings(list(table.values()), config)


def _apply_head_to_head(table: Dict[str, TeamStanding], matches: Sequence[CompletedMatch], config) -> None:
    """Mini-league among teams level on points"""
    by_points: Dict[int, set] = defaultdict(set)
    for standing in table.values():
        by_points[standing.points].add(standing.team_id)
        standing.head_to_head_points = 0
        standing.head_to_head_goal_diff = 0

    for tied in by_points.values():
        if len(tied) < 2:
            continue
        for match in matches:
            if match.home_team_id not in tied or match.away_team_id not in tied:
                continue
            home_goals, away_goals = _goals(match)
            points = _points(match, config)
            table[match.home_team_id].head_to_head_points += points[match.home_team_id]
            table[match.away_team_id].head_to_head_points += points[match.away_team_id]
            table[match.home_team_id].head_to_head_goal_diff += home_goals - away_goals
            table[match.away_team_id].head_to_head_goal_diff += away_goals - home_goals


def _apply_fair_play(
    table: Dict[str, TeamStanding], matches: Sequence[CompletedMatch], events_by_match: Dict[str, List[MatchEvent]]
) -> None:
    for standing in table.values():
        standing.fair_play_points = 0
    for match in matches:
        for event in events_by_match.get(match.id, []):
            weight = FAIR_PLAY_WEIGHTS.get(event.event_type)
            if weight and event.team_id in table:
                table[event.team_id].fair_play_points += weight


_RULE_ATTRIBUTES = {
    "points": "points",
    "goal_difference": "goal_difference",
    "goals_for": "goals_for",
    "goals_against": "goals_against",
    "head_to_head": "head_to_head_points",
    "fair_play": "fair_play_points",
}


def sort_standings(standings: List[TeamStanding], config: ClassificationConfig) -> List[TeamStanding]:
    """
    Stable sort by the tie-break chain (rules in priority order) and assign positions.

    The first rule with a non-zero comparison decides; when every rule ties
    the input order is kept.
    """
    rules: List[TiebreakingRule] = sorted(config.tiebreaking_rules, key=lambda r: r.priority)

    # Seeded per call so recomputation is reproducible
    rng = random.Random(config.random_seed if config.random_seed is not None else 0)
    draw = {team_id: rng.random() for team_id in sorted(s.team_id for s in standings)}

    def value(standing: TeamStanding, rule: TiebreakingRule):
        if rule.type == "random":
            return draw[standing.team_id]
        return getattr(standing, _RULE_ATTRIBUTES[rule.type]) or 0

    def compare(a: TeamStanding, b: TeamStanding) -> int:
        for rule in rules:
            value_a, value_b = value(a, rule), value(b, rule)
            if value_a == value_b:
                continue
            if rule.order == "desc":
                return -1 if value_a > value_b else 1
            return -1 if value_a < value_b else 1
        return 0

    ordered = sorted(standings, key=cmp_to_key(compare))
    for position, standing in enumerate(ordered, start=1):
        standing.position = position
    return ordered


def head_to_head(
    matches: Iterable[CompletedMatch], team_a: str, team_b: str, config: ClassificationConfig
) -> HeadToHead:
    """Replay only the completed matches between team_a and team_b"""
    record = HeadToHead()
    for match in matches:
        if {match.home_team_id, match.away_team_id} != {team_a, team_b}:
            continue
        home_goals, away_goals = _goals(match)
        points = _points(match, config)
        a_is_home = match.home_team_id == team_a
        record.team_a_goals += home_goals if a_is_home else away_goals
        record.team_b_goals += away_goals if a_is_home else home_goals
        record.team_a_points += points[team_a]
        record.team_b_points += points[team_b]
    return record


# ============================================================================
# Calculator bound to a phase/group and a store
# ============================================================================


class ResultsCalculator:
    def __init__(self, phase_id: str, config: ClassificationConfig, store: ResultsStore, group_id: Optional[str] = None):
        self.phase_id = phase_id
        self.config = config
        self.store = store
        self.group_id = group_id

    def record_match_result(self, result: MatchResult) -> RecordOutcome:
        """
        Record an outcome and rebuild the standings of the match's phase/group.

        Returns success=False (never raises) for unknown matches, invalid
        status transitions and storage failures. Safe to re-invoke.
        """
        try:
            match = self._get_match(result.match_id)
            group_id = self.group_id if self.group_id is not None else match.group_id

            with scope_lock(self.phase_id, group_id):
                with self.store.transaction():
                    match = self._get_match(result.match_id)
                    validate_status_transition(match.status, result.status)

                    winner = determine_winner(result, match.home_team_id, match.away_team_id)
                    self.store.save_match_result(result, winner)
                    if result.match_events:
                        self.store.save_events(result.match_id, result.match_events)

                    standings = self.recalculate_standings(group_id)
                    self.store.upsert_standings(self.phase_id, group_id, standings)

            logger.info(
                "Recorded result for match %s (%s), %d standings rows rebuilt",
                result.match_id,
                result.status,
                len(standings),
            )
            update = StandingsUpdate(self.phase_id, group_id, standings, last_updated=datetime.utcnow())
            return RecordOutcome(success=True, winner_team_id=winner, standings=standings, update=update)

        except FixtureEngineError as exc:
            logger.info("Result for match %s rejected: %s", result.match_id, exc)
            return RecordOutcome(success=False, error=str(exc))
        except Exception as exc:
            logger.exception("Failed to record result for match %s", result.match_id)
            return RecordOutcome(success=False, error=str(PersistenceFailure(str(exc))))

    def _get_match(self, match_id: str) -> MatchRecord:
        match = self.store.get_match(match_id)
        if match is None or match.phase_id != self.phase_id:
            raise MatchNotFound(match_id)
        return match

    def recalculate_standings(self, group_id: Optional[str] = None) -> List[TeamStanding]:
        """Full rescan of the scope's completed matches"""
        group_id = group_id if group_id is not None else self.group_id
        matches = self.store.completed_matches(self.phase_id, group_id)
        events = self.store.events_for_matches([m.id for m in matches])
        return compute_standings(matches, self.config, self.store.scope_teams(self.phase_id, group_id), events)

    def get_standings(self) -> List[TeamStanding]:
        return self.store.load_standings(self.phase_id, self.group_id)

    def calculate_head_to_head(self, team_a: str, team_b: str) -> HeadToHead:
        return head_to_head(self.store.completed_matches(self.phase_id, None), team_a, team_b, self.config)
