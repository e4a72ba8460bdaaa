"""
Knockout (single elimination) bracket generation

Sizing:
- rounds = ceil(log2(N)), bracket size = 2**rounds
- byes = bracket size - N, given to the trailing bracket slots

Bracket order interleaves the top half of the seed list with the reversed
bottom half (1, N, 2, N-1, ...). This keeps 1 v N style first-round pairings
but does NOT guarantee that the top two seeds can only meet in the final;
true seeded-bracket placement is a different algorithm.

Later rounds are placeholders (home/away None) resolved once winners are known.
"""

import math
import time
from typing import List, Sequence

from fixture_engine.fixtures.legs import expand_legs
from fixture_engine.fixtures.types import FixtureGenerationResult, GenerationMetadata, Match, PhaseConfig, Team

ALGORITHM = "knockout_seeded"


def bracket_size(team_count: int) -> int:
    return 2 ** knockout_rounds(team_count)


def knockout_rounds(team_count: int) -> int:
    if team_count < 2:
        return 0
    return math.ceil(math.log2(team_count))


def seed_sort_key(team: Team):
    """Seed ascending, unseeded teams last"""
    return (team.seed is None, team.seed if team.seed is not None else 0)


def create_seeded_bracket(teams: Sequence[Team]) -> List[Team]:
    """Interleave top half with reversed bottom half of the seed-ordered teams"""
    ordered = sorted(teams, key=seed_sort_key)
    if len(ordered) <= 2:
        return ordered

    half = math.ceil(len(ordered) / 2)
    high_seeds = ordered[:half]
    low_seeds = list(reversed(ordered[half:]))

    bracket: List[Team] = []
    for i in range(max(len(high_seeds), len(low_seeds))):
        if i < len(high_seeds):
            bracket.append(high_seeds[i])
        if i < len(low_seeds):
            bracket.append(low_seeds[i])
    return bracket


def generate_knockout(teams: Sequence[Team], config: PhaseConfig) -> FixtureGenerationResult:
    """Generate the full bracket: real first round, byes, placeholder rounds, optional consolation"""
    start = time.perf_counter()

    team_count = len(teams)
    rounds = knockout_rounds(team_count)
    byes_needed = bracket_size(team_count) - team_count if team_count >= 2 else 0

    matches: List[Match] = []
    matches.extend(_generate_first_round(teams, byes_needed))
    later_rounds = _generate_subsequent_rounds(team_count, rounds)
    matches.extend(later_rounds)

    has_consolation = config.has_consolation and rounds >= 2
    if has_consolation:
        final_round_count = sum(1 for m in later_rounds if m.round_number == rounds)
        matches.append(
            Match(
                home_team_id=None,  # loser of semifinal 1
                away_team_id=None,  # loser of semifinal 2
                round_number=rounds,
                match_number=final_round_count + 1,
                is_bye=False,
                match_type="consolation",
            )
        )

    return FixtureGenerationResult(
        matches=matches,
        success=True,
        metadata=GenerationMetadata(
            total_matches=len(matches),
            total_rounds=rounds + (1 if has_consolation else 0),
            algorithm_used=ALGORITHM,
            generation_time_ms=(time.perf_counter() - start) * 1000,
            byes_generated=byes_needed,
        ),
    )


def _generate_first_round(teams: Sequence[Team], byes_needed: int) -> List[Match]:
    bracket = create_seeded_bracket(teams)
    playing_slots = len(bracket) - byes_needed
    # Single-round brackets (two teams) end in the final
    match_type = "final" if knockout_rounds(len(bracket)) == 1 else "regular"

    matches: List[Match] = []
    match_number = 1

    for i in range(0, playing_slots - 1, 2):
        matches.append(
            Match(
                home_team_id=bracket[i].id,
                away_team_id=bracket[i + 1].id,
                round_number=1,
                match_number=match_number,
                is_bye=False,
                match_type=match_type,
            )
        )
        match_number += 1

    for team in bracket[playing_slots:]:
        matches.append(
            Match(
                home_team_id=team.id,
                away_team_id=None,
                round_number=1,
                match_number=match_number,
                is_bye=True,
            )
        )
        match_number += 1

    return matches


def _generate_subsequent_rounds(team_count: int, rounds: int) -> List[Match]:
    matches: List[Match] = []
    matches_in_round = math.ceil(team_count / 2)

    for round_number in range(2, rounds + 1):
        matches_in_round = math.ceil(matches_in_round / 2)
        match_type = "final" if round_number == rounds else "playoff"

        for match_number in range(1, matches_in_round + 1):
            matches.append(
                Match(
                    home_team_id=None,  # winner of previous round
                    away_team_id=None,
                    round_number=round_number,
                    match_number=match_number,
                    is_bye=False,
                    match_type=match_type,
                )
            )

    return matches


def generate_legs(matches: Sequence[Match], config: PhaseConfig) -> List[Match]:
    """Double every non-bye match into reversed home/away legs when configured"""
    if config.home_away_legs == 1:
        return list(matches)
    return expand_legs(matches)
