"""
Round Robin generation (circle method)

Fix the first team, rotate the remaining N-1 teams one position per inner
round and pair position i with position N-1-i. Odd rosters are padded with a
synthetic BYE team; a pairing against it becomes a bye match for the real team.

Home/away:
- swapped on even inner rounds to balance venue load
- fully reversed on the second outer pass (double round robin)
"""

import time
from collections import Counter
from typing import List, Sequence

from fixture_engine.fixtures.types import (
    BYE_TEAM_ID,
    FixtureGenerationResult,
    GenerationMetadata,
    Match,
    PhaseConfig,
    Team,
)

ALGORITHM = "round_robin_circle_method"


def padded_team_count(team_count: int) -> int:
    """Roster size after adding the BYE team for odd counts"""
    return team_count + 1 if team_count % 2 == 1 else team_count


def rounds_per_pass(team_count: int) -> int:
    """Even n: n-1 rounds. Odd n: n rounds (one BYE per round)."""
    if team_count == 0:
        return 0
    return padded_team_count(team_count) - 1


def generate_round_robin(teams: Sequence[Team], config: PhaseConfig) -> FixtureGenerationResult:
    """
    Generate a single or double round robin for the given teams.

    Contract:
        Each unordered pair of real teams appears in exactly config.rounds
        non-bye matches; for odd N every team receives one bye per pass.
        An empty roster yields zero matches (callers reject it earlier).
    """
    start = time.perf_counter()

    roster = list(teams)
    has_bye = len(roster) % 2 == 1
    if has_bye:
        roster.append(Team(id=BYE_TEAM_ID, name="BYE"))

    inner_rounds = len(roster) - 1 if roster else 0
    matches: List[Match] = []

    for outer_pass in range(1, config.rounds + 1):
        for inner_round in range(1, inner_rounds + 1):
            matches.extend(_generate_single_round(roster, inner_round, outer_pass))

    return FixtureGenerationResult(
        matches=matches,
        success=True,
        metadata=GenerationMetadata(
            total_matches=len(matches),
            total_rounds=inner_rounds * config.rounds,
            algorithm_used=ALGORITHM,
            generation_time_ms=(time.perf_counter() - start) * 1000,
            byes_generated=inner_rounds * config.rounds if has_bye else 0,
        ),
    )


def _generate_single_round(roster: List[Team], inner_round: int, outer_pass: int) -> List[Match]:
    n = len(roster)
    fixed = roster[0]
    rotating = roster[1:]

    rotation = (inner_round - 1) % (n - 1)
    rotated = rotating[rotation:] + rotating[:rotation]
    positions = [fixed] + rotated

    round_number = (outer_pass - 1) * (n - 1) + inner_round
    matches: List[Match] = []

    for i in range(n // 2):
        team1 = positions[i]
        team2 = positions[n - 1 - i]

        if team1.id == BYE_TEAM_ID or team2.id == BYE_TEAM_ID:
            playing = team2 if team1.id == BYE_TEAM_ID else team1
            matches.append(
                Match(
                    home_team_id=playing.id,
                    away_team_id=None,
                    round_number=round_number,
                    match_number=i + 1,
                    is_bye=True,
                    pass_number=outer_pass,
                )
            )
            continue

        home, away = team1, team2
        if outer_pass == 2:
            home, away = away, home
        if inner_round % 2 == 0:
            home, away = away, home

        matches.append(
            Match(
                home_team_id=home.id,
                away_team_id=away.id,
                round_number=round_number,
                match_number=i + 1,
                is_bye=False,
                pass_number=outer_pass,
            )
        )

    return matches


def validate_round_robin(matches: Sequence[Match], rounds: int) -> bool:
    """Check every pair of teams meets exactly `rounds` times (byes ignored)"""
    pair_counts = Counter(m.pair_key() for m in matches if not m.is_bye)
    return all(count == rounds for count in pair_counts.values())
