"""
Levels / divisions generation with promotion and relegation

Teams are ordered by seed (their current level ranking, unseeded last) and
cut into divisions of config.teams_per_level. Division 1 is the strongest.
Each division plays its own round robin; matches are tagged level_<n>.

After a season, the top promoted_per_level of division k move up to k-1 and
the bottom relegated_per_level move down to k+1; next_season_teams() turns
those movements back into a seeded roster for regeneration.
"""

import time
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Sequence

from fixture_engine.errors import GenerationError
from fixture_engine.fixtures.knockout import seed_sort_key
from fixture_engine.fixtures.round_robin import generate_round_robin
from fixture_engine.fixtures.types import FixtureGenerationResult, GenerationMetadata, Level, Match, PhaseConfig, Team

ALGORITHM = "levels_round_robin"

_LEVEL_NAMES = {1: "First Division", 2: "Second Division", 3: "Third Division"}


@dataclass(frozen=True)
class TeamMovement:
    team_id: str
    from_level: int
    to_level: int


@dataclass
class PromotionRelegation:
    promotions: List[TeamMovement] = field(default_factory=list)
    relegations: List[TeamMovement] = field(default_factory=list)


def level_name(level_number: int, total_levels: int) -> str:
    if total_levels == 1:
        return "Single Division"
    return _LEVEL_NAMES.get(level_number, f"Division {level_number}")


def create_levels(teams: Sequence[Team], config: PhaseConfig) -> List[Level]:
    ordered = sorted(teams, key=seed_sort_key)
    size = config.teams_per_level
    chunks = [ordered[i : i + size] for i in range(0, len(ordered), size)]

    return [
        Level(
            id=f"level_{number}",
            name=level_name(number, len(chunks)),
            level_number=number,
            teams=list(chunk),
        )
        for number, chunk in enumerate(chunks, start=1)
    ]


def generate_levels(teams: Sequence[Team], config: PhaseConfig) -> FixtureGenerationResult:
    start = time.perf_counter()
    levels = create_levels(teams, config)

    all_matches: List[Match] = []
    total_byes = 0
    total_rounds = 0

    for level in levels:
        try:
            result = generate_round_robin(level.teams, config)
        except Exception as exc:
            raise GenerationError(f"Failed to generate fixtures for {level.name}: {exc}") from exc
        if not result.success:
            raise GenerationError(f"Failed to generate fixtures for {level.name}: {result.error}")

        for match in result.matches:
            match.group_id = level.id
        all_matches.extend(result.matches)
        total_byes += result.metadata.byes_generated
        total_rounds = max(total_rounds, result.metadata.total_rounds)

    return FixtureGenerationResult(
        matches=all_matches,
        success=True,
        metadata=GenerationMetadata(
            total_matches=len(all_matches),
            total_rounds=total_rounds,
            algorithm_used=ALGORITHM,
            generation_time_ms=(time.perf_counter() - start) * 1000,
            byes_generated=total_byes,
        ),
    )


def calculate_promotions_relegations(
    levels: Sequence[Level], standings_by_level: Dict[str, Sequence], config: PhaseConfig
) -> PromotionRelegation:
    """
    Compute season-end movements from final per-division standings.

    standings_by_level maps level id -> TeamStanding list. Division 1 has no
    promotions and the last division has no relegations.
    """
    promoted = config.promoted_per_level or 0
    relegated = config.relegated_per_level or 0
    last_level = max((level.level_number for level in levels), default=0)

    outcome = PromotionRelegation()
    for level in sorted(levels, key=lambda lv: lv.level_number):
        table = sorted(standings_by_level.get(level.id, []), key=lambda s: s.position)
        if not table:
            continue

        if level.level_number > 1 and promoted:
            for standing in table[:promoted]:
                outcome.promotions.append(
                    TeamMovement(standing.team_id, level.level_number, level.level_number - 1)
                )

        if level.level_number < last_level and relegated:
            # Small divisions: a team cannot be both promoted and relegated
            promoted_ids = {m.team_id for m in outcome.promotions}
            for standing in table[-relegated:]:
                if standing.team_id in promoted_ids:
                    continue
                outcome.relegations.append(
                    TeamMovement(standing.team_id, level.level_number, level.level_number + 1)
                )

    return outcome


def next_season_teams(
    levels: Sequence[Level], movements: PromotionRelegation, standings_by_level: Optional[Dict[str, Sequence]] = None
) -> List[Team]:
    """
    Rebuild a seeded roster so create_levels() re-partitions into next season's divisions.

    Within a division, teams keep their finishing order when standings are
    given (else their current seed order). Promoted teams join the bottom of
    the division above, relegated teams the top of the division below.
    """
    standings_by_level = standings_by_level or {}
    moved = {m.team_id: m.to_level for m in movements.promotions + movements.relegations}

    staying: Dict[int, List[Team]] = {level.level_number: [] for level in levels}
    relegated_in: Dict[int, List[Team]] = {level.level_number: [] for level in levels}
    promoted_in: Dict[int, List[Team]] = {level.level_number: [] for level in levels}

    for level in sorted(levels, key=lambda lv: lv.level_number):
        finish = {s.team_id: s.position for s in standings_by_level.get(level.id, [])}
        ordered = sorted(level.teams, key=lambda t: (finish.get(t.id, len(level.teams) + 1), seed_sort_key(t)))
        for team in ordered:
            target = moved.get(team.id)
            if target is None:
                staying[level.level_number].append(team)
            elif target < level.level_number:
                promoted_in[target].append(team)
            else:
                relegated_in[target].append(team)

    roster: List[Team] = []
    seed = 1
    for number in sorted(staying):
        for team in relegated_in[number] + staying[number] + promoted_in[number]:
            roster.append(replace(team, seed=seed))
            seed += 1
    return roster


def generate_next_season(
    levels: Sequence[Level],
    movements: PromotionRelegation,
    config: PhaseConfig,
    standings_by_level: Optional[Dict[str, Sequence]] = None,
) -> FixtureGenerationResult:
    return generate_levels(next_season_teams(levels, movements, standings_by_level), config)
