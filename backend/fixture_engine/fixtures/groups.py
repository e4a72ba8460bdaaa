"""
Group phase generation (several independent round-robin groups)

Sizing:
- groups_count = config.groups_count, else ceil(N / teams_per_group) when
  teams_per_group is set, else ceil(N / 4)
- capacity per group = ceil(N / groups_count)

Distribution:
- any seeded team present: seeds are dealt one per group per pass in seed
  order, remaining capacity is filled from a shuffled pool of unseeded teams
- no seeds: the whole roster is shuffled and sliced into groups

Shuffling only ever uses the injected random.Random so draws are reproducible.
"""

import logging
import math
import random
import string
import time
from typing import Dict, List, Optional, Sequence

from fixture_engine.errors import GenerationError
from fixture_engine.fixtures.knockout import seed_sort_key
from fixture_engine.fixtures.round_robin import generate_round_robin
from fixture_engine.fixtures.types import FixtureGenerationResult, GenerationMetadata, Group, Match, PhaseConfig, Team

logger = logging.getLogger(__name__)

ALGORITHM = "groups_round_robin"
DEFAULT_TEAMS_PER_GROUP = 4


def resolve_groups_count(team_count: int, config: PhaseConfig) -> int:
    if config.groups_count:
        return config.groups_count
    per_group = config.teams_per_group or DEFAULT_TEAMS_PER_GROUP
    return math.ceil(team_count / per_group)


def group_label(index: int) -> str:
    """0 -> A, 25 -> Z, 26 -> AA"""
    letters = string.ascii_uppercase
    label = ""
    index += 1
    while index > 0:
        index, remainder = divmod(index - 1, 26)
        label = letters[remainder] + label
    return label


def create_groups(teams: Sequence[Team], config: PhaseConfig, rng: Optional[random.Random] = None) -> List[Group]:
    """Partition teams into groups. Empty groups are dropped."""
    rng = rng or random.Random()
    if not teams:
        return []

    groups_count = resolve_groups_count(len(teams), config)
    capacity = math.ceil(len(teams) / groups_count)

    if any(team.seed is not None for team in teams):
        buckets = _distribute_seeded(teams, groups_count, capacity, rng)
    else:
        shuffled = list(teams)
        rng.shuffle(shuffled)
        buckets = [shuffled[i * capacity : (i + 1) * capacity] for i in range(groups_count)]

    groups: List[Group] = []
    for index, bucket in enumerate(buckets):
        if not bucket:
            continue
        label = group_label(index)
        groups.append(Group(id=f"group_{label.lower()}", name=f"Group {label}", teams=list(bucket)))
    return groups


def _distribute_seeded(
    teams: Sequence[Team], groups_count: int, capacity: int, rng: random.Random
) -> List[List[Team]]:
    seeded = sorted((t for t in teams if t.seed is not None), key=seed_sort_key)
    unseeded = [t for t in teams if t.seed is None]
    rng.shuffle(unseeded)

    buckets: List[List[Team]] = [[] for _ in range(groups_count)]

    # One seed per group per pass; skip groups already at capacity
    target = 0
    for team in seeded:
        while len(buckets[target % groups_count]) >= capacity:
            target += 1
        buckets[target % groups_count].append(team)
        target += 1

    pool = iter(unseeded)
    for bucket in buckets:
        while len(bucket) < capacity:
            team = next(pool, None)
            if team is None:
                break
            bucket.append(team)

    return buckets


def generate_groups(
    teams: Sequence[Team], config: PhaseConfig, rng: Optional[random.Random] = None
) -> FixtureGenerationResult:
    """Create groups and run a round robin inside each; any group failure aborts everything"""
    start = time.perf_counter()
    groups = create_groups(teams, config, rng)

    all_matches: List[Match] = []
    total_byes = 0
    total_rounds = 0

    for group in groups:
        try:
            result = generate_round_robin(group.teams, config)
        except Exception as exc:
            raise GenerationError(f"Failed to generate fixtures for {group.name}: {exc}") from exc
        if not result.success:
            raise GenerationError(f"Failed to generate fixtures for {group.name}: {result.error}")

        for match in result.matches:
            match.group_id = group.id
        all_matches.extend(result.matches)
        total_byes += result.metadata.byes_generated
        total_rounds = max(total_rounds, result.metadata.total_rounds)

    logger.debug("Generated %d matches across %d groups", len(all_matches), len(groups))

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


def qualified_teams(standings_by_group: Dict[str, Sequence], qualified_per_group: int) -> Dict[str, List[str]]:
    """
    Top `qualified_per_group` team ids of each group, by standing position.

    standings_by_group maps group_id -> TeamStanding list for that group.
    """
    qualified: Dict[str, List[str]] = {}
    for group_id in sorted(standings_by_group):
        ordered = sorted(standings_by_group[group_id], key=lambda s: s.position)
        qualified[group_id] = [s.team_id for s in ordered[:qualified_per_group]]
    return qualified
