"""
Home/away leg expansion.

Every non-bye match becomes a two-legged tie:
- leg 1 keeps home/away, match_number*2-1
- leg 2 swaps home/away, match_number*2, leg_number=2, same round_number

Byes take the leg-1 number so match numbers stay unique within a round.
"""

from dataclasses import replace
from datetime import timedelta
from typing import List, Optional, Sequence

from fixture_engine.fixtures.types import Match


def expand_legs(matches: Sequence[Match], round_interval_days: int = 7) -> List[Match]:
    """Expand matches into two legs. Leg-2 dates follow the last leg-1 date."""
    leg2_offset = _second_leg_offset(matches, round_interval_days)

    legs: List[Match] = []
    for match in matches:
        if match.is_bye:
            legs.append(replace(match, match_number=match.match_number * 2 - 1))
            continue

        legs.append(replace(match, match_number=match.match_number * 2 - 1, leg_number=1))
        legs.append(
            replace(
                match,
                home_team_id=match.away_team_id,
                away_team_id=match.home_team_id,
                match_number=match.match_number * 2,
                leg_number=2,
                match_date=match.match_date + leg2_offset if match.match_date is not None else None,
            )
        )

    return legs


def _second_leg_offset(matches: Sequence[Match], round_interval_days: int) -> Optional[timedelta]:
    dates = [m.match_date for m in matches if m.match_date is not None]
    if not dates:
        return None
    return (max(dates) - min(dates)) + timedelta(days=round_interval_days)


def leg_sort_key(match: Match) -> tuple:
    """Order leg 1 before leg 2, then by round and match number"""
    return (match.leg_number, match.round_number, match.match_number)
