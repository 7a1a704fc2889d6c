"""Player progression — rank points, promotions, and earnings multipliers.

Rank requirement:
    floor(base * scaling ** (rank - 1))   (100, 180, 324, ...)

Points left over after a promotion carry into the next rank.
"""

from __future__ import annotations

import math
from typing import Sequence

from idlewar.util.constants import (
    MAX_RANK,
    RANK_BASE_REQUIREMENT,
    RANK_MULTIPLIERS,
    RANK_SCALING,
)


def rank_requirement(
    rank: int,
    base: float = RANK_BASE_REQUIREMENT,
    scaling: float = RANK_SCALING,
) -> float:
    """Points needed to advance from ``rank`` to ``rank + 1``."""
    return float(math.floor(base * scaling ** (rank - 1)))


def award_rank_points(
    rank: int,
    points: float,
    gained: float,
    max_rank: int = MAX_RANK,
    base: float = RANK_BASE_REQUIREMENT,
    scaling: float = RANK_SCALING,
) -> tuple[int, float]:
    """Add ``gained`` points and apply every promotion they pay for.

    Returns the new (rank, points). At ``max_rank`` points keep accumulating
    but no further promotion happens.
    """
    points += gained
    while rank < max_rank:
        needed = rank_requirement(rank, base, scaling)
        if points < needed:
            break
        points -= needed
        rank += 1
    return rank, points


def rank_multiplier(rank: int, multipliers: Sequence[float] = RANK_MULTIPLIERS) -> float:
    """Earnings multiplier for a rank; ranks past the table use its last entry."""
    if rank < 1:
        return multipliers[0]
    return multipliers[min(rank - 1, len(multipliers) - 1)]
