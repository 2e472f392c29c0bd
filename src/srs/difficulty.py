"""Advisory difficulty adjustment from recent review performance."""

from __future__ import annotations

from enum import Enum
from typing import Union


MIN_SAMPLE_SIZE = 3
PROMOTE_AT = 4.5
DEMOTE_AT = 2.5


class Difficulty(str, Enum):
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"


_ORDER = (Difficulty.EASY, Difficulty.MEDIUM, Difficulty.HARD)


def adjust_difficulty(
    current: Union[Difficulty, str],
    average_rating: float,
    sample_size: int,
) -> Difficulty:
    """Suggest a difficulty tier one step away from ``current`` when ratings warrant it.

    Fewer than three reviews is not enough evidence, so the tier is kept.
    """
    current = Difficulty(current)
    if sample_size < MIN_SAMPLE_SIZE:
        return current

    position = _ORDER.index(current)
    if average_rating >= PROMOTE_AT:
        position = min(position + 1, len(_ORDER) - 1)
    elif average_rating <= DEMOTE_AT:
        position = max(position - 1, 0)
    return _ORDER[position]
