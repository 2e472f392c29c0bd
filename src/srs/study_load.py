"""Session sizing helpers: how many new and review cards fit a time budget."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Union


NEW_CARD_SHARE = 0.2
REVIEW_CARD_SHARE = 0.8
# New cards per sitting are capped at this share of the available deck.
NEW_CARD_DECK_CAP = 0.1
DEFAULT_DAILY_TARGET = 20


class ProficiencyTier(str, Enum):
    """Learner proficiency, used to estimate the time each card takes."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


MINUTES_PER_CARD = {
    ProficiencyTier.BEGINNER: 2.5,
    ProficiencyTier.INTERMEDIATE: 2.0,
    ProficiencyTier.ADVANCED: 1.5,
}


@dataclass(frozen=True, slots=True)
class StudyLoadPlan:
    new_cards: int
    review_cards: int
    estimated_time_minutes: float

    @property
    def total_cards(self) -> int:
        return self.new_cards + self.review_cards


@dataclass(frozen=True, slots=True)
class ScheduleBucket:
    due: int
    new: int


@dataclass(frozen=True, slots=True)
class StudySchedule:
    """Recommended split of due and new cards over the coming days."""

    today: ScheduleBucket
    tomorrow: ScheduleBucket
    this_week: ScheduleBucket


def calculate_optimal_study_load(
    total_cards: int,
    available_time_minutes: float,
    tier: Union[ProficiencyTier, str] = ProficiencyTier.INTERMEDIATE,
) -> StudyLoadPlan:
    """Split a session's time budget between new and review cards.

    Raises ``ValueError`` for an unknown proficiency tier.
    """
    minutes_per_card = MINUTES_PER_CARD[ProficiencyTier(tier)]
    total_cards = max(0, total_cards)
    available_time_minutes = max(0.0, available_time_minutes)

    max_cards = math.floor(available_time_minutes / minutes_per_card)
    optimal_new = math.floor(max_cards * NEW_CARD_SHARE)
    optimal_review = math.floor(max_cards * REVIEW_CARD_SHARE)

    new_cards = min(optimal_new, math.floor(total_cards * NEW_CARD_DECK_CAP))
    review_cards = min(optimal_review, max_cards - new_cards)

    return StudyLoadPlan(
        new_cards=new_cards,
        review_cards=review_cards,
        estimated_time_minutes=(new_cards + review_cards) * minutes_per_card,
    )


def get_study_schedule(
    due_cards: int,
    new_cards: int,
    daily_target: int = DEFAULT_DAILY_TARGET,
) -> StudySchedule:
    """Spread due and new cards across today, tomorrow and the rest of the week."""
    due_cards = max(0, due_cards)
    new_cards = max(0, new_cards)
    daily_target = max(0, daily_target)

    today_due = min(due_cards, math.floor(daily_target * REVIEW_CARD_SHARE))
    today_new = min(new_cards, daily_target - today_due)

    tomorrow_due = max(0, due_cards - today_due)
    tomorrow_new = min(max(0, new_cards - today_new), daily_target)

    # Rough estimate: tomorrow's backlog repeats for the remaining six days.
    week_due = tomorrow_due * 6
    week_new = min(max(0, new_cards - today_new - tomorrow_new), daily_target * 5)

    return StudySchedule(
        today=ScheduleBucket(due=today_due, new=today_new),
        tomorrow=ScheduleBucket(due=tomorrow_due, new=tomorrow_new),
        this_week=ScheduleBucket(due=week_due, new=week_new),
    )
