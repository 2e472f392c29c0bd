"""Aggregate study statistics derived from a learner's review log."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence

from .scheduler import PASSING_RATING, ensure_utc, round_half_up


ACTIVITY_WINDOW_DAYS = 7


@dataclass(frozen=True, slots=True)
class ReviewEvent:
    """A single submitted review. Immutable once recorded."""

    rating: int
    time_spent: float
    review_date: datetime
    flashcard_id: Optional[int] = None
    was_correct: Optional[bool] = None


@dataclass(frozen=True, slots=True)
class DailyProgress:
    date: date
    review_count: int
    time_spent: float


@dataclass(frozen=True, slots=True)
class StudyStats:
    """Summary of a learner's reviews."""

    total_reviews: int = 0
    average_rating: float = 0.0
    total_study_time: float = 0.0
    average_time_per_card: float = 0.0
    retention_rate: int = 0
    streak: int = 0
    cards_per_day: float = 0.0
    weekly_progress: List[DailyProgress] = field(default_factory=list)


def calculate_retention_rate(events: Sequence[ReviewEvent]) -> int:
    """Percentage of reviews rated as recalled, rounded to a whole number."""
    if not events:
        return 0
    recalled = sum(1 for event in events if event.rating >= PASSING_RATING)
    return round_half_up(recalled / len(events) * 100)


def calculate_streak(events: Sequence[ReviewEvent], today: date) -> int:
    """Count consecutive active days ending today.

    A day counts once no matter how many reviews happened on it; the walk stops
    at the first day without any review.
    """
    active_days = {ensure_utc(event.review_date).date() for event in events}
    streak = 0
    cursor = today
    while cursor in active_days:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def build_weekly_progress(events: Sequence[ReviewEvent], today: date) -> List[DailyProgress]:
    counts: Dict[date, int] = defaultdict(int)
    durations: Dict[date, float] = defaultdict(float)
    for event in events:
        day = ensure_utc(event.review_date).date()
        counts[day] += 1
        durations[day] += event.time_spent

    progress = []
    for offset in range(ACTIVITY_WINDOW_DAYS - 1, -1, -1):
        day = today - timedelta(days=offset)
        progress.append(DailyProgress(date=day, review_count=counts[day], time_spent=durations[day]))
    return progress


def generate_study_stats(
    events: Sequence[ReviewEvent],
    *,
    now: Optional[datetime] = None,
) -> StudyStats:
    """Compute totals, retention, streak and recent activity from review events.

    Events may arrive in any order. Calendar days are evaluated in UTC.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    now = ensure_utc(now)
    today = now.date()

    total_reviews = len(events)
    total_study_time = sum(event.time_spent for event in events)
    if total_reviews:
        average_rating = sum(event.rating for event in events) / total_reviews
        average_time_per_card = total_study_time / total_reviews
    else:
        average_rating = 0.0
        average_time_per_card = 0.0

    window_start = now - timedelta(days=ACTIVITY_WINDOW_DAYS)
    recent = [event for event in events if ensure_utc(event.review_date) >= window_start]

    return StudyStats(
        total_reviews=total_reviews,
        average_rating=average_rating,
        total_study_time=total_study_time,
        average_time_per_card=average_time_per_card,
        retention_rate=calculate_retention_rate(events),
        streak=calculate_streak(events, today),
        cards_per_day=len(recent) / ACTIVITY_WINDOW_DAYS,
        weekly_progress=build_weekly_progress(events, today),
    )
