from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from src.srs import ReviewEvent, calculate_retention_rate, generate_study_stats


NOW = datetime(2024, 5, 15, 12, 0, tzinfo=timezone.utc)


def _event(days_ago: float, rating: int = 4, time_spent: float = 30.0, card: int = 1) -> ReviewEvent:
    return ReviewEvent(
        rating=rating,
        time_spent=time_spent,
        review_date=NOW - timedelta(days=days_ago),
        flashcard_id=card,
    )


def test_empty_history_returns_zeroed_stats() -> None:
    stats = generate_study_stats([], now=NOW)

    assert stats.total_reviews == 0
    assert stats.average_rating == 0
    assert stats.total_study_time == 0
    assert stats.average_time_per_card == 0
    assert stats.retention_rate == 0
    assert stats.streak == 0
    assert stats.cards_per_day == 0
    assert [entry.review_count for entry in stats.weekly_progress] == [0] * 7


def test_totals_and_averages() -> None:
    events = [_event(0, rating=5, time_spent=20), _event(1, rating=2, time_spent=40), _event(3, rating=4, time_spent=60)]

    stats = generate_study_stats(events, now=NOW)

    assert stats.total_reviews == 3
    assert stats.average_rating == pytest.approx(11 / 3)
    assert stats.total_study_time == 120
    assert stats.average_time_per_card == 40
    assert stats.retention_rate == 67


def test_retention_rate_counts_ratings_of_three_and_up() -> None:
    events = [_event(0, rating=rating) for rating in (5, 4, 2, 1)]

    assert calculate_retention_rate(events) == 50
    assert calculate_retention_rate([]) == 0


def test_streak_counts_consecutive_days() -> None:
    stats = generate_study_stats([_event(0), _event(1)], now=NOW)

    assert stats.streak == 2


def test_streak_stops_at_first_gap() -> None:
    stats = generate_study_stats([_event(0), _event(2), _event(3)], now=NOW)

    assert stats.streak == 1


def test_streak_counts_each_day_once() -> None:
    events = [_event(0, card=1), _event(0.1, card=2), _event(0.2, card=3), _event(1, card=1)]

    stats = generate_study_stats(events, now=NOW)

    assert stats.streak == 2


def test_streak_is_zero_without_a_review_today() -> None:
    stats = generate_study_stats([_event(1), _event(2)], now=NOW)

    assert stats.streak == 0


def test_unordered_events_give_the_same_streak() -> None:
    events = [_event(2), _event(0), _event(4), _event(1), _event(3)]

    assert generate_study_stats(events, now=NOW).streak == 5
    assert generate_study_stats(list(reversed(events)), now=NOW).streak == 5


def test_cards_per_day_divides_by_full_week() -> None:
    recent = [_event(0)] * 10 + [_event(5)] * 4
    old = [_event(20)] * 30

    stats = generate_study_stats(recent + old, now=NOW)

    assert stats.cards_per_day == pytest.approx(2.0)


def test_weekly_progress_is_oldest_first_and_aggregated_per_day() -> None:
    events = [
        _event(0, time_spent=10),
        _event(0, time_spent=15),
        _event(2, time_spent=40),
        _event(6, time_spent=5),
        _event(9, time_spent=100),
    ]

    progress = generate_study_stats(events, now=NOW).weekly_progress

    assert [entry.date for entry in progress] == [date(2024, 5, 9) + timedelta(days=i) for i in range(7)]
    assert [entry.review_count for entry in progress] == [1, 0, 0, 0, 1, 0, 2]
    assert [entry.time_spent for entry in progress] == [5, 0, 0, 0, 40, 0, 25]


def test_naive_review_dates_are_treated_as_utc() -> None:
    naive_today = ReviewEvent(rating=4, time_spent=10, review_date=datetime(2024, 5, 15, 8, 0))
    naive_yesterday = ReviewEvent(rating=4, time_spent=10, review_date=datetime(2024, 5, 14, 23, 59))

    stats = generate_study_stats([naive_today, naive_yesterday], now=NOW)

    assert stats.streak == 2
    assert stats.weekly_progress[-1].review_count == 1


def test_calendar_days_use_utc_for_offset_timestamps() -> None:
    # 2024-05-15 01:00 at UTC+05:00 is still 2024-05-14 in UTC.
    offset = timezone(timedelta(hours=5))
    event = ReviewEvent(rating=5, time_spent=10, review_date=datetime(2024, 5, 15, 1, 0, tzinfo=offset))

    stats = generate_study_stats([event], now=NOW)

    assert stats.streak == 0
    assert stats.weekly_progress[-2].review_count == 1
