from __future__ import annotations

import math
import random
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from src.srs import (
    CardStatus,
    ReviewEvent,
    SchedulerConfig,
    SpacedRepetitionState,
    calculate_next_review,
    derive_card_status,
    get_due_cards,
    is_card_mastered,
    is_due,
    replay_reviews,
    sanitize_rating,
)


NO_JITTER = SchedulerConfig(jitter_enabled=False)


def test_first_successful_review_starts_learning() -> None:
    now = datetime.now(timezone.utc)
    outcome = calculate_next_review(None, 5, config=NO_JITTER, now=now)

    assert outcome.repetitions == 1
    assert outcome.interval == 1
    assert outcome.ease_factor == pytest.approx(2.6)
    assert outcome.card_status is CardStatus.LEARNING
    assert outcome.next_review_date == now + timedelta(days=1)


def test_second_successful_review_graduates() -> None:
    prior = SpacedRepetitionState(interval=1, repetitions=1, ease_factor=2.6)
    outcome = calculate_next_review(prior, 4, config=NO_JITTER)

    assert outcome.repetitions == 2
    assert outcome.interval == 4
    assert outcome.card_status is CardStatus.REVIEW


def test_mature_review_multiplies_interval_by_ease() -> None:
    prior = SpacedRepetitionState(interval=10, repetitions=3, ease_factor=2.5)
    outcome = calculate_next_review(prior, 4, config=NO_JITTER)

    # 0.1 - 1 * (0.08 + 1 * 0.02) == 0, so the ease factor stays put.
    assert outcome.ease_factor == pytest.approx(2.5)
    assert outcome.repetitions == 4
    assert outcome.interval == 25
    assert outcome.card_status is CardStatus.REVIEW


def test_jitter_keeps_interval_within_ten_percent() -> None:
    prior = SpacedRepetitionState(interval=10, repetitions=3, ease_factor=2.5)
    rng = random.Random(1234)

    for _ in range(50):
        outcome = calculate_next_review(prior, 4, rng=rng)
        assert 22 <= outcome.interval <= 28


def test_seeded_jitter_is_reproducible() -> None:
    prior = SpacedRepetitionState(interval=40, repetitions=5, ease_factor=2.3)
    now = datetime(2024, 3, 1, tzinfo=timezone.utc)

    first = calculate_next_review(prior, 5, rng=random.Random(7), now=now)
    second = calculate_next_review(prior, 5, rng=random.Random(7), now=now)

    assert first == second


@pytest.mark.parametrize("rating", [0, 1, 2])
@pytest.mark.parametrize(
    "prior",
    [
        SpacedRepetitionState(),
        SpacedRepetitionState(interval=1, repetitions=1, ease_factor=2.6),
        SpacedRepetitionState(interval=120, repetitions=12, ease_factor=3.4),
    ],
)
def test_lapse_resets_progress(prior: SpacedRepetitionState, rating: int) -> None:
    outcome = calculate_next_review(prior, rating, rng=random.Random(0))

    assert outcome.repetitions == 0
    assert outcome.interval == 1
    assert outcome.card_status is CardStatus.LEARNING


def test_lapse_leaves_ease_factor_unchanged() -> None:
    prior = SpacedRepetitionState(interval=30, repetitions=6, ease_factor=2.1)
    outcome = calculate_next_review(prior, 1, config=NO_JITTER)

    assert outcome.ease_factor == pytest.approx(2.1)


@pytest.mark.parametrize("rating", [0, 3, 5])
def test_ease_factor_stays_in_bounds_under_repeated_ratings(rating: int) -> None:
    rng = random.Random(99)
    state = SpacedRepetitionState()
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    for step in range(60):
        reviewed_at = now + timedelta(days=step)
        outcome = calculate_next_review(state, rating, rng=rng, now=reviewed_at)
        assert 1.3 <= outcome.ease_factor <= 5.0
        assert outcome.interval >= 1
        state = outcome.to_state(reviewed_at)


def test_ease_factor_reaches_bounds() -> None:
    low = SpacedRepetitionState(interval=5, repetitions=3, ease_factor=1.35)
    high = SpacedRepetitionState(interval=5, repetitions=3, ease_factor=4.95)

    assert calculate_next_review(low, 3, config=NO_JITTER).ease_factor == pytest.approx(1.3)
    assert calculate_next_review(high, 5, config=NO_JITTER).ease_factor == pytest.approx(5.0)


def test_out_of_range_prior_ease_is_clamped() -> None:
    prior = SpacedRepetitionState(interval=5, repetitions=3, ease_factor=9.0)
    outcome = calculate_next_review(prior, 0, config=NO_JITTER)

    assert outcome.ease_factor == pytest.approx(5.0)


def test_interval_is_never_below_one() -> None:
    rng = random.Random(3)
    for rating in range(6):
        for prior in (
            SpacedRepetitionState(),
            SpacedRepetitionState(interval=0, repetitions=2, ease_factor=1.3),
            SpacedRepetitionState(interval=-4, repetitions=5, ease_factor=1.3),
        ):
            assert calculate_next_review(prior, rating, rng=rng).interval >= 1


def test_same_input_without_jitter_is_idempotent() -> None:
    prior = SpacedRepetitionState(interval=17, repetitions=4, ease_factor=2.2)
    now = datetime(2024, 6, 10, 8, 30, tzinfo=timezone.utc)

    results = {calculate_next_review(prior, 4, config=NO_JITTER, now=now) for _ in range(5)}

    assert len(results) == 1


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(7, 5), (-3, 0), (3.9, 3), (4.0, 4), (math.nan, 0), (math.inf, 5)],
)
def test_sanitize_rating(raw: float, expected: int) -> None:
    assert sanitize_rating(raw) == expected


def test_out_of_range_rating_is_clamped_not_rejected() -> None:
    outcome = calculate_next_review(None, 11, config=NO_JITTER)

    assert outcome.rating == 5
    assert outcome.repetitions == 1


def test_replay_of_consistent_recall_reaches_mastery() -> None:
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    events = [ReviewEvent(rating=5, time_spent=10, review_date=start + timedelta(days=day)) for day in range(8)]

    state = replay_reviews(reversed(events), config=NO_JITTER)

    assert state.repetitions == 8
    assert state.interval >= 30
    assert derive_card_status(state.repetitions, state.interval, state.ease_factor, NO_JITTER) is CardStatus.MASTERED
    assert state.last_review_date == events[-1].review_date


def test_seven_reviews_are_not_enough_for_mastery() -> None:
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    events = [ReviewEvent(rating=5, time_spent=10, review_date=start + timedelta(days=day)) for day in range(7)]

    state = replay_reviews(events, config=NO_JITTER)

    assert state.interval >= 30
    assert derive_card_status(state.repetitions, state.interval, state.ease_factor, NO_JITTER) is CardStatus.REVIEW


def test_mastered_outcome_from_mature_state() -> None:
    prior = SpacedRepetitionState(interval=20, repetitions=7, ease_factor=2.5)
    outcome = calculate_next_review(prior, 5, config=NO_JITTER)

    assert outcome.repetitions == 8
    assert outcome.interval == 52
    assert outcome.card_status is CardStatus.MASTERED


class _LowestDraw(random.Random):
    def uniform(self, a: float, b: float) -> float:
        return a


def test_mastery_is_judged_on_the_jittered_interval() -> None:
    prior = SpacedRepetitionState(interval=12, repetitions=7, ease_factor=2.5)

    steady = calculate_next_review(prior, 4, config=NO_JITTER)
    jittered = calculate_next_review(prior, 4, config=SchedulerConfig(), rng=_LowestDraw())

    assert (steady.interval, steady.card_status) == (30, CardStatus.MASTERED)
    assert (jittered.interval, jittered.card_status) == (27, CardStatus.REVIEW)


@pytest.mark.parametrize(
    ("repetitions", "interval", "expected"),
    [
        (0, 0, CardStatus.NEW),
        (0, 1, CardStatus.LEARNING),
        (1, 1, CardStatus.LEARNING),
        (2, 4, CardStatus.REVIEW),
        (8, 29, CardStatus.REVIEW),
        (8, 30, CardStatus.MASTERED),
    ],
)
def test_derive_card_status(repetitions: int, interval: int, expected: CardStatus) -> None:
    assert derive_card_status(repetitions, interval, 2.5) is expected


def test_due_cards_include_unscheduled_and_overdue() -> None:
    now = datetime(2024, 2, 1, 12, tzinfo=timezone.utc)
    fresh = SimpleNamespace(name="fresh", next_review_date=None)
    overdue = SimpleNamespace(name="overdue", next_review_date=now - timedelta(hours=1))
    exact = SimpleNamespace(name="exact", next_review_date=now)
    later = SimpleNamespace(name="later", next_review_date=now + timedelta(days=2))

    due = get_due_cards([fresh, overdue, exact, later], now)

    assert [card.name for card in due] == ["fresh", "overdue", "exact"]


def test_is_due_treats_naive_dates_as_utc() -> None:
    now = datetime(2024, 2, 1, 12, tzinfo=timezone.utc)

    assert is_due(datetime(2024, 2, 1, 11), now)
    assert not is_due(datetime(2024, 2, 1, 13), now)


def test_is_card_mastered_requires_retention_and_ease() -> None:
    assert is_card_mastered(8, 30, 2.5, 95)
    assert not is_card_mastered(8, 30, 2.1, 95)
    assert not is_card_mastered(8, 30, 2.5, 85)
    assert not is_card_mastered(7, 60, 2.5, 95)
