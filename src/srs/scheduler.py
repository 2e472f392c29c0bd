"""Spaced-repetition scheduling for flashcard reviews (modified SM-2)."""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Iterable, List, Optional, Protocol, Sequence, TypeVar


LOGGER = logging.getLogger(__name__)

PASSING_RATING = 3
MAX_RATING = 5

T = TypeVar("T")


class CardStatus(str, Enum):
    """Lifecycle stage of a card for one learner."""

    NEW = "new"
    LEARNING = "learning"
    REVIEW = "review"
    MASTERED = "mastered"


@dataclass(frozen=True, slots=True)
class SchedulerConfig:
    """Tunable constants for the scheduler."""

    default_ease_factor: float = 2.5
    min_ease_factor: float = 1.3
    max_ease_factor: float = 5.0
    graduation_interval: int = 4
    mastery_repetitions: int = 8
    mastery_interval_days: int = 30
    max_interval_days: int = 36500
    jitter_enabled: bool = True
    jitter_min: float = 0.9
    jitter_max: float = 1.1


DEFAULT_CONFIG = SchedulerConfig()


@dataclass(frozen=True, slots=True)
class SpacedRepetitionState:
    """Scheduling state of a card for one learner, as of the latest review."""

    interval: Optional[int] = None
    repetitions: Optional[int] = None
    ease_factor: Optional[float] = None
    next_review_date: Optional[datetime] = None
    last_review_date: Optional[datetime] = None


@dataclass(frozen=True, slots=True)
class ReviewOutcome:
    """Calculated review data for a card after receiving a rating."""

    rating: int
    interval: int
    repetitions: int
    ease_factor: float
    next_review_date: datetime
    card_status: CardStatus

    def to_state(self, reviewed_at: datetime) -> SpacedRepetitionState:
        return SpacedRepetitionState(
            interval=self.interval,
            repetitions=self.repetitions,
            ease_factor=self.ease_factor,
            next_review_date=self.next_review_date,
            last_review_date=reviewed_at,
        )


class RatedEvent(Protocol):
    rating: float
    review_date: datetime


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def sanitize_rating(rating: float) -> int:
    """Clamp a raw rating into 0..5 and drop any fractional part."""
    if rating is None or math.isnan(rating):
        return 0
    return int(math.floor(max(0, min(MAX_RATING, rating))))


def clamp_ease_factor(ease_factor: float, config: SchedulerConfig = DEFAULT_CONFIG) -> float:
    return max(config.min_ease_factor, min(config.max_ease_factor, ease_factor))


def derive_card_status(
    repetitions: int,
    interval: int,
    ease_factor: float,
    config: SchedulerConfig = DEFAULT_CONFIG,
) -> CardStatus:
    """Return the lifecycle status implied by a scheduling triple.

    The ease factor is accepted so callers always pass the full triple, but the
    current rules only depend on repetitions and interval.
    """
    if repetitions <= 0 and interval <= 0:
        return CardStatus.NEW
    if repetitions <= 1:
        return CardStatus.LEARNING
    if repetitions >= config.mastery_repetitions and interval >= config.mastery_interval_days:
        return CardStatus.MASTERED
    return CardStatus.REVIEW


def calculate_next_review(
    prior_state: Optional[SpacedRepetitionState],
    rating: float,
    *,
    config: SchedulerConfig = DEFAULT_CONFIG,
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
) -> ReviewOutcome:
    """Return the next review schedule for a card using a modified SM-2 algorithm.

    Rating scale:
        0 - complete blackout
        1 - incorrect, the answer felt familiar
        2 - incorrect, the answer felt easy once shown
        3 - correct with serious difficulty
        4 - correct after hesitation
        5 - perfect recall

    Out-of-range ratings are clamped rather than rejected, so scheduling a
    submitted review always succeeds.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    if prior_state is None:
        prior_state = SpacedRepetitionState()

    quality = sanitize_rating(rating)
    prior_interval = max(0, prior_state.interval or 0)
    repetitions = max(0, prior_state.repetitions or 0)
    ease_factor = clamp_ease_factor(prior_state.ease_factor or config.default_ease_factor, config)

    if quality >= PASSING_RATING:
        penalty = MAX_RATING - quality
        ease_factor = clamp_ease_factor(ease_factor + (0.1 - penalty * (0.08 + penalty * 0.02)), config)

    if quality < PASSING_RATING:
        repetitions = 0
        interval = 1
    else:
        repetitions += 1
        if repetitions == 1:
            interval = 1
        elif repetitions == 2:
            interval = config.graduation_interval
        else:
            interval = round_half_up(prior_interval * ease_factor)

    if config.jitter_enabled:
        if rng is None:
            rng = random.Random()
        interval = round_half_up(interval * rng.uniform(config.jitter_min, config.jitter_max))
    interval = max(1, min(config.max_interval_days, interval))

    # Status follows the stored interval, so jitter can move a card across the mastery line.
    card_status = derive_card_status(repetitions, interval, ease_factor, config)
    LOGGER.debug(
        "Scheduled review: rating=%s repetitions=%s interval=%s ease=%.2f status=%s",
        quality,
        repetitions,
        interval,
        ease_factor,
        card_status.value,
    )

    return ReviewOutcome(
        rating=quality,
        interval=interval,
        repetitions=repetitions,
        ease_factor=ease_factor,
        next_review_date=now + timedelta(days=interval),
        card_status=card_status,
    )


def replay_reviews(
    events: Iterable[RatedEvent],
    *,
    config: SchedulerConfig = DEFAULT_CONFIG,
    rng: Optional[random.Random] = None,
) -> SpacedRepetitionState:
    """Rebuild a card's state by folding the calculator over its review history."""
    state = SpacedRepetitionState()
    for event in sorted(events, key=lambda item: ensure_utc(item.review_date)):
        reviewed_at = ensure_utc(event.review_date)
        outcome = calculate_next_review(state, event.rating, config=config, rng=rng, now=reviewed_at)
        state = outcome.to_state(reviewed_at)
    return state


def is_due(next_review_date: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """Cards that were never scheduled are always due."""
    if next_review_date is None:
        return True
    if now is None:
        now = datetime.now(timezone.utc)
    return ensure_utc(next_review_date) <= ensure_utc(now)


def get_due_cards(
    cards: Sequence[T],
    now: Optional[datetime] = None,
    *,
    key: Callable[[T], Optional[datetime]] = lambda card: card.next_review_date,
) -> List[T]:
    """Filter cards down to the ones whose review is due."""
    if now is None:
        now = datetime.now(timezone.utc)
    return [card for card in cards if is_due(key(card), now)]


def is_card_mastered(
    repetitions: int,
    interval: int,
    ease_factor: float,
    retention_rate: float,
    config: SchedulerConfig = DEFAULT_CONFIG,
) -> bool:
    """Stricter mastery check that also requires a healthy ease and retention."""
    return (
        repetitions >= config.mastery_repetitions
        and interval >= config.mastery_interval_days
        and ease_factor >= 2.2
        and retention_rate >= 90
    )
