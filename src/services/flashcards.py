"""Flashcard study flows: reviewing, due cards, study sessions and progress."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.db import Flashcard, FlashcardReview, User
from src.db.flashcards import (
    ReviewRecord,
    get_accessible_flashcard,
    get_latest_review,
    get_latest_reviews_by_card,
    list_accessible_flashcards,
    list_user_reviews,
    record_flashcard_review,
    set_flashcard_difficulty,
)
from src.db.users import increment_user_statistics
from src.srs import (
    DEFAULT_CONFIG,
    CardStatus,
    Difficulty,
    ProficiencyTier,
    ReviewEvent,
    SchedulerConfig,
    SpacedRepetitionState,
    StudyLoadPlan,
    StudySchedule,
    StudyStats,
    adjust_difficulty,
    calculate_next_review,
    calculate_optimal_study_load,
    derive_card_status,
    generate_study_stats,
    get_study_schedule,
    is_due,
)
from src.srs.scheduler import ensure_utc


LOGGER = logging.getLogger(__name__)

DEFAULT_SESSION_MAX_CARDS = 20
DEFAULT_SESSION_MINUTES = 30


class FlashcardServiceError(RuntimeError):
    """Base error for flashcard study flows."""


class FlashcardNotFoundError(FlashcardServiceError, LookupError):
    def __init__(self, flashcard_id: int) -> None:
        super().__init__(f"Flashcard {flashcard_id} not found.")
        self.flashcard_id = flashcard_id


class UserNotFoundError(FlashcardServiceError, LookupError):
    def __init__(self, user_id: int) -> None:
        super().__init__(f"User {user_id} not found.")
        self.user_id = user_id


@dataclass(slots=True)
class ReviewResult:
    """Outcome of a submitted review, as returned to the client."""

    review_id: int
    flashcard_id: int
    rating: int
    interval: int
    repetitions: int
    ease_factor: float
    next_review_date: datetime
    card_status: CardStatus


@dataclass(slots=True)
class StudyCard:
    """A flashcard together with the learner's current scheduling state."""

    flashcard_id: int
    front: str
    back: str
    explanation: Optional[str]
    category: Optional[str]
    difficulty: str
    deck_id: Optional[int]
    tags: List[str]
    card_status: CardStatus
    next_review_date: Optional[datetime]
    interval: int = 0
    repetitions: int = 0
    ease_factor: Optional[float] = None

    @property
    def is_new(self) -> bool:
        return self.card_status is CardStatus.NEW


@dataclass(slots=True)
class StudySession:
    cards: List[StudyCard]
    study_load: StudyLoadPlan
    max_cards: int
    time_limit_minutes: float
    include_new: bool
    difficulties: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)


@dataclass(slots=True)
class FlashcardProgress:
    """Deck-wide overview of a learner's flashcard study."""

    total_cards: int
    mastered_cards: int
    learning_cards: int
    review_cards: int
    new_cards: int
    due_cards: int
    streak_days: int
    last_studied: Optional[datetime]
    total_study_time: float
    average_rating: float
    retention_rate: int
    stats: StudyStats


def _to_event(review: FlashcardReview) -> ReviewEvent:
    return ReviewEvent(
        rating=review.rating,
        time_spent=review.time_spent,
        review_date=ensure_utc(review.review_date),
        flashcard_id=review.flashcard_id,
        was_correct=review.was_correct,
    )


def _to_state(review: Optional[FlashcardReview]) -> SpacedRepetitionState:
    if review is None:
        return SpacedRepetitionState()
    return SpacedRepetitionState(
        interval=review.interval,
        repetitions=review.repetitions,
        ease_factor=review.ease_factor,
        next_review_date=ensure_utc(review.next_review_date),
        last_review_date=ensure_utc(review.review_date),
    )


class FlashcardService:
    """Loads review state, runs the scheduler and persists what it returns."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        scheduler_config: SchedulerConfig = DEFAULT_CONFIG,
        rng: Optional[random.Random] = None,
        session_max_cards: int = DEFAULT_SESSION_MAX_CARDS,
        session_minutes: float = DEFAULT_SESSION_MINUTES,
    ) -> None:
        self._session_factory = session_factory
        self._config = scheduler_config
        self._rng = rng or random.Random()
        self._session_max_cards = session_max_cards
        self._session_minutes = session_minutes

    def _status_for(self, review: Optional[FlashcardReview]) -> CardStatus:
        if review is None:
            return CardStatus.NEW
        return derive_card_status(review.repetitions, review.interval, review.ease_factor, self._config)

    def _build_study_card(self, flashcard: Flashcard, review: Optional[FlashcardReview]) -> StudyCard:
        state = _to_state(review)
        return StudyCard(
            flashcard_id=flashcard.id,
            front=flashcard.front,
            back=flashcard.back,
            explanation=flashcard.explanation,
            category=flashcard.category,
            difficulty=flashcard.difficulty,
            deck_id=flashcard.deck_id,
            tags=flashcard.tag_list,
            card_status=self._status_for(review),
            next_review_date=state.next_review_date,
            interval=state.interval or 0,
            repetitions=state.repetitions or 0,
            ease_factor=state.ease_factor,
        )

    async def _load_study_cards(
        self,
        session: AsyncSession,
        user_id: int,
        deck_id: Optional[int],
    ) -> List[StudyCard]:
        flashcards = await list_accessible_flashcards(session, user_id, deck_id)
        latest = await get_latest_reviews_by_card(session, user_id, (card.id for card in flashcards))
        return [self._build_study_card(card, latest.get(card.id)) for card in flashcards]

    async def review_flashcard(
        self,
        user_id: int,
        flashcard_id: int,
        rating: float,
        time_spent: float = 0.0,
        was_correct: Optional[bool] = None,
        user_answer: Optional[str] = None,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ReviewResult:
        """Schedule the next review of a card and append the review to the log."""
        if now is None:
            now = datetime.now(timezone.utc)

        async with self._session_factory() as session:
            async with session.begin():
                flashcard = await get_accessible_flashcard(session, user_id, flashcard_id)
                if flashcard is None:
                    raise FlashcardNotFoundError(flashcard_id)

                latest = await get_latest_review(session, user_id, flashcard_id)
                previous_status = self._status_for(latest)

                outcome = calculate_next_review(
                    _to_state(latest),
                    rating,
                    config=self._config,
                    rng=self._rng,
                    now=now,
                )

                review = await record_flashcard_review(
                    session,
                    user_id,
                    flashcard,
                    ReviewRecord(
                        rating=outcome.rating,
                        time_spent=max(0.0, time_spent),
                        interval=outcome.interval,
                        repetitions=outcome.repetitions,
                        ease_factor=outcome.ease_factor,
                        next_review_date=outcome.next_review_date,
                        was_correct=was_correct,
                        user_answer=user_answer,
                        notes=notes,
                    ),
                    now=now,
                )
                newly_mastered = (
                    outcome.card_status is CardStatus.MASTERED
                    and previous_status is not CardStatus.MASTERED
                )
                await increment_user_statistics(
                    session,
                    user_id,
                    reviewed=1,
                    mastered=1 if newly_mastered else 0,
                )

        LOGGER.info(
            "User %s reviewed flashcard %s with rating %s; next review in %s days (%s).",
            user_id,
            flashcard_id,
            outcome.rating,
            outcome.interval,
            outcome.card_status.value,
        )

        return ReviewResult(
            review_id=review.id,
            flashcard_id=flashcard_id,
            rating=outcome.rating,
            interval=outcome.interval,
            repetitions=outcome.repetitions,
            ease_factor=outcome.ease_factor,
            next_review_date=outcome.next_review_date,
            card_status=outcome.card_status,
        )

    async def get_due_flashcards(
        self,
        user_id: int,
        deck_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> List[StudyCard]:
        """Return cards whose review is due, including cards never reviewed."""
        if now is None:
            now = datetime.now(timezone.utc)

        async with self._session_factory() as session:
            cards = await self._load_study_cards(session, user_id, deck_id)
        return [card for card in cards if is_due(card.next_review_date, now)]

    async def start_study_session(
        self,
        user_id: int,
        deck_id: Optional[int] = None,
        max_cards: Optional[int] = None,
        time_limit_minutes: Optional[float] = None,
        include_new: bool = True,
        difficulties: Optional[Sequence[str]] = None,
        tags: Optional[Sequence[str]] = None,
        now: Optional[datetime] = None,
    ) -> StudySession:
        """Assemble due cards (then new ones) into a session sized to the time budget."""
        if now is None:
            now = datetime.now(timezone.utc)
        max_cards = self._session_max_cards if max_cards is None else max(0, max_cards)
        time_limit = self._session_minutes if time_limit_minutes is None else time_limit_minutes

        async with self._session_factory() as session:
            user = await session.get(User, user_id)
            if user is None:
                raise UserNotFoundError(user_id)
            proficiency = ProficiencyTier(user.proficiency)
            cards = await self._load_study_cards(session, user_id, deck_id)

        due = [card for card in cards if not card.is_new and is_due(card.next_review_date, now)]
        fresh = [card for card in cards if card.is_new]
        candidates = due + fresh if include_new else due

        wanted_difficulties = {Difficulty(value.strip().upper()).value for value in difficulties or ()}
        if wanted_difficulties:
            candidates = [card for card in candidates if card.difficulty in wanted_difficulties]
        if tags:
            wanted_tags = {tag.strip().lower() for tag in tags if tag.strip()}
            candidates = [
                card for card in candidates if wanted_tags.intersection(tag.lower() for tag in card.tags)
            ]

        session_cards = candidates[:max_cards]
        study_load = calculate_optimal_study_load(len(session_cards), time_limit, proficiency)
        LOGGER.debug(
            "Study session for user %s: %s due, %s new, %s selected.",
            user_id,
            len(due),
            len(fresh),
            len(session_cards),
        )

        return StudySession(
            cards=session_cards,
            study_load=study_load,
            max_cards=max_cards,
            time_limit_minutes=time_limit,
            include_new=include_new,
            difficulties=sorted(wanted_difficulties),
            tags=list(tags or []),
        )

    async def get_flashcard_progress(
        self,
        user_id: int,
        now: Optional[datetime] = None,
    ) -> FlashcardProgress:
        """Summarise card states and review statistics for a learner."""
        if now is None:
            now = datetime.now(timezone.utc)

        async with self._session_factory() as session:
            flashcards = await list_accessible_flashcards(session, user_id)
            latest = await get_latest_reviews_by_card(session, user_id, (card.id for card in flashcards))
            reviews = await list_user_reviews(session, user_id)

        # Public cards count once the learner has reviewed them.
        cards = [
            self._build_study_card(card, latest.get(card.id))
            for card in flashcards
            if card.created_by == user_id or card.id in latest
        ]

        stats = generate_study_stats([_to_event(review) for review in reviews], now=now)
        counts = {status: 0 for status in CardStatus}
        for card in cards:
            counts[card.card_status] += 1

        return FlashcardProgress(
            total_cards=len(cards),
            mastered_cards=counts[CardStatus.MASTERED],
            learning_cards=counts[CardStatus.LEARNING],
            review_cards=counts[CardStatus.REVIEW],
            new_cards=counts[CardStatus.NEW],
            due_cards=sum(1 for card in cards if is_due(card.next_review_date, now)),
            streak_days=stats.streak,
            last_studied=ensure_utc(reviews[0].review_date) if reviews else None,
            total_study_time=stats.total_study_time,
            average_rating=stats.average_rating,
            retention_rate=stats.retention_rate,
            stats=stats,
        )

    async def suggest_difficulty(
        self,
        user_id: int,
        flashcard_id: int,
        window: int = 10,
        apply: bool = False,
    ) -> Difficulty:
        """Propose a difficulty tier from the learner's latest ratings of a card.

        The suggestion is only written back when ``apply`` is set and the
        learner authored the card.
        """
        async with self._session_factory() as session:
            async with session.begin():
                flashcard = await get_accessible_flashcard(session, user_id, flashcard_id)
                if flashcard is None:
                    raise FlashcardNotFoundError(flashcard_id)

                reviews = await list_user_reviews(session, user_id, flashcard_id, limit=window)
                average = sum(review.rating for review in reviews) / len(reviews) if reviews else 0.0
                suggestion = adjust_difficulty(flashcard.difficulty, average, len(reviews))

                if apply and flashcard.created_by != user_id:
                    LOGGER.debug(
                        "Not applying difficulty %s to flashcard %s: user %s is not its author.",
                        suggestion.value,
                        flashcard_id,
                        user_id,
                    )
                elif apply and suggestion.value != flashcard.difficulty:
                    LOGGER.info(
                        "Changing difficulty of flashcard %s from %s to %s.",
                        flashcard_id,
                        flashcard.difficulty,
                        suggestion.value,
                    )
                    await set_flashcard_difficulty(session, flashcard, suggestion.value)

        return suggestion

    async def get_study_schedule(
        self,
        user_id: int,
        daily_target: int = DEFAULT_SESSION_MAX_CARDS,
        now: Optional[datetime] = None,
    ) -> StudySchedule:
        if now is None:
            now = datetime.now(timezone.utc)

        async with self._session_factory() as session:
            cards = await self._load_study_cards(session, user_id, None)

        due = sum(1 for card in cards if not card.is_new and is_due(card.next_review_date, now))
        fresh = sum(1 for card in cards if card.is_new)
        return get_study_schedule(due, fresh, daily_target)
