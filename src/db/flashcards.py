"""Helpers for working with flashcard persistence."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from . import Flashcard, FlashcardDeck, FlashcardReview


@dataclass(slots=True)
class FlashcardPayload:
    """Definition of a flashcard to be persisted."""

    front: str
    back: str
    explanation: Optional[str] = None
    category: Optional[str] = None
    difficulty: str = "MEDIUM"
    tags: Optional[str] = None
    deck_id: Optional[int] = None
    is_public: bool = False

    def normalized(self) -> "FlashcardPayload":
        """Return a payload with leading/trailing whitespace stripped."""
        return FlashcardPayload(
            front=self.front.strip(),
            back=self.back.strip(),
            explanation=self.explanation.strip() if isinstance(self.explanation, str) else self.explanation,
            category=self.category.strip() if isinstance(self.category, str) else self.category,
            difficulty=self.difficulty.strip().upper(),
            tags=self.tags.strip() if isinstance(self.tags, str) else self.tags,
            deck_id=self.deck_id,
            is_public=self.is_public,
        )


@dataclass(slots=True)
class ReviewRecord:
    """Values written to the review log for one submitted review."""

    rating: int
    time_spent: float
    interval: int
    repetitions: int
    ease_factor: float
    next_review_date: datetime
    was_correct: Optional[bool] = None
    user_answer: Optional[str] = None
    notes: Optional[str] = None


def _accessible_to(user_id: int):
    return or_(Flashcard.created_by == user_id, Flashcard.is_public.is_(True))


async def create_deck(
    session: AsyncSession,
    user_id: int,
    title: str,
    description: Optional[str] = None,
    category: Optional[str] = None,
    is_public: bool = False,
) -> FlashcardDeck:
    deck = FlashcardDeck(
        created_by=user_id,
        title=title.strip(),
        description=description,
        category=category,
        is_public=is_public,
        is_active=True,
    )
    session.add(deck)
    await session.flush()
    return deck


async def create_flashcard(
    session: AsyncSession,
    user_id: int,
    payload: FlashcardPayload,
) -> Flashcard:
    """Persist a new flashcard owned by ``user_id``."""
    normalized = payload.normalized()
    flashcard = Flashcard(
        created_by=user_id,
        deck_id=normalized.deck_id,
        front=normalized.front,
        back=normalized.back,
        explanation=normalized.explanation,
        category=normalized.category,
        difficulty=normalized.difficulty,
        tags=normalized.tags,
        is_public=normalized.is_public,
        is_active=True,
    )
    session.add(flashcard)
    await session.flush()
    return flashcard


async def get_accessible_flashcard(
    session: AsyncSession,
    user_id: int,
    flashcard_id: int,
) -> Optional[Flashcard]:
    """Return an active flashcard the user owns or that is public."""
    stmt = select(Flashcard).where(
        Flashcard.id == flashcard_id,
        Flashcard.is_active.is_(True),
        _accessible_to(user_id),
    )
    result = await session.execute(stmt)
    return result.scalars().first()


async def list_accessible_flashcards(
    session: AsyncSession,
    user_id: int,
    deck_id: Optional[int] = None,
) -> list[Flashcard]:
    """Return the user's own and public active flashcards, optionally for one deck."""
    stmt = (
        select(Flashcard)
        .where(Flashcard.is_active.is_(True), _accessible_to(user_id))
        .order_by(Flashcard.created_at, Flashcard.id)
    )
    if deck_id is not None:
        stmt = stmt.where(Flashcard.deck_id == deck_id)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_latest_review(
    session: AsyncSession,
    user_id: int,
    flashcard_id: int,
) -> Optional[FlashcardReview]:
    stmt = (
        select(FlashcardReview)
        .where(FlashcardReview.user_id == user_id, FlashcardReview.flashcard_id == flashcard_id)
        .order_by(FlashcardReview.review_date.desc(), FlashcardReview.id.desc())
        .limit(1)
    )
    result = await session.execute(stmt)
    return result.scalars().first()


async def get_latest_reviews_by_card(
    session: AsyncSession,
    user_id: int,
    flashcard_ids: Iterable[int],
) -> dict[int, FlashcardReview]:
    """Map each flashcard id to the user's most recent review of it."""
    ids = list(flashcard_ids)
    if not ids:
        return {}

    stmt = (
        select(FlashcardReview)
        .where(FlashcardReview.user_id == user_id, FlashcardReview.flashcard_id.in_(ids))
        .order_by(FlashcardReview.review_date.desc(), FlashcardReview.id.desc())
    )
    result = await session.execute(stmt)

    latest: dict[int, FlashcardReview] = {}
    for review in result.scalars():
        latest.setdefault(review.flashcard_id, review)
    return latest


async def list_user_reviews(
    session: AsyncSession,
    user_id: int,
    flashcard_id: Optional[int] = None,
    limit: Optional[int] = None,
) -> list[FlashcardReview]:
    """Return a user's reviews, newest first."""
    stmt = (
        select(FlashcardReview)
        .where(FlashcardReview.user_id == user_id)
        .order_by(FlashcardReview.review_date.desc(), FlashcardReview.id.desc())
    )
    if flashcard_id is not None:
        stmt = stmt.where(FlashcardReview.flashcard_id == flashcard_id)
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def record_flashcard_review(
    session: AsyncSession,
    user_id: int,
    flashcard: Flashcard,
    record: ReviewRecord,
    now: Optional[datetime] = None,
) -> FlashcardReview:
    """Append a review to the log and stamp the card as reviewed."""
    if now is None:
        now = datetime.now(timezone.utc)

    review = FlashcardReview(
        user_id=user_id,
        flashcard_id=flashcard.id,
        rating=record.rating,
        time_spent=record.time_spent,
        was_correct=record.was_correct,
        user_answer=record.user_answer,
        notes=record.notes,
        interval=record.interval,
        repetitions=record.repetitions,
        ease_factor=record.ease_factor,
        next_review_date=record.next_review_date,
        review_date=now,
    )
    session.add(review)
    flashcard.last_reviewed = now
    await session.flush()
    return review


async def set_flashcard_difficulty(
    session: AsyncSession,
    flashcard: Flashcard,
    difficulty: str,
) -> None:
    if flashcard.difficulty == difficulty:
        return
    flashcard.difficulty = difficulty
    await session.flush()


async def deactivate_flashcard(
    session: AsyncSession,
    user_id: int,
    flashcard_id: int,
) -> bool:
    """Soft-delete a flashcard owned by the user. Returns False when none matched."""
    stmt = select(Flashcard).where(Flashcard.id == flashcard_id, Flashcard.created_by == user_id)
    result = await session.execute(stmt)
    flashcard = result.scalars().first()
    if flashcard is None:
        return False
    flashcard.is_active = False
    await session.flush()
    return True


async def deactivate_deck(
    session: AsyncSession,
    user_id: int,
    deck_id: int,
) -> bool:
    """Soft-delete a deck together with every flashcard in it."""
    stmt = select(FlashcardDeck).where(FlashcardDeck.id == deck_id, FlashcardDeck.created_by == user_id)
    result = await session.execute(stmt)
    deck = result.scalars().first()
    if deck is None:
        return False

    await session.execute(
        update(Flashcard)
        .where(Flashcard.deck_id == deck_id)
        .values(is_active=False)
        .execution_options(synchronize_session=False)
    )
    deck.is_active = False
    await session.flush()
    return True

