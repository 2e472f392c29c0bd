from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.srs import ProficiencyTier

from . import User


@dataclass(slots=True)
class UserStatistics:
    """Lifetime review counters for a learner."""

    user_id: int
    email: str
    first_name: Optional[str]
    last_name: Optional[str]
    proficiency: str
    created_at: datetime
    flashcards_reviewed: int
    flashcards_mastered: int


async def upsert_user(
    session: AsyncSession,
    email: str,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    proficiency: Optional[str] = None,
) -> User:
    """Create a user by email or refresh their profile fields.

    Raises ``ValueError`` for an unknown proficiency tier.
    """
    normalized_email = email.strip().lower()
    if proficiency is not None:
        proficiency = ProficiencyTier(proficiency.strip().lower()).value
    result = await session.execute(select(User).where(User.email == normalized_email))
    user = result.scalars().first()

    if user is None:
        now = datetime.now(timezone.utc)
        user = User(
            email=normalized_email,
            first_name=first_name,
            last_name=last_name,
            proficiency=proficiency or ProficiencyTier.INTERMEDIATE.value,
            flashcards_reviewed=0,
            flashcards_mastered=0,
            created_at=now,
            updated_at=now,
        )
        session.add(user)
        await session.flush()
        return user

    has_changes = False

    if user.first_name != first_name:
        user.first_name = first_name
        has_changes = True

    if user.last_name != last_name:
        user.last_name = last_name
        has_changes = True

    if proficiency is not None and user.proficiency != proficiency:
        user.proficiency = proficiency
        has_changes = True

    if has_changes:
        user.updated_at = datetime.now(timezone.utc)
        await session.flush()

    return user


async def increment_user_statistics(
    session: AsyncSession,
    user_id: int,
    *,
    reviewed: int = 0,
    mastered: int = 0,
) -> None:
    """Increment one or more user statistics counters."""
    values = {}
    if reviewed:
        values["flashcards_reviewed"] = User.flashcards_reviewed + reviewed
    if mastered:
        values["flashcards_mastered"] = User.flashcards_mastered + mastered

    if not values:
        return

    values["updated_at"] = datetime.now(timezone.utc)

    stmt = (
        update(User)
        .where(User.id == user_id)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    await session.execute(stmt)


async def get_user_statistics(session: AsyncSession, user_id: int) -> Optional[UserStatistics]:
    """Return consolidated statistics for a user, if present."""
    user = await session.get(User, user_id, populate_existing=True)
    if user is None:
        return None
    return UserStatistics(
        user_id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        proficiency=user.proficiency,
        created_at=user.created_at,
        flashcards_reviewed=user.flashcards_reviewed,
        flashcards_mastered=user.flashcards_mastered,
    )
