"""Study flows built on the scheduling core and the database layer."""

from .flashcards import (
    FlashcardNotFoundError,
    FlashcardProgress,
    FlashcardService,
    FlashcardServiceError,
    ReviewResult,
    StudyCard,
    StudySession,
    UserNotFoundError,
)

__all__ = [
    "FlashcardNotFoundError",
    "FlashcardProgress",
    "FlashcardService",
    "FlashcardServiceError",
    "ReviewResult",
    "StudyCard",
    "StudySession",
    "UserNotFoundError",
]
