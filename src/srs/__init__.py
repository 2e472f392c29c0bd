"""Spaced-repetition core: scheduling, session sizing, statistics and difficulty."""

from .difficulty import Difficulty, adjust_difficulty
from .scheduler import (
    DEFAULT_CONFIG,
    CardStatus,
    ReviewOutcome,
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
from .statistics import (
    DailyProgress,
    ReviewEvent,
    StudyStats,
    calculate_retention_rate,
    generate_study_stats,
)
from .study_load import (
    ProficiencyTier,
    StudyLoadPlan,
    StudySchedule,
    calculate_optimal_study_load,
    get_study_schedule,
)

__all__ = [
    "DEFAULT_CONFIG",
    "CardStatus",
    "DailyProgress",
    "Difficulty",
    "ProficiencyTier",
    "ReviewEvent",
    "ReviewOutcome",
    "SchedulerConfig",
    "SpacedRepetitionState",
    "StudyLoadPlan",
    "StudySchedule",
    "StudyStats",
    "adjust_difficulty",
    "calculate_next_review",
    "calculate_optimal_study_load",
    "calculate_retention_rate",
    "derive_card_status",
    "generate_study_stats",
    "get_due_cards",
    "get_study_schedule",
    "is_card_mastered",
    "is_due",
    "replay_reviews",
    "sanitize_rating",
]
