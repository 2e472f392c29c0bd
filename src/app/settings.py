"""Configuration helpers for the ASVAB Prep flashcard engine."""

from __future__ import annotations

import os
from dataclasses import dataclass

from src.srs import SchedulerConfig


DEFAULT_SESSION_MAX_CARDS = 20
DEFAULT_SESSION_MINUTES = 30

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _read_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer.") from exc


def _read_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError as exc:
        raise RuntimeError(f"{name} must be a number.") from exc


def _read_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    flag = raw.strip().lower()
    if flag in _TRUE_VALUES:
        return True
    if flag in _FALSE_VALUES:
        return False
    raise RuntimeError(f"{name} must be a boolean flag (true/false).")


@dataclass(frozen=True)
class AppSettings:
    """Strongly typed application settings loaded from environment variables."""

    app_name: str
    app_env: str
    log_level: str
    scheduler: SchedulerConfig
    session_max_cards: int
    session_minutes: int

    @classmethod
    def from_env(cls) -> AppSettings:
        """Construct settings directly from environment variables."""
        app_name = os.getenv("APP_NAME", "ASVAB Prep Flashcards")
        app_env = os.getenv("APP_ENV", "development")
        log_level = os.getenv("LOG_LEVEL", "INFO")

        defaults = SchedulerConfig()
        default_ease_factor = _read_float("SRS_DEFAULT_EASE_FACTOR", defaults.default_ease_factor)
        if not defaults.min_ease_factor <= default_ease_factor <= defaults.max_ease_factor:
            raise RuntimeError(
                f"SRS_DEFAULT_EASE_FACTOR must be between {defaults.min_ease_factor} "
                f"and {defaults.max_ease_factor}."
            )

        graduation_interval = _read_int("SRS_GRADUATION_INTERVAL", defaults.graduation_interval)
        if graduation_interval < 1:
            raise RuntimeError("SRS_GRADUATION_INTERVAL must be a positive integer.")

        mastery_repetitions = _read_int("SRS_MASTERY_REPETITIONS", defaults.mastery_repetitions)
        if mastery_repetitions < 1:
            raise RuntimeError("SRS_MASTERY_REPETITIONS must be a positive integer.")

        mastery_interval_days = _read_int("SRS_MASTERY_INTERVAL_DAYS", defaults.mastery_interval_days)
        if mastery_interval_days < 1:
            raise RuntimeError("SRS_MASTERY_INTERVAL_DAYS must be a positive integer.")

        jitter_enabled = _read_bool("SRS_JITTER_ENABLED", defaults.jitter_enabled)

        session_max_cards = _read_int("STUDY_SESSION_MAX_CARDS", DEFAULT_SESSION_MAX_CARDS)
        if session_max_cards < 1:
            raise RuntimeError("STUDY_SESSION_MAX_CARDS must be a positive integer.")

        session_minutes = _read_int("STUDY_SESSION_MINUTES", DEFAULT_SESSION_MINUTES)
        if session_minutes < 1:
            raise RuntimeError("STUDY_SESSION_MINUTES must be a positive integer.")

        return cls(
            app_name=app_name,
            app_env=app_env,
            log_level=log_level,
            scheduler=SchedulerConfig(
                default_ease_factor=default_ease_factor,
                graduation_interval=graduation_interval,
                mastery_repetitions=mastery_repetitions,
                mastery_interval_days=mastery_interval_days,
                jitter_enabled=jitter_enabled,
            ),
            session_max_cards=session_max_cards,
            session_minutes=session_minutes,
        )
