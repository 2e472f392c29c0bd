"""Bootstrap logic for the flashcard scheduling service."""

from __future__ import annotations

import logging

from src.app.settings import AppSettings
from src.db import get_session_factory, run_migrations_if_needed
from src.services import FlashcardService


LOGGER = logging.getLogger(__name__)


def _configure_logging(log_level: str) -> None:
    """Set up project-wide logging configuration."""
    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        level=log_level,
    )


def build_service(settings: AppSettings) -> FlashcardService:
    """Prepare the database and return a service wired to it."""
    _configure_logging(settings.log_level)
    LOGGER.info("Starting %s in %s mode.", settings.app_name, settings.app_env)

    try:
        run_migrations_if_needed()
    except Exception:
        LOGGER.exception("Database migrations failed. Aborting startup.")
        raise

    service = FlashcardService(
        get_session_factory(),
        scheduler_config=settings.scheduler,
        session_max_cards=settings.session_max_cards,
        session_minutes=settings.session_minutes,
    )
    LOGGER.info(
        "Flashcard service ready (jitter %s, mastery after %s reviews).",
        "on" if settings.scheduler.jitter_enabled else "off",
        settings.scheduler.mastery_repetitions,
    )
    return service
