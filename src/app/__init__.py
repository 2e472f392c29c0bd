"""Application bootstrap helpers for the ASVAB Prep flashcard engine."""

from .runtime import build_service
from .settings import AppSettings

__all__ = ["build_service", "AppSettings"]
