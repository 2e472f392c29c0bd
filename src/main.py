from src.app import AppSettings, build_service
from src.services import FlashcardService

__all__ = ["main", "FlashcardService"]


def main() -> None:
    """Apply pending migrations and verify the service can be constructed."""
    settings = AppSettings.from_env()
    build_service(settings)


if __name__ == "__main__":
    main()
