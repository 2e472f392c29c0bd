import pytest

from src.app.settings import AppSettings


_VARIABLES = (
    "APP_NAME",
    "APP_ENV",
    "LOG_LEVEL",
    "SRS_DEFAULT_EASE_FACTOR",
    "SRS_GRADUATION_INTERVAL",
    "SRS_MASTERY_REPETITIONS",
    "SRS_MASTERY_INTERVAL_DAYS",
    "SRS_JITTER_ENABLED",
    "STUDY_SESSION_MAX_CARDS",
    "STUDY_SESSION_MINUTES",
)


@pytest.fixture(autouse=True)
def _clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _VARIABLES:
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    settings = AppSettings.from_env()

    assert settings.app_name == "ASVAB Prep Flashcards"
    assert settings.app_env == "development"
    assert settings.log_level == "INFO"
    assert settings.scheduler.default_ease_factor == 2.5
    assert settings.scheduler.graduation_interval == 4
    assert settings.scheduler.jitter_enabled is True
    assert settings.session_max_cards == 20
    assert settings.session_minutes == 30


def test_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("SRS_DEFAULT_EASE_FACTOR", "2.2")
    monkeypatch.setenv("SRS_MASTERY_REPETITIONS", "6")
    monkeypatch.setenv("SRS_JITTER_ENABLED", "off")
    monkeypatch.setenv("STUDY_SESSION_MINUTES", "45")

    settings = AppSettings.from_env()

    assert settings.log_level == "DEBUG"
    assert settings.scheduler.default_ease_factor == pytest.approx(2.2)
    assert settings.scheduler.mastery_repetitions == 6
    assert settings.scheduler.jitter_enabled is False
    assert settings.session_minutes == 45


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("SRS_GRADUATION_INTERVAL", "four"),
        ("SRS_MASTERY_INTERVAL_DAYS", "0"),
        ("SRS_DEFAULT_EASE_FACTOR", "7.5"),
        ("SRS_DEFAULT_EASE_FACTOR", "easy"),
        ("SRS_JITTER_ENABLED", "sometimes"),
        ("STUDY_SESSION_MAX_CARDS", "-1"),
    ],
)
def test_invalid_values_are_rejected(monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(RuntimeError, match=name):
        AppSettings.from_env()


def test_build_service_wires_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    from src.app import runtime

    migrations: list[str] = []
    factory = object()
    monkeypatch.setattr(runtime, "run_migrations_if_needed", lambda: migrations.append("head"))
    monkeypatch.setattr(runtime, "get_session_factory", lambda: factory)
    monkeypatch.setenv("STUDY_SESSION_MAX_CARDS", "12")

    service = runtime.build_service(AppSettings.from_env())

    assert migrations == ["head"]
    assert service._session_max_cards == 12


def test_build_service_propagates_migration_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    from src.app import runtime

    def broken() -> None:
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(runtime, "run_migrations_if_needed", broken)

    with pytest.raises(RuntimeError, match="database unavailable"):
        runtime.build_service(AppSettings.from_env())
