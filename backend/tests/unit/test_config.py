"""Unit tests for environment-driven settings"""

from config import Settings


def test_dispatch_defaults(monkeypatch):
    monkeypatch.delenv("BATCH_MAX_SIZE", raising=False)
    monkeypatch.delenv("SYSTEM_USER_ID", raising=False)

    settings = Settings(_env_file=None)

    assert settings.BATCH_MAX_SIZE == 100
    assert settings.SYSTEM_USER_ID == 1
    assert settings.JWT_ALGORITHM == "HS256"


def test_environment_overrides_defaults(monkeypatch):
    monkeypatch.setenv("BATCH_MAX_SIZE", "25")
    monkeypatch.setenv("ADAPTER_HTTP_TIMEOUT_SECONDS", "2.5")

    settings = Settings(_env_file=None)

    assert settings.BATCH_MAX_SIZE == 25
    assert settings.ADAPTER_HTTP_TIMEOUT_SECONDS == 2.5


def test_unknown_variables_are_ignored(monkeypatch):
    monkeypatch.setenv("DEBUG", "true")

    settings = Settings(_env_file=None)

    assert "DEBUG" not in Settings.model_fields
    assert not hasattr(settings, "DEBUG")
