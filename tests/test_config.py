import pytest
from pydantic import ValidationError

from app.platform.config import Settings


def test_defaults():
    settings = Settings(_env_file=None)

    assert settings.RESOLVE_TIMEOUT == 1.5
    assert settings.REQUEST_TIMEOUT == 1.0
    assert settings.TARGET_ICON_SIZE == 16
    assert settings.CACHE_TTL == 86400


@pytest.mark.parametrize(
    "overrides",
    [
        {"REQUEST_TIMEOUT": 2.0, "RESOLVE_TIMEOUT": 1.5},
        {"REQUEST_TIMEOUT": 1.5, "RESOLVE_TIMEOUT": 1.5},
        {"RESOLVE_TIMEOUT": 0},
        {"REQUEST_TIMEOUT": -1},
        {"TARGET_ICON_SIZE": 0},
        {"JPEG_QUALITY": 100},
        {"USER_AGENT": ""},
    ],
)
def test_invalid_settings_rejected(overrides):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **overrides)


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("RESOLVE_TIMEOUT", "3")
    monkeypatch.setenv("REQUEST_TIMEOUT", "2")
    monkeypatch.setenv("CACHE_EXPIRES", "false")

    settings = Settings(_env_file=None)

    assert settings.RESOLVE_TIMEOUT == 3.0
    assert settings.CACHE_EXPIRES is False
