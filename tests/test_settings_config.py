import pytest
from pydantic import ValidationError

from citizen_portal.config.settings import Settings


def test_base_url_trailing_slash_is_dropped():
    assert Settings(PORTAL_API_BASE_URL="https://portal.example/api/").PORTAL_API_BASE_URL == "https://portal.example/api"


def test_base_url_must_be_http():
    with pytest.raises(ValidationError):
        Settings(PORTAL_API_BASE_URL="ftp://portal.example/api")


def test_color_scheme_is_normalized():
    assert Settings(SYSTEM_COLOR_SCHEME=" Dark ").SYSTEM_COLOR_SCHEME == "dark"
    with pytest.raises(ValidationError):
        Settings(SYSTEM_COLOR_SCHEME="sepia")


def test_durations_must_be_positive():
    with pytest.raises(ValidationError):
        Settings(NOTIFICATION_POLL_INTERVAL_SECONDS=0)
    with pytest.raises(ValidationError):
        Settings(STATS_STALE_SECONDS=-1)


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("NOTIFICATION_FETCH_LIMIT", "25")
    monkeypatch.setenv("DEBUG", "true")
    configured = Settings()
    assert configured.NOTIFICATION_FETCH_LIMIT == 25
    assert configured.DEBUG is True
