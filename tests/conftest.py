"""Shared fixtures for the gatekeeper test suite."""

import json

import pytest

import gatekeeper.links.factory as link_factory_mod
import gatekeeper.windows.factory as window_factory_mod
from gatekeeper.config.settings import get_settings

EDITOR_KEY = "editor-key-111"
EDITOR_EMAIL = "editor@bageledu.com"
OTHER_EDITOR_KEY = "editor-key-222"
OTHER_EDITOR_EMAIL = "writer@bageledu.com"


@pytest.fixture
def override_settings(monkeypatch):
    """Factory fixture: set env vars and clear settings cache.

    Usage:
        override_settings(APP_ENV="production", RATE_LIMIT_MAX_REQUESTS="5")
    """
    def _override(**kwargs):
        for key, value in kwargs.items():
            monkeypatch.setenv(key.upper(), str(value))
        # Clear lru_cache so Settings re-reads env
        get_settings.cache_clear()

    yield _override

    # Always clear cache on teardown so other tests get fresh settings
    get_settings.cache_clear()


@pytest.fixture
def reset_singletons(monkeypatch):
    """Drop cached stores/limiter so each test builds them from its own settings."""
    monkeypatch.setattr(window_factory_mod, "_store", None)
    monkeypatch.setattr(window_factory_mod, "_limiter", None)
    monkeypatch.setattr(link_factory_mod, "_store", None)
    yield
    monkeypatch.setattr(window_factory_mod, "_store", None)
    monkeypatch.setattr(window_factory_mod, "_limiter", None)
    monkeypatch.setattr(link_factory_mod, "_store", None)


@pytest.fixture
def links_json_file(tmp_path):
    """Create a temp links.json file with one active, one inactive and one expired link."""
    data = {
        "links": [
            {
                "id": "link-active",
                "original_url": "https://bageledu.com/blog/hello-world",
                "short_code": "hello1",
                "user_email": EDITOR_EMAIL,
                "title": "Hello World",
                "clicks": 3,
                "created_at": "2026-01-01T00:00:00+00:00",
                "expires_at": None,
                "is_active": True,
                "custom_code": False,
            },
            {
                "id": "link-inactive",
                "original_url": "https://bageledu.com/blog/old",
                "short_code": "old123",
                "user_email": EDITOR_EMAIL,
                "title": "Old",
                "clicks": 0,
                "created_at": "2026-02-01T00:00:00+00:00",
                "expires_at": None,
                "is_active": False,
                "custom_code": False,
            },
            {
                "id": "link-expired",
                "original_url": "https://bageledu.com/events/2020",
                "short_code": "ev2020",
                "user_email": OTHER_EDITOR_EMAIL,
                "title": "Event",
                "clicks": 0,
                "created_at": "2020-01-01T00:00:00+00:00",
                "expires_at": "2020-02-01T00:00:00+00:00",
                "is_active": True,
                "custom_code": True,
            },
        ],
        "clicks": [],
    }
    path = tmp_path / "links.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)
