"""
Shared fixtures: a throwaway SQLite store, a controllable clock, and an app
wired to both.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from app import create_app
from config import AppSettings, DatabaseSettings, LoggingSettings, SentrySettings
from infrastructure.database import TrackerStore

T0 = datetime(2026, 3, 1, 9, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that returns ``now`` and then moves it forward by ``step``."""

    def __init__(self, start: datetime = T0, step: timedelta = timedelta(seconds=1)):
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        value = self.now
        self.now = self.now + self.step
        return value

    def set(self, value: datetime) -> None:
        self.now = value


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(tmp_path):
    tracker_store = TrackerStore.from_path(tmp_path / "tracker.db")
    tracker_store.initialize()
    yield tracker_store
    tracker_store.dispose()


def make_settings(tmp_path, **overrides) -> AppSettings:
    values = {
        "api_key": "",
        "tracker_base_url": "https://track.example.com",
        "env": "development",
        "db": DatabaseSettings(tracker_db_path=str(tmp_path / "tracker.db")),
        "logging": LoggingSettings(
            log_level="WARNING", sample_rate_activity=1.0, sample_rate_status=1.0
        ),
        "sentry": SentrySettings(sentry_dsn=""),
    }
    values.update(overrides)
    return AppSettings(**values)


@pytest.fixture
def settings(tmp_path):
    return make_settings(tmp_path)


@pytest.fixture
def client(settings, store):
    app = create_app(settings, store=store)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def secured_client(tmp_path, store):
    app = create_app(make_settings(tmp_path, api_key="s3cret"), store=store)
    with TestClient(app) as test_client:
        yield test_client
