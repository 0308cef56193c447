"""Unit tests for AppSettings and sub-configs."""

import pytest

from config import (
    AppSettings,
    BotDetectionSettings,
    DatabaseSettings,
    LoggingSettings,
)


# ---------------------------------------------------------------------------
# Sub-configs
# ---------------------------------------------------------------------------


class TestDatabaseSettings:
    def test_defaults(self):
        s = DatabaseSettings()
        assert s.tracker_db_path is None
        assert s.data_dir == "/data"
        assert s.default_db_path == "tracker.db"

    def test_loads_explicit_path(self, monkeypatch):
        monkeypatch.setenv("TRACKER_DB_PATH", "/var/lib/tracker/opens.db")
        assert DatabaseSettings().tracker_db_path == "/var/lib/tracker/opens.db"


class TestBotDetectionSettings:
    def test_bundled_lists_by_default(self):
        s = BotDetectionSettings()
        assert s.bot_user_agents_file is None
        assert s.bot_ip_prefixes_file is None

    def test_override_files(self, monkeypatch):
        monkeypatch.setenv("BOT_USER_AGENTS_FILE", "/etc/tracker/agents.txt")
        assert BotDetectionSettings().bot_user_agents_file == "/etc/tracker/agents.txt"


class TestLoggingSettings:
    def test_defaults(self):
        s = LoggingSettings()
        assert s.log_level == "INFO"
        assert s.log_format == "console"
        assert 0.0 <= s.sample_rate_activity <= 1.0


# ---------------------------------------------------------------------------
# AppSettings
# ---------------------------------------------------------------------------


class TestAppSettings:
    def test_sub_configs_populated(self):
        s = AppSettings()
        assert isinstance(s.db, DatabaseSettings)
        assert isinstance(s.bots, BotDetectionSettings)
        assert isinstance(s.logging, LoggingSettings)
        assert s.sentry.sentry_dsn == ""

    def test_auth_disabled_without_key(self):
        s = AppSettings()
        assert s.api_key == ""
        assert s.auth_enabled is False

    def test_auth_enabled_with_key(self, monkeypatch):
        monkeypatch.setenv("API_KEY", "s3cret")
        assert AppSettings().auth_enabled is True

    def test_default_port(self):
        assert AppSettings().port == 3001

    def test_default_base_url_uses_port(self, monkeypatch):
        monkeypatch.setenv("PORT", "8080")
        assert AppSettings().base_url == "http://localhost:8080"

    def test_base_url_trailing_slash_stripped(self, monkeypatch):
        monkeypatch.setenv("TRACKER_BASE_URL", "https://track.example.com/")
        assert AppSettings().base_url == "https://track.example.com"

    def test_explicit_sub_config_kept(self):
        db = DatabaseSettings(tracker_db_path="/tmp/x.db")
        assert AppSettings(db=db).db.tracker_db_path == "/tmp/x.db"


@pytest.mark.parametrize(
    "env, expected",
    [("production", True), ("development", False)],
    ids=["production", "development"],
)
def test_is_production(monkeypatch, env, expected):
    monkeypatch.setenv("ENV", env)
    assert AppSettings().is_production is expected
