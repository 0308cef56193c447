"""
Unit test configuration.

Settings are built from the process environment only: `.env` loading is
stubbed out and every tracker variable is cleared, so each test sets exactly
what it needs with monkeypatch.setenv().
"""

import pytest

TRACKER_ENV_VARS = (
    "API_KEY",
    "TRACKER_BASE_URL",
    "PORT",
    "ENV",
    "TRACKER_DB_PATH",
    "DATA_DIR",
    "DEFAULT_DB_PATH",
    "BOT_USER_AGENTS_FILE",
    "BOT_IP_PREFIXES_FILE",
    "LOG_LEVEL",
    "LOG_FORMAT",
    "SENTRY_DSN",
)


@pytest.fixture(autouse=True)
def isolated_settings_env(monkeypatch):
    import pydantic_settings.sources.providers.dotenv as ps_dotenv

    monkeypatch.setattr(ps_dotenv, "dotenv_values", lambda *a, **kw: {})
    for var in TRACKER_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
