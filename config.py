"""
Application configuration via pydantic-settings.

All settings are loaded from environment variables (and .env file).

The API key is optional on purpose: with API_KEY unset every protected route
is open, which is the local-development mode of the tracker.
"""

from __future__ import annotations

from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Explicit path wins over everything else
    tracker_db_path: Optional[str] = None
    # Persistent volume mount; used when it exists
    data_dir: str = "/data"
    # Bundled database, also used as the seed for the persistent volume
    default_db_path: str = "tracker.db"


class BotDetectionSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Replacement rule files; None means the bundled lists in shared/data/
    bot_user_agents_file: Optional[str] = None
    bot_ip_prefixes_file: Optional[str] = None


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"
    log_format: str = "console"  # "json" in production

    # Sampling rates (0.0–1.0) for dashboard polling traffic
    sample_rate_activity: float = 0.05
    sample_rate_status: float = 0.20


class SentrySettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    sentry_dsn: str = ""
    sentry_send_pii: bool = False
    sentry_traces_sample_rate: float = 0.1
    sentry_profile_sample_rate: float = 0.05


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Core
    api_key: str = ""
    tracker_base_url: str = ""
    port: int = 3001
    env: str = "development"
    app_name: str = "email-tracker"

    # CORS: any origin may call the API
    cors_origins: list[str] = ["*"]

    # OpenAPI docs URL (None disables the docs UI in production)
    docs_url: Optional[str] = "/docs"

    # Sub-configs (composed via model_validator below)
    db: Optional[DatabaseSettings] = None
    bots: Optional[BotDetectionSettings] = None
    logging: Optional[LoggingSettings] = None
    sentry: Optional[SentrySettings] = None

    @model_validator(mode="after")
    def _populate_sub_configs(self) -> "AppSettings":
        # Populate sub-configs from the same env/dotenv source
        if self.db is None:
            self.db = DatabaseSettings()
        if self.bots is None:
            self.bots = BotDetectionSettings()
        if self.logging is None:
            self.logging = LoggingSettings()
        if self.sentry is None:
            self.sentry = SentrySettings()

        return self

    @property
    def is_production(self) -> bool:
        return self.env == "production"

    @property
    def auth_enabled(self) -> bool:
        return bool(self.api_key)

    @property
    def base_url(self) -> str:
        """Public base URL used to build pixel URLs, without trailing slash."""
        if self.tracker_base_url:
            return self.tracker_base_url.rstrip("/")
        return f"http://localhost:{self.port}"
