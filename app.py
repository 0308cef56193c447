"""Builds the tracker ASGI app: settings, logging, store lifecycle and routers."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import AppSettings
from errors import register_error_handlers
from infrastructure.database import TrackerStore
from routes.api_routes import router as api_router
from routes.dashboard_routes import router as dashboard_router
from routes.health_routes import router as health_router
from routes.pixel_routes import router as pixel_router
from shared.bot_detection import load_bot_rules
from shared.log_context import setup_logging_middleware
from shared.logging import get_logger, setup_logging

log = get_logger(__name__)


def create_app(
    settings: Optional[AppSettings] = None,
    store: Optional[TrackerStore] = None,
) -> FastAPI:
    """Create and return a fully configured FastAPI application.

    Args:
        settings: Defaults to AppSettings() read from the environment.
        store: Pre-built store (tests); otherwise one is opened from
            settings.db during startup and disposed on shutdown.
    """
    if settings is None:
        settings = AppSettings()

    setup_logging(settings)

    # before the lifespan runs, so startup failures are reported too
    if settings.sentry.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry.sentry_dsn,
            send_default_pii=settings.sentry.sentry_send_pii,
            traces_sample_rate=settings.sentry.sentry_traces_sample_rate,
            profiles_sample_rate=settings.sentry.sentry_profile_sample_rate,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # ── Startup ──────────────────────────────────────────────────────────
        owns_store = store is None
        tracker_store = TrackerStore.from_settings(settings.db) if owns_store else store
        tracker_store.initialize()

        app.state.settings = settings
        app.state.store = tracker_store
        # Fail at startup, not on the first pixel fetch, if a rule file is unreadable
        app.state.bot_rules = load_bot_rules(
            settings.bots.bot_user_agents_file,
            settings.bots.bot_ip_prefixes_file,
        )

        if not settings.auth_enabled:
            log.warning("api_key_not_configured", detail="protected routes are open")
        log.info("tracker_started", base_url=settings.base_url, store=repr(tracker_store))

        yield

        # ── Shutdown ─────────────────────────────────────────────────────────
        if owns_store:
            tracker_store.dispose()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url=settings.docs_url,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_logging_middleware(app, quiet_pixel_requests=settings.is_production)

    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(pixel_router)
    app.include_router(api_router)
    app.include_router(dashboard_router)

    return app
