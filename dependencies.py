"""
FastAPI dependency providers.

All injectable dependencies are defined here as plain functions used with
FastAPI's Depends() system. Services are thin and stateless apart from the
store handle, so they are built per request from what the lifespan put on
app.state.
"""

from __future__ import annotations

import hmac
from typing import Annotated, Optional

from fastapi import Depends, Header, Query, Request

from config import AppSettings
from errors import AuthenticationError
from infrastructure.database import TrackerStore
from services.aggregator import Aggregator
from services.open_recorder import OpenRecorder
from services.pixel_service import PixelService


def get_settings(request: Request) -> AppSettings:
    """Return the AppSettings instance stored on app.state."""
    return request.app.state.settings


def get_store(request: Request) -> TrackerStore:
    """Return the process-wide TrackerStore from app.state."""
    return request.app.state.store


def get_pixel_service(
    store: Annotated[TrackerStore, Depends(get_store)],
    settings: Annotated[AppSettings, Depends(get_settings)],
) -> PixelService:
    return PixelService(store, base_url=settings.base_url)


def get_open_recorder(
    request: Request,
    store: Annotated[TrackerStore, Depends(get_store)],
) -> OpenRecorder:
    return OpenRecorder(store, rules=request.app.state.bot_rules)


def get_aggregator(store: Annotated[TrackerStore, Depends(get_store)]) -> Aggregator:
    return Aggregator(store)


def require_api_key(
    settings: Annotated[AppSettings, Depends(get_settings)],
    header_key: Annotated[Optional[str], Header(alias="X-API-Key")] = None,
    query_key: Annotated[Optional[str], Query(alias="apiKey")] = None,
) -> None:
    """Shared-secret check for protected routes.

    The key may come from the ``X-API-Key`` header or the ``apiKey`` query
    parameter. With no API_KEY configured every request passes.
    """
    if not settings.auth_enabled:
        return

    provided = header_key or query_key
    if not provided or not hmac.compare_digest(
        provided.encode(), settings.api_key.encode()
    ):
        raise AuthenticationError("Unauthorized - Invalid or missing API key")
