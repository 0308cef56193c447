"""
Protected JSON API.

POST /api/pixels              — issue a pixel                  (201)
GET  /api/status/{email_id}   — per-recipient open status
GET  /api/opens/{pixel_id}    — open history of one pixel
GET  /api/dashboard           — per-email rollups
GET  /api/activity            — pollable open feed

All routes require the shared API key (see dependencies.require_api_key).
Unknown ids produce empty results, not 404s. Handlers are plain ``def`` so
the blocking SQLite calls run in the server thread pool.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from dependencies import get_aggregator, get_pixel_service, require_api_key
from schemas.dto.requests.pixel import (
    DEFAULT_LIMIT,
    MAX_LIMIT,
    ActivityQuery,
    CreatePixelRequest,
)
from schemas.dto.responses.pixel import CreatePixelResponse, PixelHistoryResponse
from schemas.dto.responses.stats import (
    ActivityResponse,
    DashboardResponse,
    EmailStatusResponse,
)
from services.aggregator import Aggregator
from services.pixel_service import PixelService
from shared.logging import get_logger, should_sample

log = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["api"], dependencies=[Depends(require_api_key)])

IncludeBots = Annotated[bool, Query(alias="includeBots")]


@router.post(
    "/pixels",
    response_model=CreatePixelResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_pixel(
    body: CreatePixelRequest,
    service: Annotated[PixelService, Depends(get_pixel_service)],
) -> CreatePixelResponse:
    return service.create_pixel(body.email_id, body.recipient, body.subject)


@router.get("/status/{email_id}", response_model=EmailStatusResponse)
def email_status(
    email_id: str,
    aggregator: Annotated[Aggregator, Depends(get_aggregator)],
    include_bots: IncludeBots = False,
) -> EmailStatusResponse:
    result = aggregator.email_status(email_id, include_bots=include_bots)
    if should_sample("status_queried"):
        log.info("status_queried", email_id=email_id, recipients=len(result.recipients))
    return result


@router.get("/opens/{pixel_id}", response_model=PixelHistoryResponse)
def pixel_history(
    pixel_id: str,
    aggregator: Annotated[Aggregator, Depends(get_aggregator)],
) -> PixelHistoryResponse:
    return aggregator.pixel_history(pixel_id)


@router.get("/dashboard", response_model=DashboardResponse)
def dashboard(
    aggregator: Annotated[Aggregator, Depends(get_aggregator)],
    limit: Annotated[int, Query(ge=1, le=MAX_LIMIT)] = DEFAULT_LIMIT,
    include_bots: IncludeBots = False,
) -> DashboardResponse:
    return aggregator.dashboard(limit=limit, include_bots=include_bots)


@router.get("/activity", response_model=ActivityResponse)
def activity(
    query: Annotated[ActivityQuery, Query()],
    aggregator: Annotated[Aggregator, Depends(get_aggregator)],
) -> ActivityResponse:
    result = aggregator.activity_feed(
        limit=query.limit, since=query.since, include_bots=query.include_bots
    )
    if should_sample("activity_polled"):
        log.info(
            "activity_polled",
            since=query.since.isoformat() if query.since else None,
            returned=len(result.opens),
            new_count=result.new_count,
        )
    return result
