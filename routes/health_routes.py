"""
Health check endpoint.

GET /health: liveness only. It does not touch the database, so a slow or
locked store never makes the process look dead to the orchestrator.
"""

from __future__ import annotations

from fastapi import APIRouter

from schemas.dto.responses.common import HealthResponse
from shared.datetime_utils import utcnow

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", timestamp=utcnow())
