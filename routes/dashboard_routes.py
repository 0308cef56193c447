"""
HTML dashboard.

GET / renders the 100 most recent pixels with human open counts. A read-only view
over Aggregator.recent_sends(); protected by the same API key as /api.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from config import AppSettings
from dependencies import get_aggregator, get_settings, require_api_key
from services.aggregator import Aggregator

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
RECENT_SENDS_LIMIT = 100

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

router = APIRouter(tags=["dashboard"], dependencies=[Depends(require_api_key)])


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
def dashboard_page(
    request: Request,
    aggregator: Annotated[Aggregator, Depends(get_aggregator)],
    settings: Annotated[AppSettings, Depends(get_settings)],
) -> HTMLResponse:
    sends = aggregator.recent_sends(limit=RECENT_SENDS_LIMIT)
    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {"sends": sends, "app_name": settings.app_name},
    )
