"""
Response DTOs for pixel issuance and per-pixel history.

CreatePixelResponse — POST /api/pixels      (201)
OpenRecord          — one element inside PixelHistoryResponse.opens
PixelHistoryResponse — GET /api/opens/{pixel_id}  (200)
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from schemas.dto.responses.common import CAMEL_CONFIG


class CreatePixelResponse(BaseModel):
    """What the email sender embeds: the fetch URL and a ready-made hidden tag."""

    model_config = CAMEL_CONFIG

    pixel_id: str
    pixel_url: str
    pixel_html: str


class OpenRecord(BaseModel):
    model_config = CAMEL_CONFIG

    open_id: int
    opened_at: datetime
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    is_bot: bool = False
    bot_reason: Optional[str] = None


class PixelHistoryResponse(BaseModel):
    model_config = CAMEL_CONFIG

    pixel_id: str
    opens: list[OpenRecord]
