"""
Response DTOs for the aggregation endpoints.

EmailStatusResponse — GET /api/status/{email_id}
DashboardResponse   — GET /api/dashboard
ActivityResponse    — GET /api/activity
RecentSend          — one row of the HTML dashboard

Counts named ``*open_count`` / ``total_opens`` honour ``includeBots``;
``bot_open_count`` / ``bot_opens`` are always the bot-only figure.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from schemas.dto.responses.common import CAMEL_CONFIG


class RecipientStatus(BaseModel):
    model_config = CAMEL_CONFIG

    recipient: str
    pixel_id: str
    subject: Optional[str] = None
    sent_at: datetime
    opened: bool
    open_count: int
    bot_open_count: int
    first_opened: Optional[datetime] = None
    last_opened: Optional[datetime] = None


class EmailStatusResponse(BaseModel):
    model_config = CAMEL_CONFIG

    email_id: str
    recipients: list[RecipientStatus]


class EmailRollup(BaseModel):
    model_config = CAMEL_CONFIG

    email_id: str
    subject: Optional[str] = None
    recipients: list[str]
    sent_at: datetime
    total_opens: int
    bot_opens: int
    recipients_opened: int
    total_recipients: int


class DashboardResponse(BaseModel):
    model_config = CAMEL_CONFIG

    emails: list[EmailRollup]


class ActivityItem(BaseModel):
    model_config = CAMEL_CONFIG

    open_id: int
    opened_at: datetime
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    is_bot: bool
    bot_reason: Optional[str] = None
    pixel_id: str
    email_id: str
    recipient: str
    subject: Optional[str] = None
    sent_at: datetime


class ActivityResponse(BaseModel):
    """Feed page plus the number of matching events newer than ``since``.

    ``new_count`` ignores ``limit`` so a client can show an accurate badge
    while rendering only one page; it is 0 when no ``since`` was given.
    """

    model_config = CAMEL_CONFIG

    opens: list[ActivityItem]
    new_count: int
    timestamp: datetime


class RecentSend(BaseModel):
    model_config = CAMEL_CONFIG

    pixel_id: str
    email_id: str
    recipient: str
    subject: Optional[str] = None
    sent_at: datetime
    open_count: int
    bot_count: int
    last_opened: Optional[datetime] = None

    @property
    def opened(self) -> bool:
        return self.open_count > 0
