"""Open-event log: append and per-pixel history."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from schemas.models.open_event import OpenEvent


class OpenRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def append(
        self,
        pixel_id: str,
        opened_at: datetime,
        ip_address: Optional[str],
        user_agent: Optional[str],
        is_bot: bool,
        bot_reason: Optional[str],
    ) -> OpenEvent:
        event = OpenEvent(
            pixel_id=pixel_id,
            opened_at=opened_at,
            ip_address=ip_address,
            user_agent=user_agent,
            is_bot=is_bot,
            bot_reason=bot_reason,
        )
        self.session.add(event)
        # flush so the autoincrement id is assigned before the caller logs it
        self.session.flush()
        return event

    def list_for_pixel(self, pixel_id: str) -> Sequence[OpenEvent]:
        """All events for a pixel, most recent first (id breaks timestamp ties)."""
        stmt = (
            select(OpenEvent)
            .where(OpenEvent.pixel_id == pixel_id)
            .order_by(OpenEvent.opened_at.desc(), OpenEvent.id.desc())
        )
        return self.session.scalars(stmt).all()
