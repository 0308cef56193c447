"""Pixel registry reads and writes."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from schemas.models.pixel import Pixel


class PixelRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def insert(
        self,
        pixel_id: str,
        email_id: str,
        recipient: str,
        subject: str,
        created_at: datetime,
    ) -> Pixel:
        pixel = Pixel(
            id=pixel_id,
            email_id=email_id,
            recipient=recipient,
            subject=subject,
            created_at=created_at,
        )
        self.session.add(pixel)
        self.session.flush()
        return pixel

    def get(self, pixel_id: str) -> Optional[Pixel]:
        return self.session.get(Pixel, pixel_id)
