"""
Pixel model.

Maps to the `pixels` table: one row per (email, recipient) tracking instance.
Rows are written once by the pixel issuer and never updated or deleted.
`email_id` is indexed because every status and dashboard query groups on it.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from schemas.models.base import Base, UTCDateTime


class Pixel(Base):
    __tablename__ = "pixels"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    email_id: Mapped[str] = mapped_column(Text, index=True)
    recipient: Mapped[str] = mapped_column(Text)
    subject: Mapped[str] = mapped_column(Text, default="")
    created_at: Mapped[datetime] = mapped_column(UTCDateTime)

    def __repr__(self) -> str:
        return f"Pixel(id={self.id!r}, email_id={self.email_id!r}, recipient={self.recipient!r})"
