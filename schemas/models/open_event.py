"""
Open event model.

Maps to the `opens` table: an append-only log with one row per pixel fetch.

`id` uses SQLite AUTOINCREMENT so ids are strictly increasing and never reused;
it breaks ties between events sharing an `opened_at`. `is_bot` / `bot_reason`
are fixed at insert time and never recomputed.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Integer, Text, false
from sqlalchemy.orm import Mapped, mapped_column

from schemas.models.base import Base, UTCDateTime


class OpenEvent(Base):
    __tablename__ = "opens"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    pixel_id: Mapped[str] = mapped_column(ForeignKey("pixels.id"), index=True)
    opened_at: Mapped[datetime] = mapped_column(UTCDateTime, index=True)
    ip_address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_bot: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=false(), nullable=False
    )
    bot_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"OpenEvent(id={self.id!r}, pixel_id={self.pixel_id!r}, is_bot={self.is_bot!r})"
