"""
Aggregation queries over the pixel registry and open-event log.

Every query takes ``include_bots``. When it is False, bot-classified events
are left out of open counts and first/last timestamps; bot counts are always
computed over bot events only, whatever the flag.

Pixels are outer-joined to their events so recipients with no opens still
show up. The NULL event row produced by the outer join must never count as an
open, which is why "counted" compares against a column of the event row
rather than using a constant true.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import Any, Optional, Sequence

from sqlalchemy import ColumnElement, Row, case, distinct, func, select
from sqlalchemy.orm import Session

from schemas.models.open_event import OpenEvent
from schemas.models.pixel import Pixel


def counted_open(include_bots: bool) -> ColumnElement[bool]:
    """Condition for an event row that counts as an open."""
    if include_bots:
        return OpenEvent.id.is_not(None)
    return OpenEvent.is_bot.is_(False)


def bot_open() -> ColumnElement[bool]:
    return OpenEvent.is_bot.is_(True)


def _count_where(condition: ColumnElement[bool]) -> ColumnElement[int]:
    return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)


def _feed_conditions(include_bots: bool, since: Optional[datetime]) -> list[ColumnElement[bool]]:
    conditions: list[ColumnElement[bool]] = []
    if not include_bots:
        conditions.append(OpenEvent.is_bot.is_(False))
    if since is not None:
        conditions.append(OpenEvent.opened_at > since)
    return conditions


class StatsRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def email_status(self, email_id: str, include_bots: bool = False) -> Sequence[Row[Any]]:
        """One row per pixel of *email_id*, in creation order."""
        counted = counted_open(include_bots)
        stmt = (
            select(
                Pixel.id.label("pixel_id"),
                Pixel.recipient,
                Pixel.subject,
                Pixel.created_at.label("sent_at"),
                _count_where(counted).label("open_count"),
                _count_where(bot_open()).label("bot_open_count"),
                func.min(case((counted, OpenEvent.opened_at))).label("first_opened"),
                func.max(case((counted, OpenEvent.opened_at))).label("last_opened"),
            )
            .outerjoin(OpenEvent, OpenEvent.pixel_id == Pixel.id)
            .where(Pixel.email_id == email_id)
            .group_by(Pixel.id)
            .order_by(Pixel.created_at, Pixel.id)
        )
        return self.session.execute(stmt).all()

    def dashboard(self, limit: int, include_bots: bool = False) -> Sequence[Row[Any]]:
        """One rollup row per email id, most recently sent first.

        ``sent_at`` is the earliest pixel creation time of the email.
        """
        per_pixel = (
            select(
                Pixel.id.label("pixel_id"),
                Pixel.email_id,
                Pixel.recipient,
                Pixel.created_at,
                _count_where(counted_open(include_bots)).label("open_count"),
                _count_where(bot_open()).label("bot_count"),
            )
            .outerjoin(OpenEvent, OpenEvent.pixel_id == Pixel.id)
            .group_by(Pixel.id)
            .subquery("per_pixel")
        )
        sent_at = func.min(per_pixel.c.created_at)
        opened_recipient = case((per_pixel.c.open_count > 0, per_pixel.c.recipient))
        stmt = (
            select(
                per_pixel.c.email_id,
                sent_at.label("sent_at"),
                func.sum(per_pixel.c.open_count).label("total_opens"),
                func.sum(per_pixel.c.bot_count).label("bot_opens"),
                func.count(distinct(opened_recipient)).label("recipients_opened"),
                func.count(distinct(per_pixel.c.recipient)).label("total_recipients"),
            )
            .group_by(per_pixel.c.email_id)
            .order_by(sent_at.desc(), per_pixel.c.email_id.desc())
            .limit(limit)
        )
        return self.session.execute(stmt).all()

    def recipients_by_email(self, email_ids: Sequence[str]) -> dict[str, list[tuple[str, str]]]:
        """Map each email id to its ``(recipient, subject)`` pairs in creation order."""
        if not email_ids:
            return {}
        stmt = (
            select(Pixel.email_id, Pixel.recipient, Pixel.subject)
            .where(Pixel.email_id.in_(email_ids))
            .order_by(Pixel.created_at, Pixel.id)
        )
        grouped: dict[str, list[tuple[str, str]]] = defaultdict(list)
        for email_id, recipient, subject in self.session.execute(stmt):
            grouped[email_id].append((recipient, subject))
        return dict(grouped)

    def activity(
        self,
        limit: int,
        since: Optional[datetime] = None,
        include_bots: bool = False,
    ) -> Sequence[Row[Any]]:
        """Open events joined with their pixel, most recent first."""
        stmt = (
            select(
                OpenEvent.id.label("open_id"),
                OpenEvent.opened_at,
                OpenEvent.ip_address,
                OpenEvent.user_agent,
                OpenEvent.is_bot,
                OpenEvent.bot_reason,
                Pixel.id.label("pixel_id"),
                Pixel.email_id,
                Pixel.recipient,
                Pixel.subject,
                Pixel.created_at.label("sent_at"),
            )
            .join(Pixel, OpenEvent.pixel_id == Pixel.id)
            .where(*_feed_conditions(include_bots, since))
            .order_by(OpenEvent.opened_at.desc(), OpenEvent.id.desc())
            .limit(limit)
        )
        return self.session.execute(stmt).all()

    def count_opens(
        self,
        since: Optional[datetime] = None,
        include_bots: bool = False,
    ) -> int:
        stmt = select(func.count(OpenEvent.id)).where(*_feed_conditions(include_bots, since))
        return self.session.scalar(stmt) or 0

    def recent_sends(self, limit: int, include_bots: bool = False) -> Sequence[Row[Any]]:
        """One row per pixel, newest first, with open counts and last open."""
        counted = counted_open(include_bots)
        stmt = (
            select(
                Pixel.id.label("pixel_id"),
                Pixel.email_id,
                Pixel.recipient,
                Pixel.subject,
                Pixel.created_at.label("sent_at"),
                _count_where(counted).label("open_count"),
                _count_where(bot_open()).label("bot_count"),
                func.max(case((counted, OpenEvent.opened_at))).label("last_opened"),
            )
            .outerjoin(OpenEvent, OpenEvent.pixel_id == Pixel.id)
            .group_by(Pixel.id)
            .order_by(Pixel.created_at.desc(), Pixel.id.desc())
            .limit(limit)
        )
        return self.session.execute(stmt).all()
