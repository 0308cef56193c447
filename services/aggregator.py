"""
Read-only aggregation views over the store.

Every view reads straight from the database in its own transaction, so it
reflects every open committed before the call. Nothing here writes.

Polling contract for the activity feed: a client remembers the newest
``openedAt`` it has seen and passes it back as ``since``. Events are matched
with a strict ``opened_at > since``, so an event already delivered is never
returned again. The page and ``new_count`` are read from the same snapshot.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from infrastructure.database import TrackerStore
from repositories import OpenRepository, StatsRepository
from schemas.dto.responses.pixel import OpenRecord, PixelHistoryResponse
from schemas.dto.responses.stats import (
    ActivityItem,
    ActivityResponse,
    DashboardResponse,
    EmailRollup,
    EmailStatusResponse,
    RecentSend,
    RecipientStatus,
)
from shared.datetime_utils import utcnow


class Aggregator:
    def __init__(self, store: TrackerStore, clock: Callable[[], datetime] = utcnow) -> None:
        self.store = store
        self.clock = clock

    def email_status(self, email_id: str, include_bots: bool = False) -> EmailStatusResponse:
        with self.store.session("email_status") as session:
            rows = StatsRepository(session).email_status(email_id, include_bots)

        return EmailStatusResponse(
            email_id=email_id,
            recipients=[
                RecipientStatus(
                    recipient=row.recipient,
                    pixel_id=row.pixel_id,
                    subject=row.subject or None,
                    sent_at=row.sent_at,
                    opened=row.open_count > 0,
                    open_count=row.open_count,
                    bot_open_count=row.bot_open_count,
                    first_opened=row.first_opened,
                    last_opened=row.last_opened,
                )
                for row in rows
            ],
        )

    def pixel_history(self, pixel_id: str) -> PixelHistoryResponse:
        with self.store.session("pixel_history") as session:
            events = OpenRepository(session).list_for_pixel(pixel_id)
            opens = [
                OpenRecord(
                    open_id=event.id,
                    opened_at=event.opened_at,
                    ip_address=event.ip_address,
                    user_agent=event.user_agent,
                    is_bot=event.is_bot,
                    bot_reason=event.bot_reason,
                )
                for event in events
            ]
        return PixelHistoryResponse(pixel_id=pixel_id, opens=opens)

    def dashboard(self, limit: int = 50, include_bots: bool = False) -> DashboardResponse:
        with self.store.session("dashboard") as session:
            repo = StatsRepository(session)
            rows = repo.dashboard(limit, include_bots)
            recipients = repo.recipients_by_email([row.email_id for row in rows])

        emails = []
        for row in rows:
            pairs = recipients.get(row.email_id, [])
            # subject of the earliest pixel; recipients deduplicated, creation order kept
            subject = pairs[0][1] if pairs else None
            emails.append(
                EmailRollup(
                    email_id=row.email_id,
                    subject=subject or None,
                    recipients=list(dict.fromkeys(recipient for recipient, _ in pairs)),
                    sent_at=row.sent_at,
                    total_opens=row.total_opens or 0,
                    bot_opens=row.bot_opens or 0,
                    recipients_opened=row.recipients_opened,
                    total_recipients=row.total_recipients,
                )
            )
        return DashboardResponse(emails=emails)

    def activity_feed(
        self,
        limit: int = 50,
        since: Optional[datetime] = None,
        include_bots: bool = False,
    ) -> ActivityResponse:
        with self.store.session("activity_feed") as session:
            repo = StatsRepository(session)
            rows = repo.activity(limit, since, include_bots)
            new_count = repo.count_opens(since, include_bots) if since is not None else 0

        return ActivityResponse(
            opens=[
                ActivityItem(
                    open_id=row.open_id,
                    opened_at=row.opened_at,
                    ip_address=row.ip_address,
                    user_agent=row.user_agent,
                    is_bot=bool(row.is_bot),
                    bot_reason=row.bot_reason,
                    pixel_id=row.pixel_id,
                    email_id=row.email_id,
                    recipient=row.recipient,
                    subject=row.subject or None,
                    sent_at=row.sent_at,
                )
                for row in rows
            ],
            new_count=new_count,
            timestamp=self.clock(),
        )

    def recent_sends(self, limit: int = 100, include_bots: bool = False) -> list[RecentSend]:
        with self.store.session("recent_sends") as session:
            rows = StatsRepository(session).recent_sends(limit, include_bots)

        return [
            RecentSend(
                pixel_id=row.pixel_id,
                email_id=row.email_id,
                recipient=row.recipient,
                subject=row.subject or None,
                sent_at=row.sent_at,
                open_count=row.open_count,
                bot_count=row.bot_count,
                last_opened=row.last_opened,
            )
            for row in rows
        ]
