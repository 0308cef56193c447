"""
Open recording for pixel fetches.

Pixel delivery outranks logging completeness: this service never raises.
Unknown pixel ids are ignored without a trace in the log table, and storage
failures are logged and dropped (no retry).
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from errors import StorageError
from infrastructure.database import TrackerStore
from repositories import OpenRepository, PixelRepository
from schemas.models.open_event import OpenEvent
from shared.bot_detection import BotRules, classify
from shared.datetime_utils import utcnow
from shared.logging import get_logger, hash_ip

log = get_logger(__name__)


class OpenRecorder:
    def __init__(
        self,
        store: TrackerStore,
        rules: Optional[BotRules] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.rules = rules
        self.clock = clock

    def record_open(
        self,
        pixel_id: str,
        user_agent: Optional[str],
        source_ip: Optional[str],
    ) -> Optional[OpenEvent]:
        """Append an open event for *pixel_id* if the pixel exists.

        The bot classification is computed here, from this request only, and
        stored with the event.

        Returns:
            The stored event, or ``None`` when the pixel is unknown or the
            write failed.
        """
        verdict = classify(user_agent, source_ip, self.rules)
        try:
            with self.store.session("record_open", write=True) as session:
                if PixelRepository(session).get(pixel_id) is None:
                    return None
                event = OpenRepository(session).append(
                    pixel_id=pixel_id,
                    opened_at=self.clock(),
                    ip_address=source_ip or None,
                    user_agent=user_agent or "",
                    is_bot=verdict.is_bot,
                    bot_reason=verdict.reason,
                )
        except StorageError as exc:
            log.error("open_record_failed", pixel_id=pixel_id, error=str(exc.__cause__ or exc))
            return None

        log.info(
            "pixel_opened",
            pixel_id=pixel_id,
            open_id=event.id,
            ip_hash=hash_ip(source_ip),
            is_bot=verdict.is_bot,
            bot_reason=verdict.reason,
        )
        return event
