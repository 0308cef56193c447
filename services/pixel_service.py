"""
Pixel issuance.

The email sender calls this once per (message, recipient) pair before
sending, then embeds ``pixel_html`` in the body. Nothing else about tracking
is visible to the sender.
"""

from __future__ import annotations

from datetime import datetime
from html import escape
from typing import Callable, Optional

from errors import ValidationError
from infrastructure.database import TrackerStore
from repositories import PixelRepository
from schemas.dto.responses.pixel import CreatePixelResponse
from shared.datetime_utils import utcnow
from shared.generators import generate_pixel_id
from shared.logging import get_logger

log = get_logger(__name__)

_HIDDEN_STYLE = "display:none;border:0;width:0;height:0;overflow:hidden"


def build_pixel_url(base_url: str, pixel_id: str) -> str:
    return f"{base_url.rstrip('/')}/v1/{pixel_id}.gif"


def build_pixel_html(pixel_url: str) -> str:
    """Zero-footprint image tag, wrapped in a hidden div for clients that ignore img styles."""
    src = escape(pixel_url, quote=True)
    return (
        f'<div style="{_HIDDEN_STYLE}">'
        f'<img src="{src}" alt=" " width="1" height="0" style="{_HIDDEN_STYLE}">'
        f"</div>"
    )


def _require(value: Optional[str], field: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{field} is required", field=field)
    return value


class PixelService:
    def __init__(
        self,
        store: TrackerStore,
        base_url: str,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.base_url = base_url
        self.clock = clock

    def create_pixel(
        self,
        email_id: Optional[str],
        recipient: Optional[str],
        subject: Optional[str] = None,
    ) -> CreatePixelResponse:
        """Register a new pixel and return its URL and HTML tag.

        Raises:
            ValidationError: ``email_id`` or ``recipient`` missing or blank
                (nothing is persisted).
            StorageError: the pixel row could not be written.
        """
        email_id = _require(email_id, "emailId")
        recipient = _require(recipient, "recipient")

        pixel_id = generate_pixel_id()
        with self.store.session("create_pixel", write=True) as session:
            PixelRepository(session).insert(
                pixel_id=pixel_id,
                email_id=email_id,
                recipient=recipient,
                subject=subject or "",
                created_at=self.clock(),
            )

        log.info("pixel_created", pixel_id=pixel_id, email_id=email_id)

        pixel_url = build_pixel_url(self.base_url, pixel_id)
        return CreatePixelResponse(
            pixel_id=pixel_id,
            pixel_url=pixel_url,
            pixel_html=build_pixel_html(pixel_url),
        )
