"""
Request DTOs for pixel issuance and the read API.

CreatePixelRequest — POST /api/pixels  (JSON body)
ActivityQuery      — GET /api/activity (query parameters)

``emailId`` and ``recipient`` are deliberately optional at the schema level:
the pixel service owns the "required" rule so that a missing field is
reported as a ``validation_error`` with the field name, exactly like a blank one.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from shared.datetime_utils import parse_datetime

DEFAULT_LIMIT = 50
MAX_LIMIT = 500


class CreatePixelRequest(BaseModel):
    """Request body for issuing a tracking pixel.

    Accepts both camelCase (``emailId``) and snake_case (``email_id``) keys.
    """

    model_config = ConfigDict(populate_by_name=True)

    email_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("emailId", "email_id")
    )
    recipient: Optional[str] = None
    subject: Optional[str] = None


class ActivityQuery(BaseModel):
    """Query parameters for the polling activity feed."""

    model_config = ConfigDict(populate_by_name=True)

    limit: int = Field(default=DEFAULT_LIMIT, ge=1, le=MAX_LIMIT)
    # Exclusive lower bound on opened_at; ISO 8601 or Unix epoch seconds
    since: Optional[datetime] = None
    include_bots: bool = Field(default=False, alias="includeBots")

    @field_validator("since", mode="before")
    @classmethod
    def _parse_since(cls, v: Any) -> Optional[datetime]:
        if v is None or v == "":
            return None
        # Query strings always arrive as text; "1700000000" means epoch seconds
        if isinstance(v, str) and v.strip().replace(".", "", 1).isdigit():
            v = float(v)
        parsed = parse_datetime(v)
        if parsed is None:
            raise ValueError("since must be an ISO 8601 timestamp or Unix epoch seconds")
        return parsed
