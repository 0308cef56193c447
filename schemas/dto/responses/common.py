"""
Common response DTOs shared across multiple endpoints.

CAMEL_CONFIG     — model config producing the camelCase JSON keys of the API
ErrorResponse    — standard error shape from AppError.to_dict()
HealthResponse   — GET /health
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# Python attributes stay snake_case; JSON keys are camelCase (emailId, newCount)
CAMEL_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ErrorResponse(BaseModel):
    """Standard error JSON body produced by the AppError exception handler."""

    model_config = ConfigDict(populate_by_name=True)

    error: str
    code: str
    field: Optional[str] = None
    details: Optional[Any] = None


class HealthResponse(BaseModel):
    """Response body for GET /health (liveness only)."""

    model_config = ConfigDict(populate_by_name=True)

    status: str
    timestamp: datetime
