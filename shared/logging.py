"""
Centralized structured logging for the email tracker.

Provides:
- setup_logging(): configure stdlib logging + structlog from AppSettings
- get_logger(): get a configured logger instance
- should_sample(): sampling for high-frequency dashboard polling events
- hash_ip(): hash IP addresses for privacy in production

Production uses JSON output, development a coloured console renderer.
"""

from __future__ import annotations

import hashlib
import logging
import random
import sys
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

import structlog
from structlog.stdlib import BoundLogger
from structlog.types import EventDict, Processor

if TYPE_CHECKING:
    from config import AppSettings

# Sampling rates for high-frequency events; overwritten by setup_logging()
SAMPLING_RATES: dict[str, float] = {
    "activity_polled": 0.05,
    "status_queried": 0.20,
}

# Sensitive fields to redact from logs
REDACTED_FIELDS = {
    "api_key",
    "apikey",
    "x-api-key",
    "authorization",
    "cookie",
    "secret",
    "token",
}

_hash_ips = False


def get_logger(name: str) -> BoundLogger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Example:
        >>> log = get_logger(__name__)
        >>> log.info("pixel_created", email_id="welcome-42")
    """
    return structlog.get_logger(name)


def should_sample(event_type: str) -> bool:
    """
    Determine if an event should be logged based on its sampling rate.

    Events without a configured rate are always logged.
    """
    sample_rate = SAMPLING_RATES.get(event_type, 1.0)

    if sample_rate >= 1.0:
        return True
    if sample_rate <= 0.0:
        return False

    return random.random() < sample_rate


def hash_ip(ip_address: Optional[str]) -> Optional[str]:
    """
    Hash an IP address for privacy in production.

    In production returns the first 16 hex chars of its SHA-256 digest;
    in development the original IP is kept for easier debugging.
    """
    if not ip_address:
        return ip_address
    if _hash_ips:
        return hashlib.sha256(ip_address.encode()).hexdigest()[:16]
    return ip_address


def add_timestamp(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add ISO format timestamp to event dict."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def redact_sensitive_fields(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Redact sensitive fields from logs."""
    for key in list(event_dict.keys()):
        lowered = key.lower()
        if lowered in REDACTED_FIELDS or any(
            sensitive in lowered for sensitive in ("secret", "token", "api_key")
        ):
            event_dict[key] = "***REDACTED***"
    return event_dict


def configure_structlog(log_format: str = "console") -> None:
    """
    Configure structlog processors.

    "json" renders one JSON object per line, anything else a pretty console.
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_timestamp,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        redact_sensitive_fields,
        structlog.processors.format_exc_info,
    ]

    if log_format == "json":
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=True,
            pad_event=15,
            sort_keys=False,
        )

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_stdlib_logging(log_level: str = "INFO") -> None:
    """Route stdlib logging to stdout at the configured level."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    # Reduce noise from third-party libraries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def setup_logging(settings: "AppSettings") -> None:
    """
    Initialize logging for the application.

    Called once from create_app(); safe to call again (tests build many apps).
    """
    global _hash_ips

    log_settings = settings.logging
    configure_stdlib_logging(log_settings.log_level)
    configure_structlog(log_settings.log_format)

    _hash_ips = settings.is_production
    SAMPLING_RATES["activity_polled"] = log_settings.sample_rate_activity
    SAMPLING_RATES["status_queried"] = log_settings.sample_rate_status

    get_logger(__name__).info(
        "logging_initialized",
        env=settings.env,
        log_level=log_settings.log_level,
        log_format=log_settings.log_format,
        sentry_enabled=bool(settings.sentry.sentry_dsn),
    )
