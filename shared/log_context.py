"""
FastAPI middleware for request logging and context management.

Provides:
- request ID generation for correlation (echoed as ``X-Request-ID``)
- structlog context vars bound for the lifetime of the request
- one ``request_completed`` log line with status and timing

Pixel fetches are the bulk of the traffic; in production they are logged at
debug level so the open log itself (``pixel_opened``) stays readable.
"""

from __future__ import annotations

import time
from typing import Awaitable, Callable

import structlog
from fastapi import FastAPI, Request, Response

from shared.generators import generate_request_id
from shared.ip_utils import get_client_ip
from shared.logging import get_logger, hash_ip

log = get_logger("tracker.request")

PIXEL_PATH_PREFIXES = ("/v1/", "/pixel/")


def _log_request_end(status_code: int, duration_ms: int, quiet: bool) -> None:
    if status_code >= 500:
        log_fn = log.error
    elif status_code >= 400:
        log_fn = log.warning
    elif quiet:
        log_fn = log.debug
    else:
        log_fn = log.info

    log_fn(
        "request_completed",
        status_code=status_code,
        duration_ms=duration_ms,
    )


def setup_logging_middleware(app: FastAPI, quiet_pixel_requests: bool = False) -> None:
    """Register the request logging middleware on *app*.

    Args:
        quiet_pixel_requests: Log successful pixel fetches at debug level.
    """

    @app.middleware("http")
    async def request_logging(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        start = time.perf_counter()
        request_id = generate_request_id()

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            ip_hash=hash_ip(get_client_ip(request)),
        )

        response = await call_next(request)
        duration_ms = int((time.perf_counter() - start) * 1000)

        quiet = quiet_pixel_requests and request.url.path.startswith(PIXEL_PATH_PREFIXES)
        _log_request_end(response.status_code, duration_ms, quiet)
        response.headers["X-Request-ID"] = request_id
        structlog.contextvars.clear_contextvars()
        return response
