"""
Source address resolution for pixel fetches.

Takes an explicit ``Request`` so it can be tested with a stub object. The
address is best-effort: mail clients and proxies may hide it entirely.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Request

# Checked in order; the first non-empty value wins
PROXY_HEADERS: tuple[str, ...] = (
    "CF-Connecting-IP",  # Cloudflare
    "True-Client-IP",  # Akamai and others
    "X-Forwarded-For",  # first hop of the list
    "X-Real-IP",  # nginx
    "X-Client-IP",
)


def get_client_ip(request: Request) -> Optional[str]:
    """Return the originating client address, or ``None`` if unknown."""
    for header in PROXY_HEADERS:
        value = request.headers.get(header)
        if not value:
            continue
        first_hop = value.split(",")[0].strip()
        if first_hop:
            return first_hop

    if request.client and request.client.host:
        return request.client.host
    return None
