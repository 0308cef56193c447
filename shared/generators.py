"""
Identifier generators for pixels and requests.

Pixel ids double as the only access control on the image route, so they come
from the ``secrets`` CSPRNG and are long enough that enumerating them is
infeasible.
"""

from __future__ import annotations

import secrets
import uuid

PIXEL_ID_BYTES = 24  # 192 bits -> 32 URL-safe base64 characters


def generate_pixel_id() -> str:
    """Generate a 32-character URL-safe pixel id (192 bits of entropy)."""
    return secrets.token_urlsafe(PIXEL_ID_BYTES)


def generate_request_id() -> str:
    """Generate a short request id for log correlation."""
    return f"req_{uuid.uuid4().hex[:12]}"
