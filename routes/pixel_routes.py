"""
Tracking pixel image route.

GET /v1/{pixel_id}.gif   (URL handed out by the pixel service)
GET /pixel/{pixel_id}    (alias)

Always answers 200 with the same 1x1 transparent GIF and no-cache headers,
whether the pixel exists, the fetch was recorded, or the store failed. A
mail client must never render a broken image, and the response must not
reveal whether an id is valid.
"""

from __future__ import annotations

import base64
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from dependencies import get_open_recorder
from services.open_recorder import OpenRecorder
from shared.ip_utils import get_client_ip

router = APIRouter(tags=["pixel"])

TRANSPARENT_GIF = base64.b64decode("R0lGODlhAQABAIAAAAAAAP///yH5BAEAAAAALAAAAAABAAEAAAIBRAA7")

PIXEL_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


def pixel_response() -> Response:
    return Response(content=TRANSPARENT_GIF, media_type="image/gif", headers=PIXEL_HEADERS)


@router.get("/v1/{pixel_id}.gif", include_in_schema=False)
def serve_pixel(
    pixel_id: str,
    request: Request,
    recorder: Annotated[OpenRecorder, Depends(get_open_recorder)],
) -> Response:
    recorder.record_open(
        pixel_id,
        user_agent=request.headers.get("User-Agent", ""),
        source_ip=get_client_ip(request),
    )
    return pixel_response()


@router.get("/pixel/{pixel_id}", include_in_schema=False)
def serve_pixel_alias(
    pixel_id: str,
    request: Request,
    recorder: Annotated[OpenRecorder, Depends(get_open_recorder)],
) -> Response:
    return serve_pixel(pixel_id, request, recorder)
