"""On-demand letter avatar rendering."""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, HTTPException, Response, status

from services import AVATAR_CONTENT_TYPE, InvalidDisplayNameError, generate_avatar

router = APIRouter(prefix="/avatars", tags=["avatars"])

# Every render picks a new background colour.
AVATAR_NO_STORE_CACHE_CONTROL = "no-store"


@router.get("/{display_name}", response_class=Response)
async def render_avatar(display_name: str) -> Response:
    try:
        payload = await asyncio.to_thread(generate_avatar, display_name)
    except InvalidDisplayNameError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail=str(exc),
        ) from exc

    return Response(
        content=payload,
        media_type=AVATAR_CONTENT_TYPE,
        headers={"Cache-Control": AVATAR_NO_STORE_CACHE_CONTROL},
    )
