"""Application factory."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from api.v1 import api_router
from core import settings, setup_logging
from db.session import AsyncSessionMaker
from services import LikeToggleService

logger = logging.getLogger(__name__)


def create_app(
    *,
    session_maker: async_sessionmaker[AsyncSession] | None = None,
) -> FastAPI:
    setup_logging(settings.log_level)

    application = FastAPI(title=settings.app_name)
    # Routers and the toggle service must share one database.
    application.state.session_maker = session_maker or AsyncSessionMaker
    # One toggle service per process so same-pair requests share in-flight work.
    application.state.like_service = LikeToggleService(application.state.session_maker)
    application.include_router(api_router)

    @application.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    logger.info("Application created", extra={"app_env": settings.app_env})
    return application
