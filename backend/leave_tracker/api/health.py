import logging
from typing import Literal

from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from leave_tracker.config import get_settings
from leave_tracker.db import SessionDep

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Liveness of the leave tracker. No caller identity is needed to read it."""

    status: Literal["ok", "degraded"]
    database: Literal["reachable", "unreachable"]
    app: str
    version: str
    environment: str


async def _ping(session: AsyncSession) -> bool:
    try:
        await session.execute(text("SELECT 1"))
    except (DBAPIError, OSError):
        logger.exception("Leave records store did not answer the health ping")
        return False
    return True


@router.get("/health", response_model=HealthResponse)
async def health(session: SessionDep) -> HealthResponse:
    """Always 200; the body reports degraded when the store does not answer."""
    settings = get_settings()
    reachable = await _ping(session)
    return HealthResponse(
        status="ok" if reachable else "degraded",
        database="reachable" if reachable else "unreachable",
        app=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )
