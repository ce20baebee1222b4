"""Health check endpoints for load balancers and monitoring."""

import logging
import os
import time

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from liftlog import __version__
from liftlog.core.config import get_settings
from liftlog.db.session import get_db
from liftlog.models.user import User

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("")
async def health():
    """Liveness. Includes built_at if BACKEND_BUILT_AT env is set."""
    settings = get_settings()
    payload: dict = {"status": "ok", "version": __version__, "environment": settings.environment}
    built_at = os.environ.get("BACKEND_BUILT_AT")
    if built_at:
        payload["built_at"] = built_at
    return payload


@router.get("/ready")
async def readiness(db: AsyncSession = Depends(get_db)):
    """Ready when the schema is reachable: counts users and reports query latency."""
    started = time.perf_counter()
    try:
        users = await db.scalar(select(func.count()).select_from(User))
    except Exception:
        logger.exception("Readiness check failed")
        await db.rollback()
        return JSONResponse(
            status_code=503,
            content={"status": "error", "database": "unavailable", "version": __version__},
        )
    latency_ms = round((time.perf_counter() - started) * 1000, 2)
    return {
        "status": "ok",
        "database": "connected",
        "latency_ms": latency_ms,
        "users": users or 0,
        "version": __version__,
    }
