"""Liveness and database readiness probes."""

import asyncio
import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.config import get_settings
from infrastructure.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter()
settings = get_settings()

DB_CHECK_TIMEOUT = 5.0


def _status(**fields) -> dict:
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "timestamp": datetime.now(UTC).isoformat(),
        **fields,
    }


@router.get("/health")
async def health_check():
    return _status(status="healthy")


@router.get("/health/db")
async def health_check_db(db: AsyncSession = Depends(get_db)):
    """Report ``degraded`` rather than failing when the database is unreachable."""
    try:
        await asyncio.wait_for(db.execute(text("SELECT 1")), timeout=DB_CHECK_TIMEOUT)
    except TimeoutError:
        logger.error("Database health check timed out after %.0fs", DB_CHECK_TIMEOUT)
        return _status(status="degraded", database="timeout")
    except SQLAlchemyError as e:
        logger.error("Database health check failed: %s", e)
        return _status(status="degraded", database="unavailable")
    return _status(status="healthy", database="connected")
