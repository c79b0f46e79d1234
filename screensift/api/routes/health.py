"""Liveness endpoint reporting database connectivity."""

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from screensift.api.dependencies import get_db
from screensift.version import __version__

logger = structlog.get_logger(__name__)
router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    database: str
    version: str


@router.get("/health", response_model=HealthResponse)
async def health_check(db: AsyncSession = Depends(get_db)) -> HealthResponse:  # noqa: B008
    """503 when the database does not answer a trivial query."""
    try:
        await db.scalar(select(1))
    except (SQLAlchemyError, OSError) as e:
        logger.error("health_check_database_unavailable", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Database unavailable"
        ) from e
    return HealthResponse(status="healthy", database="connected", version=__version__)
