"""Category and maintenance endpoints: category list, stats and cleanup."""

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from screensift.api.dependencies import get_cleanup_service, get_db
from screensift.api.schemas.screenshots import (
    CategoriesResponse,
    CategoryCount,
    CategoryItem,
    CleanupRequest,
    CleanupResponse,
    ScreenshotSummary,
    StatsResponse,
)
from screensift.core.retention.cleanup import CleanupService
from screensift.db.repositories.category_repository import CategoryRepository
from screensift.db.repositories.screenshot_repository import ScreenshotRepository

logger = structlog.get_logger(__name__)
router = APIRouter(tags=["categories"])


@router.get(
    "/categories",
    response_model=CategoriesResponse,
    summary="List categories",
    description="Every category with the number of screenshots linked to it",
)
async def list_categories(
    db: AsyncSession = Depends(get_db),  # noqa: B008
) -> CategoriesResponse:
    categories = await CategoryRepository(db).list_with_counts()
    return CategoriesResponse(
        categories=[CategoryItem.model_validate(c) for c in categories]
    )


@router.get(
    "/stats",
    response_model=StatsResponse,
    summary="Screenshot statistics",
)
async def get_stats(
    db: AsyncSession = Depends(get_db),  # noqa: B008
) -> StatsResponse:
    """Totals and per-category counts, largest category first."""
    stats = await ScreenshotRepository(db).get_stats()
    return StatsResponse(
        total_screenshots=stats.total_count,
        important_screenshots=stats.important_count,
        total_size_bytes=stats.total_size_bytes,
        categories=[
            CategoryCount(name=name, count=count) for name, count in stats.category_counts
        ],
    )


@router.post(
    "/cleanup",
    response_model=CleanupResponse,
    summary="Clean up screenshots",
    description="Preview (dry run) or delete clutter or retention-expired screenshots",
)
async def cleanup_screenshots(
    request: CleanupRequest,
    cleanup: CleanupService = Depends(get_cleanup_service),  # noqa: B008
) -> CleanupResponse:
    if request.mode == "expired":
        report = await cleanup.cleanup_expired(dry_run=request.dry_run)
    else:
        report = await cleanup.cleanup_clutter(
            confidence_threshold=request.confidence_threshold,
            dry_run=request.dry_run,
        )

    return CleanupResponse(
        dry_run=report.dry_run,
        candidate_count=report.candidate_count,
        deleted_count=report.deleted_count,
        candidates=[ScreenshotSummary.model_validate(s) for s in report.candidates],
    )
