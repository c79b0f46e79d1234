"""Screenshot endpoints: upload, analyze, fetch, history, reanalyze, list and delete."""

from datetime import datetime
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, File, Query, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from screensift.api.dependencies import (
    get_blob_store,
    get_cleanup_service,
    get_db,
    get_pipeline,
)
from screensift.api.schemas.screenshots import (
    AnalysisResultItem,
    CategoryConfidence,
    MessageResponse,
    ReanalyzeResponse,
    ScreenshotAnalysisResponse,
    ScreenshotAnalysisSummary,
    ScreenshotListResponse,
    ScreenshotSummary,
    UploadResponse,
)
from screensift.config import settings
from screensift.core.classification.judgement import Judgement
from screensift.core.ingestion.pipeline import ClassificationPipeline
from screensift.core.retention.cleanup import CleanupService
from screensift.db.repositories.analysis_result_repository import (
    AnalysisResultRepository,
)
from screensift.db.repositories.category_repository import CategoryRepository
from screensift.db.repositories.screenshot_repository import (
    ScreenshotFilters,
    ScreenshotRepository,
)
from screensift.storage.blob_store import BlobStore
from screensift.utils.exceptions import InvalidUploadError

logger = structlog.get_logger(__name__)
router = APIRouter(tags=["screenshots"])


async def _read_upload(file: UploadFile | None) -> tuple[str | None, bytes | None, str | None]:
    if file is None:
        return None, None, None
    limit = settings.max_upload_bytes
    if file.size is not None and file.size > limit:
        raise InvalidUploadError(f"File exceeds the {limit} byte upload limit")
    # One byte past the limit is enough for validate_upload to reject it
    return file.filename, await file.read(limit + 1), file.content_type


@router.post(
    "/upload",
    response_model=UploadResponse,
    summary="Upload screenshot",
    description="Store an image, classify it and catalog the result",
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "No file or not an image"}},
)
async def upload_screenshot(
    file: UploadFile | None = File(None, description="Image file"),  # noqa: B008
    pipeline: ClassificationPipeline = Depends(get_pipeline),  # noqa: B008
) -> UploadResponse:
    """Upload, classify and persist a screenshot."""
    filename, data, mime_type = await _read_upload(file)
    result = await pipeline.ingest(filename, data, mime_type)

    return UploadResponse(
        id=result.screenshot.id,
        filename=result.screenshot.filename,
        is_important=result.judgement.is_important,
        confidence=result.judgement.confidence,
        categories=result.judgement.category_names(),
        description=result.judgement.description,
    )


@router.post(
    "/analyze",
    response_model=Judgement,
    summary="Analyze screenshot",
    description="Classify an image without storing it",
    responses={400: {"description": "No file or not an image"}},
)
async def analyze_screenshot(
    file: UploadFile | None = File(None, description="Image file"),  # noqa: B008
    pipeline: ClassificationPipeline = Depends(get_pipeline),  # noqa: B008
) -> Judgement:
    """Return the judgement for an image; nothing is persisted."""
    filename, data, mime_type = await _read_upload(file)
    return await pipeline.analyze(filename, data, mime_type)


@router.get(
    "/screenshots",
    response_model=ScreenshotListResponse,
    summary="List screenshots",
    description="Filtered, paginated list of screenshots, most recent upload first",
)
async def list_screenshots(
    category: str | None = Query(None, description="Only screenshots linked to this category"),
    important_only: bool = Query(False, description="Only important screenshots"),
    limit: int = Query(50, ge=1, le=500, description="Results per page"),
    offset: int = Query(0, ge=0, description="Page offset"),
    date_from: datetime | None = Query(None, description="Uploaded at or after"),
    date_to: datetime | None = Query(None, description="Uploaded at or before"),
    db: AsyncSession = Depends(get_db),  # noqa: B008
) -> ScreenshotListResponse:
    """List screenshots; all given filters must match."""
    filters = ScreenshotFilters(
        category=category,
        important_only=important_only,
        date_from=date_from,
        date_to=date_to,
        limit=limit,
        offset=offset,
    )
    screenshots = await ScreenshotRepository(db).list_screenshots(filters)

    logger.info("list_screenshots_complete", count=len(screenshots), category=category)
    return ScreenshotListResponse(
        screenshots=[ScreenshotSummary.model_validate(s) for s in screenshots],
        limit=limit,
        offset=offset,
    )


@router.get(
    "/screenshots/{screenshot_id}",
    summary="Fetch screenshot image",
    response_class=Response,
    responses={
        200: {"content": {"image/*": {}}, "description": "Raw image bytes"},
        404: {"description": "Screenshot or file not found"},
    },
)
async def get_screenshot_file(
    screenshot_id: UUID,
    db: AsyncSession = Depends(get_db),  # noqa: B008
    blob_store: BlobStore = Depends(get_blob_store),  # noqa: B008
) -> Response:
    """Return the stored bytes with their stored content type and cache headers."""
    screenshot = await ScreenshotRepository(db).get_screenshot(screenshot_id)
    blob = await blob_store.get(screenshot.storage_key)

    headers = {}
    if blob.cache_control:
        headers["Cache-Control"] = blob.cache_control
    if blob.etag:
        headers["ETag"] = blob.etag
    return Response(content=blob.data, media_type=blob.content_type, headers=headers)


@router.get(
    "/screenshots/{screenshot_id}/analysis",
    response_model=ScreenshotAnalysisResponse,
    summary="Get screenshot analysis",
    responses={404: {"description": "Screenshot not found"}},
)
async def get_screenshot_analysis(
    screenshot_id: UUID,
    db: AsyncSession = Depends(get_db),  # noqa: B008
) -> ScreenshotAnalysisResponse:
    """Summary, current categories and the full analysis history."""
    screenshot = await ScreenshotRepository(db).get_screenshot(screenshot_id)
    categories = await CategoryRepository(db).get_screenshot_categories(screenshot_id)
    history = await AnalysisResultRepository(db).get_history(screenshot_id)

    return ScreenshotAnalysisResponse(
        screenshot=ScreenshotAnalysisSummary.model_validate(screenshot),
        categories=[
            CategoryConfidence(name=name, confidence=confidence)
            for name, confidence in categories
        ],
        analysis_results=[AnalysisResultItem.model_validate(r) for r in history],
    )


@router.post(
    "/screenshots/{screenshot_id}/reanalyze",
    response_model=ReanalyzeResponse,
    summary="Reanalyze screenshot",
    responses={404: {"description": "Screenshot or file not found"}},
)
async def reanalyze_screenshot(
    screenshot_id: UUID,
    pipeline: ClassificationPipeline = Depends(get_pipeline),  # noqa: B008
) -> ReanalyzeResponse:
    """Classify the stored image again and replace its categories."""
    result = await pipeline.reanalyze(screenshot_id)
    return ReanalyzeResponse(
        is_important=result.judgement.is_important,
        confidence=result.judgement.confidence,
        categories=result.judgement.category_names(),
    )


@router.delete(
    "/screenshots/{screenshot_id}",
    response_model=MessageResponse,
    summary="Delete screenshot",
    responses={404: {"description": "Screenshot not found"}},
)
async def delete_screenshot(
    screenshot_id: UUID,
    cleanup: CleanupService = Depends(get_cleanup_service),  # noqa: B008
) -> MessageResponse:
    """Delete the blob, then the row with its history and links."""
    await cleanup.delete_screenshot(screenshot_id)
    return MessageResponse(message="Screenshot deleted successfully")
