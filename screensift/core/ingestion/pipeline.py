"""Classification pipeline: upload, classify, persist and reanalyze screenshots."""

from dataclasses import dataclass
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from screensift.config import settings
from screensift.core.classification.classifier import VisionClassifier
from screensift.core.classification.judgement import Judgement, fallback_judgement
from screensift.core.ingestion.keys import generate_storage_key
from screensift.db.models.analysis_result import AnalysisType
from screensift.db.models.screenshot import Screenshot
from screensift.db.repositories.analysis_result_repository import (
    AnalysisResultRepository,
)
from screensift.db.repositories.category_repository import CategoryRepository
from screensift.db.repositories.screenshot_repository import ScreenshotRepository
from screensift.storage.blob_store import BlobStore
from screensift.utils.exceptions import InvalidUploadError

logger = structlog.get_logger(__name__)


@dataclass
class ClassifiedScreenshot:
    """A persisted screenshot together with the judgement just applied to it."""

    screenshot: Screenshot
    judgement: Judgement


def validate_upload(
    filename: str | None,
    data: bytes | None,
    mime_type: str | None,
    max_bytes: int | None = None,
) -> tuple[str, bytes, str]:
    """
    Check that an upload is a non-empty image within the size limit.

    Returns:
        The filename, bytes and MIME type, now known to be present

    Raises:
        InvalidUploadError: If the file is missing, empty, not an image or too large
    """
    if not filename or data is None:
        raise InvalidUploadError("No file provided")
    if not mime_type or not mime_type.startswith("image/"):
        raise InvalidUploadError("File must be an image")
    if len(data) == 0:
        raise InvalidUploadError("File is empty")
    limit = max_bytes if max_bytes is not None else settings.max_upload_bytes
    if len(data) > limit:
        raise InvalidUploadError(f"File exceeds the {limit} byte upload limit")
    return filename, data, mime_type


class ClassificationPipeline:
    """
    Maps classifier judgements onto catalog state.

    Write order for an upload:
    1. Blob put and Screenshot row (before classification)
    2. Classifier call, replaced by the fallback judgement on any failure
    3. Screenshot summary update
    4. AnalysisResult append
    5. Category get-or-create
    6. Link rows

    All database writes share the caller's session, so they commit or roll
    back together. If the sequence fails after the blob was written, the blob
    is deleted before the error propagates.
    """

    def __init__(
        self,
        session: AsyncSession,
        classifier: VisionClassifier,
        blob_store: BlobStore,
    ) -> None:
        """
        Initialize pipeline with injected collaborators.

        Args:
            session: Async database session for persistence
            classifier: Vision classifier capability
            blob_store: Byte store holding the images
        """
        self.session = session
        self.classifier = classifier
        self.blob_store = blob_store
        self.screenshots = ScreenshotRepository(session)
        self.categories = CategoryRepository(session)
        self.analysis_results = AnalysisResultRepository(session)

    async def classify(self, image_bytes: bytes, mime_type: str) -> Judgement:
        """
        Classify an image, substituting the fallback judgement on failure.

        Never raises for classifier problems; the caller always gets a valid
        Judgement.
        """
        try:
            return await self.classifier.classify(image_bytes, mime_type)
        except Exception as e:
            logger.warning(
                "classification_failed_fallback",
                error=str(e),
                error_type=type(e).__name__,
            )
            return fallback_judgement()

    async def analyze(
        self, filename: str | None, data: bytes | None, mime_type: str | None
    ) -> Judgement:
        """
        Classify an upload without storing anything.

        Raises:
            InvalidUploadError: If the upload is not a usable image
        """
        _, data, mime_type = validate_upload(filename, data, mime_type)
        return await self.classify(data, mime_type)

    async def ingest(
        self, filename: str | None, data: bytes | None, mime_type: str | None
    ) -> ClassifiedScreenshot:
        """
        Store, catalog and classify a new screenshot.

        Args:
            filename: Original filename
            data: Image bytes
            mime_type: Client-reported MIME type

        Returns:
            ClassifiedScreenshot with the persisted row and its judgement

        Raises:
            InvalidUploadError: If the upload is not a usable image
            StorageError / SQLAlchemyError: If persistence fails
        """
        filename, data, mime_type = validate_upload(filename, data, mime_type)

        storage_key = generate_storage_key(filename)
        await self.blob_store.put(
            storage_key,
            data,
            content_type=mime_type,
            cache_control=settings.blob_cache_control,
            custom_metadata={"original_filename": filename},
        )

        try:
            screenshot = await self.screenshots.create_screenshot(
                filename=filename,
                storage_key=storage_key,
                file_size=len(data),
                mime_type=mime_type,
            )
            logger.info(
                "screenshot_uploaded",
                screenshot_id=str(screenshot.id),
                storage_key=storage_key,
                file_size=len(data),
            )

            judgement = await self.classify(data, mime_type)
            screenshot = await self._apply_judgement(
                screenshot.id, judgement, AnalysisType.INITIAL
            )
        except Exception:
            logger.error("ingest_failed_removing_blob", storage_key=storage_key)
            await self.blob_store.delete(storage_key)
            raise

        return ClassifiedScreenshot(screenshot=screenshot, judgement=judgement)

    async def reanalyze(self, screenshot_id: UUID) -> ClassifiedScreenshot:
        """
        Classify a stored screenshot again and replace its categories.

        Appends a new ``reanalysis`` history row every time; the link set
        always reflects only this latest judgement.

        Raises:
            ScreenshotNotFoundError: If the row is missing or deleted meanwhile
            BlobNotFoundError: If the row exists but its blob does not
        """
        screenshot = await self.screenshots.get_screenshot(screenshot_id)
        blob = await self.blob_store.get(screenshot.storage_key)

        judgement = await self.classify(blob.data, screenshot.mime_type)
        screenshot = await self._apply_judgement(
            screenshot_id, judgement, AnalysisType.REANALYSIS
        )

        logger.info(
            "screenshot_reanalyzed",
            screenshot_id=str(screenshot_id),
            categories=judgement.category_names(),
        )
        return ClassifiedScreenshot(screenshot=screenshot, judgement=judgement)

    async def _apply_judgement(
        self,
        screenshot_id: UUID,
        judgement: Judgement,
        analysis_type: AnalysisType,
    ) -> Screenshot:
        """Steps 3-6 of the write sequence."""
        screenshot = await self.screenshots.update_analysis(
            screenshot_id,
            is_important=judgement.is_important,
            confidence_score=judgement.confidence,
            retention_policy=judgement.retention_policy.value,
            importance_level=judgement.importance_level.value,
        )

        await self.analysis_results.append(
            screenshot_id,
            analysis_type,
            judgement.model_dump(mode="json"),
        )

        links = [
            (await self.categories.resolve_category(name), confidence)
            for name, confidence in judgement.category_links()
        ]
        await self.categories.replace_links(screenshot_id, links)

        return screenshot
