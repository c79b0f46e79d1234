"""Deletion and retention-driven cleanup of screenshots."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from screensift.db.models.screenshot import Screenshot
from screensift.db.repositories.screenshot_repository import ScreenshotRepository
from screensift.storage.blob_store import BlobStore

logger = structlog.get_logger(__name__)

DEFAULT_CONFIDENCE_THRESHOLD = 0.8


@dataclass
class CleanupReport:
    """Outcome of a cleanup run."""

    dry_run: bool
    candidates: list[Screenshot] = field(default_factory=list)
    deleted_ids: list[UUID] = field(default_factory=list)

    @property
    def candidate_count(self) -> int:
        return len(self.candidates)

    @property
    def deleted_count(self) -> int:
        return len(self.deleted_ids)


class CleanupService:
    """
    Removes screenshots: single deletes, low-value clutter and expired retention.

    Deleting a screenshot removes its blob first and then its row; analysis
    results and category links go with the row through ON DELETE CASCADE.
    """

    def __init__(self, session: AsyncSession, blob_store: BlobStore) -> None:
        """
        Initialize cleanup service.

        Args:
            session: Async database session
            blob_store: Byte store holding the images
        """
        self.session = session
        self.blob_store = blob_store
        self.screenshots = ScreenshotRepository(session)

    async def delete_screenshot(self, screenshot_id: UUID) -> Screenshot:
        """
        Delete one screenshot, its blob and its cascaded children.

        Raises:
            ScreenshotNotFoundError: If no row exists
        """
        screenshot = await self.screenshots.get_screenshot(screenshot_id)
        await self._delete(screenshot)
        return screenshot

    async def select_cleanup_candidates(
        self, confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD
    ) -> list[Screenshot]:
        """Screenshots confidently classified as not important."""
        return await self.screenshots.select_cleanup_candidates(confidence_threshold)

    async def cleanup_clutter(
        self,
        confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
        dry_run: bool = True,
    ) -> CleanupReport:
        """
        Report or delete cleanup candidates.

        Args:
            confidence_threshold: Minimum confidence (inclusive) of "not important"
            dry_run: Only report candidates when True

        Returns:
            CleanupReport listing candidates and, when executed, deleted ids
        """
        candidates = await self.select_cleanup_candidates(confidence_threshold)
        report = await self._run(candidates, dry_run)
        logger.info(
            "cleanup_clutter_complete",
            threshold=confidence_threshold,
            dry_run=dry_run,
            candidates=report.candidate_count,
            deleted=report.deleted_count,
        )
        return report

    async def cleanup_expired(
        self, dry_run: bool = True, now: datetime | None = None
    ) -> CleanupReport:
        """
        Report or delete screenshots whose retention policy has expired.

        Args:
            dry_run: Only report candidates when True
            now: Reference time (defaults to current UTC time)
        """
        candidates = await self.screenshots.select_retention_expired(now)
        report = await self._run(candidates, dry_run)
        logger.info(
            "cleanup_expired_complete",
            dry_run=dry_run,
            candidates=report.candidate_count,
            deleted=report.deleted_count,
        )
        return report

    async def _run(self, candidates: list[Screenshot], dry_run: bool) -> CleanupReport:
        report = CleanupReport(dry_run=dry_run, candidates=candidates)
        if dry_run:
            return report

        for screenshot in candidates:
            await self._delete(screenshot)
            report.deleted_ids.append(screenshot.id)
        return report

    async def _delete(self, screenshot: Screenshot) -> None:
        await self.blob_store.delete(screenshot.storage_key)
        await self.screenshots.delete(screenshot)
        logger.info(
            "screenshot_deleted",
            screenshot_id=str(screenshot.id),
            storage_key=screenshot.storage_key,
        )
