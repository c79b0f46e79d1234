"""Screenshot repository for catalog writes, filtered listing and retention queries."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from screensift.db.models.category import Category
from screensift.db.models.screenshot import Screenshot
from screensift.db.models.screenshot_category import ScreenshotCategory
from screensift.db.repositories.base_repository import BaseRepository
from screensift.db.types import as_utc, utc_now
from screensift.utils.exceptions import ScreenshotNotFoundError

# Retention policy values as stored on the screenshot row
RETENTION_KEEP = "keep"
RETENTION_DELETE_AFTER_7_DAYS = "delete_after_7_days"
RETENTION_DELETE_IMMEDIATELY = "delete_immediately"


@dataclass
class ScreenshotFilters:
    """Filters for screenshot listing. Every active filter must match."""

    category: str | None = None
    important_only: bool = False
    date_from: datetime | None = None
    date_to: datetime | None = None
    limit: int = 50
    offset: int = 0


@dataclass
class ScreenshotStats:
    """Aggregate catalog statistics."""

    total_count: int
    important_count: int
    total_size_bytes: int
    category_counts: list[tuple[str, int]]


class ScreenshotRepository(BaseRepository[Screenshot]):
    """Repository for Screenshot model operations."""

    def __init__(self, session: AsyncSession):
        """Initialize screenshot repository."""
        super().__init__(Screenshot, session)

    async def create_screenshot(
        self,
        filename: str,
        storage_key: str,
        file_size: int,
        mime_type: str,
    ) -> Screenshot:
        """
        Create a new, not yet analyzed screenshot record.

        Args:
            filename: Original upload filename
            storage_key: Blob store key holding the image bytes
            file_size: Size of the image in bytes
            mime_type: MIME type reported by the client

        Returns:
            Created Screenshot instance
        """
        screenshot = Screenshot(
            filename=filename,
            storage_key=storage_key,
            file_size=file_size,
            mime_type=mime_type,
            uploaded_at=utc_now(),
        )
        return await self.add(screenshot)

    async def get_screenshot(self, screenshot_id: UUID) -> Screenshot:
        """
        Get screenshot by ID or raise.

        Raises:
            ScreenshotNotFoundError: If no row exists
        """
        screenshot = await self.get_by_id(screenshot_id)
        if screenshot is None:
            raise ScreenshotNotFoundError(screenshot_id)
        return screenshot

    async def update_analysis(
        self,
        screenshot_id: UUID,
        is_important: bool,
        confidence_score: float,
        retention_policy: str,
        importance_level: str,
    ) -> Screenshot:
        """
        Overwrite the classification summary of a screenshot.

        The UPDATE targets the row by id and never inserts, so a screenshot
        deleted in the meantime is reported instead of being recreated.

        Raises:
            ScreenshotNotFoundError: If the row no longer exists
        """
        result = await self.session.execute(
            update(Screenshot)
            .where(Screenshot.id == screenshot_id)  # type: ignore[arg-type]
            .values(
                analyzed_at=utc_now(),
                is_important=is_important,
                confidence_score=confidence_score,
                retention_policy=retention_policy,
                importance_level=importance_level,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:  # type: ignore[attr-defined]
            raise ScreenshotNotFoundError(screenshot_id)

        screenshot = await self.session.get(
            Screenshot, screenshot_id, populate_existing=True
        )
        if screenshot is None:
            raise ScreenshotNotFoundError(screenshot_id)
        return screenshot

    async def list_screenshots(self, filters: ScreenshotFilters) -> list[Screenshot]:
        """
        List screenshots matching all filters, most recent upload first.

        Args:
            filters: Category, importance, upload date range and pagination

        Returns:
            Page of Screenshot instances
        """
        query = select(Screenshot)
        conditions = []

        if filters.category:
            query = query.join(
                ScreenshotCategory,
                Screenshot.id == ScreenshotCategory.screenshot_id,  # type: ignore[arg-type]
            ).join(
                Category,
                ScreenshotCategory.category_id == Category.id,  # type: ignore[arg-type]
            )
            conditions.append(Category.name == filters.category)

        if filters.important_only:
            conditions.append(Screenshot.is_important == True)  # noqa: E712

        date_from = as_utc(filters.date_from)
        if date_from is not None:
            conditions.append(Screenshot.uploaded_at >= date_from)

        date_to = as_utc(filters.date_to)
        if date_to is not None:
            conditions.append(Screenshot.uploaded_at <= date_to)

        if conditions:
            query = query.where(and_(*conditions))

        query = (
            query.order_by(Screenshot.uploaded_at.desc())  # type: ignore[attr-defined]
            .limit(filters.limit)
            .offset(filters.offset)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def select_cleanup_candidates(
        self, confidence_threshold: float
    ) -> list[Screenshot]:
        """
        Screenshots the classifier was confident are not important.

        Args:
            confidence_threshold: Minimum confidence (inclusive)

        Returns:
            Screenshots with is_important false and confidence >= threshold
        """
        result = await self.session.execute(
            select(Screenshot)
            .where(
                Screenshot.is_important == False,  # noqa: E712
                Screenshot.confidence_score >= confidence_threshold,  # type: ignore[operator]
            )
            .order_by(Screenshot.uploaded_at)  # type: ignore[arg-type]
        )
        return list(result.scalars().all())

    async def select_retention_expired(self, now: datetime | None = None) -> list[Screenshot]:
        """
        Screenshots whose latest retention policy has run out.

        ``delete_immediately`` expires at once; ``delete_after_7_days`` expires
        seven days after upload; ``keep`` never expires.

        Args:
            now: Reference time (defaults to current UTC time)

        Returns:
            Expired, non-important screenshots oldest first
        """
        now = as_utc(now) or utc_now()
        week_ago = now - timedelta(days=7)
        result = await self.session.execute(
            select(Screenshot)
            .where(
                Screenshot.is_important == False,  # noqa: E712
                or_(
                    Screenshot.retention_policy == RETENTION_DELETE_IMMEDIATELY,
                    and_(
                        Screenshot.retention_policy == RETENTION_DELETE_AFTER_7_DAYS,
                        Screenshot.uploaded_at <= week_ago,
                    ),
                ),
            )
            .order_by(Screenshot.uploaded_at)  # type: ignore[arg-type]
        )
        return list(result.scalars().all())

    async def get_stats(self) -> ScreenshotStats:
        """
        Aggregate counts, total size and per-category counts.

        Returns:
            ScreenshotStats with categories ordered by descending count
        """
        total_count = await self.count()
        important_count = await self.count(
            Screenshot.is_important == True  # noqa: E712
        )
        total_size = await self.session.scalar(
            select(func.coalesce(func.sum(Screenshot.file_size), 0))
        )

        link_count = func.count(ScreenshotCategory.screenshot_id)
        result = await self.session.execute(
            select(Category.name, link_count.label("screenshot_count"))
            .outerjoin(
                ScreenshotCategory,
                Category.id == ScreenshotCategory.category_id,  # type: ignore[arg-type]
            )
            .group_by(Category.id, Category.name)
            .order_by(link_count.desc(), Category.name)
        )

        return ScreenshotStats(
            total_count=total_count,
            important_count=important_count,
            total_size_bytes=int(total_size or 0),
            category_counts=[(row.name, row.screenshot_count) for row in result.all()],
        )
