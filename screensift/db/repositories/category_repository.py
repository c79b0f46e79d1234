"""Category repository: race-tolerant get-or-create and link management."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from screensift.db.models.category import Category
from screensift.db.models.screenshot_category import ScreenshotCategory
from screensift.db.repositories.base_repository import BaseRepository
from screensift.db.types import utc_now

logger = structlog.get_logger(__name__)


@dataclass
class CategoryWithCount:
    """Category row with the number of screenshots linked to it."""

    id: int
    name: str
    description: str | None
    created_at: datetime
    screenshot_count: int


class CategoryRepository(BaseRepository[Category]):
    """Repository for Category and ScreenshotCategory operations."""

    def __init__(self, session: AsyncSession):
        """Initialize category repository."""
        super().__init__(Category, session)

    async def get_by_name(self, name: str) -> Category | None:
        """Get category by exact (case-sensitive) name."""
        result = await self.session.execute(
            select(Category).where(Category.name == name)  # type: ignore[arg-type]
        )
        return result.scalar_one_or_none()

    async def resolve_category(self, name: str) -> int:
        """
        Return the id of the category named ``name``, creating it if absent.

        The insert is ``ON CONFLICT (name) DO NOTHING``, so a concurrent first
        use of the same name never fails or duplicates; the row is re-read
        after the insert attempt either way.

        Args:
            name: Category name

        Returns:
            Category id
        """
        existing = await self.get_by_name(name)
        if existing is not None:
            return existing.id  # type: ignore[return-value]

        dialect = self.session.get_bind().dialect.name
        insert = postgresql_insert if dialect == "postgresql" else sqlite_insert
        stmt = (
            insert(Category.__table__)  # type: ignore[attr-defined]
            .values(name=name, created_at=utc_now())
            .on_conflict_do_nothing(index_elements=["name"])
        )
        await self.session.execute(stmt)

        category = await self.get_by_name(name)
        if category is None:
            raise RuntimeError(f"Category {name!r} missing after insert")

        logger.debug("category_resolved", name=name, category_id=category.id)
        return category.id  # type: ignore[return-value]

    async def replace_links(
        self, screenshot_id: UUID, links: list[tuple[int, float | None]]
    ) -> None:
        """
        Replace every category link of a screenshot.

        Existing links are deleted before the new ones are inserted, so the
        screenshot reflects only the latest classification.

        Args:
            screenshot_id: Screenshot UUID
            links: (category_id, confidence) pairs
        """
        await self.session.execute(
            delete(ScreenshotCategory).where(
                ScreenshotCategory.screenshot_id == screenshot_id  # type: ignore[arg-type]
            )
        )
        for category_id, confidence in links:
            self.session.add(
                ScreenshotCategory(
                    screenshot_id=screenshot_id,
                    category_id=category_id,
                    confidence=confidence,
                )
            )
        await self.session.flush()

    async def get_screenshot_categories(
        self, screenshot_id: UUID
    ) -> list[tuple[str, float | None]]:
        """
        Current (name, confidence) pairs for a screenshot.

        Args:
            screenshot_id: Screenshot UUID

        Returns:
            Category name and link confidence, ordered by name
        """
        result = await self.session.execute(
            select(Category.name, ScreenshotCategory.confidence)
            .join(
                ScreenshotCategory,
                ScreenshotCategory.category_id == Category.id,  # type: ignore[arg-type]
            )
            .where(ScreenshotCategory.screenshot_id == screenshot_id)  # type: ignore[arg-type]
            .order_by(Category.name)
        )
        return [(row.name, row.confidence) for row in result.all()]

    async def list_with_counts(self) -> list[CategoryWithCount]:
        """
        All categories with their linked screenshot counts.

        Returns:
            Categories ordered by name
        """
        result = await self.session.execute(
            select(
                Category.id,
                Category.name,
                Category.description,
                Category.created_at,
                func.count(ScreenshotCategory.screenshot_id).label("screenshot_count"),
            )
            .outerjoin(
                ScreenshotCategory,
                Category.id == ScreenshotCategory.category_id,  # type: ignore[arg-type]
            )
            .group_by(
                Category.id,
                Category.name,
                Category.description,
                Category.created_at,
            )
            .order_by(Category.name)
        )
        return [
            CategoryWithCount(
                id=row.id,
                name=row.name,
                description=row.description,
                created_at=row.created_at,
                screenshot_count=row.screenshot_count,
            )
            for row in result.all()
        ]
