"""Analysis result repository for the append-only classification log."""

from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from screensift.db.models.analysis_result import AnalysisResult, AnalysisType
from screensift.db.repositories.base_repository import BaseRepository
from screensift.db.types import utc_now


class AnalysisResultRepository(BaseRepository[AnalysisResult]):
    """Repository for AnalysisResult model operations."""

    def __init__(self, session: AsyncSession):
        """Initialize analysis result repository."""
        super().__init__(AnalysisResult, session)

    async def append(
        self,
        screenshot_id: UUID,
        analysis_type: AnalysisType,
        result_data: dict[str, Any],
    ) -> AnalysisResult:
        """
        Append a classification to the history of a screenshot.

        Args:
            screenshot_id: Screenshot UUID
            analysis_type: Operation that produced the result
            result_data: Full judgement as JSON-compatible dict

        Returns:
            Created AnalysisResult instance
        """
        analysis_result = AnalysisResult(
            screenshot_id=screenshot_id,
            analysis_type=analysis_type.value,
            result_data=result_data,
            created_at=utc_now(),
        )
        return await self.add(analysis_result)

    async def get_history(self, screenshot_id: UUID) -> list[AnalysisResult]:
        """
        Get every analysis result of a screenshot, most recent first.

        Args:
            screenshot_id: Screenshot UUID

        Returns:
            List of AnalysisResult instances
        """
        result = await self.session.execute(
            select(AnalysisResult)
            .where(AnalysisResult.screenshot_id == screenshot_id)  # type: ignore[arg-type]
            .order_by(
                AnalysisResult.created_at.desc(),  # type: ignore[attr-defined]
                AnalysisResult.id.desc(),  # type: ignore[union-attr]
            )
        )
        return list(result.scalars().all())
