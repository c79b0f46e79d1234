"""Database repositories for ScreenSift."""

from screensift.db.repositories.analysis_result_repository import (
    AnalysisResultRepository,
)
from screensift.db.repositories.base_repository import BaseRepository
from screensift.db.repositories.category_repository import (
    CategoryRepository,
    CategoryWithCount,
)
from screensift.db.repositories.screenshot_repository import (
    ScreenshotFilters,
    ScreenshotRepository,
    ScreenshotStats,
)

__all__ = [
    "AnalysisResultRepository",
    "BaseRepository",
    "CategoryRepository",
    "CategoryWithCount",
    "ScreenshotFilters",
    "ScreenshotRepository",
    "ScreenshotStats",
]
