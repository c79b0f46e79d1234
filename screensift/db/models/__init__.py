"""Database models for ScreenSift."""

from screensift.db.models.analysis_result import AnalysisResult, AnalysisType
from screensift.db.models.category import Category
from screensift.db.models.screenshot import Screenshot
from screensift.db.models.screenshot_category import ScreenshotCategory

__all__ = [
    "AnalysisResult",
    "AnalysisType",
    "Category",
    "Screenshot",
    "ScreenshotCategory",
]
