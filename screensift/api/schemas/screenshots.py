"""Pydantic schemas for screenshot, category and maintenance endpoints."""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class UploadResponse(BaseModel):
    """Response schema for a classified upload."""

    id: UUID
    filename: str
    is_important: bool
    confidence: float
    categories: list[str]
    description: str

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "id": "123e4567-e89b-12d3-a456-426614174000",
                    "filename": "terminal.png",
                    "is_important": True,
                    "confidence": 0.92,
                    "categories": ["Dev", "python"],
                    "description": "Terminal showing a failing pytest run",
                }
            ]
        }
    }


class ScreenshotSummary(BaseModel):
    """Screenshot row as returned by list endpoints."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    filename: str
    file_size: int
    mime_type: str
    uploaded_at: datetime
    analyzed_at: datetime | None
    is_important: bool
    confidence_score: float | None
    retention_policy: str | None = None
    importance_level: str | None = None


class ScreenshotListResponse(BaseModel):
    """Response schema for the screenshot list endpoint."""

    screenshots: list[ScreenshotSummary]
    limit: int
    offset: int


class CategoryConfidence(BaseModel):
    """Current category assignment of a screenshot."""

    name: str
    confidence: float | None


class AnalysisResultItem(BaseModel):
    """One entry of the classification history."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    analysis_type: str
    result_data: dict[str, Any]
    created_at: datetime


class ScreenshotAnalysisSummary(BaseModel):
    """Classification summary of a screenshot."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    filename: str
    is_important: bool
    confidence_score: float | None
    analyzed_at: datetime | None


class ScreenshotAnalysisResponse(BaseModel):
    """Summary, current categories and full history (most recent first)."""

    screenshot: ScreenshotAnalysisSummary
    categories: list[CategoryConfidence]
    analysis_results: list[AnalysisResultItem]


class ReanalyzeResponse(BaseModel):
    """Response schema for reanalysis."""

    message: str = "Reanalysis completed"
    is_important: bool
    confidence: float
    categories: list[str]


class MessageResponse(BaseModel):
    """Plain confirmation message."""

    message: str


class CategoryItem(BaseModel):
    """Category with the number of screenshots linked to it."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None
    created_at: datetime
    screenshot_count: int


class CategoriesResponse(BaseModel):
    """Response schema for the category list endpoint."""

    categories: list[CategoryItem]


class CategoryCount(BaseModel):
    name: str
    count: int


class StatsResponse(BaseModel):
    """Aggregate catalog statistics."""

    total_screenshots: int
    important_screenshots: int
    total_size_bytes: int
    categories: list[CategoryCount]


class CleanupRequest(BaseModel):
    """Cleanup parameters. Dry run unless explicitly disabled."""

    dry_run: bool = True
    confidence_threshold: float = Field(0.8, ge=0.0, le=1.0)
    mode: Literal["clutter", "expired"] = Field(
        "clutter",
        description="clutter: confident non-important screenshots; expired: retention policy ran out",
    )


class CleanupResponse(BaseModel):
    """Cleanup outcome."""

    dry_run: bool
    candidate_count: int
    deleted_count: int
    candidates: list[ScreenshotSummary]
