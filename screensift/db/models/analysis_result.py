"""Append-only history of classification results."""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, Column, ForeignKey, Uuid
from sqlmodel import Field, SQLModel

from screensift.db.types import UTCDateTime, utc_now


class AnalysisType(str, Enum):
    """Operation that produced an analysis result."""

    INITIAL = "initial"
    REANALYSIS = "reanalysis"


class AnalysisResult(SQLModel, table=True):
    """One classification of a screenshot. Rows are never updated."""

    __tablename__ = "analysis_results"

    id: int | None = Field(default=None, primary_key=True)
    screenshot_id: UUID = Field(
        sa_column=Column(
            Uuid,
            ForeignKey("screenshots.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
    )
    analysis_type: str = Field(nullable=False)
    result_data: dict[str, Any] = Field(
        sa_column=Column(JSON, nullable=False),
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_type=UTCDateTime,
        nullable=False,
        index=True,
    )
