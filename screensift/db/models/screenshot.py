"""Screenshot model for uploaded images and their latest classification summary."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from screensift.db.types import UTCDateTime, utc_now


class Screenshot(SQLModel, table=True):
    """Screenshot model representing one uploaded image.

    The row holds only the latest classification summary; the full history
    lives in ``analysis_results``.
    """

    __tablename__ = "screenshots"

    id: UUID = Field(
        default_factory=uuid4,
        primary_key=True,
        nullable=False,
    )
    filename: str = Field(nullable=False)
    storage_key: str = Field(nullable=False, unique=True)
    file_size: int = Field(nullable=False)
    mime_type: str = Field(nullable=False)
    uploaded_at: datetime = Field(
        default_factory=utc_now,
        sa_type=UTCDateTime,
        nullable=False,
        index=True,
    )

    # Classification summary
    analyzed_at: datetime | None = Field(default=None, sa_type=UTCDateTime)
    is_important: bool = Field(default=False, nullable=False, index=True)
    confidence_score: float | None = Field(default=None)
    retention_policy: str | None = Field(default=None, index=True)
    importance_level: str | None = Field(default=None)
