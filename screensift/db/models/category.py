"""Category model shared across screenshots."""

from datetime import datetime

from sqlmodel import Field, SQLModel

from screensift.db.types import UTCDateTime, utc_now


class Category(SQLModel, table=True):
    """Category model; one row per distinct (case-sensitive) name."""

    __tablename__ = "categories"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(nullable=False, unique=True)
    description: str | None = Field(default=None)
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_type=UTCDateTime,
        nullable=False,
    )
