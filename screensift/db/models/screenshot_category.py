"""Link table between screenshots and categories."""

from uuid import UUID

from sqlalchemy import Column, ForeignKey, Integer, Uuid
from sqlmodel import Field, SQLModel


class ScreenshotCategory(SQLModel, table=True):
    """Assignment of a screenshot to a category with its own confidence."""

    __tablename__ = "screenshot_categories"

    screenshot_id: UUID = Field(
        sa_column=Column(
            Uuid,
            ForeignKey("screenshots.id", ondelete="CASCADE"),
            primary_key=True,
            index=True,
        ),
    )
    category_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("categories.id", ondelete="CASCADE"),
            primary_key=True,
            index=True,
        ),
    )
    confidence: float | None = Field(default=None)
