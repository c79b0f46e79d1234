"""Structured judgement returned by the vision classifier."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

FALLBACK_EXTRACTED_TEXT = "Analysis failed - could not extract text"
FALLBACK_DESCRIPTION = "Analysis failed"
FALLBACK_CATEGORY = "uncategorized"


class FolderCategory(str, Enum):
    """Folder a screenshot is organized into."""

    DEV = "Dev"
    SOCIAL = "Social"
    DOCUMENTS = "Documents"
    BUGS = "Bugs"
    TEMP = "Temp"


class ContentType(str, Enum):
    """Primary kind of content shown in a screenshot."""

    DEV = "dev"
    SOCIAL = "social"
    DOCUMENTS = "documents"
    BUGS = "bugs"
    TEMP = "temp"
    OTHER = "other"


class RetentionPolicy(str, Enum):
    """How long a screenshot should be kept."""

    KEEP = "keep"
    DELETE_AFTER_7_DAYS = "delete_after_7_days"
    DELETE_IMMEDIATELY = "delete_immediately"


class ImportanceLevel(str, Enum):
    """Importance level used for prioritization."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Judgement(BaseModel):
    """Classification of one screenshot."""

    is_important: bool = Field(description="Whether the screenshot contains important information")
    confidence: float = Field(ge=0.0, le=1.0, description="Confidence of the importance classification")
    categories: list[str] = Field(
        default_factory=list, description="Categories the screenshot belongs to"
    )
    description: str = Field(default="", description="Brief description of the content")
    extracted_text: str = Field(default="", description="All text visible in the screenshot")
    content_type: ContentType = Field(default=ContentType.OTHER)
    folder_category: FolderCategory = Field(default=FolderCategory.TEMP)
    retention_policy: RetentionPolicy = Field(default=RetentionPolicy.KEEP)
    importance_level: ImportanceLevel = Field(default=ImportanceLevel.MEDIUM)
    category_confidences: dict[str, float] | None = Field(
        default=None, description="Optional confidence per category name"
    )

    @field_validator("retention_policy", mode="before")
    @classmethod
    def accept_legacy_retention(cls, v: Any) -> Any:
        """Accept the short ``delete_7_days`` spelling."""
        if v == "delete_7_days":
            return RetentionPolicy.DELETE_AFTER_7_DAYS.value
        return v

    @field_validator("categories", mode="after")
    @classmethod
    def normalize_categories(cls, v: list[str]) -> list[str]:
        """Strip names, drop blanks and duplicates, keep first-seen order."""
        seen: list[str] = []
        for name in v:
            name = name.strip()
            if name and name not in seen:
                seen.append(name)
        return seen

    @field_validator("category_confidences", mode="after")
    @classmethod
    def clamp_category_confidences(
        cls, v: dict[str, float] | None
    ) -> dict[str, float] | None:
        if v is None:
            return None
        return {name.strip(): min(max(score, 0.0), 1.0) for name, score in v.items()}

    def category_names(self) -> list[str]:
        """Names to link; the folder category stands in when none were returned."""
        return self.categories or [self.folder_category.value]

    def category_links(self) -> list[tuple[str, float]]:
        """
        (name, confidence) pairs for link rows.

        Uses the per-category confidence when the model supplied one, and the
        overall confidence otherwise.
        """
        per_category = self.category_confidences or {}
        return [
            (name, per_category.get(name, self.confidence))
            for name in self.category_names()
        ]


def fallback_judgement() -> Judgement:
    """Deterministic judgement used when classification fails."""
    return Judgement(
        is_important=False,
        confidence=0.5,
        categories=[FALLBACK_CATEGORY],
        description=FALLBACK_DESCRIPTION,
        extracted_text=FALLBACK_EXTRACTED_TEXT,
        content_type=ContentType.OTHER,
        folder_category=FolderCategory.TEMP,
        retention_policy=RetentionPolicy.DELETE_IMMEDIATELY,
        importance_level=ImportanceLevel.LOW,
    )
