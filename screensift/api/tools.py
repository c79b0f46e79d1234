"""Tool definitions for the tool-calling endpoint.

Each tool has a pydantic argument model (published as its JSON input schema)
and an async handler that returns plain text for the caller.
"""

import base64
import binascii
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from sqlalchemy.ext.asyncio import AsyncSession

from screensift.core.ingestion.pipeline import ClassificationPipeline
from screensift.core.retention.cleanup import CleanupService
from screensift.db.repositories.screenshot_repository import (
    ScreenshotFilters,
    ScreenshotRepository,
)
from screensift.utils.exceptions import InvalidUploadError


@dataclass
class ToolContext:
    """Request-scoped collaborators handed to every tool handler."""

    session: AsyncSession
    pipeline: ClassificationPipeline
    cleanup: CleanupService


ToolHandler = Callable[[ToolContext, Any], Awaitable[str]]


@dataclass
class Tool:
    name: str
    description: str
    arguments: type[BaseModel]
    handler: ToolHandler

    def describe(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.arguments.model_json_schema(),
        }


TOOLS: dict[str, Tool] = {}


def tool(
    name: str, description: str, arguments: type[BaseModel]
) -> Callable[[ToolHandler], ToolHandler]:
    """Register a handler under ``name``."""

    def register(handler: ToolHandler) -> ToolHandler:
        TOOLS[name] = Tool(name, description, arguments, handler)
        return handler

    return register


def decode_image(image_data: str) -> bytes:
    """Decode base64 (optionally a ``data:`` URL) into image bytes."""
    if image_data.startswith("data:") and "," in image_data:
        image_data = image_data.split(",", 1)[1]
    try:
        return base64.b64decode(image_data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidUploadError("Image data is not valid base64") from e


class ToolArguments(BaseModel):
    """Arguments accept camelCase (as published) or snake_case names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ImageArguments(ToolArguments):
    image_data: str = Field(description="Base64 encoded image data")
    mime_type: str = Field("image/jpeg", description="MIME type of the image")


class AnalyzeScreenshotArguments(ImageArguments):
    filename: str = Field(description="Original filename")


class SearchScreenshotsArguments(ToolArguments):
    category: str | None = Field(None, description="Filter by category")
    important_only: bool = Field(False, description="Show only important screenshots")
    limit: int = Field(10, ge=1, le=500, description="Maximum number of results")


class CleanupClutterArguments(ToolArguments):
    dry_run: bool = Field(True, description="Preview deletions without actually deleting")
    confidence_threshold: float = Field(
        0.8, ge=0.0, le=1.0, description="Minimum confidence to consider for deletion"
    )


class NoArguments(ToolArguments):
    pass


@tool(
    "analyze_screenshot",
    "Store a screenshot, classify it and catalog the result",
    AnalyzeScreenshotArguments,
)
async def analyze_screenshot(ctx: ToolContext, args: AnalyzeScreenshotArguments) -> str:
    result = await ctx.pipeline.ingest(
        args.filename, decode_image(args.image_data), args.mime_type
    )
    judgement = result.judgement
    return (
        "Screenshot analyzed successfully:\n"
        f"ID: {result.screenshot.id}\n"
        f"Important: {judgement.is_important}\n"
        f"Confidence: {judgement.confidence}\n"
        f"Categories: {', '.join(judgement.category_names())}\n"
        f"Retention: {judgement.retention_policy.value}\n"
        f"Description: {judgement.description}"
    )


@tool(
    "search_screenshots",
    "Find stored screenshots by category and importance",
    SearchScreenshotsArguments,
)
async def search_screenshots(ctx: ToolContext, args: SearchScreenshotsArguments) -> str:
    screenshots = await ScreenshotRepository(ctx.session).list_screenshots(
        ScreenshotFilters(
            category=args.category,
            important_only=args.important_only,
            limit=args.limit,
        )
    )
    lines = [
        f"ID: {s.id} | {s.filename} | Important: {s.is_important} | Uploaded: {s.uploaded_at.isoformat()}"
        for s in screenshots
    ]
    return f"Found {len(screenshots)} screenshots:\n" + "\n".join(lines)


@tool(
    "cleanup_clutter",
    "Preview or delete screenshots confidently classified as unimportant",
    CleanupClutterArguments,
)
async def cleanup_clutter(ctx: ToolContext, args: CleanupClutterArguments) -> str:
    report = await ctx.cleanup.cleanup_clutter(
        confidence_threshold=args.confidence_threshold,
        dry_run=args.dry_run,
    )
    if report.dry_run:
        preview = "\n".join(
            f"{s.filename} (Confidence: {s.confidence_score})" for s in report.candidates
        )
        return f"Found {report.candidate_count} screenshots that could be deleted:\n{preview}"
    return f"Successfully deleted {report.deleted_count} clutter screenshots"


@tool("get_screenshot_stats", "Catalog totals and category breakdown", NoArguments)
async def get_screenshot_stats(ctx: ToolContext, args: NoArguments) -> str:
    stats = await ScreenshotRepository(ctx.session).get_stats()
    breakdown = "\n".join(f"{name}: {count}" for name, count in stats.category_counts)
    return (
        "Screenshot Statistics:\n"
        f"Total Screenshots: {stats.total_count}\n"
        f"Important Screenshots: {stats.important_count}\n"
        f"Total Storage Used: {round(stats.total_size_bytes / 1024 / 1024)} MB\n"
        "\n"
        "Category Breakdown:\n"
        f"{breakdown}"
    )


@tool(
    "classify_screenshot",
    "Classify a screenshot without storing it",
    ImageArguments,
)
async def classify_screenshot(ctx: ToolContext, args: ImageArguments) -> str:
    judgement = await ctx.pipeline.analyze(
        "inline", decode_image(args.image_data), args.mime_type
    )
    return judgement.model_dump_json(indent=2)


@tool(
    "extract_text",
    "Return only the text visible in a screenshot",
    ImageArguments,
)
async def extract_text(ctx: ToolContext, args: ImageArguments) -> str:
    judgement = await ctx.pipeline.analyze(
        "inline", decode_image(args.image_data), args.mime_type
    )
    return judgement.extracted_text
