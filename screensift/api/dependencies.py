"""FastAPI dependencies for route handlers."""

from collections.abc import AsyncGenerator
from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from screensift.config import settings
from screensift.core.classification.classifier import (
    OpenAIVisionClassifier,
    VisionClassifier,
)
from screensift.core.ingestion.pipeline import ClassificationPipeline
from screensift.core.retention.cleanup import CleanupService
from screensift.db.session import get_session
from screensift.storage.blob_store import BlobStore, LocalBlobStore


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Provide async database session to route handlers.

    The session commits on success and rolls back on error, so every
    request is a single transaction.

    Yields:
        AsyncSession: Database session for the request
    """
    async for session in get_session():
        yield session


@lru_cache
def get_blob_store() -> BlobStore:
    """Blob store rooted at settings.blob_storage_dir."""
    return LocalBlobStore(settings.blob_storage_dir)


def get_classifier() -> VisionClassifier:
    """Vision classifier for the request."""
    return OpenAIVisionClassifier()


def get_pipeline(
    db: AsyncSession = Depends(get_db),  # noqa: B008
    classifier: VisionClassifier = Depends(get_classifier),  # noqa: B008
    blob_store: BlobStore = Depends(get_blob_store),  # noqa: B008
) -> ClassificationPipeline:
    """Classification pipeline wired to the request's session."""
    return ClassificationPipeline(session=db, classifier=classifier, blob_store=blob_store)


def get_cleanup_service(
    db: AsyncSession = Depends(get_db),  # noqa: B008
    blob_store: BlobStore = Depends(get_blob_store),  # noqa: B008
) -> CleanupService:
    """Cleanup service wired to the request's session."""
    return CleanupService(session=db, blob_store=blob_store)
