"""Pytest configuration and fixtures."""

import os
import tempfile
from collections.abc import AsyncGenerator
from datetime import datetime

# Settings are read at import time; configure before importing screensift.
os.environ.setdefault("OPENAI_API_KEY", "sk-test-key")
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["BLOB_STORAGE_DIR"] = tempfile.mkdtemp(prefix="screensift-blobs-")
os.environ["REQUIRE_API_KEY"] = "false"
os.environ["ENVIRONMENT"] = "test"

import httpx  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from screensift.core.classification.judgement import (  # noqa: E402
    FolderCategory,
    ImportanceLevel,
    Judgement,
    RetentionPolicy,
)
from screensift.db.models.screenshot import Screenshot  # noqa: E402
from screensift.db.session import (  # noqa: E402
    build_engine,
    build_session_factory,
    init_db,
)
from screensift.db.types import utc_now  # noqa: E402
from screensift.storage.blob_store import StoredBlob, compute_etag  # noqa: E402
from screensift.utils.exceptions import BlobNotFoundError  # noqa: E402

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 492  # 500 bytes


class FakeClassifier:
    """Classifier returning scripted judgements, or raising ``error``."""

    def __init__(
        self,
        judgements: list[Judgement] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.judgements = list(judgements or [make_judgement()])
        self.error = error
        self.calls: list[tuple[bytes, str]] = []

    async def classify(self, image_bytes: bytes, mime_type: str) -> Judgement:
        self.calls.append((image_bytes, mime_type))
        if self.error is not None:
            raise self.error
        if len(self.judgements) > 1:
            return self.judgements.pop(0)
        return self.judgements[0]


class MemoryBlobStore:
    """Dict-backed blob store."""

    def __init__(self) -> None:
        self.blobs: dict[str, StoredBlob] = {}

    async def put(
        self,
        key: str,
        data: bytes,
        content_type: str,
        cache_control: str | None = None,
        custom_metadata: dict[str, str] | None = None,
    ) -> StoredBlob:
        blob = StoredBlob(
            data=data,
            content_type=content_type,
            cache_control=cache_control,
            etag=compute_etag(data),
            custom_metadata=dict(custom_metadata or {}),
        )
        self.blobs[key] = blob
        return blob

    async def get(self, key: str) -> StoredBlob:
        if key not in self.blobs:
            raise BlobNotFoundError(key)
        return self.blobs[key]

    async def delete(self, key: str) -> None:
        self.blobs.pop(key, None)


def make_judgement(**overrides) -> Judgement:
    """Judgement with sensible defaults for tests."""
    values = {
        "is_important": True,
        "confidence": 0.9,
        "categories": ["Dev"],
        "description": "Terminal output",
        "extracted_text": "$ pytest",
        "content_type": "dev",
        "folder_category": FolderCategory.DEV,
        "retention_policy": RetentionPolicy.KEEP,
        "importance_level": ImportanceLevel.HIGH,
    }
    values.update(overrides)
    return Judgement(**values)


async def make_screenshot(
    session: AsyncSession,
    *,
    filename: str = "shot.png",
    is_important: bool = False,
    confidence_score: float | None = None,
    retention_policy: str | None = None,
    uploaded_at: datetime | None = None,
    file_size: int = 100,
) -> Screenshot:
    """Insert a screenshot row directly."""
    screenshot = Screenshot(
        filename=filename,
        storage_key=f"screenshots/test/{os.urandom(8).hex()}.png",
        file_size=file_size,
        mime_type="image/png",
        uploaded_at=uploaded_at or utc_now(),
        is_important=is_important,
        confidence_score=confidence_score,
        retention_policy=retention_policy,
    )
    session.add(screenshot)
    await session.flush()
    return screenshot


@pytest.fixture
async def engine():
    """In-memory SQLite engine with all tables created."""
    test_engine = build_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    await init_db(test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(engine)


@pytest.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as db_session:
        yield db_session


@pytest.fixture
def blob_store() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture
def classifier() -> FakeClassifier:
    return FakeClassifier()


@pytest.fixture
async def client(
    session_factory, blob_store, classifier
) -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTP client against the app with database, blob store and classifier overridden."""
    from screensift.api.dependencies import get_blob_store, get_classifier, get_db
    from screensift.main import app

    async def override_get_db():
        async with session_factory() as db_session:
            try:
                yield db_session
                await db_session.commit()
            except Exception:
                await db_session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    app.dependency_overrides[get_classifier] = lambda: classifier

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http_client:
        yield http_client

    app.dependency_overrides.clear()
