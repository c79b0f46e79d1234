"""Unit tests for the admin CLI."""

import asyncio
from uuid import UUID, uuid4

import pytest
from conftest import PNG_BYTES, FakeClassifier, MemoryBlobStore, make_judgement
from sqlalchemy.pool import NullPool
from typer.testing import CliRunner

from screensift import __version__
from screensift.cli.app import app, console
from screensift.core.classification.judgement import RetentionPolicy
from screensift.core.ingestion.pipeline import ClassificationPipeline
from screensift.db.repositories import (
    AnalysisResultRepository,
    ScreenshotFilters,
    ScreenshotRepository,
)
from screensift.db.session import build_engine, build_session_factory, init_db

runner = CliRunner()


def test_version():
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_help_lists_commands():
    result = runner.invoke(app, ["--help"])

    assert result.exit_code == 0
    for command in ("init-db", "list", "stats", "cleanup", "reanalyze"):
        assert command in result.stdout


@pytest.fixture(autouse=True)
def wide_console(monkeypatch: pytest.MonkeyPatch) -> None:
    # Keep table cells on one line
    monkeypatch.setattr(console, "width", 200)


@pytest.fixture
def blob_store(monkeypatch: pytest.MonkeyPatch) -> MemoryBlobStore:
    store = MemoryBlobStore()
    monkeypatch.setattr("screensift.api.dependencies.get_blob_store", lambda: store)
    return store


@pytest.fixture
def classifier(monkeypatch: pytest.MonkeyPatch) -> FakeClassifier:
    fake = FakeClassifier([make_judgement(categories=["Docs"], confidence=0.7)])
    monkeypatch.setattr(
        "screensift.core.classification.classifier.OpenAIVisionClassifier", lambda: fake
    )
    return fake


@pytest.fixture
def session_factory(tmp_path, monkeypatch: pytest.MonkeyPatch):
    """File-backed SQLite catalog; every asyncio.run gets fresh connections."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}", poolclass=NullPool)
    asyncio.run(init_db(engine))
    factory = build_session_factory(engine)
    monkeypatch.setattr("screensift.db.session.AsyncSessionLocal", factory)
    yield factory
    asyncio.run(engine.dispose())


def _seed(factory, store: MemoryBlobStore) -> dict[str, UUID]:
    """Ingest a clutter shot (0.95 not important), a keeper and a borderline shot."""
    judgements = [
        make_judgement(
            is_important=False,
            confidence=0.95,
            categories=["Temp"],
            retention_policy=RetentionPolicy.DELETE_IMMEDIATELY,
        ),
        make_judgement(),
        make_judgement(is_important=False, confidence=0.5, categories=["Temp"]),
    ]

    async def run() -> dict[str, UUID]:
        async with factory() as session:
            pipeline = ClassificationPipeline(session, FakeClassifier(judgements), store)
            ids = {}
            for name in ("clutter.png", "keeper.png", "maybe.png"):
                result = await pipeline.ingest(name, PNG_BYTES, "image/png")
                ids[name] = result.screenshot.id
            await session.commit()
            return ids

    return asyncio.run(run())


def _filenames(factory) -> list[str]:
    async def run() -> list[str]:
        async with factory() as session:
            rows = await ScreenshotRepository(session).list_screenshots(ScreenshotFilters())
            return sorted(s.filename for s in rows)

    return asyncio.run(run())


class TestCleanupCommand:
    def test_dry_run_deletes_nothing(self, session_factory, blob_store):
        _seed(session_factory, blob_store)

        result = runner.invoke(app, ["cleanup"])

        assert result.exit_code == 0, result.stdout
        assert "clutter.png" in result.stdout
        assert "Dry run: 1 screenshots could be deleted" in result.stdout
        assert _filenames(session_factory) == ["clutter.png", "keeper.png", "maybe.png"]
        assert len(blob_store.blobs) == 3

    def test_execute_with_yes_deletes_candidates(self, session_factory, blob_store):
        _seed(session_factory, blob_store)

        result = runner.invoke(app, ["cleanup", "--execute", "--yes"])

        assert result.exit_code == 0, result.stdout
        assert "Deleted 1 screenshots" in result.stdout
        assert _filenames(session_factory) == ["keeper.png", "maybe.png"]
        assert len(blob_store.blobs) == 2

    def test_threshold_option(self, session_factory, blob_store):
        _seed(session_factory, blob_store)

        result = runner.invoke(app, ["cleanup", "-t", "0.5", "--execute", "-y"])

        assert result.exit_code == 0, result.stdout
        assert _filenames(session_factory) == ["keeper.png"]

    def test_declined_confirmation_keeps_everything(self, session_factory, blob_store):
        _seed(session_factory, blob_store)

        result = runner.invoke(app, ["cleanup", "--execute"], input="n\n")

        assert result.exit_code == 0
        assert _filenames(session_factory) == ["clutter.png", "keeper.png", "maybe.png"]

    def test_expired_selects_by_retention_policy(self, session_factory, blob_store):
        _seed(session_factory, blob_store)

        result = runner.invoke(app, ["cleanup", "--expired", "--execute", "--yes"])

        assert result.exit_code == 0, result.stdout
        assert _filenames(session_factory) == ["keeper.png", "maybe.png"]


class TestReanalyzeCommand:
    def test_unknown_id_exits_with_error(self, session_factory, blob_store, classifier):
        result = runner.invoke(app, ["reanalyze", str(uuid4())])

        assert result.exit_code == 1
        assert "Not found" in result.stdout
        assert classifier.calls == []

    def test_reanalyze_appends_history(self, session_factory, blob_store, classifier):
        ids = _seed(session_factory, blob_store)
        screenshot_id = ids["keeper.png"]

        result = runner.invoke(app, ["reanalyze", str(screenshot_id)])

        assert result.exit_code == 0, result.stdout
        assert "Categories: Docs" in result.stdout
        assert classifier.calls == [(PNG_BYTES, "image/png")]

        async def history_types() -> list[str]:
            async with session_factory() as session:
                history = await AnalysisResultRepository(session).get_history(screenshot_id)
                return [r.analysis_type for r in history]

        assert sorted(asyncio.run(history_types())) == ["initial", "reanalysis"]


class TestReportingCommands:
    def test_list_and_stats(self, session_factory, blob_store):
        _seed(session_factory, blob_store)

        listed = runner.invoke(app, ["list", "--important"])
        assert listed.exit_code == 0, listed.stdout
        assert "keeper.png" in listed.stdout
        assert "clutter.png" not in listed.stdout

        stats = runner.invoke(app, ["stats"])
        assert stats.exit_code == 0, stats.stdout
        assert "Total screenshots: 3" in stats.stdout
        assert "Important: 1" in stats.stdout
        assert "Temp" in stats.stdout

    def test_empty_catalog(self, session_factory):
        result = runner.invoke(app, ["list"])

        assert result.exit_code == 0
        assert "No screenshots found" in result.stdout
