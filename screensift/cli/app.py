"""ScreenSift admin CLI using Typer."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Annotated, TypeVar
from uuid import UUID

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from screensift import __version__
from screensift.config import settings
from screensift.utils.exceptions import NotFoundError
from screensift.utils.logging import configure_logging

app = typer.Typer(
    name="screensift",
    help="ScreenSift - AI-powered screenshot classification and cleanup",
    add_completion=False,
)
console = Console()

T = TypeVar("T")


def version_callback(value: bool) -> None:
    """Display version and exit."""
    if value:
        console.print(f"[bold cyan]ScreenSift[/bold cyan] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """ScreenSift - AI-powered screenshot classification and cleanup."""
    configure_logging(log_level=settings.log_level, environment=settings.environment)


def _run(coro_factory: Callable[[], Awaitable[T]], action: str) -> T:
    """Run an async command with the CLI's error conventions."""
    try:
        return asyncio.run(coro_factory())  # type: ignore[arg-type]
    except KeyboardInterrupt:
        console.print("\n\n[yellow]Cancelled by user (Ctrl+C)[/yellow]")
        raise typer.Exit(code=130) from None
    except NotFoundError as e:
        console.print(f"\n[bold red]Not found:[/bold red] {e}")
        raise typer.Exit(code=1) from None
    except Exception as e:
        console.print(f"\n[bold red]{action} Failed:[/bold red]")
        console.print(f"  {type(e).__name__}: {e}")
        raise typer.Exit(code=1) from None


@app.command("init-db")
def init_db_command() -> None:
    """Create all tables (development only; use Alembic in production)."""
    from screensift.db.session import close_db, init_db

    async def run() -> None:
        await init_db()
        await close_db()

    _run(run, "Database Init")
    console.print("[green]Database tables created[/green]")


@app.command("list")
def list_command(
    category: Annotated[
        str | None, typer.Option("--category", "-c", help="Only this category")
    ] = None,
    important_only: Annotated[
        bool, typer.Option("--important", "-i", help="Only important screenshots")
    ] = False,
    limit: Annotated[int, typer.Option("--limit", "-n", help="Maximum rows")] = 50,
) -> None:
    """List screenshots, most recent upload first."""
    from screensift.db.repositories.screenshot_repository import (
        ScreenshotFilters,
        ScreenshotRepository,
    )
    from screensift.db.session import AsyncSessionLocal

    async def run() -> list:
        async with AsyncSessionLocal() as session:
            return await ScreenshotRepository(session).list_screenshots(
                ScreenshotFilters(
                    category=category, important_only=important_only, limit=limit
                )
            )

    screenshots = _run(run, "List")
    if not screenshots:
        console.print("\n[yellow]No screenshots found[/yellow]\n")
        return

    table = Table(title=f"Screenshots ({len(screenshots)} shown)")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Filename", style="cyan", max_width=40)
    table.add_column("Important")
    table.add_column("Confidence", justify="right")
    table.add_column("Retention")
    table.add_column("Uploaded", style="dim")

    for s in screenshots:
        table.add_row(
            str(s.id),
            s.filename,
            "[green]yes[/green]" if s.is_important else "no",
            f"{s.confidence_score:.2f}" if s.confidence_score is not None else "-",
            s.retention_policy or "-",
            s.uploaded_at.strftime("%Y-%m-%d %H:%M"),
        )
    console.print("\n", table, "\n")


@app.command()
def stats() -> None:
    """Show totals and the per-category breakdown."""
    from screensift.db.repositories.screenshot_repository import ScreenshotRepository
    from screensift.db.session import AsyncSessionLocal

    async def run():
        async with AsyncSessionLocal() as session:
            return await ScreenshotRepository(session).get_stats()

    result = _run(run, "Stats")
    console.print(
        Panel.fit(
            f"Total screenshots: [bold]{result.total_count}[/bold]\n"
            f"Important: [bold]{result.important_count}[/bold]\n"
            f"Storage used: [bold]{result.total_size_bytes / 1024 / 1024:.1f} MB[/bold]",
            title="ScreenSift Statistics",
            border_style="cyan",
        )
    )

    table = Table(title="Categories")
    table.add_column("Category", style="cyan")
    table.add_column("Screenshots", justify="right")
    for name, count in result.category_counts:
        table.add_row(name, str(count))
    console.print(table)


@app.command()
def cleanup(
    threshold: Annotated[
        float,
        typer.Option("--threshold", "-t", min=0.0, max=1.0, help="Minimum 'not important' confidence"),
    ] = 0.8,
    expired: Annotated[
        bool, typer.Option("--expired", help="Select by expired retention policy instead")
    ] = False,
    execute: Annotated[
        bool, typer.Option("--execute", help="Delete candidates (default is a dry run)")
    ] = False,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation prompt")] = False,
) -> None:
    """Preview or delete clutter screenshots."""
    from screensift.api.dependencies import get_blob_store
    from screensift.core.retention.cleanup import CleanupService
    from screensift.db.session import AsyncSessionLocal

    if execute and not yes and not typer.confirm("Delete matching screenshots permanently?"):
        raise typer.Exit(code=0)

    async def run():
        async with AsyncSessionLocal() as session:
            service = CleanupService(session, get_blob_store())
            if expired:
                report = await service.cleanup_expired(dry_run=not execute)
            else:
                report = await service.cleanup_clutter(
                    confidence_threshold=threshold, dry_run=not execute
                )
            await session.commit()
            return report

    report = _run(run, "Cleanup")
    for s in report.candidates:
        console.print(f"  {s.filename} [dim]({s.id}, confidence {s.confidence_score})[/dim]")
    if report.dry_run:
        console.print(
            f"\n[yellow]Dry run:[/yellow] {report.candidate_count} screenshots could be deleted"
        )
    else:
        console.print(f"\n[green]Deleted {report.deleted_count} screenshots[/green]")


@app.command()
def reanalyze(
    screenshot_id: Annotated[UUID, typer.Argument(help="UUID of the screenshot")],
) -> None:
    """Classify a stored screenshot again."""
    from screensift.api.dependencies import get_blob_store
    from screensift.core.classification.classifier import OpenAIVisionClassifier
    from screensift.core.ingestion.pipeline import ClassificationPipeline
    from screensift.db.session import AsyncSessionLocal

    async def run():
        async with AsyncSessionLocal() as session:
            pipeline = ClassificationPipeline(
                session, OpenAIVisionClassifier(), get_blob_store()
            )
            result = await pipeline.reanalyze(screenshot_id)
            await session.commit()
            return result

    result = _run(run, "Reanalysis")
    judgement = result.judgement
    console.print(
        Panel.fit(
            f"Important: {judgement.is_important}\n"
            f"Confidence: {judgement.confidence}\n"
            f"Categories: {', '.join(judgement.category_names())}\n"
            f"Retention: {judgement.retention_policy.value}",
            title=f"Reanalyzed {screenshot_id}",
            border_style="green",
        )
    )


if __name__ == "__main__":
    app()
