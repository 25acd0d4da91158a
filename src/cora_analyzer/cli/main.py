"""
CLI Main - Typer command-line interface.
========================================

Commands:
- analyze: Rate a course/professor pair from student feedback
- cache-stats: Show result cache statistics
- cache-clear: Clear all or only expired cache entries
- logs: Show or clear the model audit log
- enrollments: Show enrollment history for a class section
- info: Show configuration
"""

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from cora_analyzer.shared.logging import get_logger, setup_logging

logger = get_logger(__name__)

app = typer.Typer(
    name="cora",
    help="""Cora - course and professor ratings from student feedback.

Searches course forums and Reddit for a course, condenses what students say
with a language model, and caches the resulting rating.

QUICK START:

  cora analyze "CS 2130" --professor "Jane Doe"
  cora analyze "CS 2130" --stubs            # offline, no API keys needed
  cora cache-stats

Use 'cora <command> --help' for detailed command options.
""",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
):
    """Configure logging before any command runs."""
    from cora_analyzer.shared.config import get_settings

    settings = get_settings()
    level = "DEBUG" if verbose else settings.get_effective_log_level()
    setup_logging(
        level=level,
        use_rich=settings.logging.rich_console,
        log_file=settings.logging.file or None,
        log_format=settings.logging.format,
        force=True,
    )


def _fmt_score(value: Optional[float]) -> str:
    return f"{value:.1f} / 5.0" if value is not None else "n/a"


# ─────────────────────────────────────────────────────────────────────────────
# Analyze Command
# ─────────────────────────────────────────────────────────────────────────────


@app.command()
def analyze(
    course_number: str = typer.Argument(..., help="Course number, e.g. 'CS 2130'."),
    name: str = typer.Option("", "--name", "-n", help="Course title."),
    professor: Optional[str] = typer.Option(None, "--professor", "-p", help="Instructor name."),
    section: Optional[str] = typer.Option(None, "--section", "-s", help="Section number."),
    stubs: bool = typer.Option(False, "--stubs", help="Use offline stub services."),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON."),
):
    """
    Analyze a course and professor.

    Runs search → scrape → summarize → rate, or returns the cached rating.

    Examples:
        cora analyze "CS 2130" -p "Jane Doe"
        cora analyze "APMA 3080" -n "Linear Algebra" --json
    """
    from cora_analyzer.pipeline.factory import build_analyzer
    from cora_analyzer.shared.config import get_settings
    from cora_analyzer.shared.schemas import AnalysisFailure, CourseIdentity, ProgressEvent

    identity = CourseIdentity(
        course_number=course_number,
        course_name=name,
        professor_name=professor,
        section=section,
    )
    analyzer = build_analyzer(get_settings(), use_stubs=True if stubs else None)

    async def run():
        try:
            with console.status("Starting analysis...") as status:

                def on_progress(event: ProgressEvent) -> None:
                    status.update(f"[{event.step}/{event.total_steps}] {event.message}")

                return await analyzer.analyze(identity, progress_callback=on_progress)
        finally:
            await analyzer.aclose()

    result = asyncio.run(run())

    if isinstance(result, AnalysisFailure):
        if as_json:
            console.print_json(result.model_dump_json())
        else:
            console.print(f"[red]Analysis failed:[/red] {result.message}")
        raise typer.Exit(1)

    if as_json:
        console.print_json(result.model_dump_json())
        return

    console.print(
        Panel(
            f"[bold]Overall:[/bold] {_fmt_score(result.overall_rating)}\n"
            f"[bold]Difficulty:[/bold] {_fmt_score(result.difficulty_rating)}\n"
            f"[dim]Source: {result.rating_source_label}"
            + (f" ({result.rating_source_url})" if result.rating_source_url else "")
            + "[/dim]",
            title=identity.display_name(),
            border_style="green",
        )
    )
    if result.course_summary:
        console.print(Panel(result.course_summary, title="Course", border_style="cyan"))
    if result.professor_summary:
        console.print(Panel(result.professor_summary, title="Professor", border_style="cyan"))

    if result.sources:
        table = Table(title="Sources", show_header=True)
        table.add_column("Site", style="cyan")
        table.add_column("Title")
        table.add_column("URL", style="dim")
        for link in result.sources:
            table.add_row(link.source, link.title[:40], link.url)
        console.print(table)


# ─────────────────────────────────────────────────────────────────────────────
# Cache Commands
# ─────────────────────────────────────────────────────────────────────────────


@app.command("cache-stats")
def cache_stats():
    """Show result cache statistics."""
    from cora_analyzer.cache.result_cache import ResultCache
    from cora_analyzer.pipeline.factory import build_store
    from cora_analyzer.shared.config import get_settings
    from cora_analyzer.shared.utils import format_age

    settings = get_settings()
    cache = ResultCache(build_store(settings), config=settings.cache)
    stats = asyncio.run(cache.get_stats())

    table = Table(title="Result Cache")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Total entries", str(stats.total_entries))
    table.add_row("Active", str(stats.active_entries))
    table.add_row("Expired", str(stats.expired_entries))
    table.add_row("Oldest", format_age(stats.oldest_age_seconds))
    table.add_row("Newest", format_age(stats.newest_age_seconds))
    table.add_row("Size", f"{stats.approx_size_bytes / 1024:.1f} KB")
    table.add_row("Capacity", f"{settings.cache.max_entries} (cleanup above {settings.cache.cleanup_threshold})")
    console.print(table)


@app.command("cache-clear")
def cache_clear(
    expired_only: bool = typer.Option(
        False, "--expired-only", help="Only remove entries past their TTL."
    ),
):
    """Clear the result cache."""
    from cora_analyzer.cache.result_cache import ResultCache
    from cora_analyzer.pipeline.factory import build_store
    from cora_analyzer.shared.config import get_settings

    settings = get_settings()
    cache = ResultCache(build_store(settings), config=settings.cache)

    if expired_only:
        removed = asyncio.run(cache.clear_expired())
        console.print(f"[green]Removed {removed} expired entries.[/green]")
    else:
        asyncio.run(cache.clear())
        console.print("[green]Cache cleared.[/green]")


# ─────────────────────────────────────────────────────────────────────────────
# Logs Command
# ─────────────────────────────────────────────────────────────────────────────


@app.command()
def logs(
    limit: int = typer.Option(20, "--limit", "-l", help="Number of most recent entries."),
    clear: bool = typer.Option(False, "--clear", help="Delete the audit log."),
):
    """Show the model request audit log."""
    from cora_analyzer.llm.audit import AuditLog
    from cora_analyzer.pipeline.factory import build_store
    from cora_analyzer.shared.config import get_settings

    settings = get_settings()
    audit = AuditLog(build_store(settings), config=settings.audit)

    if clear:
        asyncio.run(audit.clear_logs())
        console.print("[green]Audit log cleared.[/green]")
        return

    entries = asyncio.run(audit.get_logs())
    if not entries:
        console.print("[yellow]No audit entries.[/yellow]")
        return

    table = Table(title=f"Audit Log (last {min(limit, len(entries))} of {len(entries)})")
    table.add_column("Time", style="dim")
    table.add_column("Request", style="cyan")
    table.add_column("Type")
    table.add_column("Detail")

    styles = {"REQUEST": "blue", "RESPONSE": "green", "ERROR": "red"}
    for entry in entries[-limit:]:
        if entry.type.value == "REQUEST":
            detail = f"{entry.request_type} · {entry.model} · {entry.reasoning_effort}"
        elif entry.type.value == "RESPONSE":
            detail = f"{entry.duration_ms or 0:.0f}ms · {len(entry.content or '')} chars"
        else:
            detail = entry.error or ""
        style = styles[entry.type.value]
        table.add_row(
            entry.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            entry.request_id[:8],
            f"[{style}]{entry.type.value}[/{style}]",
            detail[:80],
        )
    console.print(table)


# ─────────────────────────────────────────────────────────────────────────────
# Enrollments Command
# ─────────────────────────────────────────────────────────────────────────────


@app.command()
def enrollments(
    term_code: str = typer.Argument(..., help="Four-digit term code, e.g. 1248."),
    class_number: str = typer.Argument(..., help="Five-digit class number."),
):
    """Show enrollment and waitlist history for a class section."""
    from cora_analyzer.network.enrollments import EnrollmentClient
    from cora_analyzer.network.http_client import RetryingHttpClient
    from cora_analyzer.shared.config import get_settings

    settings = get_settings()

    async def run():
        async with RetryingHttpClient(config=settings.http) as http:
            client = EnrollmentClient(http=http, base_url=settings.enrollments.base_url)
            return await client.get_class_enrollments(term_code, class_number)

    result = asyncio.run(run())
    if not result.success:
        console.print(f"[red]{result.error}[/red]")
        raise typer.Exit(1)

    if not result.data:
        console.print("[yellow]No enrollment history.[/yellow]")
        return

    table = Table(title=f"Class {result.class_number} (term {result.term_code})")
    table.add_column("Time", style="dim")
    table.add_column("Enrolled", justify="right")
    table.add_column("Waitlist", justify="right")
    for snapshot in result.data:
        table.add_row(str(snapshot.timestamp), str(snapshot.enrolled), str(snapshot.waitlist))
    console.print(table)


# ─────────────────────────────────────────────────────────────────────────────
# Info Command
# ─────────────────────────────────────────────────────────────────────────────


@app.command()
def info():
    """Show configuration and which services would be used."""
    from cora_analyzer import __version__
    from cora_analyzer.pipeline.factory import should_use_stubs
    from cora_analyzer.shared.config import get_settings

    settings = get_settings()

    console.print(
        Panel(
            f"[bold]Cora Analyzer[/bold]\n"
            f"Version: {__version__}\n"
            f"Config: config/settings.yaml\n"
            f"Store: {settings.store_path}",
            title="Info",
        )
    )

    table = Table(title="Services")
    table.add_column("Setting")
    table.add_column("Value")
    table.add_row("Model", settings.get_effective_model())
    table.add_row("Search API key", "set" if settings.search_api_key else "missing")
    table.add_row("Search engine id", "set" if settings.search_engine_id else "missing")
    table.add_row("Gemini API key", "set" if settings.gemini_api_key else "missing")
    table.add_row("Mode", "stubs" if should_use_stubs(settings) else "live")
    table.add_row("Sites", ", ".join(settings.search.get_sites()))
    table.add_row("Cache TTL", f"{settings.cache.ttl_days} days")
    console.print(table)


# ─────────────────────────────────────────────────────────────────────────────
# Entry Point
# ─────────────────────────────────────────────────────────────────────────────


def cli():
    """CLI entry point."""
    app()


if __name__ == "__main__":
    cli()
