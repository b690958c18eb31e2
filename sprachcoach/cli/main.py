"""
Typer CLI for the sprachcoach challenge engine.

Commands:
    coach db init                 - Create database tables
    coach subscribe USER          - Opt a user in to automated challenges
    coach unsubscribe USER        - Opt a user out
    coach status                  - Show subscribers and this week's challenge counts
    coach review USER             - Show which stored phrases would be drilled next
    coach feedback USER TEXT      - Record coach feedback and extract phrases
    coach exercise USER           - Generate a review or practice exercise
    coach run                     - Run the challenge scheduler until interrupted

Usage:
    coach --help
    coach run --dry-run
    coach review 12345 --limit 5
"""
from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Optional

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from config import Settings, get_settings
from sprachcoach.cli.context import CoachContext
from sprachcoach.core.clock import current_week, format_week
from sprachcoach.core.models import FeedbackSource
from sprachcoach.db import init_db

app = typer.Typer(help="sprachcoach CLI: automated practice challenges for language learners")
db_app = typer.Typer(help="Database management")
app.add_typer(db_app, name="db")

console = Console()


def configure_logging(settings: Settings) -> None:
    """Route loguru output to stderr and, if configured, a rotating log file."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )
    if settings.log_file:
        Path(settings.log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(settings.log_file, level=settings.log_level, rotation="10 MB", retention=5)


@app.callback()
def main_callback() -> None:
    """Configure logging before any command runs."""
    configure_logging(get_settings())


# ========================================
# Database
# ========================================


@db_app.command("init")
def db_init() -> None:
    """Create all tables."""
    init_db()
    console.print("[green]Database initialized[/green]")


# ========================================
# Subscriptions
# ========================================


@app.command()
def subscribe(user_id: str = typer.Argument(..., help="Telegram user/chat id")) -> None:
    """Opt a user in; a running scheduler arms their timer on its next subscription sync."""
    ctx = CoachContext()
    asyncio.run(ctx.store.set_subscribed(user_id, True))
    console.print(f"✅ Automated challenges enabled for [bold]{user_id}[/bold]")


@app.command()
def unsubscribe(user_id: str = typer.Argument(..., help="Telegram user/chat id")) -> None:
    """Opt a user out; a running scheduler cancels their timer and never fires for them again."""
    ctx = CoachContext()
    asyncio.run(ctx.store.set_subscribed(user_id, False))
    console.print(f"❌ Automated challenges disabled for [bold]{user_id}[/bold]")


@app.command()
def status() -> None:
    """Show subscribed users and how many challenges they received this week."""
    ctx = CoachContext()

    async def collect() -> list[tuple[str, int]]:
        week = current_week(ctx.clock.now())
        users = await ctx.store.list_subscribers()
        return [(u, await ctx.store.count_delivery_log_for_week(u, week)) for u in users]

    rows = asyncio.run(collect())
    table = Table(title=f"Challenge status ({format_week(current_week(ctx.clock.now()))})")
    table.add_column("User", style="cyan")
    table.add_column("Sent this week", justify="right")
    table.add_column("Eligible", justify="center")
    for user_id, sent in rows:
        eligible = "✅" if sent < ctx.config.weekly_cap else "⛔"
        table.add_row(user_id, f"{sent}/{ctx.config.weekly_cap}", eligible)
    console.print(table)
    console.print(f"👥 Active users: {len(rows)}")


# ========================================
# Review
# ========================================


@app.command()
def review(
    user_id: str = typer.Argument(..., help="Telegram user/chat id"),
    limit: int = typer.Option(3, "--limit", "-n", help="Number of phrases to select"),
) -> None:
    """Show the phrases that would be drilled next (no counters are changed)."""
    ctx = CoachContext()
    candidates = asyncio.run(ctx.selector.select_review_candidates(user_id, limit))
    if not candidates:
        console.print("[yellow]No review phrases stored for this user[/yellow]")
        raise typer.Exit(0)

    table = Table(title=f"Review selection for {user_id}")
    table.add_column("#", justify="right")
    table.add_column("Original")
    table.add_column("Improved", style="green")
    table.add_column("Category")
    table.add_column("Importance", justify="right")
    table.add_column("Reps", justify="right")
    for index, item in enumerate(candidates, start=1):
        table.add_row(
            str(index),
            item.original,
            item.improved,
            item.category.value,
            str(item.importance),
            str(item.repetitions),
        )
    console.print(table)


@app.command()
def feedback(
    user_id: str = typer.Argument(..., help="Telegram user/chat id"),
    text: str = typer.Argument(..., help="Coach feedback (Markdown) or @path to a file"),
    original: Optional[str] = typer.Option(None, "--original", help="The learner's original text"),
    voice: bool = typer.Option(False, "--voice", help="Feedback came from a voice message"),
) -> None:
    """Record coach feedback and extract its phrases."""
    if text.startswith("@"):
        text = Path(text[1:]).read_text(encoding="utf-8")
    ctx = CoachContext()
    source = FeedbackSource.VOICE if voice else FeedbackSource.TEXT
    record = asyncio.run(ctx.recorder.record(user_id, original, text, source))
    if record is None:
        console.print("[red]Feedback could not be stored[/red]")
        raise typer.Exit(1)
    console.print(
        f"Stored feedback {record.id} with {len(record.phrases)} phrases "
        f"({', '.join(c.value for c in record.categories)})"
    )


@app.command()
def exercise(
    user_id: str = typer.Argument(..., help="Telegram user/chat id"),
    practice: bool = typer.Option(False, "--practice", help="General practice instead of review"),
) -> None:
    """Generate an exercise on demand."""
    ctx = CoachContext()

    async def generate() -> str:
        try:
            if practice:
                return await ctx.exercises.practice_exercise(user_id)
            return await ctx.exercises.review_exercise(user_id)
        finally:
            await ctx.aclose()

    console.print(asyncio.run(generate()))


# ========================================
# Scheduler
# ========================================


@app.command()
def run(
    dry_run: bool = typer.Option(False, "--dry-run", help="Print challenges instead of sending them"),
) -> None:
    """Restore subscribers and run the challenge scheduler until interrupted."""
    ctx = CoachContext(dry_run=dry_run)

    async def serve() -> None:
        restored = await ctx.subscriptions.restore()
        ctx.scheduler.start()
        status = ctx.scheduler.get_status()
        logger.info(
            "Challenge scheduler running: {} users restored, {} challenges scheduled",
            restored,
            status.scheduled_challenges,
        )
        # Picks up `coach subscribe` / `coach unsubscribe` from other processes
        watcher = asyncio.create_task(
            ctx.subscriptions.watch(ctx.settings.subscription_sync_seconds),
            name="subscription-sync",
        )
        try:
            await watcher
        finally:
            watcher.cancel()
            await asyncio.gather(watcher, return_exceptions=True)
            await ctx.aclose()

    try:
        asyncio.run(serve())
    except KeyboardInterrupt:
        console.print("\n[dim]Scheduler stopped[/dim]")


def run_cli() -> None:
    app()


if __name__ == "__main__":
    run_cli()
