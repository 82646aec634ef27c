"""
Command-line interface for Torchcast.

Usage:
    torchcast rewrite        # Rotate, rewrite and publish the condensed feed
    torchcast episode        # Generate today's episode script and metadata
    torchcast podcast-feed   # Rebuild the podcast RSS from stored metadata
    torchcast serve          # Start automated scheduler
    torchcast routes         # Show the task routing table
    torchcast init           # Create local data directory and .env.example
"""

import asyncio
from datetime import date
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .app import Application
from .config import Settings, load_settings
from .errors import StageFailure, TorchcastError
from .feeds.models import FeedRunResult
from .logging_setup import configure_logging
from .pipeline import new_session_id, run_scheduler_forever
from .processors.models import EpisodeRequest
from .routing import build_route_config

app = typer.Typer(
    name="torchcast",
    help="AI news podcast scripts and condensed RSS feeds",
    add_completion=False,
)
console = Console()


def _settings() -> Settings:
    settings = load_settings()
    configure_logging(settings.log_level, settings.debug)
    return settings


def _print_feed_result(label: str, result: FeedRunResult) -> None:
    if result.is_empty:
        console.print(f"[yellow]![/yellow] {label}: nothing to publish")
    else:
        console.print(f"[green]✓[/green] {label}: {result.count} items -> {result.public_url or result.key}")
    if result.site:
        console.print(f"  Site this run: {result.site}")
    for url, reason in result.failures.items():
        console.print(f"  [red]✗[/red] {url}: {reason}")


@app.command()
def rewrite():
    """Rotate through the feed sources and publish the condensed feed."""

    async def _rewrite():
        async with Application(_settings()) as application:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                console=console,
                transient=True,
            ) as progress:
                progress.add_task("Rewriting feeds...", total=None)
                result = await application.feed_pipeline.run()
            _print_feed_result("Condensed feed", result)

    asyncio.run(_rewrite())


@app.command()
def episode(
    session_id: Optional[str] = typer.Option(None, "--session", "-s", help="Session id (default TT-<today>)"),
    topic: Optional[str] = typer.Option(None, "--topic", "-t", help="Episode topic"),
    episode_number: Optional[int] = typer.Option(None, "--number", "-n", help="Explicit episode number"),
):
    """Generate an episode script, chunks and metadata."""

    async def _episode():
        today = date.today()
        request = EpisodeRequest(
            session_id=session_id or new_session_id(today),
            topic=topic,
            date=today.isoformat(),
            episode_number=episode_number,
        )

        async with Application(_settings()) as application:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                console=console,
                transient=True,
            ) as progress:
                progress.add_task(f"Generating {request.session_id}...", total=None)
                try:
                    result = await application.orchestrator.run(request)
                except StageFailure as e:
                    console.print(f"[red]✗[/red] Stage '{e.stage}' failed for {e.session_id}: {e.cause}")
                    raise typer.Exit(code=1)

        table = Table(title=f"Episode {result.metadata.episode_number}")
        table.add_column("Field", style="cyan")
        table.add_column("Value", style="green")
        table.add_row("Title", result.metadata.title)
        table.add_row("Chunks", str(len(result.chunk_keys)))
        table.add_row("Transcript", result.transcript_key)
        table.add_row("Metadata", result.metadata_key or "(not stored)")
        table.add_row("Keywords", ", ".join(result.metadata.keywords))
        table.add_row("Artwork prompt", result.artwork_prompt or "")
        if result.skipped_sections:
            table.add_row("Skipped sections", ", ".join(result.skipped_sections))
        console.print(table)

    asyncio.run(_episode())


@app.command("podcast-feed")
def podcast_feed():
    """Rebuild the podcast RSS feed from stored episode metadata."""

    async def _podcast_feed():
        async with Application(_settings()) as application:
            result = await application.podcast_feed.build()
            _print_feed_result("Podcast feed", result)

    asyncio.run(_podcast_feed())


@app.command()
def serve(
    feed_interval: Optional[int] = typer.Option(None, "--interval", "-i", help="Feed rewrite interval in minutes"),
    generation_hour: Optional[int] = typer.Option(None, "--hour", help="Hour to generate the episode (0-23)"),
):
    """Start the automated scheduler for the feed and daily episode."""

    async def _serve():
        settings = _settings()
        if feed_interval is not None:
            settings.episode.feed_interval_minutes = feed_interval
        if generation_hour is not None:
            settings.episode.generation_hour = generation_hour

        async with Application(settings) as application:
            console.print("[bold]Starting Torchcast scheduler...[/bold]")
            console.print(f"  Feed rewrite: every {settings.episode.feed_interval_minutes} minutes")
            console.print(
                f"  Episode: daily at {settings.episode.generation_hour:02d}:00 {settings.episode.timezone}"
            )
            console.print("\nPress Ctrl+C to stop\n")
            await run_scheduler_forever(application.scheduler(), application.cleanup)

    try:
        asyncio.run(_serve())
    except KeyboardInterrupt:
        console.print("\n[yellow]Scheduler stopped[/yellow]")


@app.command()
def routes():
    """Show each task's provider fallback chain."""
    try:
        config = build_route_config(_settings())
    except TorchcastError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)

    table = Table(title="Task Routes")
    table.add_column("Task", style="cyan")
    table.add_column("Providers (in order)")
    table.add_column("Temp", justify="right")
    table.add_column("Max tokens", justify="right")
    for task in config.tasks:
        route = config.get(task)
        chain = ", ".join(
            f"[green]{c.alias}[/green]" if c.configured else f"[dim]{c.alias}[/dim]"
            for c in route.candidates
        )
        table.add_row(task, chain, f"{route.temperature:.1f}", str(route.max_tokens))
    console.print(table)


ENV_EXAMPLE = """# Torchcast Configuration
# Copy to .env and fill in your values

# OpenRouter models and keys, one per provider alias
OPENROUTER_GOOGLE=google/gemini-2.0-flash-001
OPENROUTER_API_KEY_GOOGLE=
OPENROUTER_CHATGPT=openai/gpt-4o-mini
OPENROUTER_API_KEY_CHATGPT=
OPENROUTER_DEEPSEEK=deepseek/deepseek-chat
OPENROUTER_API_KEY_DEEPSEEK=
OPENROUTER_ANTHROPIC=anthropic/claude-3.5-haiku
OPENROUTER_API_KEY_ANTHROPIC=
OPENROUTER_META=meta-llama/llama-3.3-70b-instruct
OPENROUTER_API_KEY_META=

# Storage: sqlite (local) or s3 (Cloudflare R2 / any S3 endpoint)
STORAGE_BACKEND=sqlite
STORAGE_DB_PATH=data/torchcast.db
# STORAGE_ENDPOINT_URL=https://<account>.r2.cloudflarestorage.com
# STORAGE_ACCESS_KEY_ID=
# STORAGE_SECRET_ACCESS_KEY=
STORAGE_PUBLIC_BASE_URL_RSS=
STORAGE_PUBLIC_BASE_URL_PODCAST=

# Condensed feed
FEED_FEEDS_PER_RUN=5
FEED_CUTOFF_HOURS=24
FEED_AI_ONLY=false

# Short.io (optional)
SHORTIO_API_KEY=
SHORTIO_DOMAIN=

# Episodes
PODCAST_SEQUENTIAL_NUMBERS=false
PODCAST_GENERATION_HOUR=6

DEBUG=false
LOG_LEVEL=INFO
"""


@app.command()
def init():
    """Initialize the project with example configuration."""
    Path("data").mkdir(parents=True, exist_ok=True)
    console.print("[green]✓[/green] Created data/")

    env_path = Path(".env.example")
    if not env_path.exists():
        env_path.write_text(ENV_EXAMPLE)
        console.print("[green]✓[/green] Created .env.example")
    else:
        console.print("[yellow]![/yellow] .env.example already exists")

    console.print("\n[bold]Setup complete![/bold]")
    console.print("1. Copy .env.example to .env")
    console.print("2. Fill in your OpenRouter keys")
    console.print("3. Run: torchcast rewrite")


if __name__ == "__main__":
    app()
