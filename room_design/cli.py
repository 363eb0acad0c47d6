"""Command-line interface for operating the room design service."""

import asyncio
import logging
from typing import Optional

import typer
from typing_extensions import Annotated

from room_design.config.settings import settings
from room_design.core.design_repository import DesignRepository
from room_design.core.exceptions import RoomDesignError
from room_design.core.leaderboard import LeaderboardView
from room_design.core.theme_lifecycle import ThemeLifecycle
from room_design.core.theme_notifier import ThemeNotifier
from room_design.storage import create_store
from room_design.storage.base_store import KeyValueStore
from room_design.utils.logging_utils import setup_logging

app = typer.Typer(help="Room Design Service - run the API and manage themes")
theme_app = typer.Typer(help="Inspect and rotate the current theme")
db_app = typer.Typer(help="Manage the SQL key-value store")
app.add_typer(theme_app, name="theme")
app.add_typer(db_app, name="db")

logger = logging.getLogger(__name__)

MS_PER_MINUTE = 60 * 1000


def format_duration(ms: int) -> str:
    hours, rest = divmod(ms // MS_PER_MINUTE, 60)
    return f"{hours}h {rest:02d}m"


def run_command(coro) -> None:
    """Run an async command body, turning service errors into exit code 1."""
    try:
        asyncio.run(coro)
    except RoomDesignError as e:
        typer.echo(f"Error: {e.message}", err=True)
        raise typer.Exit(code=1)


def open_shared_store() -> KeyValueStore:
    """
    The store the running service uses.

    The in-memory backend lives inside the API process, so a CLI command
    against it would only see an empty store of its own.
    """
    if settings.STORE_BACKEND == "memory":
        typer.echo(
            "Error: STORE_BACKEND is 'memory'; theme and leaderboard commands need a shared "
            "store. Set STORE_BACKEND=database.",
            err=True,
        )
        raise typer.Exit(code=1)
    return create_store(settings.STORE_BACKEND)


@app.command()
def serve(
    host: Annotated[Optional[str], typer.Option("--host", help="Bind address (default: API_HOST)")] = None,
    port: Annotated[Optional[int], typer.Option("--port", "-p", help="Port (default: API_PORT)")] = None,
    reload: Annotated[bool, typer.Option("--reload", help="Reload on code changes")] = False,
) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "room_design.api.main:app",
        host=host or settings.API_HOST,
        port=port or settings.API_PORT,
        reload=reload,
    )


async def _show_theme(store: KeyValueStore) -> None:
    try:
        lifecycle = ThemeLifecycle(store)
        theme = await lifecycle.get_current_theme()
        if theme is None:
            typer.echo("No current theme")
            return
        status = await lifecycle.get_theme_status(theme)
        typer.echo(f"{theme.name} ({theme.id})")
        typer.echo(f"  {theme.description}")
        typer.echo(f"  status: {status.value}")
        typer.echo(f"  time remaining: {format_duration(lifecycle.get_time_remaining(theme))}")
        archived = await lifecycle.list_archived_theme_ids()
        typer.echo(f"  archived themes: {len(archived)}")
    finally:
        await store.close()


@theme_app.command("show")
def theme_show(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable verbose output")] = False,
) -> None:
    """Print the current theme."""
    setup_logging(level=logging.DEBUG if verbose else None)
    run_command(_show_theme(open_shared_store()))


async def _rotate_theme(store: KeyValueStore, force: bool) -> None:
    notifier = ThemeNotifier(
        webhook_url=settings.THEME_NOTIFICATION_WEBHOOK_URL,
        api_key=settings.THEME_NOTIFICATION_API_KEY,
    )
    try:
        lifecycle = ThemeLifecycle(store, notifier=notifier)
        theme = await lifecycle.rotate(force=force)
        if theme is None:
            current = await lifecycle.get_current_theme()
            typer.echo(f"Current theme {current.name} is still active; nothing to do")
        else:
            typer.echo(f"Activated theme {theme.name} ({theme.id})")
    finally:
        await notifier.close()
        await store.close()


@theme_app.command("rotate")
def theme_rotate(
    force: Annotated[bool, typer.Option("--force", "-f", help="Rotate even if the current theme has not expired")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable verbose output")] = False,
) -> None:
    """Run one rotation tick now."""
    setup_logging(level=logging.DEBUG if verbose else None)
    run_command(_rotate_theme(open_shared_store(), force))


async def _print_leaderboard(store: KeyValueStore, theme_id: str, limit: int) -> None:
    try:
        entries = await LeaderboardView(DesignRepository(store)).get_leaderboard_by_theme(theme_id, limit=limit)
        if not entries:
            typer.echo(f"No submissions for theme {theme_id}")
            return
        for entry in entries:
            typer.echo(f"{entry.rank:>3}. {entry.username:<20} {entry.vote_count:>5}  {entry.design.id}")
    finally:
        await store.close()


@app.command()
def leaderboard(
    theme_id: Annotated[str, typer.Argument(help="Theme to rank")],
    limit: Annotated[int, typer.Option("--limit", "-n", min=1, help="Number of entries")] = 10,
) -> None:
    """Print a theme's leaderboard."""
    setup_logging()
    run_command(_print_leaderboard(open_shared_store(), theme_id, limit))


async def _init_db() -> None:
    from room_design.storage.sqlalchemy_store import SQLAlchemyKeyValueStore

    store = SQLAlchemyKeyValueStore()
    try:
        await store.create_schema()
    finally:
        await store.close()


@db_app.command("init")
def db_init() -> None:
    """Create the key-value tables (use Alembic for managed deployments)."""
    setup_logging()
    run_command(_init_db())
    typer.echo("Key-value tables created")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
