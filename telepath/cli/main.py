"""Telepath CLI.

Usage:
    telepath run               Start the bot (long polling)
    telepath configure         One-time Telegram profile setup
    telepath config show       Display resolved configuration (secrets masked)
    telepath users list        Show the access allow-list
"""

import asyncio
import logging
import sys
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table
from telegram import Bot
from telegram.ext import Application

from telepath import __version__
from telepath.cli.config import (
    TelepathConfig,
    load_config,
    mask_database_url,
    mask_secret,
    validate_required,
)
from telepath.cli.factory import Runtime, build_runtime
from telepath.db.connection import init_db
from telepath.errors import ConfigError
from telepath.handlers.dispatcher import Dispatcher
from telepath.transport.telegram import TelegramTransport, configure_bot_profile

_log = logging.getLogger(__name__)

app = typer.Typer(
    name="telepath",
    help="AI-powered short link bot for Telegram",
    no_args_is_help=True,
)
config_app = typer.Typer(help="Configuration management")
users_app = typer.Typer(help="Access allow-list")

app.add_typer(config_app, name="config")
app.add_typer(users_app, name="users")

console = Console()

# --- Global state ---
_config_path: str | None = None


@app.callback()
def main(
    config: Optional[str] = typer.Option(
        None, "--config", help="Path to telepath.yaml config file"
    ),
):
    """Telepath: turn URLs into memorable short links."""
    global _config_path
    _config_path = config


def setup_logging(level: str, log_file: str | None = None) -> None:
    """Configure root logging once for the process."""
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    numeric = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric,
        format="%(asctime)s %(levelname)s:%(name)s:%(message)s",
        handlers=handlers,
    )
    logging.getLogger("telepath").setLevel(numeric)
    # httpx logs every request at INFO, including the bot token in the URL
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _load(require_secrets: bool = True) -> TelepathConfig:
    try:
        cfg = load_config(config_path=_config_path)
        if require_secrets:
            validate_required(cfg)
    except FileNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    except ConfigError as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(1)
    return cfg


@app.command()
def version():
    """Show Telepath version."""
    console.print(f"[bold]Telepath[/bold] v{__version__}")


@app.command()
def run():
    """Start the bot and poll Telegram for updates."""
    cfg = _load()
    setup_logging(cfg.logging.level, cfg.logging.file)

    runtime: Runtime = build_runtime(cfg)
    transport = TelegramTransport(Dispatcher(runtime.context))

    async def _post_init(application: Application) -> None:
        await init_db(runtime.engine)
        await configure_bot_profile(application.bot, runtime.bot_config)
        me = await application.bot.get_me()
        _log.info("Telepath bot @%s (%s) is running", me.username, me.id)

    async def _post_shutdown(application: Application) -> None:
        await runtime.aclose()

    application = transport.build_application(
        cfg.telegram.bot_token, post_init=_post_init, post_shutdown=_post_shutdown
    )
    console.print("[bold green]Telepath is starting…[/bold green] (Ctrl+C to stop)")
    application.run_polling()


@app.command()
def configure(
    force: bool = typer.Option(False, "--force", help="Redo every step"),
):
    """Set the bot's commands menu, name and descriptions on Telegram."""
    cfg = _load(require_secrets=False)
    if not cfg.telegram.bot_token:
        console.print("[red]Missing telegram.bot_token (BOT_TOKEN)[/red]")
        raise typer.Exit(1)
    setup_logging(cfg.logging.level, cfg.logging.file)

    async def _configure() -> bool:
        runtime = build_runtime(cfg)
        try:
            await init_db(runtime.engine)
            if force:
                await runtime.bot_config.reset()
            async with Bot(cfg.telegram.bot_token) as bot:
                done = await configure_bot_profile(bot, runtime.bot_config)
            status = await runtime.bot_config.status()
        finally:
            await runtime.aclose()

        table = Table(title="Bot configuration")
        table.add_column("Step")
        table.add_column("Done")
        for step, ok in status.items():
            table.add_row(step, "[green]yes[/green]" if ok else "[red]no[/red]")
        console.print(table)
        return done

    if not asyncio.run(_configure()):
        console.print("[yellow]Configuration incomplete; run again later.[/yellow]")
        raise typer.Exit(1)


# --- Config commands ---


@config_app.command("show")
def config_show():
    """Display resolved configuration (secrets masked)."""
    cfg = _load(require_secrets=False)

    console.print("[bold]Telegram:[/bold]")
    console.print(f"  bot_token: {mask_secret(cfg.telegram.bot_token)}")

    console.print("\n[bold]Dub:[/bold]")
    console.print(f"  api_key: {mask_secret(cfg.dub.api_key)}")
    console.print(f"  base_url: {cfg.dub.base_url}")
    console.print(f"  default_domain: {cfg.dub.default_domain}")
    console.print(f"  timeout_seconds: {cfg.dub.timeout_seconds}")

    console.print("\n[bold]AI:[/bold]")
    console.print(f"  api_key: {mask_secret(cfg.ai.api_key)}")
    console.print(f"  model: {cfg.ai.model}")
    console.print(f"  max_tokens: {cfg.ai.max_tokens}")

    console.print("\n[bold]Retry:[/bold]")
    console.print(f"  max_attempts: {cfg.retry.max_attempts}")
    console.print(f"  initial_delay_seconds: {cfg.retry.initial_delay_seconds}")

    console.print("\n[bold]Access:[/bold]")
    ids = cfg.access.allowed_user_ids
    console.print(f"  allowed_user_ids: {len(ids) if ids else 'everyone'}")

    console.print("\n[bold]Database:[/bold]")
    console.print(f"  url: {mask_database_url(cfg.database.url)}")

    console.print("\n[bold]Logging:[/bold]")
    console.print(f"  level: {cfg.logging.level}")
    console.print(f"  file: {cfg.logging.file or '(stdout only)'}")


# --- Users commands ---


@users_app.command("list")
def users_list():
    """List user ids allowed to use the bot."""
    cfg = _load(require_secrets=False)
    ids = cfg.access.allowed_user_ids
    if not ids:
        console.print("[yellow]Allow-list is empty: every user may use the bot.[/yellow]")
        return
    console.print(f"[bold]Allowed users ({len(ids)})[/bold]")
    table = Table()
    table.add_column("User ID", justify="right")
    for user_id in sorted(ids):
        table.add_row(str(user_id))
    console.print(table)


if __name__ == "__main__":
    app()
