"""CLI: ayinet serve"""

import logging
from typing import Optional

import click
import uvicorn
from rich.console import Console
from rich.logging import RichHandler

from ayinet_relay.config import Settings
from ayinet_relay.errors import ConfigError
from ayinet_relay.server import create_app

console = Console()


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


@click.command("serve")
@click.option("--host", default=None, help="Bind address (env HOST)")
@click.option("--port", default=None, type=int, help="Port (env PORT)")
@click.option("--database-url", default=None, help="PostgreSQL DSN (env DATABASE_URL)")
@click.option("--in-memory", is_flag=True, default=None, help="Keep messages in process memory")
@click.option("--notify-failures", is_flag=True, default=None, help="Send message_error events to senders")
@click.option("--log-level", default=None, help="Logging level (env AYINET_LOG_LEVEL)")
def serve(
    host: Optional[str],
    port: Optional[int],
    database_url: Optional[str],
    in_memory: Optional[bool],
    notify_failures: Optional[bool],
    log_level: Optional[str],
):
    """Run the relay server."""
    overrides = {
        "host": host,
        "port": port,
        "database_url": database_url,
        "in_memory": in_memory or None,
        "notify_failures": notify_failures or None,
        "log_level": log_level,
    }
    settings = Settings(**{k: v for k, v in overrides.items() if v is not None})
    _configure_logging(settings.log_level)
    try:
        app = create_app(settings)
    except ConfigError as e:
        console.print(f"[red]FATAL ERROR: {e}[/red]")
        raise SystemExit(1)

    store = "in-memory store" if settings.in_memory else "PostgreSQL"
    console.print(f"[green]Ayinet relay running on port {settings.port}[/green] [dim]({store})[/dim]")
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
