"""
Ayinet CLI — `ayinet` command.

Commands:
  ayinet serve                 Run the relay server
  ayinet use <user-id>         Save client defaults
  ayinet send <to> <message>   Send one message, print the confirmation
  ayinet listen                Print incoming messages
  ayinet status                Query the server's /health endpoint
"""

import asyncio
import json
from pathlib import Path

import click
from rich.console import Console

from ayinet_relay.client import AsyncChatClient
from ayinet_relay.transport.http import DEFAULT_BASE_URL

console = Console()
CONFIG_FILE = Path.home() / ".ayinet" / "config.json"


def _load_config() -> dict:
    try:
        return json.loads(CONFIG_FILE.read_text())
    except (FileNotFoundError, json.JSONDecodeError):
        return {}


def _save_config(cfg: dict) -> None:
    CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
    CONFIG_FILE.write_text(json.dumps(cfg, indent=2))


def _get_client(user_id: "str | None" = None, base_url: "str | None" = None) -> AsyncChatClient:
    cfg = _load_config()
    uid = user_id or cfg.get("user_id")
    if not uid:
        console.print("[red]No user configured. Run `ayinet use <user-id>` or pass --user.[/red]")
        raise SystemExit(1)
    return AsyncChatClient(user_id=uid, base_url=base_url or cfg.get("base_url", DEFAULT_BASE_URL))


def _run(coro):
    return asyncio.run(coro)


@click.group()
@click.version_option("0.1.0")
def main():
    """Ayinet relay — real-time presence and direct messaging."""


# Register subcommands from separate modules
from ayinet_relay.cli.serve import serve
from ayinet_relay.cli.chat import use_cmd, send_cmd, listen_cmd, status_cmd

main.add_command(serve)
main.add_command(use_cmd)
main.add_command(send_cmd)
main.add_command(listen_cmd)
main.add_command(status_cmd)


if __name__ == "__main__":
    main()
