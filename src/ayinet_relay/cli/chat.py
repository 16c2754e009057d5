"""CLI: ayinet use, ayinet send, ayinet listen, ayinet status"""

import json
from typing import Optional

import click
from rich.console import Console

from ayinet_relay.errors import AyinetError
from ayinet_relay.models.message import OutboundMessage

console = Console()


def _load_config() -> dict:
    from ayinet_relay.cli.main import _load_config
    return _load_config()


def _save_config(cfg: dict) -> None:
    from ayinet_relay.cli.main import _save_config
    _save_config(cfg)


def _get_client(user_id: Optional[str] = None, base_url: Optional[str] = None):
    from ayinet_relay.cli.main import _get_client
    return _get_client(user_id, base_url)


def _run(coro):
    from ayinet_relay.cli.main import _run
    return _run(coro)


def _print_message(msg: OutboundMessage, me: str) -> None:
    who = "You" if msg.sender_id == me else msg.sender_id
    media = f" [dim]({msg.media_url})[/dim]" if msg.media_url else ""
    console.print(f"[green]{who}[/green] → {msg.receiver_id}: {msg.text}{media}")


@click.command("use")
@click.argument("user_id")
@click.option("--url", "base_url", default=None, help="Relay base URL")
def use_cmd(user_id: str, base_url: Optional[str]):
    """Save the user id (and server URL) used by send/listen."""
    cfg = _load_config()
    cfg["user_id"] = user_id
    if base_url:
        cfg["base_url"] = base_url
    _save_config(cfg)
    console.print(f"[green]Using {user_id}[/green] [dim]({cfg.get('base_url', 'default URL')})[/dim]")


@click.command("send")
@click.argument("receiver_id")
@click.argument("message")
@click.option("-u", "--user", "user_id", default=None, help="Send as this user id")
@click.option("--url", "base_url", default=None)
@click.option("--media-url", default=None)
@click.option("--json-output", "--json", is_flag=True)
def send_cmd(receiver_id: str, message: str, user_id: Optional[str], base_url: Optional[str],
             media_url: Optional[str], json_output: bool):
    """Send one message and print the stored copy."""

    async def _send():
        client = _get_client(user_id, base_url)
        try:
            await client.connect()
            with console.status("Sending..."):
                msg = await client.send_and_wait(receiver_id, message, media_url=media_url)
        except (AyinetError, TimeoutError) as e:
            console.print(f"[red]{e}[/red]")
            raise SystemExit(1)
        finally:
            await client.close()
        if json_output:
            click.echo(json.dumps(msg.model_dump(mode="json")))
        else:
            _print_message(msg, client.user_id)
            console.print(f"[dim]id {msg.id}[/dim]")

    _run(_send())


@click.command("listen")
@click.option("-u", "--user", "user_id", default=None, help="Listen as this user id")
@click.option("--url", "base_url", default=None)
def listen_cmd(user_id: Optional[str], base_url: Optional[str]):
    """Print incoming messages (Ctrl+C to exit)."""

    async def _listen():
        client = _get_client(user_id, base_url)
        try:
            await client.connect()
            console.print(f"[cyan]Listening as {client.user_id}[/cyan]\n")
            async for msg in client.messages():
                _print_message(msg, client.user_id)
        except AyinetError as e:
            console.print(f"[red]{e}[/red]")
            raise SystemExit(1)
        finally:
            await client.close()

    try:
        _run(_listen())
    except KeyboardInterrupt:
        pass


@click.command("status")
@click.option("--url", "base_url", default=None)
def status_cmd(base_url: Optional[str]):
    """Show server health and the number of online users."""

    async def _status():
        from ayinet_relay.transport.http import DEFAULT_BASE_URL, HttpClient
        http = HttpClient(base_url or _load_config().get("base_url", DEFAULT_BASE_URL))
        try:
            result = await http.health()
        except AyinetError as e:
            console.print(f"[red]Server unreachable: {e}[/red]")
            raise SystemExit(1)
        finally:
            await http.close()
        console.print(f"[green]{result.get('status')}[/green] — {result.get('online', 0)} user(s) online")

    _run(_status())
