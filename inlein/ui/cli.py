"""Main CLI entry point for the inlein client.

This is the only place that ends the process on fatal client conditions:
core code raises FatalError and the commands here turn it into exit status 1.
"""

import logging
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from inlein import __version__
from inlein.config import load_settings
from inlein.daemon.client import DaemonClient, ensure_connected
from inlein.daemon.launcher import DaemonLauncher
from inlein.exceptions import FatalError, InleinError
from inlein.registry import port_file_path, resolve_port
from inlein.ui.output import UIManager

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="inlein - run Clojure scripts through a background daemon.",
)

console = Console()
ui = UIManager()


# ============================================================================
# Shared helpers
# ============================================================================

def _connect(auto_start: bool = True) -> Optional[DaemonClient]:
    """
    Connect to the daemon. Exits on error.

    With auto_start the daemon is launched when not running; otherwise
    None is returned when it is not running.
    """
    try:
        if auto_start:
            return ensure_connected()
        client = DaemonClient()
        return client if client.try_connect() else None
    except FatalError as e:
        ui.error(str(e))
        raise typer.Exit(1)
    except InleinError as e:
        ui.error(f"Error: {e}")
        raise typer.Exit(1)
    except OSError as e:
        ui.error(f"Could not start the inlein daemon: {e}")
        raise typer.Exit(1)


def _send(client: DaemonClient, request: dict) -> dict:
    """Send one request and close the connection. Exits on error."""
    try:
        return client.send_request(request)
    except InleinError as e:
        ui.error(f"Error: {e}")
        raise typer.Exit(1)
    except OSError as e:
        ui.error(f"Connection to the inlein daemon failed: {e}")
        raise typer.Exit(1)
    finally:
        client.close()


def _parse_params(params: List[str]) -> dict:
    request = {}
    for param in params:
        key, sep, value = param.partition("=")
        if not sep or not key:
            ui.error(f"Invalid parameter '{param}', expected KEY=VALUE")
            raise typer.Exit(2)
        request[key] = value
    return request


# ============================================================================
# Commands
# ============================================================================

@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Talk to the inlein daemon, starting it when needed."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s [%(levelname)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


@app.command()
def ping() -> None:
    """Check that the daemon answers, starting it if needed."""
    client = _connect()
    port = client.port
    _send(client, {"op": "ping"})
    ui.success(f"inlein daemon is running on port {port}")


@app.command("start-daemon")
def start_daemon() -> None:
    """Start the daemon unless it is already running."""
    client = _connect()
    port = client.port
    client.close()
    ui.success(f"inlein daemon running on port {port}")


@app.command("shutdown-daemon")
def shutdown_daemon() -> None:
    """Stop a running daemon."""
    client = _connect(auto_start=False)
    if client is None:
        ui.info("inlein daemon is not running")
        return
    _send(client, {"op": "shutdown"})
    ui.success("inlein daemon shutting down")


@app.command()
def request(
    op: str = typer.Argument(..., help="Operation to request"),
    params: Optional[List[str]] = typer.Argument(None, help="Extra KEY=VALUE request entries"),
) -> None:
    """
    Send a raw request and print the daemon's response.

    Example: inlein request ping
    """
    payload = _parse_params(params or [])
    payload["op"] = op
    response = _send(_connect(), payload)

    table = Table(title=f"Response to {escape(op)}", show_header=True)
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, value in sorted(response.items()):
        table.add_row(escape(str(key)), escape(str(value)))
    console.print(table)


@app.command()
def status() -> None:
    """Show where the client looks for the daemon and what it finds."""
    settings = load_settings()
    try:
        port = resolve_port(settings.home)
        port_text = str(port) if port is not None else "[yellow]not running[/yellow]"
    except ValueError as e:
        port_text = f"[red]{escape(str(e))}[/red]"

    artifact = DaemonLauncher(settings).artifact_path()
    artifact_text = escape(str(artifact))
    if not artifact.exists():
        artifact_text += " [yellow](missing)[/yellow]"

    table = Table(title="inlein", show_header=True)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("Client version", __version__)
    table.add_row("Home", escape(str(settings.home)))
    table.add_row("Port file", escape(str(port_file_path(settings.home))))
    table.add_row("Port", port_text)
    table.add_row("Daemon jar", artifact_text)
    table.add_row("Java command", escape(settings.java_cmd))
    console.print(table)


@app.command()
def version() -> None:
    """Print the client version."""
    typer.echo(__version__)


def run() -> None:
    """Entry point for console script mapping."""
    app()


if __name__ == "__main__":
    run()
