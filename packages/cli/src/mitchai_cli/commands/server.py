"""server command: manage the background MCP server process.

The server runs as ``python -m mitchai_mcp.server`` in its own session so it
outlives the CLI invocation that started it. Its PID is kept in a per-port
file in the system temp directory; liveness is always checked over HTTP.
"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import sys
import tempfile
import time
from pathlib import Path

import click
from rich.console import Console

from mitchai_cli.runtime import build_mcp_client

console = Console()
logger = logging.getLogger(__name__)

_STARTUP_TIMEOUT = 10.0
_STOP_TIMEOUT = 3.0
_POLL_INTERVAL = 0.25
_STATUS_TIMEOUT = 2.0


def pid_file(port: int) -> Path:
    return Path(tempfile.gettempdir()) / f"mitchai-server-{port}.pid"


def log_file(port: int) -> Path:
    return Path(tempfile.gettempdir()) / f"mitchai-server-{port}.log"


def read_pid(port: int) -> int | None:
    path = pid_file(port)
    try:
        return int(path.read_text().strip())
    except FileNotFoundError:
        return None
    except ValueError:
        logger.warning("Ignoring corrupt PID file %s", path)
        return None


def _server_url(host: str, port: int) -> str:
    # A server bound to every interface is still reached through loopback.
    host = "127.0.0.1" if host in ("0.0.0.0", "") else host
    return f"http://{host}:{port}"


def _status(config: dict, host: str, port: int) -> dict | None:
    from mitchai_mcp.client import MCPError

    with build_mcp_client(config, server_url=_server_url(host, port), timeout=_STATUS_TIMEOUT) as client:
        try:
            return client.status()
        except MCPError:
            return None


def _wait_for(predicate, timeout: float) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(_POLL_INTERVAL)
    return predicate()


def start_server(config: dict, host: str, port: int) -> None:
    status = _status(config, host, port)
    if status is not None:
        console.print(f"[green]MCP server already running on port {port}[/green]")
        return

    console.print(f"[cyan]Starting MCP server on port {port}...[/cyan]")
    with open(log_file(port), "ab") as log:
        process = subprocess.Popen(
            [sys.executable, "-m", "mitchai_mcp.server", "--host", host, "--port", str(port)],
            stdin=subprocess.DEVNULL,
            stdout=log,
            stderr=subprocess.STDOUT,
            start_new_session=True,
        )

    if not _wait_for(lambda: process.poll() is not None or _status(config, host, port) is not None, _STARTUP_TIMEOUT):
        process.terminate()
        raise click.ClickException(f"MCP server did not come up within {_STARTUP_TIMEOUT:.0f}s. See {log_file(port)}.")
    status = _status(config, host, port)
    if status is None:
        raise click.ClickException(f"Failed to start MCP server. See {log_file(port)}.")

    pid_file(port).write_text(str(process.pid))
    console.print(f"[green]MCP server started on port {port} (PID {process.pid})[/green]")
    console.print(f"Available tools: {', '.join(status.get('tools', []))}")


def stop_server(config: dict, host: str, port: int) -> None:
    if _status(config, host, port) is None:
        console.print(f"[yellow]MCP server not running on port {port}[/yellow]")
        pid_file(port).unlink(missing_ok=True)
        return

    pid = read_pid(port)
    if pid is None:
        raise click.ClickException(
            f"MCP server is running on port {port} but was not started by mitchai (no PID file at {pid_file(port)})."
        )

    console.print(f"[yellow]Stopping MCP server (PID {pid})...[/yellow]")
    try:
        os.kill(pid, signal.SIGTERM)
        if not _wait_for(lambda: _status(config, host, port) is None, _STOP_TIMEOUT):
            console.print("[red]Server did not stop, forcing...[/red]")
            os.kill(pid, getattr(signal, "SIGKILL", signal.SIGTERM))
    except ProcessLookupError:
        logger.debug("Process %d already gone", pid)
    pid_file(port).unlink(missing_ok=True)
    console.print("[green]MCP server stopped[/green]")


@click.group("server")
def server_cmd():
    """Start, stop and inspect the MCP tool server."""


def _port_option(f):
    return click.option(
        "--port", "-p", type=int, default=None, help="Port of the MCP server (default: mcp_port from config)."
    )(f)


def _resolve(ctx, port: int | None) -> tuple[dict, str, int]:
    config = ctx.obj["config"]
    return config, config.get("mcp_host", "127.0.0.1"), port or int(config["mcp_port"])


@server_cmd.command("start")
@_port_option
@click.pass_context
def start_cmd(ctx, port: int | None):
    """Start the MCP server in the background."""
    start_server(*_resolve(ctx, port))


@server_cmd.command("stop")
@_port_option
@click.pass_context
def stop_cmd(ctx, port: int | None):
    """Stop a server started with `mitchai server start`."""
    stop_server(*_resolve(ctx, port))


@server_cmd.command("status")
@_port_option
@click.pass_context
def status_cmd(ctx, port: int | None):
    """Show whether the server is running and which tools it offers."""
    config, host, port = _resolve(ctx, port)
    status = _status(config, host, port)
    if status is None:
        console.print(f"[red]MCP server not running on port {port}[/red]")
        return
    tools = status.get("tools", [])
    console.print(f"[green]MCP server running on port {port}[/green] (version {status.get('version', '?')})")
    console.print(f"Available tools ({len(tools)}): {', '.join(tools)}")


@server_cmd.command("restart")
@_port_option
@click.pass_context
def restart_cmd(ctx, port: int | None):
    """Stop the server if it is running, then start it again."""
    config, host, port = _resolve(ctx, port)
    stop_server(config, host, port)
    start_server(config, host, port)
