"""``forgeline serve`` — run the build HTTP API under uvicorn.

If the port is still held (typically by a previous instance shutting
down) the command waits for it before giving up.
"""

from __future__ import annotations

import logging
import socket
import time

import typer
from rich.console import Console

from forgeline.config import ForgelineSettings

console = Console()
logger = logging.getLogger(__name__)

PORT_WAIT_ATTEMPTS = 10
PORT_WAIT_DELAY = 0.5


def is_port_available(host: str, port: int) -> bool:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        try:
            sock.bind((host, port))
        except OSError:
            return False
    return True


def wait_for_port(
    host: str,
    port: int,
    attempts: int = PORT_WAIT_ATTEMPTS,
    delay: float = PORT_WAIT_DELAY,
) -> bool:
    for attempt in range(1, attempts + 1):
        if is_port_available(host, port):
            return True
        logger.info("Port %s in use, waiting... (attempt %d/%d)", port, attempt, attempts)
        time.sleep(delay)
    return False


def serve_cmd(
    host: str = typer.Option(None, "--host", help="Interface to bind."),
    port: int = typer.Option(None, "--port", "-p", help="Port to listen on."),
) -> None:
    """Serve the build API until interrupted."""
    import uvicorn

    from forgeline.api.app import create_app

    settings = ForgelineSettings()
    host = host or settings.host
    port = port or settings.port

    if not wait_for_port(host, port):
        console.print(f"[bold red]Port {port} is still in use after waiting.[/bold red]")
        raise typer.Exit(code=1)

    console.print(f"[bold green]Forgeline listening on http://{host}:{port}[/bold green]")
    uvicorn.run(
        create_app(settings),
        host=host,
        port=port,
        log_level=settings.log_level.lower(),
    )
