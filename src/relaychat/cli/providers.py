"""Provider factory functions for CLI.

Centralizes creation of connection configuration and connections from
environment variables. Hides configuration details from command implementations.
"""

import logging
import os

import typer
from rich.console import Console
from rich.logging import RichHandler

from ..transport import ConnectionConfig, ConnectionManager, ConnectionPool, ReconnectPolicy
from ..transport.models import DEFAULT_SERVER_URL

# Default console for output
_console = Console()

_TRUE_VALUES = ("1", "true", "yes", "on")


def get_backend(backend: str | None = None) -> str:
    """Resolve the connection backend name.

    Environment variables:
        RELAYCHAT_BACKEND: socketio or memory (default: socketio)
    """
    return (backend or os.getenv("RELAYCHAT_BACKEND", "socketio")).lower()


def get_connection_config(
    url: str | None = None,
    reconnect: bool = False,
    console: Console | None = None,
) -> ConnectionConfig:
    """Create relay configuration from options and environment variables.

    Args:
        url: Relay URL overriding the environment
        reconnect: Enable the reconnection policy
        console: Optional Rich console for output

    Returns:
        Validated connection configuration

    Raises:
        SystemExit: If the configuration is invalid

    Environment variables:
        RELAYCHAT_SERVER_URL: Relay URL (default: http://localhost:3000)
        RELAYCHAT_NAMESPACE: Socket.IO namespace (default: /)
        RELAYCHAT_TRANSPORT_LOG: Log Socket.IO traffic (default: off)
        RELAYCHAT_RECONNECT_ATTEMPTS: Attempts when reconnecting (default: 0, unlimited)
    """
    con = console or _console
    try:
        return ConnectionConfig(
            url=url or os.getenv("RELAYCHAT_SERVER_URL", DEFAULT_SERVER_URL),
            namespace=os.getenv("RELAYCHAT_NAMESPACE", "/"),
            log_wire=os.getenv("RELAYCHAT_TRANSPORT_LOG", "").lower() in _TRUE_VALUES,
            reconnect=ReconnectPolicy(
                enabled=reconnect,
                attempts=int(os.getenv("RELAYCHAT_RECONNECT_ATTEMPTS", "0")),
            ),
        )
    except ValueError as e:
        con.print(f"[red]Error: invalid relay configuration: {e}[/red]")
        raise typer.Exit(code=1)


def get_connection(config: ConnectionConfig, backend: str) -> ConnectionManager:
    """Get the process-wide connection for the configured relay.

    Raises:
        SystemExit: If the backend is unknown
    """
    try:
        return ConnectionPool.get_connection(config, backend=backend)
    except ValueError as e:
        _console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)


def configure_console_logging(level: str = "warning") -> None:
    """Send package log records to the console through Rich."""
    handler = RichHandler(console=_console, show_path=False, rich_tracebacks=True)
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    package_logger = logging.getLogger("relaychat")
    package_logger.handlers[:] = [handler]
    package_logger.setLevel(level.upper())
