"""Main CLI application using Typer."""
import asyncio

import typer
from dotenv import load_dotenv
from rich.console import Console

from ..chat import ChatSession
from ..transport import CONNECT_EVENT, ConnectionPool, create_connection_manager
from .providers import (
    configure_console_logging,
    get_backend,
    get_connection,
    get_connection_config,
)

# Load environment variables
load_dotenv()

# Create Typer app
app = typer.Typer(
    name="relaychat",
    help="Two-party real-time chat over a Socket.IO relay",
    no_args_is_help=True,
    add_completion=True,
)

# Console for rich output
console = Console()

_EXIT_WORDS = ("exit", "quit", "q")


def _short(user_id: str) -> str:
    return user_id[:8]


@app.command()
def health(
    url: str | None = typer.Option(
        None,
        "--url",
        "-u",
        help="Relay URL (default: $RELAYCHAT_SERVER_URL or http://localhost:3000)"
    ),
    backend: str | None = typer.Option(
        None,
        "--backend",
        "-b",
        help="Connection backend: 'socketio' or 'memory'"
    ),
    timeout: float = typer.Option(
        5.0,
        "--timeout",
        "-t",
        min=0.1,
        help="Seconds to wait for the relay"
    ),
):
    """Check that the relay accepts a connection."""
    async def _health():
        config = get_connection_config(url, console=console)
        try:
            connection = create_connection_manager(get_backend(backend), config)
        except ValueError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(code=1)

        connected = asyncio.Event()
        connection.subscribe(CONNECT_EVENT, lambda _payload: connected.set())
        try:
            connection.connect()
            try:
                await asyncio.wait_for(connected.wait(), timeout=timeout)
            except asyncio.TimeoutError:
                console.print(f"[red]x[/red] Relay {config.url}: FAILED (no connection after {timeout:g}s)")
                raise typer.Exit(code=1)
            console.print(f"[green]+[/green] Relay {config.url}: OK ({connection.backend_type})")
        finally:
            await connection.close()

    asyncio.run(_health())


@app.command()
def chat(
    user_id: str | None = typer.Option(
        None,
        "--user-id",
        help="Fixed identity for this session (default: random UUID)"
    ),
    url: str | None = typer.Option(
        None,
        "--url",
        "-u",
        help="Relay URL (default: $RELAYCHAT_SERVER_URL or http://localhost:3000)"
    ),
    backend: str | None = typer.Option(
        None,
        "--backend",
        "-b",
        help="Connection backend: 'socketio' or 'memory'"
    ),
    reconnect: bool = typer.Option(
        False,
        "--reconnect",
        help="Reconnect automatically when the relay drops the connection"
    ),
    log_level: str = typer.Option(
        "warning",
        "--log-level",
        "-l",
        help="Console log level: debug, info, warning, or error"
    ),
):
    """Line-mode chat in the terminal."""
    configure_console_logging(log_level)

    async def _chat():
        connection = get_connection(get_connection_config(url, reconnect, console), get_backend(backend))
        session = ChatSession(connection, user_id=user_id)
        printed = 0

        def _print_new_messages() -> None:
            nonlocal printed
            for message in session.messages[printed:]:
                if not session.is_own(message):
                    console.print(f"[bold magenta]{_short(message.user_id)}:[/bold magenta] {message.text}")
            printed = session.message_count

        session.on_messages_updated = _print_new_messages

        console.print("[bold cyan]Relaychat[/bold cyan]")
        console.print(f"[dim]You are {session.current_user_id}[/dim]")
        console.print("[dim]Type 'exit', 'quit', or 'q' to leave[/dim]\n")

        try:
            while True:
                try:
                    user_input = await asyncio.to_thread(console.input, "")
                except (KeyboardInterrupt, EOFError):
                    console.print("\n[dim]Goodbye![/dim]")
                    break

                if not user_input.strip():
                    continue

                if user_input.strip().lower() in _EXIT_WORDS:
                    console.print("[dim]Goodbye![/dim]")
                    break

                session.send_message(user_input)
        finally:
            await session.close()
            await ConnectionPool.close_all()

    try:
        asyncio.run(_chat())
    except KeyboardInterrupt:
        pass


@app.command(name="tui")
def tui_command(
    user_id: str | None = typer.Option(
        None,
        "--user-id",
        help="Fixed identity for this session (default: random UUID)"
    ),
    url: str | None = typer.Option(
        None,
        "--url",
        "-u",
        help="Relay URL (default: $RELAYCHAT_SERVER_URL or http://localhost:3000)"
    ),
    backend: str | None = typer.Option(
        None,
        "--backend",
        "-b",
        help="Connection backend: 'socketio' or 'memory'"
    ),
    reconnect: bool = typer.Option(
        False,
        "--reconnect",
        help="Reconnect automatically when the relay drops the connection"
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Show log panel with level: debug (all), info, warning, or error"
    ),
):
    """Launch interactive TUI chat interface."""
    async def _tui():
        from ..ui import run_textual_tui

        connection = get_connection(get_connection_config(url, reconnect, console), get_backend(backend))
        try:
            await run_textual_tui(connection=connection, user_id=user_id, log_level=log_level)
        finally:
            await ConnectionPool.close_all()
            console.print("\n[dim]Goodbye![/dim]")

    try:
        asyncio.run(_tui())
    except KeyboardInterrupt:
        pass


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
