"""Listen command implementation"""

import asyncio
import os
import sys

import click
from rich.console import Console
from rich.markup import escape

from ..util import (
    get_instance_path,
    get_pid_file,
    is_initialized,
    is_running,
    load_config,
)

console = Console()


@click.command(name="listen", help="Connect to WhatsApp and archive incoming images")
@click.argument(
    "path",
    type=click.Path(),
    required=False,
)
def listen(path: str = None):
    """Run the messaging listener until a fatal session condition

    Exit codes:
        0: Interrupted by the user
        1: Logged out, or rate-limit retries exhausted

    Args:
        path: Instance directory path (default: ~/.snapvault)
    """
    instance_path = get_instance_path(path)

    if not is_initialized(instance_path):
        console.print(f"[red]Error: Not initialized at {instance_path}[/red]")
        console.print(f"[yellow]Run: snapvault init {path if path else ''}[/yellow]")
        raise click.Abort()

    # One messaging session per instance
    if is_running(instance_path, "listen"):
        console.print("[red]Error: Listener already running[/red]")
        console.print(f"[yellow]Location: {instance_path}[/yellow]")
        raise click.Abort()

    try:
        config = load_config(instance_path)
    except Exception as e:
        console.print(f"[red]Error loading config: {e}[/red]")
        raise click.Abort()

    from snapvault.backend.exception import (
        ConfigurationError,
        SessionExpiredError,
        TransientConnectionError,
    )
    from snapvault.backend.logging import setup_logging
    from snapvault.backend.runtime.manager import RuntimeManager

    setup_logging(instance_path, "listen", config)

    try:
        manager = RuntimeManager(instance_path, config)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error: {escape(e.message)}[/red]")
        raise click.Abort()

    console.print(f"[cyan]Starting snapvault listener from {instance_path}[/cyan]")

    pid_file = get_pid_file(instance_path, "listen")
    pid_file.write_text(str(os.getpid()))

    try:
        asyncio.run(manager.run())
    except SessionExpiredError as e:
        console.print(f"[red]{escape(e.message)}[/red]")
        console.print("[yellow]Pair the bridge again, then restart the listener.[/yellow]")
        sys.exit(1)
    except TransientConnectionError as e:
        console.print(f"[red]Fatal: {escape(e.message)}[/red]")
        sys.exit(1)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error: {escape(e.message)}[/red]")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("[yellow]Listener stopped[/yellow]")
    finally:
        pid_file.unlink(missing_ok=True)
