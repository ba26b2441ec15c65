"""Serve command implementation"""

import os

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


@click.command(name="serve", help="Start the image gallery API server")
@click.argument(
    "path",
    type=click.Path(),
    required=False,
)
def serve(path: str = None):
    """Start the image gallery API server

    Args:
        path: Instance directory path (default: ~/.snapvault)
    """
    instance_path = get_instance_path(path)

    if not is_initialized(instance_path):
        console.print(f"[red]Error: Not initialized at {instance_path}[/red]")
        console.print(f"[yellow]Run: snapvault init {path if path else ''}[/yellow]")
        raise click.Abort()

    if is_running(instance_path, "serve"):
        console.print("[red]Error: Server already running[/red]")
        console.print(f"[yellow]Location: {instance_path}[/yellow]")
        raise click.Abort()

    try:
        config = load_config(instance_path)
    except Exception as e:
        console.print(f"[red]Error loading config: {e}[/red]")
        raise click.Abort()

    try:
        host = config['server']['host']
        port = config['server']['port']
    except KeyError as e:
        console.print(f"[red]Error: Missing required config key: {e}[/red]")
        console.print(
            "[yellow]Please add \\[server] section with 'host' and 'port' to config.toml[/yellow]"
        )
        raise click.Abort()

    import uvicorn
    from snapvault.backend.app import create_app
    from snapvault.backend.exception import ConfigurationError

    try:
        app = create_app(instance_path, config)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error: {escape(e.message)}[/red]")
        raise click.Abort()

    console.print(f"[cyan]Starting snapvault gallery from {instance_path}[/cyan]")
    console.print(f"[cyan]View your images at http://{host}:{port}[/cyan]")
    console.print("")

    pid_file = get_pid_file(instance_path, "serve")
    pid_file.write_text(str(os.getpid()))

    try:
        uvicorn.run(
            app,
            host=host,
            port=port,
        )
    finally:
        pid_file.unlink(missing_ok=True)
