"""Init command implementation"""

import json
from datetime import datetime

import click
from rich.console import Console

from ..util import DEFAULT_CONFIG, FLAG_FILE, get_instance_path, is_initialized

console = Console()


@click.command(name="init", help="Initialize a new snapvault instance")
@click.argument(
    "path",
    type=click.Path(),
    required=False,
)
def init(path: str = None):
    """Initialize a new snapvault instance

    Args:
        path: Instance directory path (default: ~/.snapvault)
    """
    instance_path = get_instance_path(path)

    if is_initialized(instance_path):
        console.print(
            f"[red]Error: Already initialized at {instance_path}[/red]"
        )
        raise click.Abort()

    if instance_path.exists() and any(instance_path.iterdir()):
        console.print(
            f"[red]Error: Directory is not empty: {instance_path}[/red]"
        )
        raise click.Abort()

    # 1. Create directory structure
    console.print(f"Initializing snapvault instance at {instance_path}")
    console.print("")

    instance_path.mkdir(parents=True, exist_ok=True)
    (instance_path / "data").mkdir(exist_ok=True)
    (instance_path / "logs").mkdir(exist_ok=True)
    (instance_path / "auth").mkdir(exist_ok=True)

    # 2. Generate config.toml with default settings
    console.print("Generating configuration...")
    config_file = instance_path / "config.toml"
    config_file.write_text(DEFAULT_CONFIG)

    # 3. Create flag file
    flag_data = {
        "initialized_at": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        "instance_path": str(instance_path),
    }
    with open(instance_path / FLAG_FILE, "w") as f:
        json.dump(flag_data, f, indent=2)

    # Tables are created on first start of either process

    console.print("")
    console.print("[green]✓ snapvault instance initialized successfully![/green]")
    console.print("")
    console.print(f"Location: {instance_path}")
    console.print("")
    console.print("Next steps:")
    console.print("  1. Edit configuration (bridge endpoints, reminders):")
    console.print(f"     {config_file}")
    console.print("  2. Start the listener:")
    console.print(f"     snapvault listen {path or ''}")
    console.print("  3. Start the gallery server:")
    console.print(f"     snapvault serve {path or ''}")
