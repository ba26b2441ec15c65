"""CLI utility functions"""

from pathlib import Path

FLAG_FILE = ".snapvault_instance"


def get_instance_path(path: str | None = None) -> Path:
    """Get instance path, default to ~/.snapvault

    Args:
        path: Custom path (relative or absolute), None for default

    Returns:
        Resolved absolute path
    """
    if path is None:
        return Path.home() / ".snapvault"
    return Path(path).resolve()


def is_initialized(instance_path: Path) -> bool:
    """Check if instance is initialized (flag file exists)"""
    return (instance_path / FLAG_FILE).exists()


def load_config(instance_path: Path) -> dict:
    """Load config.toml

    Args:
        instance_path: Instance directory path

    Returns:
        Configuration dict
    """
    import tomli

    config_file = instance_path / "config.toml"
    with open(config_file, "rb") as f:
        return tomli.load(f)


def get_pid_file(instance_path: Path, process: str) -> Path:
    """PID file for one process kind ("serve" or "listen")"""
    return instance_path / f".snapvault-{process}.pid"


def is_running(instance_path: Path, process: str) -> bool:
    """Check if a process kind is running by checking PID file existence"""
    return get_pid_file(instance_path, process).exists()


DEFAULT_CONFIG = """[server]
host = "0.0.0.0"
port = 3000

[database]
# Relative sqlite paths resolve against the instance directory
url = "sqlite+aiosqlite:///data/snapvault.db"

[session]
auth_dir = "auth"

[bridge]
event_endpoint = "tcp://127.0.0.1:5556"
command_endpoint = "tcp://127.0.0.1:5555"
command_timeout = 30

[ingestion]
notify_sender = true

[reminders]
recipient = ""

# [[reminders.jobs]]
# cron = "0 9 * * *"
# text = "Good morning! Don't forget to plan your tasks for today!"

[logging]
# Console level; log files always keep DEBUG (snapvault only), INFO and ERROR
level = "INFO"

[cors]
allow_origins = ["*"]
allow_credentials = false
allow_methods = ["GET"]
allow_headers = ["*"]
"""
