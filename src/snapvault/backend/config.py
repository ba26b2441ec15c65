"""Configuration access helpers

The configuration dict is loaded from the instance config.toml by the CLI.
These helpers validate required settings up front so the process fails
before it serves requests or opens a session.
"""
import logging
from pathlib import Path
from typing import Any, Dict, List

from .exception import ConfigurationError

logger = logging.getLogger(__name__)

SQLITE_PREFIX = "sqlite+aiosqlite:///"


def require(config: dict, section: str, key: str) -> Any:
    """Return config[section][key] or raise ConfigurationError"""
    value = config.get(section, {}).get(key)
    if value is None or value == "":
        raise ConfigurationError(f"Missing required configuration: [{section}] {key}")
    return value


def resolve_database_url(instance_path: Path, config: dict) -> str:
    """Data-store connection string

    Relative sqlite paths are resolved against the instance directory so the
    API process and the listener process share one database file.
    """
    url = require(config, "database", "url")
    if url.startswith(SQLITE_PREFIX):
        db_path = url[len(SQLITE_PREFIX):]
        if db_path and db_path != ":memory:" and not Path(db_path).is_absolute():
            url = f"{SQLITE_PREFIX}{instance_path / db_path}"
    return url


def resolve_auth_dir(instance_path: Path, config: dict) -> Path:
    """Session-storage location (credential material)"""
    auth_dir = Path(config.get("session", {}).get("auth_dir", "auth"))
    if not auth_dir.is_absolute():
        auth_dir = instance_path / auth_dir
    return auth_dir


def bridge_settings(config: dict) -> Dict[str, Any]:
    """Bridge endpoints for the ZeroMQ platform client"""
    return {
        "event_endpoint": require(config, "bridge", "event_endpoint"),
        "command_endpoint": require(config, "bridge", "command_endpoint"),
        "command_timeout": float(config["bridge"].get("command_timeout", 30)),
    }


def reminder_jobs(config: dict) -> List[Dict[str, str]]:
    """Validated reminder job list (may be empty)"""
    section = config.get("reminders", {})
    jobs = section.get("jobs", [])
    if not jobs:
        return []

    recipient = section.get("recipient")
    if not recipient:
        raise ConfigurationError("Missing required configuration: [reminders] recipient")

    validated = []
    for index, job in enumerate(jobs):
        cron = job.get("cron")
        text = job.get("text")
        if not cron or not text:
            raise ConfigurationError(
                f"Reminder job #{index} must define both 'cron' and 'text'"
            )
        validated.append({"cron": cron, "text": text})

    logger.debug(f"Loaded {len(validated)} reminder jobs for {recipient}")
    return validated
