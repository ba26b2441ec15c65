"""Logging configuration for snapvault

The API server and the listener run as separate processes over one instance
directory. Each process writes its own set of log files, so two
TimedRotatingFileHandlers never rotate the same file.
"""

import logging
from pathlib import Path
from logging.handlers import TimedRotatingFileHandler

# Third-party loggers that are chatty at INFO
QUIET_LOGGERS = ("apscheduler", "aiosqlite", "sqlalchemy.engine", "uvicorn.access")

LOG_FORMAT = '%(asctime)s.%(msecs)03d - %(levelname)s - %(name)s:%(lineno)d - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class SnapvaultOnlyFilter(logging.Filter):
    """Keep only records from snapvault.* loggers"""

    def filter(self, record):
        return record.name.startswith('snapvault.')


def resolve_level(config: dict | None) -> int:
    """Console level from [logging] level (default INFO)

    Unknown level names fall back to INFO.
    """
    name = str((config or {}).get("logging", {}).get("level", "INFO")).upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def setup_logging(instance_path: Path, process: str, config: dict | None = None) -> Path:
    """Configure the root logger for one snapvault process

    Files in <instance>/logs, rotated at midnight with 30 days kept:
    - <process>-debug.log: DEBUG+ from snapvault.* only
    - <process>.log: INFO+ from every logger
    - <process>-error.log: ERROR+ from every logger

    The console gets everything at the configured [logging] level.

    Args:
        instance_path: snapvault instance directory
        process: "serve" or "listen"
        config: Instance configuration (optional)

    Returns:
        The logs directory
    """
    logs_dir = instance_path / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    files = (
        (f"{process}-debug.log", logging.DEBUG, SnapvaultOnlyFilter()),
        (f"{process}.log", logging.INFO, None),
        (f"{process}-error.log", logging.ERROR, None),
    )
    for filename, level, log_filter in files:
        handler = TimedRotatingFileHandler(
            filename=logs_dir / filename,
            when='midnight',
            backupCount=30,
            encoding='utf-8'
        )
        handler.setLevel(level)
        handler.setFormatter(formatter)
        if log_filter is not None:
            handler.addFilter(log_filter)
        root_logger.addHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(resolve_level(config))
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        f"Logging initialized: process={process}, instance={instance_path}"
    )
    return logs_dir
