"""Reconnect timer abstraction

The supervisor never calls its connect routine recursively. It asks a timer
to run a callback after a delay; at most one callback may be pending.
"""
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger

logger = logging.getLogger(__name__)

ReconnectCallback = Callable[[], Awaitable[None]]


class ReconnectTimer(ABC):
    """Single-slot delayed callback"""

    @property
    @abstractmethod
    def pending(self) -> bool:
        """Whether a callback is scheduled and has not fired yet"""

    @abstractmethod
    def schedule(self, delay: float, callback: ReconnectCallback) -> None:
        """Run callback after delay seconds, replacing any pending one"""

    @abstractmethod
    def cancel(self) -> None:
        """Drop the pending callback, if any"""


class SchedulerReconnectTimer(ReconnectTimer):
    """
    ReconnectTimer backed by an APScheduler AsyncIOScheduler.

    Every reconnect uses the same job id with replace_existing, so the
    scheduler itself guarantees a single pending reconnect.
    """

    JOB_ID = "snapvault_reconnect"

    def __init__(self, scheduler: AsyncIOScheduler):
        self._scheduler = scheduler

    @property
    def pending(self) -> bool:
        return self._scheduler.get_job(self.JOB_ID) is not None

    def schedule(self, delay: float, callback: ReconnectCallback) -> None:
        run_date = datetime.now(timezone.utc) + timedelta(seconds=delay)
        self._scheduler.add_job(
            callback,
            trigger=DateTrigger(run_date=run_date),
            id=self.JOB_ID,
            name="Reconnect messaging session",
            replace_existing=True,
            misfire_grace_time=None,
        )
        logger.debug(f"Reconnect job scheduled: run_date={run_date.isoformat()}")

    def cancel(self) -> None:
        try:
            self._scheduler.remove_job(self.JOB_ID)
            logger.debug("Reconnect job cancelled")
        except JobLookupError:
            pass
