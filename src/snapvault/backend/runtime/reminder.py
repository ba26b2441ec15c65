"""Scheduled reminder messages"""
import logging
from typing import Dict, List, TYPE_CHECKING

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from ..exception import ConfigurationError

if TYPE_CHECKING:
    from .supervisor import ConnectionSupervisor

logger = logging.getLogger(__name__)


class ReminderScheduler:
    """
    Sends fixed texts to one recipient on cron schedules.

    Reminders go out through the supervisor's live session. If the session
    is not open when a job fires, that reminder is skipped.
    """

    def __init__(
        self,
        scheduler: AsyncIOScheduler,
        supervisor: 'ConnectionSupervisor',
        recipient: str,
        jobs: List[Dict[str, str]],
    ):
        self._scheduler = scheduler
        self._supervisor = supervisor
        self.recipient = recipient
        self.jobs = jobs

    def register(self) -> None:
        """
        Register every reminder job on the scheduler.

        Raises:
            ConfigurationError: A cron expression is invalid
        """
        for index, job in enumerate(self.jobs):
            try:
                trigger = CronTrigger.from_crontab(job["cron"])
            except ValueError as e:
                raise ConfigurationError(
                    f"Invalid cron expression for reminder #{index}: {job['cron']}"
                ) from e

            self._scheduler.add_job(
                self.send_reminder,
                trigger=trigger,
                args=[job["text"]],
                id=f"reminder_{index}",
                name=f"Reminder #{index}",
                replace_existing=True,
            )
            logger.info(f"Reminder registered: cron='{job['cron']}', text='{job['text'][:50]}'")

    async def send_reminder(self, text: str) -> bool:
        """Send one reminder; returns whether it went out"""
        session = self._supervisor.session
        if not self._supervisor.is_open or session is None:
            logger.warning(f"Session not open, skipping reminder to {self.recipient}")
            return False

        try:
            await session.send_text(self.recipient, text)
        except Exception as e:
            logger.error(f"Failed to send reminder to {self.recipient}: {e}")
            return False

        logger.info(f"✅ Reminder sent to {self.recipient}: {text}")
        return True
