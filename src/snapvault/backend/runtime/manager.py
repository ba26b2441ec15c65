"""Runtime wiring for the listener process"""
import logging
from pathlib import Path
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from ..config import (
    bridge_settings,
    reminder_jobs,
    resolve_auth_dir,
    resolve_database_url,
)
from ..db_init import create_engine_and_factory, run_preflight_checks
from ..repository import ImageStore
from .bridge import ZmqBridgeClient
from .credentials import CredentialStore
from .dispatcher import MessageDispatcher
from .pipeline import MediaIngestionPipeline
from .reminder import ReminderScheduler
from .supervisor import ConnectionSupervisor
from .timer import SchedulerReconnectTimer

logger = logging.getLogger(__name__)


class RuntimeManager:
    """
    Builds and owns the listener components for one process.

    Startup order:
    1. Validate configuration (ConfigurationError before anything connects)
    2. Database engine and preflight checks
    3. Store, pipeline, dispatcher
    4. APScheduler (reconnect timer and reminders share it)
    5. Supervisor start

    run() returns only through a fatal supervisor outcome, which it re-raises.
    """

    def __init__(self, instance_path: Path, config: dict):
        self.instance_path = instance_path
        self.config = config

        # Validate everything up front
        self._db_url = resolve_database_url(instance_path, config)
        self._bridge = bridge_settings(config)
        self._auth_dir = resolve_auth_dir(instance_path, config)
        self._reminder_jobs = reminder_jobs(config)
        self._notify_sender = bool(config.get("ingestion", {}).get("notify_sender", True))

        self.engine = None
        self.scheduler: Optional[AsyncIOScheduler] = None
        self.dispatcher: Optional[MessageDispatcher] = None
        self.supervisor: Optional[ConnectionSupervisor] = None

    async def start(self) -> None:
        logger.info(f"Starting runtime from {self.instance_path}")

        self.engine, async_session_factory = create_engine_and_factory(self._db_url)
        await run_preflight_checks(self.engine)

        store = ImageStore(async_session_factory)
        pipeline = MediaIngestionPipeline(store, notify_sender=self._notify_sender)
        self.dispatcher = MessageDispatcher(pipeline)

        self.scheduler = AsyncIOScheduler()
        self.scheduler.start()

        client = ZmqBridgeClient(**self._bridge)
        self.supervisor = ConnectionSupervisor(
            client=client,
            credentials=CredentialStore(self._auth_dir),
            dispatcher=self.dispatcher,
            timer=SchedulerReconnectTimer(self.scheduler),
        )

        if self._reminder_jobs:
            reminders = ReminderScheduler(
                scheduler=self.scheduler,
                supervisor=self.supervisor,
                recipient=self.config["reminders"]["recipient"],
                jobs=self._reminder_jobs,
            )
            reminders.register()

        await self.supervisor.start()
        logger.info("Runtime started")

    async def run(self) -> None:
        """Start, then block until the supervisor terminates (re-raising its error)"""
        try:
            await self.start()
            await self.supervisor.wait_terminated()
        finally:
            await self.stop()

    async def stop(self) -> None:
        logger.info("Stopping runtime...")
        if self.supervisor is not None:
            await self.supervisor.stop()
        if self.dispatcher is not None:
            await self.dispatcher.drain()
        if self.scheduler is not None and self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        if self.engine is not None:
            await self.engine.dispose()
        logger.info("Runtime stopped")
