"""Inbound message dispatcher"""
import asyncio
import logging
from typing import List, Optional, Set

from .client import InboundMessage, MessagesUpsert, PlatformSession
from .content import (
    AudioContent,
    DocumentContent,
    ImageContent,
    TextContent,
    UnhandledContent,
    VideoContent,
    classify,
)
from .pipeline import ImageEvent, MediaIngestionPipeline

logger = logging.getLogger(__name__)


class MessageDispatcher:
    """
    Classifies inbound messages and routes image messages to the pipeline.

    Dispatch never waits for ingestion: each image becomes its own task, so
    a slow download does not hold up the event pump or unrelated messages.
    Text, video, audio and document messages are recognized and logged only.
    """

    def __init__(self, pipeline: MediaIngestionPipeline):
        self.pipeline = pipeline
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def dispatch_batch(self, batch: MessagesUpsert, session: PlatformSession) -> List[asyncio.Task]:
        """Dispatch every message of a batch; one bad message does not stop the rest"""
        logger.debug(f"Dispatching batch: size={len(batch.messages)}, kind={batch.kind}")

        tasks = []
        for message in batch.messages:
            try:
                task = self.dispatch(message, session)
            except Exception as e:
                logger.error(
                    f"Error dispatching message {getattr(message, 'message_id', 'UNKNOWN')}: {e}",
                    exc_info=True
                )
                continue
            if task is not None:
                tasks.append(task)
        return tasks

    def dispatch(self, message: InboundMessage, session: PlatformSession) -> Optional[asyncio.Task]:
        """
        Route one message by content kind.

        Returns:
            The ingestion task for image messages, None otherwise
        """
        content = classify(message.content)

        if content is None:
            logger.debug(f"Ignoring empty message: message_id={message.message_id}")
            return None

        if isinstance(content, ImageContent):
            event = ImageEvent(message=message, content=content)
            return self._spawn(event, session)

        if isinstance(content, TextContent):
            logger.info(
                f"Text message from {message.sender}: {content.text[:50]!r}"
            )
        elif isinstance(content, VideoContent):
            logger.info(f"Video message from {message.sender} (not processed)")
        elif isinstance(content, AudioContent):
            logger.info(f"Audio message from {message.sender} (not processed)")
        elif isinstance(content, DocumentContent):
            logger.info(
                f"Document message from {message.sender} (not processed): {content.file_name}"
            )
        elif isinstance(content, UnhandledContent):
            logger.warning(
                f"Unhandled message type from {message.sender}: keys={content.keys}"
            )
        return None

    async def drain(self) -> None:
        """Wait for all outstanding ingestion tasks"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def cancel_all(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        await self.drain()

    def _spawn(self, event: ImageEvent, session: PlatformSession) -> asyncio.Task:
        task = asyncio.create_task(
            self._run(event, session),
            name=f"ingest-{event.message_id}"
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, event: ImageEvent, session: PlatformSession):
        try:
            return await self.pipeline.ingest(event, session)
        except Exception as e:
            logger.error(
                f"Error in ingestion task for message {event.message_id}: {e}",
                exc_info=True
            )
            return None
