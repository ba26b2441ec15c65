"""Media ingestion pipeline"""
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..enum import IngestionOutcome
from ..exception import DuplicateContentError, MediaRetrievalError, PersistenceError
from ..model import StoredImage, DEFAULT_CONTENT_TYPE
from .client import InboundMessage, PlatformSession
from .content import ImageContent

if TYPE_CHECKING:
    from ..repository import ImageStore

logger = logging.getLogger(__name__)

ACK_TEXT = "✅ Image saved to your gallery."
DOWNLOAD_FAILED_TEXT = "❌ Sorry, I couldn't download that image. Please send it again."
PERSIST_FAILED_TEXT = "❌ Sorry, I couldn't save that image. Please try again later."


@dataclass
class ImageEvent:
    """An inbound message classified as an image"""
    message: InboundMessage
    content: ImageContent

    @property
    def message_id(self) -> str:
        return self.message.message_id

    @property
    def sender(self) -> str:
        return self.message.sender


class MediaIngestionPipeline:
    """
    Turns one image event into one durable, deduplicated StoredImage.

    Steps (strictly sequential for a single event):
    1. Download the payload through the session
    2. Build the StoredImage (message_id is the idempotency key)
    3. Insert through the ImageStore
    4. Optionally notify the sender

    Policy:
    - Download failure: log, best-effort failure notice, stop (no retry)
    - Duplicate message_id: already processed, info log only
    - Other store failure: log, best-effort failure notice, stop (no retry)

    Each event causes at most one store write and at most one outbound message.
    ingest() never raises for these outcomes.
    """

    def __init__(self, store: 'ImageStore', notify_sender: bool = True):
        self.store = store
        self.notify_sender = notify_sender

    async def ingest(self, event: ImageEvent, session: PlatformSession) -> IngestionOutcome:
        logger.info(
            f"Ingesting image: message_id={event.message_id}, sender={event.sender}"
        )

        # 1. Retrieve the binary payload
        try:
            payload = await session.download_media(event.message)
        except MediaRetrievalError as e:
            logger.error(
                f"Image download failed: message_id={event.message_id}, error={e.message}"
            )
            await self._notify(session, event.sender, DOWNLOAD_FAILED_TEXT)
            return IngestionOutcome.DOWNLOAD_FAILED
        except Exception as e:
            logger.error(
                f"Unexpected error downloading image: message_id={event.message_id}, error={e}",
                exc_info=True
            )
            await self._notify(session, event.sender, DOWNLOAD_FAILED_TEXT)
            return IngestionOutcome.DOWNLOAD_FAILED

        # 2-3. Build the entity
        image = StoredImage(
            message_id=event.message_id,
            sender=event.sender,
            payload=payload,
            content_type=event.content.mimetype or DEFAULT_CONTENT_TYPE,
            caption=event.content.caption or "",
        )

        # 4. Persist
        try:
            image_id = await self.store.insert(image)
        except DuplicateContentError:
            logger.info(
                f"Image already stored, skipping: message_id={event.message_id}"
            )
            return IngestionOutcome.DUPLICATE
        except PersistenceError as e:
            logger.error(
                f"Failed to store image: message_id={event.message_id}, error={e.message}"
            )
            await self._notify(session, event.sender, PERSIST_FAILED_TEXT)
            return IngestionOutcome.PERSIST_FAILED

        logger.info(
            f"Image stored: id={image_id}, message_id={event.message_id}, "
            f"content_type={image.content_type}, size={len(payload)}"
        )
        await self._notify(session, event.sender, ACK_TEXT)
        return IngestionOutcome.STORED

    async def _notify(self, session: PlatformSession, to: str, text: str) -> None:
        """Best-effort message to the sender; failures are logged, never raised"""
        if not self.notify_sender:
            return
        try:
            await session.send_text(to, text)
        except Exception as e:
            logger.warning(f"Failed to notify sender {to}: {e}")
