"""Messaging-platform client boundary

The platform client owns the wire protocol, encryption and credential
material. The runtime only consumes what is declared here:

- PlatformClient.connect() establishes one session
- PlatformSession.events is the ordered event channel of that session
- PlatformSession exposes two commands: send_text() and download_media()
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, TYPE_CHECKING, Union

from ..enum import ConnectionPhase

if TYPE_CHECKING:
    from .credentials import CredentialStore

logger = logging.getLogger(__name__)


# ==================== Events ====================

@dataclass
class InboundMessage:
    """One inbound message envelope

    Attributes:
        message_id: Platform message identifier (idempotency key for media)
        sender: Remote conversation/participant id (reply target)
        content: Content-kind-keyed payload, None or empty when the
            envelope carries nothing (receipts, protocol messages)
        raw: Original envelope as delivered by the client, passed back to
            download_media()
    """
    message_id: str
    sender: str
    content: Optional[Dict[str, Any]] = None
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ConnectionUpdate:
    """Connection-state transition with an optional status code"""
    connection: Optional[ConnectionPhase] = None
    status_code: Optional[int] = None
    qr: Optional[str] = None


@dataclass
class CredentialsUpdate:
    """New credential material to persist"""
    creds: Dict[str, Any]


@dataclass
class MessagesUpsert:
    """Batch of inbound messages"""
    messages: List[InboundMessage]
    kind: str = "notify"


ClientEvent = Union[ConnectionUpdate, CredentialsUpdate, MessagesUpsert]


# ==================== Event Channel ====================

class EventChannel:
    """
    Per-session event channel.

    Events are delivered to the single subscriber in publish order.
    Closing the channel lets the subscriber drain what was already
    published, then ends iteration.
    """

    _CLOSED = object()

    def __init__(self):
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def publish(self, event: ClientEvent) -> None:
        if self._closed:
            logger.debug(f"Dropping event on closed channel: {type(event).__name__}")
            return
        self._queue.put_nowait(event)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(self._CLOSED)

    def __aiter__(self):
        return self

    async def __anext__(self) -> ClientEvent:
        event = await self._queue.get()
        if event is self._CLOSED:
            raise StopAsyncIteration
        return event


# ==================== Client Interfaces ====================

class PlatformSession(ABC):
    """One live session against the messaging platform"""

    def __init__(self):
        self.events = EventChannel()

    @abstractmethod
    async def send_text(self, to: str, text: str) -> None:
        """Send a text message to a recipient"""

    @abstractmethod
    async def download_media(self, message: InboundMessage) -> bytes:
        """
        Download the binary payload referenced by a message.

        Raises:
            MediaRetrievalError: Network or decryption failure
        """

    @abstractmethod
    async def close(self) -> None:
        """Release the session; must close self.events. Idempotent."""


class PlatformClient(ABC):
    """Factory for platform sessions"""

    @abstractmethod
    async def connect(self, credentials: 'CredentialStore') -> PlatformSession:
        """Establish a new session using the persisted credential material"""
