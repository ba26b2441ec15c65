"""Enumeration types for backend"""
from enum import Enum, IntEnum


class ConnectionState(str, Enum):
    """Supervisor connection state

    DISCONNECTED → CONNECTING → OPEN
    OPEN → CLOSED_RECONNECTING → CONNECTING (bounded on the rate-limit path)
    OPEN → CLOSED_LOGGED_OUT (terminal)
    CLOSED_RECONNECTING → FAILED (terminal, rate-limit retries exhausted)
    """
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED_LOGGED_OUT = "closed_logged_out"
    CLOSED_RECONNECTING = "closed_reconnecting"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ConnectionState.CLOSED_LOGGED_OUT, ConnectionState.FAILED)


class DisconnectReason(IntEnum):
    """Status codes carried by a closing connection update

    Values follow the platform client (Baileys DisconnectReason), plus 429
    for rate limiting.
    """
    CONNECTION_CLOSED = 428
    CONNECTION_LOST = 408
    CONNECTION_REPLACED = 440
    LOGGED_OUT = 401
    BAD_SESSION = 500
    RESTART_REQUIRED = 515
    MULTIDEVICE_MISMATCH = 411
    FORBIDDEN = 403
    RATE_LIMITED = 429
    UNAVAILABLE_SERVICE = 503


class ConnectionPhase(str, Enum):
    """Connection value reported by a connection update"""
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSE = "close"


class ContentKind(str, Enum):
    """Content kind of an inbound message"""
    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    DOCUMENT = "document"
    UNHANDLED = "unhandled"


class IngestionOutcome(str, Enum):
    """Result of running one image event through the pipeline"""
    STORED = "stored"
    DUPLICATE = "duplicate"
    DOWNLOAD_FAILED = "download_failed"
    PERSIST_FAILED = "persist_failed"
