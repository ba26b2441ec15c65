"""Runtime layer for snapvault

Messaging session supervision, inbound dispatch and media ingestion.
"""
from .client import (
    ConnectionUpdate,
    CredentialsUpdate,
    EventChannel,
    InboundMessage,
    MessagesUpsert,
    PlatformClient,
    PlatformSession,
)
from .credentials import CredentialStore
from .dispatcher import MessageDispatcher
from .pipeline import ImageEvent, MediaIngestionPipeline
from .supervisor import ConnectionSupervisor
from .timer import ReconnectTimer, SchedulerReconnectTimer

__all__ = [
    "ConnectionUpdate",
    "CredentialsUpdate",
    "EventChannel",
    "InboundMessage",
    "MessagesUpsert",
    "PlatformClient",
    "PlatformSession",
    "CredentialStore",
    "MessageDispatcher",
    "ImageEvent",
    "MediaIngestionPipeline",
    "ConnectionSupervisor",
    "ReconnectTimer",
    "SchedulerReconnectTimer",
]
