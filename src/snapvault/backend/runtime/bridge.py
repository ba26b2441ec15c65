"""ZeroMQ bridge client

The WhatsApp wire protocol runs in a bridge sidecar (a Baileys process).
This module talks to it over two sockets:

- SUB socket: bridge events, multipart [topic, JSON]
  {"type": "connection.update" | "creds.update" | "messages.upsert", "data": {...}}
- DEALER socket: request/response commands, multipart [b"", JSON]
  request  {"id": ..., "command": "connect" | "send_text" | "download_media" | "close", "params": {...}}
  response {"id": ..., "ok": true, "data": {...}} or {"id": ..., "ok": false, "error": "..."}
"""
import asyncio
import base64
import binascii
import json
import logging
import uuid
from typing import Any, Dict, Optional, TYPE_CHECKING

import zmq
import zmq.asyncio

from ..enum import ConnectionPhase
from ..exception import BridgeTimeoutError, MediaRetrievalError, RuntimeException
from .client import (
    ClientEvent,
    ConnectionUpdate,
    CredentialsUpdate,
    InboundMessage,
    MessagesUpsert,
    PlatformClient,
    PlatformSession,
)

if TYPE_CHECKING:
    from .credentials import CredentialStore

logger = logging.getLogger(__name__)

EVENT_TOPIC = "snapvault"


class BridgeCommandError(RuntimeException):
    """The bridge answered a command with ok=false"""

    def __init__(self, message: str):
        super().__init__(message, "BRIDGE_COMMAND_ERROR")


def parse_event(event: Dict[str, Any]) -> Optional[ClientEvent]:
    """Convert one bridge event dict into a client event (None if unknown)"""
    event_type = event.get("type")
    data = event.get("data") or {}

    if event_type == "connection.update":
        connection = data.get("connection")
        return ConnectionUpdate(
            connection=ConnectionPhase(connection) if connection else None,
            status_code=data.get("statusCode"),
            qr=data.get("qr"),
        )

    if event_type == "creds.update":
        return CredentialsUpdate(creds=data)

    if event_type == "messages.upsert":
        messages = []
        for raw in data.get("messages", []):
            message = parse_message(raw)
            if message is not None:
                messages.append(message)
        return MessagesUpsert(messages=messages, kind=data.get("type", "notify"))

    return None


def parse_message(raw: Dict[str, Any]) -> Optional[InboundMessage]:
    """Convert one raw platform message envelope (None if it has no id)"""
    key = raw.get("key") or {}
    message_id = key.get("id")
    if not message_id:
        return None
    return InboundMessage(
        message_id=message_id,
        sender=key.get("remoteJid", ""),
        content=raw.get("message"),
        raw=raw,
    )


class ZmqBridgeSession(PlatformSession):
    """One session with the bridge: owns the sockets and the receive loops"""

    def __init__(self, event_endpoint: str, command_endpoint: str, command_timeout: float):
        super().__init__()
        self.event_endpoint = event_endpoint
        self.command_endpoint = command_endpoint
        self.command_timeout = command_timeout

        self._context: Optional[zmq.asyncio.Context] = None
        self._sub_sock: Optional[zmq.asyncio.Socket] = None
        self._dealer_sock: Optional[zmq.asyncio.Socket] = None
        self._event_task: Optional[asyncio.Task] = None
        self._reply_task: Optional[asyncio.Task] = None
        self._pending: Dict[str, asyncio.Future] = {}
        self._connected = False

    def open(self) -> None:
        """Connect sockets and start receive loops"""
        if self._connected:
            logger.warning("Bridge session already open")
            return

        self._context = zmq.asyncio.Context()

        self._sub_sock = self._context.socket(zmq.SUB)
        self._sub_sock.connect(self.event_endpoint)
        self._sub_sock.subscribe(EVENT_TOPIC.encode())
        logger.info(f"SUB socket connected: {self.event_endpoint}")

        self._dealer_sock = self._context.socket(zmq.DEALER)
        self._dealer_sock.setsockopt(zmq.LINGER, 0)
        self._dealer_sock.connect(self.command_endpoint)
        logger.info(f"DEALER socket connected: {self.command_endpoint}")

        self._event_task = asyncio.create_task(self._event_loop(), name="bridge-events")
        self._reply_task = asyncio.create_task(self._reply_loop(), name="bridge-replies")
        self._connected = True

    async def close(self) -> None:
        if not self._connected:
            self.events.close()
            return

        self._connected = False
        try:
            await asyncio.wait_for(self.request("close", {}), timeout=2)
        except Exception as e:
            logger.debug(f"Bridge close command not acknowledged: {e}")

        for task in (self._event_task, self._reply_task):
            if task is not None:
                task.cancel()

        for future in self._pending.values():
            if not future.done():
                future.set_exception(BridgeTimeoutError("Bridge session closed"))
        self._pending.clear()

        if self._sub_sock:
            self._sub_sock.close()
        if self._dealer_sock:
            self._dealer_sock.close()
        if self._context:
            self._context.term()

        self.events.close()
        logger.info("Bridge session closed")

    # ========== Commands ==========

    async def request(self, command: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Send one command and wait for its reply.

        Raises:
            BridgeTimeoutError: No reply within command_timeout
            BridgeCommandError: Bridge replied with ok=false
        """
        if self._dealer_sock is None:
            raise BridgeCommandError(f"Bridge session not open for command {command}")

        request_id = uuid.uuid4().hex
        future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future

        payload = {"id": request_id, "command": command, "params": params}
        logger.debug(f"[BRIDGE_SEND] command={command}, id={request_id}")

        try:
            await self._dealer_sock.send_multipart([b"", json.dumps(payload).encode()])
            reply = await asyncio.wait_for(future, timeout=self.command_timeout)
        except asyncio.TimeoutError as e:
            raise BridgeTimeoutError(
                f"Bridge did not answer {command} within {self.command_timeout:g}s"
            ) from e
        finally:
            self._pending.pop(request_id, None)

        if not reply.get("ok"):
            raise BridgeCommandError(f"Bridge rejected {command}: {reply.get('error', 'unknown error')}")
        return reply.get("data") or {}

    async def send_text(self, to: str, text: str) -> None:
        await self.request("send_text", {"to": to, "text": text})
        logger.info(f"Text sent to {to}")

    async def download_media(self, message: InboundMessage) -> bytes:
        try:
            data = await self.request("download_media", {"message": message.raw})
            return base64.b64decode(data["media"], validate=True)
        except (BridgeTimeoutError, BridgeCommandError) as e:
            raise MediaRetrievalError(
                f"Download failed for message {message.message_id}: {e.message}"
            ) from e
        except (KeyError, binascii.Error) as e:
            raise MediaRetrievalError(
                f"Malformed media payload for message {message.message_id}"
            ) from e

    # ========== Receive Loops ==========

    async def _event_loop(self) -> None:
        logger.info("[BRIDGE_RECV] Event loop started")
        while True:
            try:
                _topic, body = await self._sub_sock.recv_multipart()
                event = parse_event(json.loads(body))
                if event is None:
                    logger.debug(f"[BRIDGE_RECV] Ignoring unknown bridge event: {body[:100]!r}")
                    continue
                self.events.publish(event)
            except asyncio.CancelledError:
                break
            except (ValueError, zmq.ZMQError) as e:
                logger.error(f"[BRIDGE_RECV] Bad bridge event: {e}")
        logger.info("[BRIDGE_RECV] Event loop exited")

    async def _reply_loop(self) -> None:
        while True:
            try:
                frames = await self._dealer_sock.recv_multipart()
                reply = json.loads(frames[-1])
                future = self._pending.get(reply.get("id"))
                if future is None or future.done():
                    logger.debug(f"[BRIDGE_RECV] Reply for unknown request: {reply.get('id')}")
                    continue
                future.set_result(reply)
            except asyncio.CancelledError:
                break
            except (ValueError, zmq.ZMQError) as e:
                logger.error(f"[BRIDGE_RECV] Bad bridge reply: {e}")


class ZmqBridgeClient(PlatformClient):
    """PlatformClient that opens sessions against the bridge sidecar"""

    def __init__(self, event_endpoint: str, command_endpoint: str, command_timeout: float = 30.0):
        self.event_endpoint = event_endpoint
        self.command_endpoint = command_endpoint
        self.command_timeout = command_timeout

    async def connect(self, credentials: 'CredentialStore') -> ZmqBridgeSession:
        session = ZmqBridgeSession(
            event_endpoint=self.event_endpoint,
            command_endpoint=self.command_endpoint,
            command_timeout=self.command_timeout,
        )
        session.open()
        try:
            await session.request("connect", {"credentials": credentials.load()})
        except Exception:
            await session.close()
            raise
        logger.info("Bridge accepted connect request")
        return session
