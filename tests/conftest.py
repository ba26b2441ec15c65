"""
Shared fixtures for snapvault tests.

Tests run against a temporary SQLite database and an in-memory fake of the
messaging platform client, so no bridge process is needed.
"""
from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

import pytest
import pytest_asyncio

from snapvault.backend.db_init import create_engine_and_factory, run_preflight_checks
from snapvault.backend.enum import ConnectionPhase
from snapvault.backend.exception import MediaRetrievalError
from snapvault.backend.repository import ImageStore
from snapvault.backend.runtime.client import (
    ConnectionUpdate,
    InboundMessage,
    PlatformClient,
    PlatformSession,
)
from snapvault.backend.runtime.credentials import CredentialStore
from snapvault.backend.runtime.timer import ReconnectTimer


# ── Messaging fakes ─────────────────────────────────────────────────────

class FakeSession(PlatformSession):
    """In-memory session: records sent texts, serves canned media"""

    def __init__(self, media: Optional[Dict[str, bytes]] = None):
        super().__init__()
        self.media = media or {}
        self.sent: List[tuple[str, str]] = []
        self.downloads: List[str] = []
        self.closed = False
        self.download_error: Optional[Exception] = None
        self.send_error: Optional[Exception] = None
        self.download_gate: Optional[asyncio.Event] = None

    async def send_text(self, to: str, text: str) -> None:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append((to, text))

    async def download_media(self, message: InboundMessage) -> bytes:
        self.downloads.append(message.message_id)
        if self.download_gate is not None:
            await self.download_gate.wait()
        if self.download_error is not None:
            raise self.download_error
        try:
            return self.media[message.message_id]
        except KeyError:
            raise MediaRetrievalError(f"No media for {message.message_id}")

    async def close(self) -> None:
        self.closed = True
        self.events.close()


class FakeClient(PlatformClient):
    """Hands out FakeSessions; can be told to fail the next connects"""

    def __init__(self):
        self.sessions: List[FakeSession] = []
        self.fail_next = 0
        self.connect_calls = 0

    @property
    def last(self) -> FakeSession:
        return self.sessions[-1]

    async def connect(self, credentials: CredentialStore) -> FakeSession:
        self.connect_calls += 1
        if self.fail_next:
            self.fail_next -= 1
            raise ConnectionError("bridge unreachable")
        session = FakeSession()
        self.sessions.append(session)
        return session


class FakeTimer(ReconnectTimer):
    """Manual reconnect timer: tests decide when the callback fires"""

    def __init__(self):
        self.scheduled: List[float] = []
        self._callback = None

    @property
    def pending(self) -> bool:
        return self._callback is not None

    def schedule(self, delay, callback) -> None:
        self.scheduled.append(delay)
        self._callback = callback

    def cancel(self) -> None:
        self._callback = None

    async def fire(self) -> None:
        callback, self._callback = self._callback, None
        assert callback is not None, "no reconnect pending"
        await callback()


def image_message(message_id: str, sender: str = "123@s.whatsapp.net",
                  mimetype: Optional[str] = "image/png", caption: Optional[str] = None) -> InboundMessage:
    body: Dict[str, Any] = {}
    if mimetype is not None:
        body["mimetype"] = mimetype
    if caption is not None:
        body["caption"] = caption
    content = {"imageMessage": body}
    return InboundMessage(
        message_id=message_id,
        sender=sender,
        content=content,
        raw={"key": {"id": message_id, "remoteJid": sender}, "message": content},
    )


def text_message(message_id: str, text: str = "hello", sender: str = "123@s.whatsapp.net") -> InboundMessage:
    return InboundMessage(message_id=message_id, sender=sender, content={"conversation": text})


async def settle(times: int = 5) -> None:
    """Let queued tasks (event pump, ingestion tasks) run"""
    for _ in range(times):
        await asyncio.sleep(0)


async def close_with(session: FakeSession, status_code: Optional[int]) -> None:
    """Publish a close update on a session and let the supervisor react"""
    session.events.publish(ConnectionUpdate(connection=ConnectionPhase.CLOSE, status_code=status_code))
    await settle(10)


async def open_session(session: FakeSession) -> None:
    session.events.publish(ConnectionUpdate(connection=ConnectionPhase.OPEN))
    await settle()


# ── Database fixtures ───────────────────────────────────────────────────

@pytest.fixture
def db_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'snapvault-test.db'}"


@pytest_asyncio.fixture
async def engine_and_factory(db_url):
    engine, factory = create_engine_and_factory(db_url)
    await run_preflight_checks(engine)
    yield engine, factory
    await engine.dispose()


@pytest_asyncio.fixture
async def store(engine_and_factory) -> ImageStore:
    _, factory = engine_and_factory
    return ImageStore(factory)


@pytest.fixture
def credentials(tmp_path) -> CredentialStore:
    return CredentialStore(tmp_path / "auth")
