"""End-to-end listener tests with a fake platform client."""
import asyncio

import pytest

from conftest import FakeClient, close_with, image_message, open_session, settle
from snapvault.backend.db_init import create_engine_and_factory
from snapvault.backend.enum import DisconnectReason
from snapvault.backend.exception import ConfigurationError, SessionExpiredError
from snapvault.backend.repository import ImageStore
from snapvault.backend.runtime import manager as manager_module
from snapvault.backend.runtime.client import MessagesUpsert
from snapvault.backend.runtime.manager import RuntimeManager


@pytest.fixture
def config():
    return {
        "database": {"url": "sqlite+aiosqlite:///listener-test.db"},
        "session": {"auth_dir": "auth"},
        "bridge": {
            "event_endpoint": "tcp://127.0.0.1:5556",
            "command_endpoint": "tcp://127.0.0.1:5555",
        },
        "ingestion": {"notify_sender": True},
    }


@pytest.fixture
def fake_client(monkeypatch):
    client = FakeClient()
    monkeypatch.setattr(manager_module, "ZmqBridgeClient", lambda **settings: client)
    return client


def test_invalid_config_fails_before_start(tmp_path, config):
    del config["bridge"]["command_endpoint"]

    with pytest.raises(ConfigurationError):
        RuntimeManager(tmp_path, config)


@pytest.mark.asyncio
async def test_image_is_archived_then_logout_terminates(tmp_path, config, fake_client):
    manager = RuntimeManager(tmp_path, config)
    runner = asyncio.create_task(manager.run())
    for _ in range(500):
        if fake_client.sessions:
            break
        await asyncio.sleep(0.01)

    session = fake_client.last
    session.media["IMG1"] = b"jpeg-bytes"
    await open_session(session)

    session.events.publish(MessagesUpsert(messages=[image_message("IMG1", mimetype="image/jpeg")]))
    await settle()
    await manager.dispatcher.drain()

    await close_with(session, DisconnectReason.LOGGED_OUT)

    with pytest.raises(SessionExpiredError):
        await asyncio.wait_for(runner, timeout=5)

    # The archived image survives the listener
    engine, factory = create_engine_and_factory(f"sqlite+aiosqlite:///{tmp_path / 'listener-test.db'}")
    try:
        page = await ImageStore(factory).list()
        assert page.total == 1
        assert page.items[0].message_id == "IMG1"
    finally:
        await engine.dispose()

    assert session.sent == [("123@s.whatsapp.net", "✅ Image saved to your gallery.")]
    assert not (tmp_path / "auth").exists()
