"""Tests for MediaIngestionPipeline outcomes and idempotency."""
import asyncio

import pytest

from conftest import FakeSession, image_message
from snapvault.backend.enum import IngestionOutcome
from snapvault.backend.exception import MediaRetrievalError, PersistenceError
from snapvault.backend.runtime.content import ImageContent, classify
from snapvault.backend.runtime.pipeline import (
    ACK_TEXT,
    DOWNLOAD_FAILED_TEXT,
    PERSIST_FAILED_TEXT,
    ImageEvent,
    MediaIngestionPipeline,
)


def image_event(message_id: str, **kwargs) -> ImageEvent:
    message = image_message(message_id, **kwargs)
    content = classify(message.content)
    assert isinstance(content, ImageContent)
    return ImageEvent(message=message, content=content)


class FailingStore:
    """Store whose inserts always fail with a non-duplicate error"""

    def __init__(self):
        self.inserts = 0

    async def insert(self, image):
        self.inserts += 1
        raise PersistenceError("disk full")


@pytest.mark.asyncio
class TestIngest:

    async def test_stores_image_and_acknowledges(self, store):
        session = FakeSession(media={"A1": b"png-bytes"})
        pipeline = MediaIngestionPipeline(store)

        outcome = await pipeline.ingest(image_event("A1", caption="holiday"), session)

        assert outcome == IngestionOutcome.STORED
        page = await store.list()
        assert page.total == 1
        stored = await store.find_by_id(page.items[0].id)
        assert stored.payload == b"png-bytes"
        assert stored.content_type == "image/png"
        assert stored.caption == "holiday"
        assert session.sent == [("123@s.whatsapp.net", ACK_TEXT)]

    async def test_missing_mimetype_defaults_to_jpeg(self, store):
        session = FakeSession(media={"A1": b"jpeg-bytes"})
        pipeline = MediaIngestionPipeline(store)

        await pipeline.ingest(image_event("A1", mimetype=None), session)

        page = await store.list()
        assert page.items[0].content_type == "image/jpeg"
        assert page.items[0].caption == ""

    async def test_same_message_twice_stores_once(self, store):
        session = FakeSession(media={"A1": b"png-bytes"})
        pipeline = MediaIngestionPipeline(store)

        first = await pipeline.ingest(image_event("A1"), session)
        second = await pipeline.ingest(image_event("A1"), session)

        assert first == IngestionOutcome.STORED
        assert second == IngestionOutcome.DUPLICATE
        assert (await store.list()).total == 1
        # The duplicate does not produce a second message
        assert session.sent == [("123@s.whatsapp.net", ACK_TEXT)]

    async def test_concurrent_duplicates_store_once(self, store):
        session = FakeSession(media={"A1": b"png-bytes"})
        pipeline = MediaIngestionPipeline(store)

        outcomes = await asyncio.gather(
            pipeline.ingest(image_event("A1"), session),
            pipeline.ingest(image_event("A1"), session),
        )

        assert sorted(outcomes) == sorted([IngestionOutcome.STORED, IngestionOutcome.DUPLICATE])
        assert (await store.list()).total == 1

    async def test_download_failure_writes_nothing(self, store):
        session = FakeSession()
        session.download_error = MediaRetrievalError("decrypt failed")
        pipeline = MediaIngestionPipeline(store)

        outcome = await pipeline.ingest(image_event("A1"), session)

        assert outcome == IngestionOutcome.DOWNLOAD_FAILED
        assert (await store.list()).total == 0
        assert session.sent == [("123@s.whatsapp.net", DOWNLOAD_FAILED_TEXT)]

    async def test_next_message_unaffected_by_download_failure(self, store):
        session = FakeSession(media={"B2": b"png-bytes"})
        pipeline = MediaIngestionPipeline(store)

        failed = await pipeline.ingest(image_event("A1"), session)
        stored = await pipeline.ingest(image_event("B2"), session)

        assert failed == IngestionOutcome.DOWNLOAD_FAILED
        assert stored == IngestionOutcome.STORED
        assert [item.message_id for item in (await store.list()).items] == ["B2"]

    async def test_unexpected_download_error_is_contained(self, store):
        session = FakeSession()
        session.download_error = RuntimeError("boom")
        pipeline = MediaIngestionPipeline(store)

        outcome = await pipeline.ingest(image_event("A1"), session)

        assert outcome == IngestionOutcome.DOWNLOAD_FAILED
        assert (await store.list()).total == 0

    async def test_persist_failure_notifies_once(self):
        session = FakeSession(media={"A1": b"png-bytes"})
        failing = FailingStore()
        pipeline = MediaIngestionPipeline(failing)

        outcome = await pipeline.ingest(image_event("A1"), session)

        assert outcome == IngestionOutcome.PERSIST_FAILED
        assert failing.inserts == 1
        assert session.sent == [("123@s.whatsapp.net", PERSIST_FAILED_TEXT)]

    async def test_notification_failure_does_not_affect_outcome(self, store):
        session = FakeSession(media={"A1": b"png-bytes"})
        session.send_error = ConnectionError("socket closed")
        pipeline = MediaIngestionPipeline(store)

        outcome = await pipeline.ingest(image_event("A1"), session)

        assert outcome == IngestionOutcome.STORED
        assert (await store.list()).total == 1

    async def test_notifications_can_be_disabled(self, store):
        session = FakeSession(media={"A1": b"png-bytes"})
        pipeline = MediaIngestionPipeline(store, notify_sender=False)

        outcome = await pipeline.ingest(image_event("A1"), session)

        assert outcome == IngestionOutcome.STORED
        assert session.sent == []
