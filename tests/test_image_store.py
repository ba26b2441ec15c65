"""Tests for ImageStore: insert, lookup and paginated listing."""
from datetime import datetime, timedelta, timezone

import pytest

from snapvault.backend.exception import DuplicateContentError, NotFoundError, PersistenceError
from snapvault.backend.model import StoredImage
from snapvault.backend.repository import ImageStore, normalize_page
from snapvault.backend.repository.image import MAX_PAGE, MAX_PAGE_SIZE

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_image(n: int, **overrides) -> StoredImage:
    fields = dict(
        message_id=f"MSG{n:03d}",
        sender="123@s.whatsapp.net",
        timestamp=BASE_TIME + timedelta(minutes=n),
        payload=f"bytes-{n}".encode(),
        content_type="image/png",
        caption=f"caption {n}",
    )
    fields.update(overrides)
    return StoredImage(**fields)


class TestNormalizePage:

    def test_defaults_for_missing_values(self):
        assert normalize_page(None, None) == (1, 12)

    def test_defaults_for_non_positive_values(self):
        assert normalize_page(0, -3) == (1, 12)

    def test_keeps_valid_values(self):
        assert normalize_page(3, 5) == (3, 5)

    def test_page_beyond_range_falls_back(self):
        assert normalize_page(MAX_PAGE + 1, 12) == (1, 12)

    def test_page_size_is_capped(self):
        assert normalize_page(2, 10**30) == (2, MAX_PAGE_SIZE)


@pytest.mark.asyncio
class TestInsertAndFind:

    async def test_insert_returns_id_and_round_trips_payload(self, store):
        image_id = await store.insert(make_image(1, payload=b"\x89PNG\r\n"))

        image = await store.find_by_id(image_id)
        assert image.message_id == "MSG001"
        assert image.payload == b"\x89PNG\r\n"
        assert image.content_type == "image/png"
        assert image.caption == "caption 1"

    async def test_insert_fills_timestamp(self, store):
        image_id = await store.insert(StoredImage(
            message_id="NO_TS", sender="x", payload=b"data"
        ))

        image = await store.find_by_id(image_id)
        assert image.timestamp is not None
        assert image.content_type == "image/jpeg"
        assert image.caption == ""

    async def test_duplicate_message_id_raises_duplicate(self, store):
        await store.insert(make_image(1))

        with pytest.raises(DuplicateContentError) as exc_info:
            await store.insert(make_image(1, payload=b"other"))
        assert exc_info.value.message_id == "MSG001"

        page = await store.list()
        assert page.total == 1

    async def test_find_missing_raises_not_found(self, store):
        with pytest.raises(NotFoundError):
            await store.find_by_id(999)

    async def test_find_outside_integer_range_raises_not_found(self, store):
        with pytest.raises(NotFoundError):
            await store.find_by_id(10**23)
        with pytest.raises(NotFoundError):
            await store.find_by_id(-(10**23))

    async def test_list_with_oversized_values_succeeds(self, store):
        await store.insert(make_image(1))

        page = await store.list(page=10**23, page_size=10**23)

        assert page.page == 1
        assert page.page_size == MAX_PAGE_SIZE
        assert [item.message_id for item in page.items] == ["MSG001"]

    async def test_database_failure_raises_persistence_error(self, engine_and_factory):
        engine, factory = engine_and_factory
        store = ImageStore(factory)
        async with engine.begin() as conn:
            await conn.exec_driver_sql("DROP TABLE images")

        with pytest.raises(PersistenceError):
            await store.insert(make_image(1))
        with pytest.raises(PersistenceError):
            await store.list()


@pytest.mark.asyncio
class TestList:

    async def test_empty_store(self, store):
        page = await store.list()
        assert page.items == []
        assert page.total == 0
        assert page.total_pages == 0
        assert page.page == 1
        assert page.page_size == 12

    async def test_second_page_of_25(self, store):
        for n in range(1, 26):
            await store.insert(make_image(n))

        page = await store.list(page=2, page_size=12)

        assert page.total == 25
        assert page.total_pages == 3
        # Newest first: ranks 13..24 are MSG013 down to MSG002
        assert [item.message_id for item in page.items] == [
            f"MSG{n:03d}" for n in range(13, 1, -1)
        ]

    async def test_last_page_is_partial(self, store):
        for n in range(1, 26):
            await store.insert(make_image(n))

        page = await store.list(page=3, page_size=12)
        assert [item.message_id for item in page.items] == ["MSG001"]

    async def test_page_past_end_is_empty(self, store):
        await store.insert(make_image(1))

        page = await store.list(page=5, page_size=12)
        assert page.items == []
        assert page.total == 1

    async def test_listing_excludes_payload(self, store):
        await store.insert(make_image(1))

        page = await store.list()
        item = page.items[0].model_dump(by_alias=True)
        assert "payload" not in item
        assert set(item) == {"id", "messageId", "sender", "timestamp", "contentType", "caption"}

    async def test_equal_timestamps_break_ties_by_id(self, store):
        first = await store.insert(make_image(1, timestamp=BASE_TIME))
        second = await store.insert(make_image(2, timestamp=BASE_TIME))

        page = await store.list()
        assert [item.id for item in page.items] == [second, first]
