"""
Vitrine Backend — Item Service Unit Tests
==========================================

What:  Tests for ItemService create/read/list/update/delete across the blob
       store and the record store.
How:   Real SQLite + LocalBlobStore for the happy paths; AsyncMock doubles
       for the failure points of each saga step.

Test Strategy:
    ✅ Create: presence check, blob-then-row order, compensation on insert failure
    ✅ Read/update: NotFound on unknown ids, description-only updates
    ✅ List: newest first
    ✅ Delete: NotFound before any blob call, blob failure tolerated,
               legacy rows without image_path, concurrent deletes
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from conftest import BUCKET, FIRST_TICK_MS, FakeClock, mock_blob_store
from vitrine.exceptions import NotFoundError, RecordError, StorageError, ValidationError
from vitrine.services.item_service import ItemService


class TestCreateItem:
    """Tests for ItemService.create()."""

    @pytest.mark.asyncio
    async def test_create_without_image_makes_no_store_calls(self):
        items = AsyncMock()
        blobs = mock_blob_store()
        service = ItemService(items=items, blobs=blobs, clock=FakeClock())

        with pytest.raises(ValidationError, match="Image required"):
            await service.create(b"", "image/png", "cat.png", "A cat")

        blobs.put.assert_not_called()
        items.insert.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_stores_blob_then_row(self, item_service, blob_store, sample_image_bytes):
        item = await item_service.create(sample_image_bytes, "image/jpeg", "cat.jpg", "A cat")

        expected_path = f"items/{FIRST_TICK_MS}-cat.jpg"
        assert item.id is not None
        assert item.description == "A cat"
        assert item.image_url == f"http://test/files/{BUCKET}/{expected_path}"
        assert item.created_at is not None
        assert await blob_store.get(expected_path) == sample_image_bytes

        fetched = await item_service.get_item(item.id)
        assert (fetched.id, fetched.image_url, fetched.description) == (
            item.id,
            item.image_url,
            item.description,
        )

    @pytest.mark.asyncio
    async def test_create_keeps_only_basename_of_client_filename(self, item_service, item_repository):
        item = await item_service.create(b"data", "image/png", "../../etc/cat.png", None)

        row = await item_repository.get(item.id)
        assert row.image_path == f"items/{FIRST_TICK_MS}-cat.png"

    @pytest.mark.asyncio
    async def test_create_allows_missing_description(self, item_service):
        item = await item_service.create(b"data", "image/png", "cat.png", None)
        assert item.description is None

    @pytest.mark.asyncio
    async def test_blob_failure_creates_no_row(self):
        items = AsyncMock()
        blobs = mock_blob_store()
        blobs.put.side_effect = StorageError("Blob store upload failed", {"status_code": 413})
        service = ItemService(items=items, blobs=blobs, clock=FakeClock())

        with pytest.raises(StorageError):
            await service.create(b"data", "image/png", "cat.png", "A cat")

        items.insert.assert_not_called()

    @pytest.mark.asyncio
    async def test_insert_failure_removes_uploaded_blob(self, blob_store):
        items = AsyncMock()
        items.insert.side_effect = RecordError(context={"operation": "insert_item"})
        service = ItemService(items=items, blobs=blob_store, clock=FakeClock())

        with pytest.raises(RecordError):
            await service.create(b"data", "image/png", "cat.png", "A cat")

        assert await blob_store.get(f"items/{FIRST_TICK_MS}-cat.png") is None

    @pytest.mark.asyncio
    async def test_insert_failure_surfaces_record_error_when_cleanup_fails(self):
        items = AsyncMock()
        items.insert.side_effect = RecordError()
        blobs = mock_blob_store()
        blobs.delete.side_effect = StorageError("Blob store delete failed")
        service = ItemService(items=items, blobs=blobs, clock=FakeClock())

        with pytest.raises(RecordError):
            await service.create(b"data", "image/png", "cat.png", None)

        blobs.delete.assert_awaited_once_with(f"items/{FIRST_TICK_MS}-cat.png")


class TestReadAndList:
    """Tests for get_item() and list_items()."""

    @pytest.mark.asyncio
    async def test_get_unknown_item_raises_not_found(self, item_service):
        with pytest.raises(NotFoundError, match="item with ID '999'"):
            await item_service.get_item(999)

    @pytest.mark.asyncio
    async def test_list_empty(self, item_service):
        assert await item_service.list_items() == []

    @pytest.mark.asyncio
    async def test_list_returns_newest_first(self, item_service):
        first = await item_service.create(b"1", "image/png", "one.png", "one")
        second = await item_service.create(b"2", "image/png", "two.png", "two")
        third = await item_service.create(b"3", "image/png", "three.png", "three")

        listed = await item_service.list_items()

        assert [item.id for item in listed] == [third.id, second.id, first.id]


class TestUpdateDescription:
    """Tests for update_description()."""

    @pytest.mark.asyncio
    async def test_update_changes_only_description(self, item_service):
        created = await item_service.create(b"data", "image/png", "cat.png", "before")
        before = await item_service.get_item(created.id)

        updated = await item_service.update_description(created.id, "after")

        assert updated.description == "after"
        assert updated.id == before.id
        assert updated.image_url == before.image_url
        assert updated.created_at == before.created_at
        assert (await item_service.get_item(created.id)).description == "after"

    @pytest.mark.asyncio
    async def test_update_unknown_item_raises_not_found(self, item_service):
        with pytest.raises(NotFoundError):
            await item_service.update_description(12345, "anything")


class TestDeleteItem:
    """Tests for ItemService.delete()."""

    @pytest.mark.asyncio
    async def test_delete_removes_row_and_blob(self, item_service, blob_store, item_repository):
        created = await item_service.create(b"data", "image/png", "cat.png", "A cat")
        blob_path = f"items/{FIRST_TICK_MS}-cat.png"

        await item_service.delete(created.id)

        assert await item_repository.get(created.id) is None
        assert await blob_store.get(blob_path) is None

    @pytest.mark.asyncio
    async def test_delete_unknown_item_never_touches_blob_store(self, item_repository):
        blobs = mock_blob_store()
        service = ItemService(items=item_repository, blobs=blobs, clock=FakeClock())

        with pytest.raises(NotFoundError):
            await service.delete(999)

        blobs.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_blob_delete_failure_still_deletes_row(self, item_repository):
        row = await item_repository.insert(
            image_url="https://blobs.example/storage/v1/object/public/items-images/items/1-cat.png",
            image_path="items/1-cat.png",
            description=None,
        )
        blobs = mock_blob_store()
        blobs.delete.side_effect = StorageError("Blob store delete failed", {"status_code": 500})
        service = ItemService(items=item_repository, blobs=blobs, clock=FakeClock())

        await service.delete(row.id)

        blobs.delete.assert_awaited_once_with("items/1-cat.png")
        assert await item_repository.get(row.id) is None

    @pytest.mark.asyncio
    async def test_delete_row_without_image_path_uses_url(self, item_service, blob_store, item_repository):
        await blob_store.put("items/5-dog.png", b"woof", "image/png")
        row = await item_repository.insert(
            image_url=blob_store.public_url("items/5-dog.png"),
            image_path=None,
            description="legacy row",
        )

        await item_service.delete(row.id)

        assert await blob_store.get("items/5-dog.png") is None
        assert await item_repository.get(row.id) is None

    @pytest.mark.asyncio
    async def test_delete_with_unparseable_url_skips_blob_and_deletes_row(self, item_repository):
        row = await item_repository.insert(
            image_url="https://elsewhere.example/pictures/cat.png",
            image_path=None,
            description=None,
        )
        blobs = mock_blob_store()
        service = ItemService(items=item_repository, blobs=blobs, clock=FakeClock())

        await service.delete(row.id)

        blobs.delete.assert_not_called()
        assert await item_repository.get(row.id) is None

    @pytest.mark.asyncio
    async def test_second_delete_raises_not_found(self, item_service):
        created = await item_service.create(b"data", "image/png", "cat.png", None)

        await item_service.delete(created.id)

        with pytest.raises(NotFoundError):
            await item_service.delete(created.id)

    @pytest.mark.asyncio
    async def test_concurrent_deletes_have_exactly_one_winner(self, item_service, item_repository):
        created = await item_service.create(b"data", "image/png", "cat.png", None)

        results = await asyncio.gather(
            item_service.delete(created.id),
            item_service.delete(created.id),
            return_exceptions=True,
        )

        failures = [r for r in results if isinstance(r, Exception)]
        assert len(failures) == 1
        assert isinstance(failures[0], NotFoundError)
        assert await item_repository.get(created.id) is None

    @pytest.mark.asyncio
    async def test_row_delete_failure_surfaces_record_error(self):
        items = AsyncMock()
        items.get.return_value = type(
            "Row", (), {"image_path": "items/1-cat.png", "image_url": "unused"}
        )()
        items.delete.side_effect = RecordError(context={"operation": "delete_item"})
        blobs = mock_blob_store()
        service = ItemService(items=items, blobs=blobs, clock=FakeClock())

        with pytest.raises(RecordError):
            await service.delete(1)

        blobs.delete.assert_awaited_once_with("items/1-cat.png")
