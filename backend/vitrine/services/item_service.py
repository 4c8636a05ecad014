"""
Vitrine Backend — Item Service (Blob + Record Coordinator)
===========================================================

What:  Orchestrates create/read/list/update/delete of an item across the
       blob store (image bytes) and the record store (metadata row).
How:   Composes a BlobStore and an ItemRepository injected at startup.
Who:   Called by the /items route handlers.

Consistency Model:
    The two stores have no shared transaction. Each multi-step operation is
    a saga: ordered steps, with a compensating action defined for some of
    the failure points.

    create:  put blob ──▶ public URL ──▶ insert row
    delete:  fetch row ──▶ delete blob ──▶ delete row

    Compensation table:

        operation   failed step    compensation
        ─────────   ───────────    ─────────────────────────────────────────
        create      blob put       none (nothing was written)
        create      row insert     best-effort blob delete, raise RecordError
        delete      blob delete    none; logged, row deletion proceeds
        delete      row delete     none; RecordError, blob may already be gone

    A row therefore never points at a blob that was never written, except
    across a process crash between the two create steps. A failed blob
    delete leaves an orphaned blob rather than a dangling row.
"""

import logging
import time
from typing import Callable, List, Optional

from vitrine.exceptions import NotFoundError, StorageError, ValidationError
from vitrine.schemas.item import ItemResponse
from vitrine.services.blob_store import BlobStore, build_blob_path
from vitrine.services.record_store import ItemRepository

logger = logging.getLogger(__name__)


def _epoch_millis() -> int:
    return int(time.time() * 1000)


class ItemService:
    """
    Business logic for items.

    Responsibilities:
        - create(): blob-then-row with compensation on insert failure
        - get_item() / list_items(): single-call reads
        - update_description(): description-only update
        - delete(): blob-then-row, tolerating blob delete failure
    """

    def __init__(
        self,
        items: ItemRepository,
        blobs: BlobStore,
        clock: Callable[[], int] = _epoch_millis,
    ):
        """
        Args:
            items: Repository for the items table
            blobs: Blob store holding item images
            clock: Epoch-milliseconds source for blob paths (overridable in tests)
        """
        self.items = items
        self.blobs = blobs
        self.clock = clock

    async def create(
        self,
        content: bytes,
        content_type: Optional[str],
        original_name: Optional[str],
        description: Optional[str],
    ) -> ItemResponse:
        """
        Store an image and create its item row.

        Workflow Steps:
            1. Presence check on the image bytes (no network call on failure)
            2. Compute the blob path from the clock and the original name
            3. Upload the blob
            4. Derive the public URL (local computation)
            5. Insert the row
            6. Return the inserted row

        Raises:
            ValidationError: No image bytes
            StorageError: Blob upload failed; no row was created
            RecordError: Row insert failed; the blob has been compensated
        """
        if not content:
            raise ValidationError(message="Image required.", field="image")

        blob_path = build_blob_path(original_name or "upload", now_ms=self.clock())

        await self.blobs.put(blob_path, content, content_type or "application/octet-stream")

        image_url = self.blobs.public_url(blob_path)

        try:
            item = await self.items.insert(
                image_url=image_url,
                image_path=blob_path,
                description=description,
            )
        except Exception:
            await self._compensate_blob(blob_path)
            raise

        logger.info("Item %s created with blob %s", item.id, blob_path)
        return ItemResponse.model_validate(item)

    async def _compensate_blob(self, blob_path: str) -> None:
        """Best-effort removal of a blob whose row was never written."""
        try:
            await self.blobs.delete(blob_path)
            logger.warning("Row insert failed; removed blob %s", blob_path)
        except StorageError as e:
            logger.warning(
                "Row insert failed and blob %s could not be removed (orphaned): %s | Context: %s",
                blob_path,
                e.message,
                e.context,
            )

    async def get_item(self, item_id: int) -> ItemResponse:
        """
        Raises:
            NotFoundError: No row with this id
            RecordError: Query failed
        """
        item = await self.items.get(item_id)
        if item is None:
            raise NotFoundError(resource="item", resource_id=str(item_id))
        return ItemResponse.model_validate(item)

    async def list_items(self) -> List[ItemResponse]:
        """All items, newest first. Not paginated."""
        rows = await self.items.list_newest_first()
        return [ItemResponse.model_validate(row) for row in rows]

    async def update_description(self, item_id: int, description: Optional[str]) -> ItemResponse:
        """
        Change only the description; image_url and created_at are untouched.

        Raises:
            NotFoundError: Zero rows matched
            RecordError: Update failed
        """
        item = await self.items.update_description(item_id, description)
        if item is None:
            raise NotFoundError(resource="item", resource_id=str(item_id))
        logger.info("Item %s description updated", item_id)
        return ItemResponse.model_validate(item)

    async def delete(self, item_id: int) -> None:
        """
        Delete an item's blob and row.

        Workflow Steps:
            1. Fetch the row; absent → NotFoundError, blob store untouched
            2. Resolve the blob path (stored column, else parsed from URL)
            3. Delete the blob; failure is logged and does not stop step 4
            4. Delete the row; zero rows → NotFoundError (concurrent delete)

        Raises:
            NotFoundError: No row with this id
            RecordError: Row fetch or delete failed
        """
        item = await self.items.get(item_id)
        if item is None:
            raise NotFoundError(resource="item", resource_id=str(item_id))

        blob_path = item.image_path or self.blobs.path_from_url(item.image_url)

        if blob_path is None:
            logger.warning(
                "Item %s: cannot derive blob path from image_url %r; skipping blob delete",
                item_id,
                item.image_url,
            )
        else:
            try:
                await self.blobs.delete(blob_path)
            except StorageError as e:
                logger.warning(
                    "Item %s: blob delete failed for %s, deleting row anyway: %s | Context: %s",
                    item_id,
                    blob_path,
                    e.message,
                    e.context,
                )

        deleted = await self.items.delete(item_id)
        if deleted == 0:
            raise NotFoundError(resource="item", resource_id=str(item_id))

        logger.info("Item %s deleted", item_id)
