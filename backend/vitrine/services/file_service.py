"""
Vitrine Backend — Upload Staging
=================================

What:  Scoped lifecycle for multipart image uploads.
How:   Starlette spools each uploaded part to a temporary file. The
       `staged_upload()` context manager reads it into memory, yields the
       bytes with their metadata, and closes (and so deletes) the temporary
       file on every exit path.
Who:   Used by POST /items around the ItemService.create() call.

Lifecycle of an upload:
    1. Client sends multipart/form-data with an `image` part
    2. Starlette spools the part to a SpooledTemporaryFile
    3. staged_upload() reads the bytes → StagedUpload
    4. ItemService.create() runs (may raise ValidationError, StorageError,
       RecordError)
    5. The temporary file is closed whatever happened in step 4
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Optional

from fastapi import UploadFile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StagedUpload:
    """Upload bytes plus the metadata the blob store needs."""

    content: bytes
    content_type: str
    filename: str


@asynccontextmanager
async def staged_upload(upload: Optional[UploadFile]) -> AsyncIterator[StagedUpload]:
    """
    Read an upload and guarantee its temporary file is released.

    A missing upload yields an empty StagedUpload so the presence check stays
    in ItemService (which rejects it before any store call).

    Usage:
        async with staged_upload(image) as staged:
            await item_service.create(staged.content, ...)
    """
    if upload is None:
        yield StagedUpload(content=b"", content_type="application/octet-stream", filename="")
        return

    try:
        content = await upload.read()
        logger.info(
            "Received upload: filename=%s, size=%d bytes",
            upload.filename or "unknown",
            len(content),
        )
        yield StagedUpload(
            content=content,
            content_type=upload.content_type or "application/octet-stream",
            filename=upload.filename or "upload",
        )
    finally:
        await upload.close()
