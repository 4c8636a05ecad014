"""
Vitrine Backend — Blob Store Clients
=====================================

What:  Clients for the object store holding item images.
How:   A `BlobStore` protocol with two implementations:
         - SupabaseBlobStore: Supabase Storage REST API over httpx (production)
         - LocalBlobStore:    files under a local directory via aiofiles
                              (development and tests; served by GET /files/...)
Who:   Constructed once at startup (vitrine.state) and injected into
       ItemService. Blob and record stores fail independently of each other.

Blob Paths:
    items/<epoch-millis>-<original-name>

    The path is the join key between an item row and its blob. It is stored
    on the row (image_path); `blob_path_from_url()` recovers it from the
    public URL for rows that predate that column.

Error Mapping:
    Every failure, including timeouts and connection errors, is raised as
    StorageError with the upstream status/payload in its context.
    Deleting an object that does not exist is a success.
"""

import asyncio
import logging
import os
import time
from pathlib import Path, PurePosixPath
from typing import Any, Dict, Optional, Protocol
from urllib.parse import quote, unquote, urlsplit

import aiofiles
import aiofiles.os
import httpx

from vitrine.exceptions import StorageError

logger = logging.getLogger(__name__)

BLOB_PREFIX = "items"


def build_blob_path(original_name: str, now_ms: Optional[int] = None) -> str:
    """
    Compute the blob path for a new upload.

    Args:
        original_name: Filename sent by the client. Directory components
                       (either separator) are dropped.
        now_ms: Epoch milliseconds; defaults to the current time.

    Returns:
        "items/<epoch-millis>-<name>", e.g. "items/1718000000000-cat.png"
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    name = PurePosixPath(original_name.replace("\\", "/")).name or "upload"
    return f"{BLOB_PREFIX}/{now_ms}-{name}"


def blob_path_from_url(url: Optional[str], bucket: str) -> Optional[str]:
    """
    Recover a blob path from a public URL by locating "/<bucket>/".

    Returns None when the bucket marker is absent or nothing follows it;
    callers treat that as "path unknown" rather than an error.
    """
    if not url:
        return None
    marker = f"/{bucket}/"
    path = urlsplit(url).path
    if marker not in path:
        return None
    remainder = unquote(path.split(marker, 1)[1])
    return remainder or None


class BlobStore(Protocol):
    """Contract consumed by ItemService."""

    bucket: str

    async def put(self, path: str, content: bytes, content_type: str) -> None: ...

    async def get(self, path: str) -> Optional[bytes]: ...

    async def delete(self, path: str) -> None: ...

    def public_url(self, path: str) -> str: ...

    def path_from_url(self, url: Optional[str]) -> Optional[str]: ...

    async def health_check(self) -> bool: ...

    async def close(self) -> None: ...


# ══════════════════════════════════════════════════════════════════════════
# Supabase Storage
# ══════════════════════════════════════════════════════════════════════════


class SupabaseBlobStore:
    """
    Supabase Storage client (REST API, service-role authenticated).

    Endpoints used:
        POST   /storage/v1/object/{bucket}/{path}     upload
        GET    /storage/v1/object/{bucket}/{path}     download
        DELETE /storage/v1/object/{bucket}            remove {"prefixes": [...]}
        GET    /storage/v1/bucket/{bucket}            health probe
        public URL: {base}/storage/v1/object/public/{bucket}/{path}
    """

    def __init__(
        self,
        base_url: str,
        service_key: str,
        bucket: str,
        timeout: float,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            base_url: Supabase project URL (https://<ref>.supabase.co)
            service_key: Service role key, sent as bearer token and apikey
            bucket: Public bucket holding item images
            timeout: Seconds allowed per request
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.bucket = bucket
        self.timeout = timeout
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout, connect=min(timeout, 5.0)),
            headers={
                "Authorization": f"Bearer {service_key}",
                "apikey": service_key,
            },
            transport=transport,
        )

    async def close(self) -> None:
        await self.client.aclose()

    def _object_path(self, path: str) -> str:
        return f"/storage/v1/object/{self.bucket}/{quote(path, safe='/')}"

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{quote(path, safe='/')}"

    def path_from_url(self, url: Optional[str]) -> Optional[str]:
        return blob_path_from_url(url, self.bucket)

    async def _send(self, operation: str, path: str, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """
        Issue one request, mapping transport failures to StorageError.

        httpx.Timeout bounds each phase (connect, each read, each write);
        asyncio.wait_for bounds the whole call, so a trickling transfer
        cannot outlive `timeout` either.
        """
        try:
            return await asyncio.wait_for(
                self.client.request(method, url, **kwargs), timeout=self.timeout
            )
        except (httpx.TimeoutException, asyncio.TimeoutError) as e:
            logger.warning("Blob store %s timed out for %s after %.1fs", operation, path, self.timeout)
            raise StorageError(
                message=f"Blob store timed out during {operation}",
                context={"operation": operation, "path": path, "timeout_seconds": self.timeout},
            ) from e
        except httpx.HTTPError as e:
            logger.warning("Blob store %s failed for %s: %s", operation, path, str(e))
            raise StorageError(
                message=f"Blob store is not reachable ({operation})",
                context={"operation": operation, "path": path, "error_type": type(e).__name__},
            ) from e

    @staticmethod
    def _upstream_payload(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return response.text

    def _raise_for_status(self, operation: str, path: str, response: httpx.Response) -> None:
        if response.is_success:
            return
        context: Dict[str, Any] = {
            "operation": operation,
            "path": path,
            "status_code": response.status_code,
            "upstream": self._upstream_payload(response),
        }
        logger.warning(
            "Blob store %s rejected for %s: HTTP %d", operation, path, response.status_code
        )
        raise StorageError(message=f"Blob store {operation} failed", context=context)

    async def put(self, path: str, content: bytes, content_type: str) -> None:
        response = await self._send(
            "upload",
            path,
            "POST",
            self._object_path(path),
            content=content,
            headers={"Content-Type": content_type, "x-upsert": "false"},
        )
        self._raise_for_status("upload", path, response)
        logger.info("Blob stored: %s/%s (%d bytes)", self.bucket, path, len(content))

    async def get(self, path: str) -> Optional[bytes]:
        response = await self._send("download", path, "GET", self._object_path(path))
        if response.status_code == 404:
            return None
        # Storage reports a missing object as 400 with a not_found payload
        if response.status_code == 400:
            payload = self._upstream_payload(response)
            if isinstance(payload, dict) and str(payload.get("error", "")).lower() in {"not_found", "not found"}:
                return None
        self._raise_for_status("download", path, response)
        return response.content

    async def delete(self, path: str) -> None:
        response = await self._send(
            "delete",
            path,
            "DELETE",
            f"/storage/v1/object/{self.bucket}",
            json={"prefixes": [path]},
        )
        if response.status_code == 404:
            logger.debug("Blob already absent: %s/%s", self.bucket, path)
            return
        self._raise_for_status("delete", path, response)
        logger.info("Blob deleted: %s/%s", self.bucket, path)

    async def health_check(self) -> bool:
        try:
            response = await self.client.get(f"/storage/v1/bucket/{self.bucket}")
            return response.is_success
        except httpx.HTTPError as e:
            logger.warning("Blob store health check failed: %s", str(e))
            return False


# ══════════════════════════════════════════════════════════════════════════
# Local filesystem
# ══════════════════════════════════════════════════════════════════════════


class LocalBlobStore:
    """
    Blob store backed by a local directory.

    Directory Structure:
        storage_root/
        └── items-images/          ← bucket
            └── items/
                ├── 1718000000000-cat.png
                └── 1718000004242-dog.jpg

    Public URLs point at GET /files/{bucket}/{path} on this service.
    """

    def __init__(self, storage_root: str, bucket: str, public_base_url: str):
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/")
        self.bucket_root = (Path(storage_root) / bucket).resolve()
        self.bucket_root.mkdir(parents=True, exist_ok=True)
        logger.info("LocalBlobStore initialized with bucket_root=%s", self.bucket_root)

    async def close(self) -> None:
        return None

    def resolve(self, path: str) -> Path:
        """
        Map a blob path to a file under the bucket directory.

        Raises:
            StorageError if the path escapes the bucket directory.
        """
        full_path = (self.bucket_root / path).resolve()
        if not full_path.is_relative_to(self.bucket_root):
            raise StorageError(
                message="Invalid blob path",
                context={"path": path},
            )
        return full_path

    def public_url(self, path: str) -> str:
        return f"{self.public_base_url}/files/{self.bucket}/{quote(path, safe='/')}"

    def path_from_url(self, url: Optional[str]) -> Optional[str]:
        return blob_path_from_url(url, self.bucket)

    async def put(self, path: str, content: bytes, content_type: str) -> None:
        full_path = self.resolve(path)
        try:
            full_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(full_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store blob at %s: %s", full_path, str(e))
            raise StorageError(
                message="Failed to save uploaded image",
                context={"operation": "upload", "path": path, "os_error": str(e)},
            ) from e
        logger.info("Blob stored: %s/%s (%d bytes, %s)", self.bucket, path, len(content), content_type)

    async def get(self, path: str) -> Optional[bytes]:
        full_path = self.resolve(path)
        try:
            async with aiofiles.open(full_path, "rb") as f:
                return await f.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(
                message="Failed to read blob",
                context={"operation": "download", "path": path, "os_error": str(e)},
            ) from e

    async def delete(self, path: str) -> None:
        full_path = self.resolve(path)
        try:
            await aiofiles.os.remove(full_path)
            logger.info("Blob deleted: %s/%s", self.bucket, path)
        except FileNotFoundError:
            logger.debug("Blob already absent: %s/%s", self.bucket, path)
        except OSError as e:
            raise StorageError(
                message="Failed to delete blob",
                context={"operation": "delete", "path": path, "os_error": str(e)},
            ) from e

    async def health_check(self) -> bool:
        return self.bucket_root.is_dir() and os.access(self.bucket_root, os.W_OK)
