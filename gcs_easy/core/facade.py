"""
The storage facade.

StorageFacade turns loosely specified calls (bucket optional, data or file,
destination path optional) into concrete object store operations and
shapes the results into plain records. It owns no transport, no retries
and no caching; all of that belongs to the ObjectStore it wraps.

Every operation follows the same path:
    resolve bucket -> call the object store -> shape the result

A facade instance holds only read-only state (the store and the config),
so one instance can serve concurrent requests.
"""

import asyncio
import logging
import os
from typing import Any, Optional, Protocol

from .errors import (
    AmbiguousUploadSourceError,
    InvalidUploadSourceError,
    MissingBucketError,
    StorageBackendError,
)
from .models import (
    ClientConfig,
    DownloadRequest,
    DownloadResult,
    GetRequest,
    ListedObject,
    ListQuery,
    ListRequest,
    MetadataResult,
    UploadOptions,
    UploadRequest,
    UploadResult,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocols (interfaces)
# ---------------------------------------------------------------------------

class FileHandle(Protocol):
    """A single object inside a bucket."""

    @property
    def name(self) -> str:
        ...

    async def save(self, data: bytes, options: UploadOptions) -> None:
        """Write `data` to this object."""
        ...

    async def download(self) -> bytes:
        """Read the whole object into memory."""
        ...

    async def download_to(self, destination: str) -> None:
        """Stream the object to a local path. The parent directory must exist."""
        ...

    async def get_metadata(self) -> dict[str, Any]:
        """Fetch the object resource (JSON API field names)."""
        ...

    async def make_public(self) -> None:
        """Grant allUsers read access."""
        ...


class BucketHandle(Protocol):

    @property
    def name(self) -> str:
        ...

    def file(self, key: str) -> FileHandle:
        ...

    async def upload(self, local_path: str, destination: str, options: UploadOptions) -> None:
        """Upload a local file to `destination`."""
        ...

    async def get_files(self, query: ListQuery) -> list[FileHandle]:
        """List leaf objects matching the query, in listing order."""
        ...


class ObjectStore(Protocol):
    """
    Entry point of the object store capability.

    Using a Protocol means the facade doesn't know whether it talks to
    Google Cloud Storage or an in-memory mock. Authentication is the
    store's concern; the facade only asks for buckets.
    """

    def bucket(self, name: str) -> BucketHandle:
        ...


# ---------------------------------------------------------------------------
# Facade
# ---------------------------------------------------------------------------

class StorageFacade:
    """
    Simplified upload / download / list / metadata operations.

    Each method accepts an optional bucket and falls back to the
    configured default bucket. Validation errors (MissingBucketError,
    InvalidUploadSourceError) are raised before the object store is
    touched. Backend failures are wrapped in StorageBackendError with
    the original exception chained, and are never retried.
    """

    def __init__(self, store: ObjectStore, config: Optional[ClientConfig] = None) -> None:
        self._store = store
        self._config = config or ClientConfig()

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def default_bucket(self) -> Optional[str]:
        return self._config.default_bucket

    def _resolve_bucket(self, bucket: Optional[str] = None) -> BucketHandle:
        """Return a handle for `bucket`, or the default bucket when it is empty."""
        name = bucket or self._config.default_bucket
        if not name:
            raise MissingBucketError()
        return self._store.bucket(name)

    # -----------------------------------------------------------------------
    # Upload
    # -----------------------------------------------------------------------

    async def upload(self, request: UploadRequest) -> UploadResult:
        """
        Upload an object from memory or from a local file.

        Text data is UTF-8 encoded. When `make_public` is set, the public
        read grant is a second call after the write: the object is private
        for a short window, and if the grant fails the object stays
        uploaded but private.

        A `file_path` that cannot be read raises `OSError` before any
        backend call.
        """
        if request.data is None and not request.file_path:
            raise InvalidUploadSourceError()
        if request.data is not None and request.file_path:
            raise AmbiguousUploadSourceError()

        bucket = self._resolve_bucket(request.bucket)
        file = bucket.file(request.destination)

        options = UploadOptions(
            content_type=request.content_type,
            gzip=request.gzip,
            resumable=request.resumable,
            metadata=request.metadata,
        )

        payload = _as_bytes(request.data) if request.data is not None else None
        if payload is None:
            # Local file errors propagate unwrapped, as OSError.
            await asyncio.to_thread(_check_readable, request.file_path)

        try:
            if payload is not None:
                await file.save(payload, options)
            else:
                await bucket.upload(request.file_path, request.destination, options)

            if request.make_public:
                await file.make_public()

            metadata = await file.get_metadata()
        except Exception as e:
            self._log_failure("upload", bucket.name, request.destination, e)
            raise StorageBackendError(f"Upload failed: {e}", cause=e) from e

        logger.info(
            "Uploaded object",
            extra={
                "bucket": bucket.name,
                "key": request.destination,
                "source": "memory" if payload is not None else "file",
                "size_bytes": len(payload) if payload is not None else None,
                "public": request.make_public,
            },
        )

        return UploadResult(
            bucket=bucket.name,
            key=request.destination,
            media_link=metadata.get("mediaLink"),
            etag=metadata.get("etag"),
        )

    # -----------------------------------------------------------------------
    # Download
    # -----------------------------------------------------------------------

    async def download(self, request: DownloadRequest) -> DownloadResult:
        """
        Download an object.

        With `destination_file_path` the object is written to disk (missing
        parent directories are created) and the path is returned. Without
        it the content comes back in memory.
        """
        bucket = self._resolve_bucket(request.bucket)
        file = bucket.file(request.source)

        if request.destination_file_path:
            parent = os.path.dirname(request.destination_file_path)
            if parent:
                await asyncio.to_thread(os.makedirs, parent, exist_ok=True)

            try:
                await file.download_to(request.destination_file_path)
            except Exception as e:
                self._log_failure("download", bucket.name, request.source, e)
                raise StorageBackendError(f"Download failed: {e}", cause=e) from e

            logger.debug(
                "Downloaded object to file",
                extra={
                    "bucket": bucket.name,
                    "key": request.source,
                    "file_path": request.destination_file_path,
                },
            )
            return DownloadResult(
                bucket=bucket.name,
                key=request.source,
                file_path=request.destination_file_path,
            )

        data = await self._read(bucket, request.source)
        return DownloadResult(bucket=bucket.name, key=request.source, data=data)

    # -----------------------------------------------------------------------
    # Listing
    # -----------------------------------------------------------------------

    async def list(self, request: Optional[ListRequest] = None) -> list[ListedObject]:
        """
        List objects with prefix, delimiter and paging options.

        With a delimiter only leaf objects are returned; "folders" are
        dropped. Metadata for each object is fetched concurrently with no
        cap on fan-out, and results keep the backend's listing order.
        """
        request = request or ListRequest()
        bucket = self._resolve_bucket(request.bucket)

        query = ListQuery(
            prefix=request.prefix,
            delimiter=request.delimiter,
            page_size=request.page_size,
            auto_paginate=request.auto_paginate,
        )

        try:
            files = await bucket.get_files(query)
            # gather preserves argument order, not completion order
            metadata = await asyncio.gather(*(f.get_metadata() for f in files))
        except Exception as e:
            self._log_failure("list", bucket.name, request.prefix, e)
            raise StorageBackendError(f"List failed: {e}", cause=e) from e

        logger.debug(
            "Listed objects",
            extra={"bucket": bucket.name, "prefix": request.prefix, "count": len(files)},
        )

        return [
            ListedObject(
                name=f.name,
                size=_as_int(meta.get("size")),
                content_type=meta.get("contentType"),
                updated=meta.get("updated"),
                etag=meta.get("etag"),
            )
            for f, meta in zip(files, metadata)
        ]

    # -----------------------------------------------------------------------
    # Single-object accessors
    # -----------------------------------------------------------------------

    async def get_buffer(self, request: GetRequest) -> bytes:
        """Return the full content of an object, e.g. to stream in an HTTP response."""
        bucket = self._resolve_bucket(request.bucket)
        return await self._read(bucket, request.key)

    async def get_metadata(self, request: GetRequest) -> MetadataResult:
        """Return the full metadata of an object without transferring its content."""
        bucket = self._resolve_bucket(request.bucket)

        try:
            metadata = await bucket.file(request.key).get_metadata()
        except Exception as e:
            self._log_failure("get_metadata", bucket.name, request.key, e)
            raise StorageBackendError(f"Metadata read failed: {e}", cause=e) from e

        return MetadataResult(bucket=bucket.name, key=request.key, metadata=metadata)

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------

    async def _read(self, bucket: BucketHandle, key: str) -> bytes:
        try:
            data = await bucket.file(key).download()
        except Exception as e:
            self._log_failure("download", bucket.name, key, e)
            raise StorageBackendError(f"Download failed: {e}", cause=e) from e

        logger.debug(
            "Downloaded object",
            extra={"bucket": bucket.name, "key": key, "size_bytes": len(data)},
        )
        return data

    def _log_failure(
        self,
        operation: str,
        bucket: str,
        key: Optional[str],
        error: Exception,
    ) -> None:
        logger.error(
            f"Storage {operation} failed",
            extra={"bucket": bucket, "key": key, "error": str(error)},
        )


def _as_bytes(data: Any) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def _check_readable(path: str) -> None:
    with open(path, "rb"):
        pass


def _as_int(value: Any) -> Optional[int]:
    """The JSON API reports sizes as strings; the Python client as ints."""
    if value is None:
        return None
    return int(value)
