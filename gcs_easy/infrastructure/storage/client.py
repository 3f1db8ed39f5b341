"""
Object store implementations for the storage facade.

Two implementations of the ObjectStore protocol from core.facade:
- GoogleCloudObjectStore wraps the google-cloud-storage client library
- MockObjectStore keeps objects in memory for local development and tests

The google-cloud-storage client is synchronous. Every blocking call is run
with asyncio.to_thread so the facade stays async at its boundary without
blocking the event loop.

Nothing in this module retries or translates errors. Whatever the library
raises (google.api_core.exceptions.NotFound, Forbidden, ...) reaches the
facade as-is.
"""

import asyncio
import gzip as gzip_codec
import hashlib
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Optional
from urllib.parse import quote

from google.api_core.exceptions import NotFound
from google.cloud import storage
from google.oauth2 import service_account

from ...core.errors import ConfigurationError
from ...core.facade import ObjectStore, StorageFacade
from ...core.models import ClientConfig, ListQuery, UploadOptions

logger = logging.getLogger(__name__)

# Multiple of 256 KiB, required by the resumable upload protocol
RESUMABLE_CHUNK_SIZE = 8 * 1024 * 1024

GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------

class CredentialSource(str, Enum):
    """Where the Google client gets its credentials, in precedence order."""
    EXPLICIT = "explicit"    # inline service-account fields
    KEY_FILE = "key_file"    # JSON key file on disk
    AMBIENT = "ambient"      # application default credentials


def resolve_credential_source(config: ClientConfig) -> CredentialSource:
    """
    Pick the credential source for a client config.

    Inline credentials win over a key file, which wins over whatever the
    environment provides (GOOGLE_APPLICATION_CREDENTIALS, workload identity,
    gcloud user credentials). Half-filled inline credentials are rejected
    rather than silently falling through to the next source.
    """
    credentials = config.credentials
    if credentials is not None and (credentials.client_email or credentials.private_key):
        if not credentials.is_complete:
            raise ConfigurationError(
                "Inline credentials need both client_email and private_key"
            )
        return CredentialSource.EXPLICIT

    if config.key_filename:
        return CredentialSource.KEY_FILE

    return CredentialSource.AMBIENT


def build_gcs_client(config: ClientConfig) -> storage.Client:
    """Create a google-cloud-storage client following the credential precedence chain."""
    source = resolve_credential_source(config)

    logger.info(
        "Creating Cloud Storage client",
        extra={"project_id": config.project_id, "credential_source": source.value},
    )

    if source is CredentialSource.EXPLICIT:
        credentials = service_account.Credentials.from_service_account_info(
            {
                "type": "service_account",
                "client_email": config.credentials.client_email,
                "private_key": config.credentials.private_key,
                "token_uri": GOOGLE_TOKEN_URI,
            }
        )
        return storage.Client(project=config.project_id, credentials=credentials)

    if source is CredentialSource.KEY_FILE:
        return storage.Client.from_service_account_json(
            config.key_filename,
            project=config.project_id,
        )

    return storage.Client(project=config.project_id)


# ---------------------------------------------------------------------------
# Google Cloud Storage
# ---------------------------------------------------------------------------

def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _prepare_blob(blob: storage.Blob, data: bytes, options: UploadOptions) -> bytes:
    """Apply upload options to a blob and return the bytes to send."""
    if options.metadata:
        blob.metadata = dict(options.metadata)
    if options.gzip:
        data = gzip_codec.compress(data)
        blob.content_encoding = "gzip"
    if options.resumable:
        # The library still sends small payloads as a single multipart request
        blob.chunk_size = RESUMABLE_CHUNK_SIZE
    return data


class GcsFileHandle:
    """FileHandle backed by a google.cloud.storage.Blob."""

    def __init__(self, blob: storage.Blob) -> None:
        self._blob = blob

    @property
    def name(self) -> str:
        return self._blob.name

    async def save(self, data: bytes, options: UploadOptions) -> None:
        payload = _prepare_blob(self._blob, data, options)
        await asyncio.to_thread(
            self._blob.upload_from_string,
            payload,
            content_type=options.content_type,
        )

    async def download(self) -> bytes:
        return await asyncio.to_thread(self._blob.download_as_bytes)

    async def download_to(self, destination: str) -> None:
        await asyncio.to_thread(self._blob.download_to_filename, destination)

    async def get_metadata(self) -> dict[str, Any]:
        """
        Object resource fields in JSON API casing.

        No `acl` key: reading object ACLs is a separate call that needs
        owner rights and fails on buckets with uniform bucket-level access.
        """
        await asyncio.to_thread(self._blob.reload)
        blob = self._blob
        return {
            "name": blob.name,
            "bucket": blob.bucket.name,
            "id": blob.id,
            "size": blob.size,
            "contentType": blob.content_type,
            "contentEncoding": blob.content_encoding,
            "contentDisposition": blob.content_disposition,
            "cacheControl": blob.cache_control,
            "md5Hash": blob.md5_hash,
            "crc32c": blob.crc32c,
            "etag": blob.etag,
            "generation": blob.generation,
            "metageneration": blob.metageneration,
            "storageClass": blob.storage_class,
            "timeCreated": _isoformat(blob.time_created),
            "updated": _isoformat(blob.updated),
            "mediaLink": blob.media_link,
            "selfLink": blob.self_link,
            "metadata": dict(blob.metadata or {}),
        }

    async def make_public(self) -> None:
        await asyncio.to_thread(self._blob.make_public)


class GcsBucketHandle:
    """BucketHandle backed by a google.cloud.storage.Bucket."""

    def __init__(self, bucket: storage.Bucket) -> None:
        self._bucket = bucket

    @property
    def name(self) -> str:
        return self._bucket.name

    def file(self, key: str) -> GcsFileHandle:
        return GcsFileHandle(self._bucket.blob(key))

    async def upload(self, local_path: str, destination: str, options: UploadOptions) -> None:
        blob = self._bucket.blob(destination)

        if options.gzip:
            # Compressed client side, so the whole file goes through memory
            data = await asyncio.to_thread(Path(local_path).read_bytes)
            await GcsFileHandle(blob).save(data, options)
            return

        _prepare_blob(blob, b"", options)
        await asyncio.to_thread(
            blob.upload_from_filename,
            local_path,
            content_type=options.content_type,
        )

    async def get_files(self, query: ListQuery) -> list[GcsFileHandle]:
        return await asyncio.to_thread(self._list_blobs, query)

    def _list_blobs(self, query: ListQuery) -> list[GcsFileHandle]:
        iterator = self._bucket.list_blobs(
            prefix=query.prefix,
            delimiter=query.delimiter,
            page_size=query.page_size,
        )

        if query.auto_paginate:
            blobs = list(iterator)
        else:
            first_page = next(iterator.pages, None)
            blobs = list(first_page) if first_page is not None else []

        # With a delimiter, common prefixes end up in iterator.prefixes, not here
        return [GcsFileHandle(blob) for blob in blobs]


class GoogleCloudObjectStore:
    """ObjectStore backed by google-cloud-storage."""

    def __init__(self, config: ClientConfig, client: Optional[storage.Client] = None) -> None:
        self._client = client or build_gcs_client(config)

    def bucket(self, name: str) -> GcsBucketHandle:
        return GcsBucketHandle(self._client.bucket(name))


# ---------------------------------------------------------------------------
# Mock Object Store for Local Development
# ---------------------------------------------------------------------------

@dataclass
class _StoredObject:
    data: bytes
    content_type: Optional[str]
    content_encoding: Optional[str]
    metadata: dict[str, str]
    generation: int
    created: datetime
    updated: datetime
    public: bool = False


@dataclass
class _MemoryBackend:
    """Objects keyed by (bucket, key), shared by every handle of one store."""
    objects: dict[tuple[str, str], _StoredObject] = field(default_factory=dict)
    generation: int = 0

    def next_generation(self) -> int:
        self.generation += 1
        return self.generation


class MockFileHandle:
    """In-memory FileHandle. Missing objects raise google's NotFound, like the real store."""

    def __init__(self, backend: _MemoryBackend, bucket: str, key: str) -> None:
        self._backend = backend
        self._bucket = bucket
        self._key = key

    @property
    def name(self) -> str:
        return self._key

    def _stored(self) -> _StoredObject:
        stored = self._backend.objects.get((self._bucket, self._key))
        if stored is None:
            raise NotFound(f"No such object: {self._bucket}/{self._key}")
        return stored

    async def save(self, data: bytes, options: UploadOptions) -> None:
        now = datetime.now(timezone.utc)
        previous = self._backend.objects.get((self._bucket, self._key))

        self._backend.objects[(self._bucket, self._key)] = _StoredObject(
            data=gzip_codec.compress(data) if options.gzip else bytes(data),
            content_type=options.content_type or "application/octet-stream",
            content_encoding="gzip" if options.gzip else None,
            metadata=dict(options.metadata),
            generation=self._backend.next_generation(),
            created=previous.created if previous else now,
            updated=now,
        )

        logger.debug(
            "Stored object in mock storage",
            extra={"bucket": self._bucket, "key": self._key, "size_bytes": len(data)},
        )

    async def download(self) -> bytes:
        stored = self._stored()
        # Mirrors decompressive transcoding on the real service
        if stored.content_encoding == "gzip":
            return gzip_codec.decompress(stored.data)
        return stored.data

    async def download_to(self, destination: str) -> None:
        Path(destination).write_bytes(await self.download())

    async def get_metadata(self) -> dict[str, Any]:
        """Same fields as the GCS adapter, plus an `acl` list that records public grants."""
        stored = self._stored()
        acl = [{"entity": "allUsers", "role": "READER"}] if stored.public else []

        return {
            "name": self._key,
            "bucket": self._bucket,
            "size": len(stored.data),
            "contentType": stored.content_type,
            "contentEncoding": stored.content_encoding,
            "md5Hash": hashlib.md5(stored.data).hexdigest(),
            "etag": f"{hashlib.md5(stored.data).hexdigest()}/{stored.generation}",
            "generation": stored.generation,
            "timeCreated": stored.created.isoformat(),
            "updated": stored.updated.isoformat(),
            "mediaLink": (
                "mock://storage/download/"
                f"{self._bucket}/{quote(self._key, safe='')}?generation={stored.generation}"
            ),
            "acl": acl,
            "metadata": dict(stored.metadata),
        }

    async def make_public(self) -> None:
        self._stored().public = True


class MockBucketHandle:

    def __init__(self, backend: _MemoryBackend, name: str) -> None:
        self._backend = backend
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    def file(self, key: str) -> MockFileHandle:
        return MockFileHandle(self._backend, self._name, key)

    async def upload(self, local_path: str, destination: str, options: UploadOptions) -> None:
        data = Path(local_path).read_bytes()
        await self.file(destination).save(data, options)

    async def get_files(self, query: ListQuery) -> list[MockFileHandle]:
        prefix = query.prefix or ""
        names = sorted(
            key for (bucket, key) in self._backend.objects
            if bucket == self._name and key.startswith(prefix)
        )

        if query.delimiter:
            names = [
                name for name in names
                if query.delimiter not in name[len(prefix):]
            ]

        if not query.auto_paginate and query.page_size:
            names = names[:query.page_size]

        return [self.file(name) for name in names]


class MockObjectStore:
    """
    In-memory object store for local development and testing.

    Buckets spring into existence on first use. Not suitable for
    production, but enough to exercise the whole facade without
    Google Cloud credentials.
    """

    def __init__(self) -> None:
        self._backend = _MemoryBackend()
        logger.info("Initialized mock object store (in-memory)")

    def bucket(self, name: str) -> MockBucketHandle:
        return MockBucketHandle(self._backend, name)


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_object_store(
    config: Optional[ClientConfig] = None,
    mock_mode: bool = False,
) -> ObjectStore:
    """
    Create the object store for a client configuration.

    Args:
        config: Client configuration (project, credentials)
        mock_mode: If True, return an in-memory store

    Returns:
        ObjectStore implementation (Google Cloud Storage or Mock)
    """
    if mock_mode:
        return MockObjectStore()

    return GoogleCloudObjectStore(config or ClientConfig())


def create_storage_facade(
    config: Optional[ClientConfig] = None,
    mock_mode: bool = False,
) -> StorageFacade:
    """
    Build a StorageFacade wired to the right object store.

    This is the composition root for code that doesn't use FastAPI;
    api.dependencies.register_storage calls it for applications that do.
    """
    config = config or ClientConfig()
    store = create_object_store(config, mock_mode=mock_mode)
    return StorageFacade(store, config)
