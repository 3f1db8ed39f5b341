"""
Request and result records for the storage facade.

Every record is a frozen dataclass: values, not entities. Nothing here
outlives a single facade call except ClientConfig, which the facade holds
for its whole lifetime.

User metadata (the key/value pairs a caller attaches to an object) is kept
apart from the backend resource map. Uploads only ever accept user metadata,
and results expose it through its own field so caller keys cannot shadow
backend-managed ones such as `etag` or `contentType`.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional, Union

from .errors import AmbiguousUploadSourceError, InvalidUploadSourceError


def _freeze(mapping: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class ServiceAccountCredentials:
    """Inline service-account fields, an alternative to a key file."""
    client_email: Optional[str] = None
    private_key: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return bool(self.client_email and self.private_key)

    def __repr__(self) -> str:
        # Never echo the private key into logs or tracebacks
        return f"ServiceAccountCredentials(client_email={self.client_email!r})"


@dataclass(frozen=True)
class ClientConfig:
    """
    Construction options for a StorageFacade.

    Credentials are resolved in a fixed order: inline `credentials`, then
    `key_filename`, then application default credentials from the
    environment. See infrastructure.storage.client.resolve_credential_source.
    """
    project_id: Optional[str] = None
    default_bucket: Optional[str] = None
    key_filename: Optional[str] = None
    credentials: Optional[ServiceAccountCredentials] = None


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class UploadRequest:
    """
    Upload an object from memory (`data`) or from a local file (`file_path`).

    Exactly one source must be given. `metadata` is user metadata and is
    stored nested under the object's `metadata` field.
    """
    destination: str
    bucket: Optional[str] = None
    data: Optional[Union[bytes, str]] = None
    file_path: Optional[str] = None
    content_type: Optional[str] = None
    gzip: bool = False
    resumable: bool = True
    make_public: bool = False
    metadata: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.destination:
            raise ValueError("Upload destination cannot be empty")
        if self.data is None and not self.file_path:
            raise InvalidUploadSourceError()
        if self.data is not None and self.file_path:
            raise AmbiguousUploadSourceError()
        object.__setattr__(self, "metadata", _freeze(self.metadata))

    @property
    def payload(self) -> Optional[bytes]:
        """In-memory content as bytes; text is UTF-8 encoded."""
        if self.data is None:
            return None
        if isinstance(self.data, str):
            return self.data.encode("utf-8")
        return bytes(self.data)


@dataclass(frozen=True)
class DownloadRequest:
    """Download an object, to disk when `destination_file_path` is set."""
    source: str
    bucket: Optional[str] = None
    destination_file_path: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.source:
            raise ValueError("Download source cannot be empty")


@dataclass(frozen=True)
class ListRequest:
    bucket: Optional[str] = None
    prefix: Optional[str] = None
    delimiter: Optional[str] = None
    page_size: Optional[int] = None
    auto_paginate: bool = True

    def __post_init__(self) -> None:
        if self.page_size is not None and self.page_size <= 0:
            raise ValueError("page_size must be positive")


@dataclass(frozen=True)
class GetRequest:
    key: str
    bucket: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.key:
            raise ValueError("Object key cannot be empty")


# ---------------------------------------------------------------------------
# Backend-facing options
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class UploadOptions:
    """Transfer options handed to the object store for a single write."""
    content_type: Optional[str] = None
    gzip: bool = False
    resumable: bool = True
    metadata: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "metadata", _freeze(self.metadata))


@dataclass(frozen=True)
class ListQuery:
    prefix: Optional[str] = None
    delimiter: Optional[str] = None
    page_size: Optional[int] = None
    auto_paginate: bool = True


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class UploadResult:
    bucket: str
    key: str
    media_link: Optional[str] = None
    etag: Optional[str] = None


@dataclass(frozen=True)
class DownloadResult:
    """Either the downloaded bytes or the path they were written to, never both."""
    bucket: str
    key: str
    data: Optional[bytes] = None
    file_path: Optional[str] = None

    def __post_init__(self) -> None:
        if (self.data is None) == (self.file_path is None):
            raise ValueError("DownloadResult needs exactly one of data or file_path")


@dataclass(frozen=True)
class ListedObject:
    name: str
    size: Optional[int] = None
    content_type: Optional[str] = None
    updated: Optional[str] = None
    etag: Optional[str] = None


@dataclass(frozen=True)
class MetadataResult:
    """
    Full object metadata as reported by the backend.

    `metadata` is the backend resource map (camelCase keys as in the
    Cloud Storage JSON API). User metadata lives under its own key and is
    exposed separately through `user_metadata`.
    """
    bucket: str
    key: str
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "metadata", _freeze(self.metadata))

    @property
    def user_metadata(self) -> Mapping[str, str]:
        return _freeze(self.metadata.get("metadata"))

    @property
    def etag(self) -> Optional[str]:
        return self.metadata.get("etag")
