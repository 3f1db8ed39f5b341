"""
gcs-easy - a friendly facade over Google Cloud Storage.

This package contains:
- core: Request/result records, errors and the StorageFacade
- infrastructure: Object store implementations (Google Cloud Storage, in-memory mock)
- api: FastAPI dependency injection and routes
- config: Application configuration
"""

from .core.errors import (
    AmbiguousUploadSourceError,
    ConfigurationError,
    GcsEasyError,
    InvalidUploadSourceError,
    MissingBucketError,
    StorageBackendError,
)
from .core.facade import StorageFacade
from .core.models import (
    ClientConfig,
    DownloadRequest,
    DownloadResult,
    GetRequest,
    ListedObject,
    ListRequest,
    MetadataResult,
    ServiceAccountCredentials,
    UploadRequest,
    UploadResult,
)
from .infrastructure.storage.client import create_storage_facade

__version__ = "0.1.0"

__all__ = [
    "StorageFacade",
    "create_storage_facade",
    "ClientConfig",
    "ServiceAccountCredentials",
    "UploadRequest",
    "UploadResult",
    "DownloadRequest",
    "DownloadResult",
    "ListRequest",
    "ListedObject",
    "GetRequest",
    "MetadataResult",
    "GcsEasyError",
    "MissingBucketError",
    "InvalidUploadSourceError",
    "AmbiguousUploadSourceError",
    "ConfigurationError",
    "StorageBackendError",
]
