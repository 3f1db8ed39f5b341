"""
Object storage integration.

Google Cloud Storage via google-cloud-storage, plus an in-memory
mock mode for local development without credentials.
"""

from .client import (
    CredentialSource,
    GoogleCloudObjectStore,
    MockObjectStore,
    build_gcs_client,
    create_object_store,
    create_storage_facade,
    resolve_credential_source,
)

__all__ = [
    "GoogleCloudObjectStore",
    "MockObjectStore",
    "CredentialSource",
    "build_gcs_client",
    "create_object_store",
    "create_storage_facade",
    "resolve_credential_source",
]
