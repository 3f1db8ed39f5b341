"""
FastAPI integration: storage registration, dependencies and routes.
"""

from .dependencies import (
    StorageFacadeDep,
    StorageServiceDep,
    get_storage_facade,
    get_storage_service,
    register_storage,
)
from .service import StorageService

__all__ = [
    "StorageService",
    "StorageFacadeDep",
    "StorageServiceDep",
    "get_storage_facade",
    "get_storage_service",
    "register_storage",
]
