"""
Injectable storage service.

A thin pass-through over StorageFacade with identical signatures. Route
handlers depend on this rather than on the facade so tests can swap it
via app.dependency_overrides without touching the facade.
"""

from typing import Optional

from ..core.facade import StorageFacade
from ..core.models import (
    DownloadRequest,
    DownloadResult,
    GetRequest,
    ListedObject,
    ListRequest,
    MetadataResult,
    UploadRequest,
    UploadResult,
)


class StorageService:

    def __init__(self, facade: StorageFacade) -> None:
        self._facade = facade

    @property
    def facade(self) -> StorageFacade:
        return self._facade

    async def upload(self, request: UploadRequest) -> UploadResult:
        return await self._facade.upload(request)

    async def download(self, request: DownloadRequest) -> DownloadResult:
        return await self._facade.download(request)

    async def list(self, request: Optional[ListRequest] = None) -> list[ListedObject]:
        return await self._facade.list(request)

    async def get_buffer(self, request: GetRequest) -> bytes:
        return await self._facade.get_buffer(request)

    async def get_metadata(self, request: GetRequest) -> MetadataResult:
        return await self._facade.get_metadata(request)
