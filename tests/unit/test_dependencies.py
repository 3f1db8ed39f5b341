"""
Unit tests for the FastAPI adapter.

Uses TestClient against small apps built per test, backed by the
in-memory object store.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from gcs_easy.api.dependencies import (
    StorageFacadeDep,
    StorageServiceDep,
    get_storage_service,
    register_storage,
)
from gcs_easy.api.service import StorageService
from gcs_easy.config.settings import Settings, get_settings
from gcs_easy.core.facade import StorageFacade
from gcs_easy.core.models import (
    ClientConfig,
    DownloadRequest,
    GetRequest,
    ListRequest,
    UploadRequest,
)
from gcs_easy.main import create_app


def make_app() -> FastAPI:
    app = FastAPI()

    @app.post("/objects/{key}")
    async def put_object(key: str, body: dict, service: StorageServiceDep):
        result = await service.upload(UploadRequest(destination=key, data=body["text"]))
        return {"bucket": result.bucket, "key": result.key}

    @app.get("/objects/{key}")
    async def get_object(key: str, service: StorageServiceDep):
        data = await service.get_buffer(GetRequest(key=key))
        return {"text": data.decode("utf-8")}

    @app.get("/facade")
    async def facade_info(facade: StorageFacadeDep, service: StorageServiceDep):
        return {"default_bucket": facade.default_bucket, "same": service.facade is facade}

    return app


class TestRegisterStorage:

    def test_registers_one_facade_and_service_for_the_app(self):
        app = make_app()

        facade = register_storage(app, ClientConfig(default_bucket="b1"), mock_mode=True)

        assert app.state.storage_facade is facade
        assert isinstance(app.state.storage_service, StorageService)
        assert app.state.storage_service.facade is facade

    def test_injected_instances_are_shared_across_requests(self):
        app = make_app()
        register_storage(app, ClientConfig(default_bucket="b1"), mock_mode=True)
        client = TestClient(app)

        put = client.post("/objects/x.txt", json={"text": "hello"})
        get = client.get("/objects/x.txt")
        info = client.get("/facade")

        assert put.json() == {"bucket": "b1", "key": "x.txt"}
        assert get.json() == {"text": "hello"}
        assert info.json() == {"default_bucket": "b1", "same": True}

    def test_registers_prebuilt_facade(self):
        app = make_app()
        facade = StorageFacade(MagicMock(), ClientConfig(default_bucket="b9"))

        assert register_storage(app, facade=facade) is facade
        assert TestClient(app).get("/facade").json()["default_bucket"] == "b9"

    def test_each_app_gets_its_own_facade(self):
        first, second = make_app(), make_app()

        a = register_storage(first, ClientConfig(default_bucket="b1"), mock_mode=True)
        b = register_storage(second, ClientConfig(default_bucket="b1"), mock_mode=True)

        assert a is not b


class TestFallback:

    def test_unregistered_app_uses_settings(self):
        app = make_app()
        app.dependency_overrides[get_settings] = lambda: Settings(
            gcs_default_bucket="from-settings", gcs_mock_mode=True,
        )
        client = TestClient(app)

        assert client.get("/facade").json() == {"default_bucket": "from-settings", "same": True}

        client.post("/objects/y.txt", json={"text": "kept"})
        assert client.get("/objects/y.txt").json() == {"text": "kept"}

    def test_service_can_be_overridden(self):
        app = make_app()
        fake = MagicMock()
        fake.get_buffer = AsyncMock(return_value=b"fake")
        app.dependency_overrides[get_storage_service] = lambda: fake

        assert TestClient(app).get("/objects/any").json() == {"text": "fake"}


class TestStorageService:

    @pytest.mark.asyncio
    async def test_delegates_every_operation(self):
        facade = MagicMock()
        facade.upload = AsyncMock(return_value="uploaded")
        facade.download = AsyncMock(return_value="downloaded")
        facade.list = AsyncMock(return_value=["listed"])
        facade.get_buffer = AsyncMock(return_value=b"buffer")
        facade.get_metadata = AsyncMock(return_value="metadata")
        service = StorageService(facade)

        upload = UploadRequest(destination="x", data=b"a")
        download = DownloadRequest(source="x")
        listing = ListRequest(prefix="p/")
        get = GetRequest(key="x")

        assert await service.upload(upload) == "uploaded"
        assert await service.download(download) == "downloaded"
        assert await service.list(listing) == ["listed"]
        assert await service.get_buffer(get) == b"buffer"
        assert await service.get_metadata(get) == "metadata"

        facade.upload.assert_awaited_once_with(upload)
        facade.download.assert_awaited_once_with(download)
        facade.list.assert_awaited_once_with(listing)
        facade.get_buffer.assert_awaited_once_with(get)
        facade.get_metadata.assert_awaited_once_with(get)


# ---------------------------------------------------------------------------
# Health routes
# ---------------------------------------------------------------------------

class TestHealthRoutes:

    def test_liveness(self):
        app = create_app(Settings(gcs_default_bucket="b1", gcs_mock_mode=True))

        response = TestClient(app).get("/health")

        assert response.status_code == 200
        assert response.json()["details"] == {"default_bucket": "b1", "mock_mode": True}

    def test_ready_when_default_bucket_is_listable(self):
        app = create_app(Settings(gcs_default_bucket="b1", gcs_mock_mode=True))

        response = TestClient(app).get("/health/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    def test_not_ready_without_default_bucket(self):
        app = create_app(Settings(gcs_mock_mode=True))

        response = TestClient(app).get("/health/ready")

        assert response.status_code == 503
        body = response.json()
        assert body["status"] == "not_ready"
        storage_check = next(c for c in body["checks"] if c["name"] == "storage")
        assert storage_check["status"] == "error"
