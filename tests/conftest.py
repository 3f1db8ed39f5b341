from collections.abc import Generator
from pathlib import Path
import tempfile

import pytest

from gcs_easy.api.dependencies import reset_default_storage
from gcs_easy.config.settings import get_settings
from gcs_easy.core.facade import StorageFacade
from gcs_easy.core.models import ClientConfig
from gcs_easy.infrastructure.storage.client import MockObjectStore


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    with tempfile.TemporaryDirectory() as tmpdirname:
        yield Path(tmpdirname)


@pytest.fixture
def store() -> MockObjectStore:
    return MockObjectStore()


@pytest.fixture
def facade(store: MockObjectStore) -> StorageFacade:
    return StorageFacade(store, ClientConfig(default_bucket="b1"))


@pytest.fixture
def facade_without_default(store: MockObjectStore) -> StorageFacade:
    return StorageFacade(store, ClientConfig())


@pytest.fixture(autouse=True)
def clean_shared_state() -> Generator[None, None, None]:
    get_settings.cache_clear()
    reset_default_storage()
    yield
    get_settings.cache_clear()
    reset_default_storage()
