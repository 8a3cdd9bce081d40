"""
Pytest configuration for the wine cellar tests.

Every test gets its own migrated SQLite database and upload directory
under tmp_path; the API client swaps the app's singletons for those
through FastAPI dependency overrides.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from cellar.db import ensure_schema
from cellar.dependencies import (
    get_image_repository,
    get_image_storage,
    get_memory_repository,
    get_pairing_repository,
    get_rack_repository,
    get_wine_api_service,
    get_wine_repository,
)
from cellar.services.image_processor import ImageStorage
from cellar.services.image_repository import ImageRepository
from cellar.services.memory_repository import MemoryRepository
from cellar.services.pairing_repository import FoodPairingRepository
from cellar.services.rack_repository import RackRepository
from cellar.services.wine_api_service import WineApiService
from cellar.services.wine_repository import WineRepository


def pytest_configure(config):
    """Configure pytest-asyncio mode."""
    config.addinivalue_line(
        "markers", "asyncio: mark test as an asyncio test"
    )


@pytest.fixture
def db_path(tmp_path):
    """Fully migrated temp database."""
    path = str(tmp_path / "cellar.db")
    ensure_schema(path)
    return path


@pytest.fixture
def wine_repo(db_path):
    repo = WineRepository(db_path=db_path)
    yield repo
    repo.close()


@pytest.fixture
def memory_repo(db_path):
    repo = MemoryRepository(db_path=db_path)
    yield repo
    repo.close()


@pytest.fixture
def image_repo(db_path):
    repo = ImageRepository(db_path=db_path)
    yield repo
    repo.close()


@pytest.fixture
def pairing_repo(db_path):
    repo = FoodPairingRepository(db_path=db_path)
    yield repo
    repo.close()


@pytest.fixture
def rack_repo(db_path):
    repo = RackRepository(db_path=db_path)
    yield repo
    repo.close()


@pytest.fixture
def storage(tmp_path):
    return ImageStorage(str(tmp_path / "uploads"))


@pytest.fixture
def lookup_service():
    """Lookup service with Vivino off and no real sleeping."""
    return WineApiService(rate_limit_delay=0, enable_vivino=False, sleep=AsyncMock())


@pytest.fixture
def client(wine_repo, memory_repo, image_repo, pairing_repo, rack_repo, storage, lookup_service):
    """Test client wired to the isolated database and upload dir."""
    from main import app

    app.dependency_overrides[get_wine_repository] = lambda: wine_repo
    app.dependency_overrides[get_memory_repository] = lambda: memory_repo
    app.dependency_overrides[get_image_repository] = lambda: image_repo
    app.dependency_overrides[get_pairing_repository] = lambda: pairing_repo
    app.dependency_overrides[get_rack_repository] = lambda: rack_repo
    app.dependency_overrides[get_image_storage] = lambda: storage
    app.dependency_overrides[get_wine_api_service] = lambda: lookup_service

    yield TestClient(app)

    app.dependency_overrides.clear()
