"""
Shared FastAPI dependencies.

Repositories and services are process-wide singletons (lru_cache).
Tests swap them through app.dependency_overrides.
"""

from functools import lru_cache

from cellar.services.image_processor import ImageStorage
from cellar.services.image_repository import ImageRepository
from cellar.services.memory_repository import MemoryRepository
from cellar.services.pairing import PairingService
from cellar.services.pairing_repository import FoodPairingRepository
from cellar.services.rack_repository import RackRepository
from cellar.services.wine_api_service import WineApiService
from cellar.services.wine_repository import WineRepository


@lru_cache(maxsize=1)
def get_wine_repository() -> WineRepository:
    return WineRepository()


@lru_cache(maxsize=1)
def get_memory_repository() -> MemoryRepository:
    return MemoryRepository()


@lru_cache(maxsize=1)
def get_image_repository() -> ImageRepository:
    return ImageRepository()


@lru_cache(maxsize=1)
def get_pairing_repository() -> FoodPairingRepository:
    return FoodPairingRepository()


@lru_cache(maxsize=1)
def get_rack_repository() -> RackRepository:
    return RackRepository()


@lru_cache(maxsize=1)
def get_image_storage() -> ImageStorage:
    return ImageStorage()


@lru_cache(maxsize=1)
def get_pairing_service() -> PairingService:
    return PairingService()


@lru_cache(maxsize=1)
def get_wine_api_service() -> WineApiService:
    """Get or create the lookup service (owns the shared browser)."""
    return WineApiService()
