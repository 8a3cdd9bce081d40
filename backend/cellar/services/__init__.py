from .wine_repository import WineRepository
from .memory_repository import MemoryRepository
from .image_repository import ImageRepository
from .pairing_repository import FoodPairingRepository
from .rack_repository import RackRepository
from .pairing import PairingService
from .wine_normalizer import WineDataNormalizer
from .wine_api_service import WineApiService

__all__ = [
    "WineRepository",
    "MemoryRepository",
    "ImageRepository",
    "FoodPairingRepository",
    "RackRepository",
    "PairingService",
    "WineDataNormalizer",
    "WineApiService",
]
