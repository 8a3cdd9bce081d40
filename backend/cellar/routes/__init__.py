from .wines import router as wines_router
from .images import router as images_router
from .memories import router as memories_router
from .food_pairings import router as food_pairings_router
from .rack import router as rack_router

__all__ = [
    "wines_router",
    "images_router",
    "memories_router",
    "food_pairings_router",
    "rack_router",
]
