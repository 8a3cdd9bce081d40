from .enums import (
    WineColor,
    ConsumptionStatus,
    ImageType,
    PairingCategory,
    ExternalSource,
)
from .wine import (
    WineCreate,
    WineUpdate,
    Wine,
    WineFilters,
    WineListResponse,
    ConsumeRequest,
    WineStatistics,
    ConsumptionStatistics,
)
from .memory import (
    MemoryCreate,
    MemoryUpdate,
    Memory,
    RecentMemory,
    MemorySummary,
)
from .image import (
    WineImage,
    ImageUpdate,
    ImageUploadResponse,
)
from .pairing import (
    FoodPairingCreate,
    FoodPairingUpdate,
    FoodPairing,
    FoodPairingFilters,
    FoodPairingListResponse,
    CategoryCount,
    PairingSuggestions,
    BulkSuggestionResponse,
)
from .rack import (
    RackSlot,
    RackAssignment,
    RackSummary,
)
from .lookup import (
    ExternalWine,
    ExternalSearchResponse,
    LookupStats,
    AutoPopulateResponse,
)

__all__ = [
    "WineColor",
    "ConsumptionStatus",
    "ImageType",
    "PairingCategory",
    "ExternalSource",
    "WineCreate",
    "WineUpdate",
    "Wine",
    "WineFilters",
    "WineListResponse",
    "ConsumeRequest",
    "WineStatistics",
    "ConsumptionStatistics",
    "MemoryCreate",
    "MemoryUpdate",
    "Memory",
    "RecentMemory",
    "MemorySummary",
    "WineImage",
    "ImageUpdate",
    "ImageUploadResponse",
    "FoodPairingCreate",
    "FoodPairingUpdate",
    "FoodPairing",
    "FoodPairingFilters",
    "FoodPairingListResponse",
    "CategoryCount",
    "PairingSuggestions",
    "BulkSuggestionResponse",
    "RackSlot",
    "RackAssignment",
    "RackSummary",
    "ExternalWine",
    "ExternalSearchResponse",
    "LookupStats",
    "AutoPopulateResponse",
]
