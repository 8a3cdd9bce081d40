"""
Enums for type-safe string constants in the Wine Cellar API.
"""

from enum import Enum


class WineColor(str, Enum):
    """Wine style/color. Values match the wines.color CHECK constraint."""
    RED = "Red"
    WHITE = "White"
    ROSE = "Rosé"
    SPARKLING = "Sparkling"
    DESSERT = "Dessert"
    FORTIFIED = "Fortified"


class ConsumptionStatus(str, Enum):
    """Where a bottle is in its life."""
    AVAILABLE = "Available"
    CONSUMED = "Consumed"
    RESERVED = "Reserved"


class ImageType(str, Enum):
    """What an uploaded image shows."""
    FRONT_LABEL = "front_label"
    BACK_LABEL = "back_label"
    MEMORY = "memory"


class PairingCategory(str, Enum):
    """Course a food pairing belongs to."""
    APPETIZER = "Appetizer"
    MAIN_COURSE = "Main Course"
    DESSERT = "Dessert"
    CHEESE = "Cheese"
    OTHER = "Other"


class ExternalSource(str, Enum):
    """Source of an external wine lookup result."""
    VIVINO = "vivino"
    WINE_API = "wine_api"
