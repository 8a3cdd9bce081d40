"""
Pydantic models for food pairings.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .enums import PairingCategory


class FoodPairingCreate(BaseModel):
    """Request body for POST /api/food-pairings."""
    wine_id: str = Field(..., min_length=1)
    food_item: str = Field(..., min_length=1, max_length=200)
    category: PairingCategory = PairingCategory.OTHER
    description: Optional[str] = None
    user_rating: Optional[int] = Field(None, ge=1, le=5)
    is_suggested: bool = False
    source: Optional[str] = None

    @field_validator("food_item")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


class FoodPairingUpdate(BaseModel):
    """Request body for PUT /api/food-pairings/{id}."""
    food_item: Optional[str] = Field(None, min_length=1, max_length=200)
    category: Optional[PairingCategory] = None
    description: Optional[str] = None
    user_rating: Optional[int] = Field(None, ge=1, le=5)

    @field_validator("food_item")
    @classmethod
    def food_item_not_blank(cls, v: Optional[str]) -> str:
        if v is None or not v.strip():
            raise ValueError("must not be blank")
        return v.strip()

    @field_validator("category")
    @classmethod
    def category_not_null(cls, v: Optional[PairingCategory]) -> PairingCategory:
        if v is None:
            raise ValueError("must not be null")
        return v


class FoodPairing(BaseModel):
    """A wine-scoped food pairing."""
    id: str
    wine_id: str
    wine_name: Optional[str] = None
    food_item: str
    category: PairingCategory = PairingCategory.OTHER
    description: Optional[str] = None
    user_rating: Optional[int] = None
    is_suggested: bool = False
    source: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class FoodPairingFilters(BaseModel):
    """Query filters for GET /api/food-pairings."""
    wine_id: Optional[str] = None
    category: Optional[PairingCategory] = None
    search: Optional[str] = None


class FoodPairingListResponse(BaseModel):
    """Paginated pairing listing."""
    pairings: list[FoodPairing]
    total: int
    page: int
    limit: int
    total_pages: int


class CategoryCount(BaseModel):
    """Pairing count per category."""
    category: PairingCategory
    count: int


class PairingSuggestions(BaseModel):
    """Response for GET /api/wines/{id}/food-pairings."""
    wine_id: str
    wine_name: str
    suggestions: list[str]


class BulkSuggestionResponse(BaseModel):
    """Response for POST /api/food-pairings/bulk-suggestions/{wine_id}."""
    message: str
    created: list[FoodPairing]
    suggestions: list[str]
