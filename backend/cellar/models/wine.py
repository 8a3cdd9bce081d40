"""
Pydantic models for wine records, filters and cellar statistics.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .enums import ConsumptionStatus, WineColor

MIN_VINTAGE_YEAR = 1800


def _check_vintage(v: Optional[int]) -> Optional[int]:
    if v is not None and not MIN_VINTAGE_YEAR <= v <= datetime.now().year:
        raise ValueError(f"vintage_year must be between {MIN_VINTAGE_YEAR} and {datetime.now().year}")
    return v


def _clean_varieties(v: Optional[list[str]]) -> Optional[list[str]]:
    if v is None:
        return v
    return [grape.strip() for grape in v if grape and grape.strip()]


class WineCreate(BaseModel):
    """Request body for POST /api/wines."""
    name: str = Field(..., min_length=1, description="Wine name")
    vineyard: str = Field(..., min_length=1, description="Producer / winery")
    region: str = Field(..., min_length=1, description="Wine region")
    color: WineColor
    grape_varieties: list[str] = Field(..., description="Grape varieties in the blend")
    price: Optional[float] = Field(None, ge=0)
    currency: str = Field("USD", min_length=3, max_length=3)
    vintage_year: Optional[int] = None
    rack_slot: Optional[str] = Field(None, description="Rack slot label, e.g. 'C7'")
    consumption_status: ConsumptionStatus = ConsumptionStatus.AVAILABLE
    description: Optional[str] = None
    personal_notes: Optional[str] = None
    rating: Optional[int] = Field(None, ge=1, le=100, description="Rating on the 100-point scale")
    food_pairings: list[str] = Field(default_factory=list)

    @field_validator("name", "vineyard", "region")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()

    @field_validator("vintage_year")
    @classmethod
    def validate_vintage(cls, v: Optional[int]) -> Optional[int]:
        return _check_vintage(v)

    @field_validator("grape_varieties", "food_pairings")
    @classmethod
    def clean_lists(cls, v: list[str]) -> list[str]:
        return _clean_varieties(v)


class WineUpdate(BaseModel):
    """Request body for PUT /api/wines/{id}. Only fields that are sent get updated."""
    name: Optional[str] = Field(None, min_length=1)
    vineyard: Optional[str] = Field(None, min_length=1)
    region: Optional[str] = Field(None, min_length=1)
    color: Optional[WineColor] = None
    grape_varieties: Optional[list[str]] = None
    price: Optional[float] = Field(None, ge=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    vintage_year: Optional[int] = None
    rack_slot: Optional[str] = None
    consumption_status: Optional[ConsumptionStatus] = None
    date_consumed: Optional[datetime] = None
    description: Optional[str] = None
    personal_notes: Optional[str] = None
    rating: Optional[int] = Field(None, ge=1, le=100)
    food_pairings: Optional[list[str]] = None

    @field_validator("name", "vineyard", "region", "color", "grape_varieties", "currency", "consumption_status")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("must not be null")
        if isinstance(v, str) and not v.strip():
            raise ValueError("must not be blank")
        return v

    @field_validator("vintage_year")
    @classmethod
    def validate_vintage(cls, v: Optional[int]) -> Optional[int]:
        return _check_vintage(v)

    @field_validator("grape_varieties", "food_pairings")
    @classmethod
    def clean_lists(cls, v: Optional[list[str]]) -> Optional[list[str]]:
        return _clean_varieties(v)


class Wine(BaseModel):
    """A bottle in the cellar."""
    id: str
    name: str
    vineyard: str
    region: str
    color: WineColor
    grape_varieties: list[str] = Field(default_factory=list)
    price: Optional[float] = None
    currency: str = "USD"
    vintage_year: Optional[int] = None
    date_added: datetime
    rack_slot: Optional[str] = None
    consumption_status: ConsumptionStatus = ConsumptionStatus.AVAILABLE
    date_consumed: Optional[datetime] = None
    description: Optional[str] = None
    personal_notes: Optional[str] = None
    rating: Optional[int] = None
    food_pairings: list[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class WineFilters(BaseModel):
    """Query filters for GET /api/wines. None means 'no filter'."""
    search: Optional[str] = None
    color: Optional[WineColor] = None
    region: Optional[str] = None
    vintage_year_min: Optional[int] = None
    vintage_year_max: Optional[int] = None
    price_min: Optional[float] = None
    price_max: Optional[float] = None
    rating_min: Optional[int] = None
    rating_max: Optional[int] = None
    consumption_status: Optional[ConsumptionStatus] = None
    rack_slot: Optional[str] = None


class WineListResponse(BaseModel):
    """Paginated wine listing."""
    wines: list[Wine]
    total: int
    page: int
    limit: int
    total_pages: int


class ConsumeRequest(BaseModel):
    """Body for POST /api/wines/{id}/consume."""
    consumed_date: Optional[datetime] = Field(None, description="When the bottle was opened (default: now)")


class WineStatistics(BaseModel):
    """Cellar overview for the dashboard."""
    total: int
    available: int
    consumed: int
    reserved: int
    colors: dict[str, int] = Field(default_factory=dict)
    regions: dict[str, int] = Field(default_factory=dict, description="Top 10 regions by bottle count")


class ConsumptionStatistics(BaseModel):
    """Drinking history summary for the dashboard."""
    total_consumed: int
    consumed_this_month: int
    consumed_this_year: int
    average_rating: Optional[float] = Field(None, description="Mean 100-point rating of rated consumed wines")
    favorite_region: Optional[str] = None
    favorite_color: Optional[str] = None
