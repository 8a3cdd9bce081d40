"""
Pydantic models for external wine lookup.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from .enums import ExternalSource
from .wine import Wine


class ExternalWine(BaseModel):
    """A wine record fetched from an external source, before import."""
    name: str
    vineyard: Optional[str] = None
    region: Optional[str] = None
    color: Optional[str] = None
    grape_varieties: list[str] = Field(default_factory=list)
    vintage_year: Optional[int] = None
    rating: Optional[float] = Field(None, description="Source scale before normalization, 100-point after")
    description: Optional[str] = None
    price: Optional[float] = None
    currency: Optional[str] = None
    food_pairings: list[str] = Field(default_factory=list)
    image_url: Optional[str] = None
    url: Optional[str] = None
    source: ExternalSource


class ExternalSearchResponse(BaseModel):
    """Response for GET /api/wines/search-external."""
    results: list[ExternalWine]
    query: str
    count: int


class LookupStats(BaseModel):
    """Outbound request counters for GET /api/wines/api-stats."""
    count: int
    last_request: Optional[datetime] = None


class AutoPopulateResponse(BaseModel):
    """Response for POST /api/wines/{id}/auto-populate."""
    message: str
    populated: bool
    updated_fields: list[str] = Field(default_factory=list)
    wine: Wine
    source: Optional[ExternalSource] = None
