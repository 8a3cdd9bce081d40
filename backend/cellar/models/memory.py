"""
Pydantic models for tasting memories.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class MemoryCreate(BaseModel):
    """Request body for POST /api/memories."""
    wine_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1, description="Rich-text body of the memory")
    date_experienced: Optional[datetime] = Field(None, description="Default: now")
    location: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    rating: Optional[int] = Field(None, ge=1, le=5)

    @field_validator("title", "content")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v: list[str]) -> list[str]:
        return [tag.strip() for tag in v if tag and tag.strip()]


class MemoryUpdate(BaseModel):
    """Request body for PUT /api/memories/{id}."""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    content: Optional[str] = Field(None, min_length=1)
    date_experienced: Optional[datetime] = None
    location: Optional[str] = None
    tags: Optional[list[str]] = None
    rating: Optional[int] = Field(None, ge=1, le=5)

    @field_validator("title", "content", "date_experienced", "tags")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("must not be null")
        if isinstance(v, str) and not v.strip():
            raise ValueError("must not be blank")
        return v


class Memory(BaseModel):
    """A tasting memory attached to a wine."""
    id: str
    wine_id: str
    title: str
    content: str
    date_experienced: datetime
    location: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    rating: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class RecentMemory(Memory):
    """Memory plus the name of its wine (dashboard feed)."""
    wine_name: str


class MemorySummary(BaseModel):
    """Response for GET /api/memories/stats/summary."""
    total_memories: int
    average_rating: Optional[float] = Field(None, description="Mean 1-5 rating of rated memories")
    wines_with_memories: int
    recent_memories: list[RecentMemory] = Field(default_factory=list)
