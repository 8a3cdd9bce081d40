"""
Pydantic models for uploaded images.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from .enums import ImageType


class WineImage(BaseModel):
    """Metadata row for a stored (WebP) image."""
    id: str
    wine_id: str
    memory_id: Optional[str] = None
    filename: str
    original_name: Optional[str] = None
    mime_type: str
    size: int = Field(..., description="Stored file size in bytes")
    width: Optional[int] = None
    height: Optional[int] = None
    image_type: ImageType = ImageType.MEMORY
    alt_text: Optional[str] = None
    description: Optional[str] = None
    url: str = Field("", description="Path serving the image bytes")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ImageUpdate(BaseModel):
    """Request body for PUT /api/images/{id}."""
    image_type: Optional[ImageType] = None
    alt_text: Optional[str] = None
    description: Optional[str] = None


class ImageUploadResponse(BaseModel):
    """Response for image upload endpoints."""
    message: str
    images: list[WineImage]
