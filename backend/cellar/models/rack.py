"""
Pydantic models for the wine rack.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class RackSlot(BaseModel):
    """One labeled position in the rack diagram."""
    slot_id: str = Field(..., description="Row letter + position, e.g. 'C7'")
    wine_id: Optional[str] = None
    wine_name: Optional[str] = None
    rack_number: int = 1
    row: str
    position: int
    x_coordinate: float
    y_coordinate: float
    width: float = 20
    height: float = 80
    is_occupied: bool = False
    last_updated: Optional[datetime] = None


class RackAssignment(BaseModel):
    """Body for PUT /api/rack/{slot_id}."""
    wine_id: str = Field(..., min_length=1)


class RackSummary(BaseModel):
    """Occupancy counts."""
    total: int
    occupied: int
    available: int
