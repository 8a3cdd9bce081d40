"""
Wine rack endpoints.

Slots are fixed (seeded by migration); these endpoints move bottles
in and out of them and keep wines.rack_slot in sync.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from cellar.dependencies import get_rack_repository, get_wine_repository
from cellar.models import ConsumptionStatus, RackAssignment, RackSlot, RackSummary
from cellar.services.rack_repository import (
    RackRepository,
    RackSlotNotFoundError,
    RackSlotOccupiedError,
)
from cellar.services.wine_repository import WineRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/rack")


@router.get("", response_model=list[RackSlot])
async def list_rack_slots(repo: RackRepository = Depends(get_rack_repository)) -> list[RackSlot]:
    """Every slot with its occupant, row by row."""
    return repo.list_slots()


@router.get("/summary", response_model=RackSummary)
async def get_rack_summary(repo: RackRepository = Depends(get_rack_repository)) -> RackSummary:
    return repo.summary()


@router.get("/{slot_id}", response_model=RackSlot)
async def get_rack_slot(slot_id: str, repo: RackRepository = Depends(get_rack_repository)) -> RackSlot:
    slot = repo.find_by_slot_id(slot_id)
    if slot is None:
        raise HTTPException(status_code=404, detail="Rack slot not found")
    return slot


@router.put("/{slot_id}", response_model=RackSlot)
async def assign_rack_slot(
    slot_id: str,
    assignment: RackAssignment,
    repo: RackRepository = Depends(get_rack_repository),
    wine_repo: WineRepository = Depends(get_wine_repository),
) -> RackSlot:
    """Put a wine into a slot, moving it out of its previous one."""
    wine = wine_repo.find_by_id(assignment.wine_id)
    if wine is None:
        raise HTTPException(status_code=404, detail="Wine not found")
    if wine.consumption_status == ConsumptionStatus.CONSUMED:
        raise HTTPException(status_code=400, detail="Consumed wines cannot be placed in the rack")

    try:
        return repo.assign(slot_id, wine.id)
    except RackSlotNotFoundError:
        raise HTTPException(status_code=404, detail="Rack slot not found")
    except RackSlotOccupiedError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.delete("/{slot_id}", response_model=RackSlot)
async def clear_rack_slot(slot_id: str, repo: RackRepository = Depends(get_rack_repository)) -> RackSlot:
    """Empty a slot; the wine that held it loses its rack_slot."""
    try:
        return repo.clear(slot_id)
    except RackSlotNotFoundError:
        raise HTTPException(status_code=404, detail="Rack slot not found")
