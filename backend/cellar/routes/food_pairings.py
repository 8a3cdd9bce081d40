"""
Food pairing endpoints.

Manual pairings per wine plus bulk insertion of rule-based suggestions.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from cellar.config import Config
from cellar.db import total_pages
from cellar.dependencies import get_pairing_repository, get_pairing_service, get_wine_repository
from cellar.feature_flags import FeatureFlags, get_feature_flags
from cellar.models import (
    BulkSuggestionResponse,
    CategoryCount,
    FoodPairing,
    FoodPairingCreate,
    FoodPairingFilters,
    FoodPairingListResponse,
    FoodPairingUpdate,
    PairingCategory,
)
from cellar.services.pairing import PairingService
from cellar.services.pairing_repository import DuplicatePairingError, FoodPairingRepository
from cellar.services.wine_repository import WineRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/food-pairings")


@router.get("", response_model=FoodPairingListResponse)
async def list_food_pairings(
    wine_id: Optional[str] = None,
    category: Optional[PairingCategory] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(Config.DEFAULT_PAGE_SIZE, ge=1, le=Config.MAX_PAGE_SIZE),
    repo: FoodPairingRepository = Depends(get_pairing_repository),
) -> FoodPairingListResponse:
    filters = FoodPairingFilters(wine_id=wine_id, category=category, search=search)
    try:
        pairings, total = repo.find_all(filters, page=page, limit=limit)
    except Exception as e:
        logger.error(f"Error listing food pairings: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")

    return FoodPairingListResponse(
        pairings=pairings,
        total=total,
        page=page,
        limit=limit,
        total_pages=total_pages(total, limit),
    )


@router.get("/categories", response_model=list[CategoryCount])
async def list_categories(
    repo: FoodPairingRepository = Depends(get_pairing_repository),
) -> list[CategoryCount]:
    """Pairing counts per category."""
    return repo.category_counts()


@router.get("/{pairing_id}", response_model=FoodPairing)
async def get_food_pairing(
    pairing_id: str,
    repo: FoodPairingRepository = Depends(get_pairing_repository),
) -> FoodPairing:
    pairing = repo.find_by_id(pairing_id)
    if pairing is None:
        raise HTTPException(status_code=404, detail="Food pairing not found")
    return pairing


@router.post("", response_model=FoodPairing, status_code=201)
async def create_food_pairing(
    data: FoodPairingCreate,
    repo: FoodPairingRepository = Depends(get_pairing_repository),
    wine_repo: WineRepository = Depends(get_wine_repository),
) -> FoodPairing:
    if wine_repo.find_by_id(data.wine_id) is None:
        raise HTTPException(status_code=404, detail="Wine not found")

    try:
        return repo.create(data)
    except DuplicatePairingError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error(f"Error creating food pairing: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.put("/{pairing_id}", response_model=FoodPairing)
async def update_food_pairing(
    pairing_id: str,
    changes: FoodPairingUpdate,
    repo: FoodPairingRepository = Depends(get_pairing_repository),
) -> FoodPairing:
    try:
        pairing = repo.update(pairing_id, changes)
    except DuplicatePairingError as e:
        raise HTTPException(status_code=409, detail=str(e))

    if pairing is None:
        raise HTTPException(status_code=404, detail="Food pairing not found")
    return pairing


@router.delete("/{pairing_id}", status_code=204)
async def delete_food_pairing(
    pairing_id: str,
    repo: FoodPairingRepository = Depends(get_pairing_repository),
) -> Response:
    if not repo.delete(pairing_id):
        raise HTTPException(status_code=404, detail="Food pairing not found")
    return Response(status_code=204)


@router.post("/bulk-suggestions/{wine_id}", response_model=BulkSuggestionResponse, status_code=201)
async def create_bulk_suggestions(
    wine_id: str,
    repo: FoodPairingRepository = Depends(get_pairing_repository),
    wine_repo: WineRepository = Depends(get_wine_repository),
    pairing_service: PairingService = Depends(get_pairing_service),
    flags: FeatureFlags = Depends(get_feature_flags),
) -> BulkSuggestionResponse:
    """Save the rule-based suggestions for a wine as pairings (existing items are kept)."""
    if not flags.feature_pairing_suggestions:
        raise HTTPException(status_code=404, detail="Pairing suggestions are disabled")

    wine = wine_repo.find_by_id(wine_id)
    if wine is None:
        raise HTTPException(status_code=404, detail="Wine not found")

    suggestions = pairing_service.suggest(wine.color, wine.grape_varieties)
    try:
        created = repo.add_suggestions(wine_id, suggestions)
    except Exception as e:
        logger.error(f"Error saving pairing suggestions for wine {wine_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")

    return BulkSuggestionResponse(
        message=f"Created {len(created)} suggested food pairing(s)",
        created=created,
        suggestions=suggestions,
    )
