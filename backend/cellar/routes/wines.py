"""
Wine inventory endpoints.

CRUD, filtered listing, dashboard statistics, consumption tracking,
external lookup, and auto-population from external data.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from cellar.config import Config
from cellar.db import total_pages
from cellar.dependencies import (
    get_image_repository,
    get_image_storage,
    get_pairing_service,
    get_wine_api_service,
    get_wine_repository,
)
from cellar.feature_flags import FeatureFlags, get_feature_flags
from cellar.models import (
    AutoPopulateResponse,
    ConsumeRequest,
    ConsumptionStatistics,
    ConsumptionStatus,
    ExternalSearchResponse,
    ExternalWine,
    LookupStats,
    PairingSuggestions,
    Wine,
    WineColor,
    WineCreate,
    WineFilters,
    WineListResponse,
    WineStatistics,
    WineUpdate,
)
from cellar.services.image_processor import ImageStorage
from cellar.services.image_repository import ImageRepository
from cellar.services.pairing import PairingService
from cellar.services.rack_repository import RackSlotNotFoundError, RackSlotOccupiedError
from cellar.services.wine_api_service import WineApiService
from cellar.services.wine_repository import WineRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/wines")


def _get_wine_or_404(repo: WineRepository, wine_id: str) -> Wine:
    wine = repo.find_by_id(wine_id)
    if wine is None:
        raise HTTPException(status_code=404, detail="Wine not found")
    return wine


def _rack_error(e: Exception) -> HTTPException:
    if isinstance(e, RackSlotNotFoundError):
        return HTTPException(status_code=400, detail=str(e))
    return HTTPException(status_code=409, detail=str(e))


# === Listing and statistics ===


@router.get("", response_model=WineListResponse)
async def list_wines(
    search: Optional[str] = Query(None, description="Matches name, vineyard, region, grapes, notes"),
    color: Optional[WineColor] = None,
    region: Optional[str] = None,
    vintage_year_min: Optional[int] = None,
    vintage_year_max: Optional[int] = None,
    price_min: Optional[float] = None,
    price_max: Optional[float] = None,
    rating_min: Optional[int] = None,
    rating_max: Optional[int] = None,
    consumption_status: Optional[ConsumptionStatus] = None,
    rack_slot: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(Config.DEFAULT_PAGE_SIZE, ge=1, le=Config.MAX_PAGE_SIZE),
    repo: WineRepository = Depends(get_wine_repository),
) -> WineListResponse:
    """List wines, newest first, with optional filters."""
    filters = WineFilters(
        search=search,
        color=color,
        region=region,
        vintage_year_min=vintage_year_min,
        vintage_year_max=vintage_year_max,
        price_min=price_min,
        price_max=price_max,
        rating_min=rating_min,
        rating_max=rating_max,
        consumption_status=consumption_status,
        rack_slot=rack_slot,
    )
    try:
        wines, total = repo.find_all(filters, page=page, limit=limit)
    except Exception as e:
        logger.error(f"Error listing wines: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")

    return WineListResponse(
        wines=wines,
        total=total,
        page=page,
        limit=limit,
        total_pages=total_pages(total, limit),
    )


@router.get("/statistics", response_model=WineStatistics)
async def get_statistics(repo: WineRepository = Depends(get_wine_repository)) -> WineStatistics:
    """Counts by status and color, plus the top 10 regions."""
    try:
        return repo.get_statistics()
    except Exception as e:
        logger.error(f"Error computing wine statistics: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/statistics/consumption", response_model=ConsumptionStatistics)
async def get_consumption_statistics(
    repo: WineRepository = Depends(get_wine_repository),
) -> ConsumptionStatistics:
    """What has been drunk, when, and what is favored."""
    try:
        return repo.get_consumption_statistics()
    except Exception as e:
        logger.error(f"Error computing consumption statistics: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


# === External lookup ===


@router.get("/search-external", response_model=ExternalSearchResponse)
async def search_external(
    q: Optional[str] = Query(None, description="Free-text wine search"),
    vintage: Optional[int] = Query(None, ge=1800),
    region: Optional[str] = None,
    limit: int = Query(Config.LOOKUP_DEFAULT_LIMIT, ge=1, le=50),
    service: WineApiService = Depends(get_wine_api_service),
    flags: FeatureFlags = Depends(get_feature_flags),
) -> ExternalSearchResponse:
    """
    Search external sources (Vivino + wine API) for wines to import.

    Results are normalized to cellar conventions and deduplicated.
    """
    if not flags.feature_external_search:
        raise HTTPException(status_code=404, detail="External search is disabled")
    if not q or not q.strip():
        raise HTTPException(status_code=400, detail="Search query (q) is required")

    query = q.strip()
    try:
        results = await service.search(query, vintage=vintage, region=region, limit=limit)
    except Exception as e:
        logger.error(f"External search failed for '{query}': {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to search external wine databases")

    return ExternalSearchResponse(results=results, query=query, count=len(results))


@router.get("/external/{source}/{external_id}", response_model=ExternalWine)
async def get_external_details(
    source: str,
    external_id: str,
    service: WineApiService = Depends(get_wine_api_service),
    flags: FeatureFlags = Depends(get_feature_flags),
) -> ExternalWine:
    """Detailed record for one external result."""
    if not flags.feature_external_search:
        raise HTTPException(status_code=404, detail="External search is disabled")

    details = await service.get_wine_details(external_id, source)
    if details is None:
        raise HTTPException(status_code=404, detail="External wine not found")
    return details


@router.get("/api-stats", response_model=LookupStats)
async def get_api_stats(service: WineApiService = Depends(get_wine_api_service)) -> LookupStats:
    """Outbound lookup request counter."""
    return service.request_stats()


# === Single wine ===


@router.get("/{wine_id}", response_model=Wine)
async def get_wine(wine_id: str, repo: WineRepository = Depends(get_wine_repository)) -> Wine:
    return _get_wine_or_404(repo, wine_id)


@router.post("", response_model=Wine, status_code=201)
async def create_wine(data: WineCreate, repo: WineRepository = Depends(get_wine_repository)) -> Wine:
    """Add a bottle to the cellar. A rack_slot must be a free slot label."""
    try:
        return repo.create(data)
    except (RackSlotNotFoundError, RackSlotOccupiedError) as e:
        raise _rack_error(e)
    except Exception as e:
        logger.error(f"Error creating wine: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.put("/{wine_id}", response_model=Wine)
async def update_wine(
    wine_id: str,
    changes: WineUpdate,
    repo: WineRepository = Depends(get_wine_repository),
) -> Wine:
    """
    Partially update a wine.

    Setting consumption_status to Consumed empties its rack slot.
    """
    try:
        wine = repo.update(wine_id, changes)
    except (RackSlotNotFoundError, RackSlotOccupiedError) as e:
        raise _rack_error(e)
    except Exception as e:
        logger.error(f"Error updating wine {wine_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")

    if wine is None:
        raise HTTPException(status_code=404, detail="Wine not found")
    return wine


@router.post("/{wine_id}/consume", response_model=Wine)
async def consume_wine(
    wine_id: str,
    body: Optional[ConsumeRequest] = None,
    repo: WineRepository = Depends(get_wine_repository),
) -> Wine:
    """Mark a bottle as drunk and take it out of the rack."""
    wine = _get_wine_or_404(repo, wine_id)
    if wine.consumption_status == ConsumptionStatus.CONSUMED:
        raise HTTPException(status_code=400, detail="Wine is already consumed")

    consumed_date = body.consumed_date if body else None
    try:
        return repo.mark_consumed(wine_id, consumed_date)
    except Exception as e:
        logger.error(f"Error consuming wine {wine_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/{wine_id}", status_code=204)
async def delete_wine(
    wine_id: str,
    repo: WineRepository = Depends(get_wine_repository),
    image_repo: ImageRepository = Depends(get_image_repository),
    storage: ImageStorage = Depends(get_image_storage),
) -> Response:
    """Delete a wine with its images, memories and pairings."""
    _get_wine_or_404(repo, wine_id)

    try:
        images = image_repo.find_by_wine(wine_id)
        repo.delete(wine_id)
        for image in images:
            storage.delete(image.filename)
    except Exception as e:
        logger.error(f"Error deleting wine {wine_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")

    return Response(status_code=204)


# === Pairings and enrichment ===


@router.get("/{wine_id}/food-pairings", response_model=PairingSuggestions)
async def suggest_food_pairings(
    wine_id: str,
    repo: WineRepository = Depends(get_wine_repository),
    pairing_service: PairingService = Depends(get_pairing_service),
    flags: FeatureFlags = Depends(get_feature_flags),
) -> PairingSuggestions:
    """Rule-based pairing suggestions from color and grapes."""
    if not flags.feature_pairing_suggestions:
        raise HTTPException(status_code=404, detail="Pairing suggestions are disabled")

    wine = _get_wine_or_404(repo, wine_id)
    return PairingSuggestions(
        wine_id=wine.id,
        wine_name=wine.name,
        suggestions=pairing_service.suggest(wine.color, wine.grape_varieties),
    )


@router.post("/{wine_id}/auto-populate", response_model=AutoPopulateResponse)
async def auto_populate_wine(
    wine_id: str,
    repo: WineRepository = Depends(get_wine_repository),
    service: WineApiService = Depends(get_wine_api_service),
    flags: FeatureFlags = Depends(get_feature_flags),
) -> AutoPopulateResponse:
    """
    Fill empty fields from the best external match.

    Only description, rating, food_pairings and price/currency are
    touched, and only when currently empty.
    """
    if not flags.feature_auto_populate:
        raise HTTPException(status_code=404, detail="Auto-populate is disabled")

    wine = _get_wine_or_404(repo, wine_id)
    query = " ".join(str(part) for part in (wine.name, wine.vineyard, wine.vintage_year) if part)

    try:
        results = await service.search(query, limit=1)
    except Exception as e:
        logger.error(f"Auto-populate search failed for wine {wine_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to auto-populate wine data")

    if not results:
        return AutoPopulateResponse(
            message="No external data found for this wine",
            populated=False,
            wine=wine,
        )

    best = results[0]
    changes: dict = {}
    if not wine.description and best.description:
        changes["description"] = best.description
    if wine.rating is None and best.rating:
        changes["rating"] = int(best.rating)
    if not wine.food_pairings and best.food_pairings:
        changes["food_pairings"] = best.food_pairings
    if wine.price is None and best.price:
        changes["price"] = best.price
        changes["currency"] = best.currency or "USD"

    if not changes:
        return AutoPopulateResponse(
            message="Wine already has all available details",
            populated=False,
            wine=wine,
            source=best.source,
        )

    try:
        updated = repo.update(wine_id, WineUpdate(**changes))
    except Exception as e:
        logger.error(f"Error saving auto-populated data for wine {wine_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")

    logger.info(f"Auto-populated wine {wine_id} from {best.source.value}: {sorted(changes)}")
    return AutoPopulateResponse(
        message="Wine data auto-populated successfully",
        populated=True,
        updated_fields=list(changes),
        wine=updated,
        source=best.source,
    )
