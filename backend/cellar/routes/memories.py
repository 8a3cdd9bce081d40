"""
Tasting memory endpoints.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Response

from cellar.dependencies import (
    get_image_repository,
    get_image_storage,
    get_memory_repository,
    get_wine_repository,
)
from cellar.models import Memory, MemoryCreate, MemorySummary, MemoryUpdate
from cellar.services.image_processor import ImageStorage
from cellar.services.image_repository import ImageRepository
from cellar.services.memory_repository import MemoryRepository
from cellar.services.wine_repository import WineRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/memories")


@router.get("/wine/{wine_id}", response_model=list[Memory])
async def list_wine_memories(
    wine_id: str,
    wine_repo: WineRepository = Depends(get_wine_repository),
    memory_repo: MemoryRepository = Depends(get_memory_repository),
) -> list[Memory]:
    """Memories for one wine, most recent first."""
    if wine_repo.find_by_id(wine_id) is None:
        raise HTTPException(status_code=404, detail="Wine not found")
    return memory_repo.find_by_wine(wine_id)


@router.get("/stats/summary", response_model=MemorySummary)
async def get_memory_summary(
    memory_repo: MemoryRepository = Depends(get_memory_repository),
) -> MemorySummary:
    """Totals, average rating, and the five latest memories."""
    try:
        return memory_repo.get_summary()
    except Exception as e:
        logger.error(f"Error computing memory summary: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{memory_id}", response_model=Memory)
async def get_memory(
    memory_id: str,
    memory_repo: MemoryRepository = Depends(get_memory_repository),
) -> Memory:
    memory = memory_repo.find_by_id(memory_id)
    if memory is None:
        raise HTTPException(status_code=404, detail="Memory not found")
    return memory


@router.post("", response_model=Memory, status_code=201)
async def create_memory(
    data: MemoryCreate,
    wine_repo: WineRepository = Depends(get_wine_repository),
    memory_repo: MemoryRepository = Depends(get_memory_repository),
) -> Memory:
    if wine_repo.find_by_id(data.wine_id) is None:
        raise HTTPException(status_code=404, detail="Wine not found")

    try:
        return memory_repo.create(data)
    except Exception as e:
        logger.error(f"Error creating memory for wine {data.wine_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.put("/{memory_id}", response_model=Memory)
async def update_memory(
    memory_id: str,
    changes: MemoryUpdate,
    memory_repo: MemoryRepository = Depends(get_memory_repository),
) -> Memory:
    memory = memory_repo.update(memory_id, changes)
    if memory is None:
        raise HTTPException(status_code=404, detail="Memory not found")
    return memory


@router.delete("/{memory_id}", status_code=204)
async def delete_memory(
    memory_id: str,
    memory_repo: MemoryRepository = Depends(get_memory_repository),
    image_repo: ImageRepository = Depends(get_image_repository),
    storage: ImageStorage = Depends(get_image_storage),
) -> Response:
    """Delete a memory and its photos."""
    if memory_repo.find_by_id(memory_id) is None:
        raise HTTPException(status_code=404, detail="Memory not found")

    images = image_repo.find_by_memory(memory_id)
    memory_repo.delete(memory_id)
    for image in images:
        storage.delete(image.filename)

    logger.info(f"Deleted memory {memory_id} ({len(images)} image(s))")
    return Response(status_code=204)
