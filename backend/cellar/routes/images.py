"""
Image upload and serving endpoints.

Uploads are validated (count, type, size), re-encoded to WebP by
image_processor, written to UPLOAD_DIR, and recorded in `images`.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, UploadFile
from fastapi.responses import FileResponse

from cellar.config import Config
from cellar.dependencies import (
    get_image_repository,
    get_image_storage,
    get_memory_repository,
    get_wine_repository,
)
from cellar.models import ImageType, ImageUpdate, ImageUploadResponse, WineImage
from cellar.services.image_processor import ImageStorage, InvalidImageError, compress_image
from cellar.services.image_repository import ImageRepository
from cellar.services.memory_repository import MemoryRepository
from cellar.services.wine_repository import WineRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/images")


async def _read_validated_uploads(files: Optional[list[UploadFile]]) -> list[tuple[UploadFile, bytes]]:
    """Check count, content type and size before any processing happens."""
    if not files:
        raise HTTPException(status_code=400, detail="No images uploaded")
    if len(files) > Config.MAX_FILES_PER_UPLOAD:
        raise HTTPException(
            status_code=400,
            detail=f"Too many files. Maximum {Config.MAX_FILES_PER_UPLOAD} images per upload.",
        )

    uploads = []
    for upload in files:
        if not upload.content_type or not upload.content_type.startswith("image/"):
            raise HTTPException(
                status_code=400,
                detail=f"Invalid file type for {upload.filename}. Only image files are allowed.",
            )
        data = await upload.read()
        if len(data) > Config.MAX_IMAGE_SIZE_BYTES:
            raise HTTPException(
                status_code=400,
                detail=f"{upload.filename} is too large. Maximum size: {Config.MAX_IMAGE_SIZE_MB}MB",
            )
        uploads.append((upload, data))
    return uploads


async def _store_uploads(
    files: Optional[list[UploadFile]],
    wine_id: str,
    image_type: ImageType,
    memory_id: Optional[str],
    image_repo: ImageRepository,
    storage: ImageStorage,
) -> list[WineImage]:
    uploads = await _read_validated_uploads(files)

    # Decode everything first so one bad file leaves nothing behind
    try:
        processed = [(upload, compress_image(data)) for upload, data in uploads]
    except InvalidImageError as e:
        raise HTTPException(status_code=400, detail=str(e))

    saved: list[WineImage] = []
    written: list[str] = []
    try:
        for upload, image in processed:
            filename = storage.save(image)
            written.append(filename)
            saved.append(image_repo.create(
                wine_id=wine_id,
                filename=filename,
                image=image,
                original_name=upload.filename,
                image_type=image_type,
                memory_id=memory_id,
            ))
    except Exception as e:
        logger.error(f"Error storing images for wine {wine_id}: {e}", exc_info=True)
        for image in saved:
            image_repo.delete(image.id)
        for filename in written:
            storage.delete(filename)
        raise HTTPException(status_code=500, detail="Failed to process images")

    logger.info(f"Stored {len(saved)} image(s) for wine {wine_id} (type={image_type.value})")
    return saved


@router.post("/wine/{wine_id}", response_model=ImageUploadResponse, status_code=201)
async def upload_wine_images(
    wine_id: str,
    images: Optional[list[UploadFile]] = File(None, description="Up to 5 image files, 10MB each"),
    image_type: ImageType = Form(ImageType.MEMORY),
    memory_id: Optional[str] = Form(None),
    wine_repo: WineRepository = Depends(get_wine_repository),
    memory_repo: MemoryRepository = Depends(get_memory_repository),
    image_repo: ImageRepository = Depends(get_image_repository),
    storage: ImageStorage = Depends(get_image_storage),
) -> ImageUploadResponse:
    """Upload label or memory photos for a wine."""
    if wine_repo.find_by_id(wine_id) is None:
        raise HTTPException(status_code=404, detail="Wine not found")

    if memory_id:
        memory = memory_repo.find_by_id(memory_id)
        if memory is None:
            raise HTTPException(status_code=404, detail="Memory not found")
        if memory.wine_id != wine_id:
            raise HTTPException(status_code=400, detail="Memory belongs to a different wine")

    saved = await _store_uploads(images, wine_id, image_type, memory_id or None, image_repo, storage)
    return ImageUploadResponse(message=f"{len(saved)} image(s) uploaded successfully", images=saved)


@router.post("/memory/{memory_id}", response_model=ImageUploadResponse, status_code=201)
async def upload_memory_images(
    memory_id: str,
    images: Optional[list[UploadFile]] = File(None),
    image_type: ImageType = Form(ImageType.MEMORY),
    memory_repo: MemoryRepository = Depends(get_memory_repository),
    image_repo: ImageRepository = Depends(get_image_repository),
    storage: ImageStorage = Depends(get_image_storage),
) -> ImageUploadResponse:
    """Upload photos for a memory (attached to the memory's wine too)."""
    memory = memory_repo.find_by_id(memory_id)
    if memory is None:
        raise HTTPException(status_code=404, detail="Memory not found")

    saved = await _store_uploads(images, memory.wine_id, image_type, memory_id, image_repo, storage)
    return ImageUploadResponse(message=f"{len(saved)} image(s) uploaded successfully", images=saved)


@router.get("/wine/{wine_id}", response_model=list[WineImage])
async def list_wine_images(
    wine_id: str,
    image_repo: ImageRepository = Depends(get_image_repository),
) -> list[WineImage]:
    return image_repo.find_by_wine(wine_id)


@router.get("/memory/{memory_id}", response_model=list[WineImage])
async def list_memory_images(
    memory_id: str,
    image_repo: ImageRepository = Depends(get_image_repository),
) -> list[WineImage]:
    return image_repo.find_by_memory(memory_id)


@router.get("/{image_id}")
async def serve_image(
    image_id: str,
    image_repo: ImageRepository = Depends(get_image_repository),
    storage: ImageStorage = Depends(get_image_storage),
) -> FileResponse:
    """Stream the stored WebP file."""
    image = image_repo.find_by_id(image_id)
    if image is None:
        raise HTTPException(status_code=404, detail="Image not found")

    path = storage.path_for(image.filename)
    if not path.exists():
        logger.warning(f"Image {image_id} has no file at {path}")
        raise HTTPException(status_code=404, detail="Image file not found")

    return FileResponse(
        path,
        media_type=image.mime_type,
        headers={"Cache-Control": f"public, max-age={Config.IMAGE_CACHE_SECONDS}"},
    )


@router.get("/{image_id}/info", response_model=WineImage)
async def get_image_info(
    image_id: str,
    image_repo: ImageRepository = Depends(get_image_repository),
) -> WineImage:
    image = image_repo.find_by_id(image_id)
    if image is None:
        raise HTTPException(status_code=404, detail="Image not found")
    return image


@router.put("/{image_id}", response_model=WineImage)
async def update_image(
    image_id: str,
    changes: ImageUpdate,
    image_repo: ImageRepository = Depends(get_image_repository),
) -> WineImage:
    """Update image_type, alt_text or description."""
    image = image_repo.update(image_id, changes)
    if image is None:
        raise HTTPException(status_code=404, detail="Image not found")
    return image


@router.delete("/{image_id}", status_code=204)
async def delete_image(
    image_id: str,
    image_repo: ImageRepository = Depends(get_image_repository),
    storage: ImageStorage = Depends(get_image_storage),
) -> Response:
    image = image_repo.find_by_id(image_id)
    if image is None:
        raise HTTPException(status_code=404, detail="Image not found")

    image_repo.delete(image_id)
    storage.delete(image.filename)
    logger.info(f"Deleted image {image_id}")
    return Response(status_code=204)
