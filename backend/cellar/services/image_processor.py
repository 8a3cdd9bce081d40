"""
Image compression and on-disk storage for uploads.

Every upload is re-encoded to WebP, shrunk to fit inside
IMAGE_MAX_DIMENSION x IMAGE_MAX_DIMENSION (never enlarged), and
written to UPLOAD_DIR under a random name.
"""

import io
import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from PIL import Image, ImageOps, UnidentifiedImageError
from pillow_heif import register_heif_opener

from cellar.config import Config

logger = logging.getLogger(__name__)

# Register HEIF/HEIC opener with Pillow
register_heif_opener()

WEBP_MIME_TYPE = "image/webp"


class InvalidImageError(ValueError):
    """Upload could not be decoded as an image."""


@dataclass
class ProcessedImage:
    """Result of compressing an upload."""
    data: bytes
    width: int
    height: int
    mime_type: str = WEBP_MIME_TYPE

    @property
    def size(self) -> int:
        return len(self.data)


def compress_image(
    image_bytes: bytes,
    max_dimension: int = Config.IMAGE_MAX_DIMENSION,
    quality: int = Config.IMAGE_WEBP_QUALITY,
) -> ProcessedImage:
    """
    Re-encode an image as WebP, fitting it inside a max_dimension square.

    Args:
        image_bytes: Raw upload bytes (JPEG, PNG, HEIC, ...)
        max_dimension: Longest allowed side in pixels
        quality: WebP quality (0-100)

    Returns:
        ProcessedImage with WebP bytes and final dimensions

    Raises:
        InvalidImageError: bytes are not a decodable image
    """
    try:
        img = Image.open(io.BytesIO(image_bytes))
        img.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise InvalidImageError(f"Unreadable image: {e}") from e

    # Phone photos carry rotation in EXIF
    img = ImageOps.exif_transpose(img)

    # thumbnail() preserves aspect ratio and never upscales
    if max(img.size) > max_dimension:
        img.thumbnail((max_dimension, max_dimension), Image.Resampling.LANCZOS)

    if img.mode not in ("RGB", "RGBA"):
        img = img.convert("RGBA" if "A" in img.getbands() else "RGB")

    output = io.BytesIO()
    img.save(output, format="WEBP", quality=quality)

    width, height = img.size
    return ProcessedImage(data=output.getvalue(), width=width, height=height)


class ImageStorage:
    """Reads and writes processed images under the upload directory."""

    def __init__(self, upload_dir: Optional[str] = None):
        self.upload_dir = Path(upload_dir or Config.upload_dir())
        self.upload_dir.mkdir(parents=True, exist_ok=True)

    def save(self, image: ProcessedImage) -> str:
        """Write image bytes to a new file. Returns the filename."""
        filename = f"{uuid.uuid4()}.webp"
        (self.upload_dir / filename).write_bytes(image.data)
        logger.debug(f"Stored {filename} ({image.size} bytes, {image.width}x{image.height})")
        return filename

    def path_for(self, filename: str) -> Path:
        return self.upload_dir / Path(filename).name

    def delete(self, filename: str) -> bool:
        """Remove a stored file. Missing files are logged, not raised."""
        path = self.path_for(filename)
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            logger.warning(f"Image file already gone: {path}")
            return False
