"""
SQLite repository for image metadata rows.

Files themselves live in UPLOAD_DIR (see image_processor.ImageStorage).
"""

import logging
import sqlite3
import uuid
from typing import Optional

from cellar.db import BaseRepository, utc_now
from cellar.models import ImageType, ImageUpdate, WineImage
from cellar.services.image_processor import ProcessedImage

logger = logging.getLogger(__name__)


class ImageRepository(BaseRepository):
    """SQLite repository for images."""

    def create(
        self,
        wine_id: str,
        filename: str,
        image: ProcessedImage,
        original_name: Optional[str] = None,
        image_type: ImageType = ImageType.MEMORY,
        memory_id: Optional[str] = None,
    ) -> WineImage:
        image_id = str(uuid.uuid4())
        now = utc_now()
        with self._transaction() as cursor:
            cursor.execute("""
                INSERT INTO images
                    (id, wine_id, memory_id, filename, original_name, mime_type, size,
                     width, height, image_type, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                image_id,
                wine_id,
                memory_id,
                filename,
                original_name,
                image.mime_type,
                image.size,
                image.width,
                image.height,
                image_type.value,
                now,
                now,
            ))
        return self.find_by_id(image_id)

    def find_by_id(self, image_id: str) -> Optional[WineImage]:
        cursor = self._get_connection().cursor()
        cursor.execute("SELECT * FROM images WHERE id = ?", (image_id,))
        row = cursor.fetchone()
        return self._row_to_image(row) if row else None

    def find_by_wine(self, wine_id: str) -> list[WineImage]:
        cursor = self._get_connection().cursor()
        cursor.execute(
            "SELECT * FROM images WHERE wine_id = ? ORDER BY created_at ASC, rowid ASC",
            (wine_id,),
        )
        return [self._row_to_image(row) for row in cursor.fetchall()]

    def find_by_memory(self, memory_id: str) -> list[WineImage]:
        cursor = self._get_connection().cursor()
        cursor.execute(
            "SELECT * FROM images WHERE memory_id = ? ORDER BY created_at ASC, rowid ASC",
            (memory_id,),
        )
        return [self._row_to_image(row) for row in cursor.fetchall()]

    def update(self, image_id: str, changes: ImageUpdate) -> Optional[WineImage]:
        fields = changes.model_dump(exclude_unset=True)
        if "image_type" in fields and fields["image_type"] is None:
            del fields["image_type"]
        if not fields:
            return self.find_by_id(image_id)

        updates = []
        params = []
        for column, value in fields.items():
            updates.append(f"{column} = ?")
            params.append(value.value if isinstance(value, ImageType) else value)
        updates.append("updated_at = ?")
        params.append(utc_now())
        params.append(image_id)

        with self._transaction() as cursor:
            cursor.execute(f"""
                UPDATE images
                SET {', '.join(updates)}
                WHERE id = ?
            """, tuple(params))
            if cursor.rowcount == 0:
                return None
        return self.find_by_id(image_id)

    def delete(self, image_id: str) -> bool:
        with self._transaction() as cursor:
            cursor.execute("DELETE FROM images WHERE id = ?", (image_id,))
            return cursor.rowcount > 0

    def _row_to_image(self, row: sqlite3.Row) -> WineImage:
        return WineImage(
            id=row["id"],
            wine_id=row["wine_id"],
            memory_id=row["memory_id"],
            filename=row["filename"],
            original_name=row["original_name"],
            mime_type=row["mime_type"],
            size=row["size"],
            width=row["width"],
            height=row["height"],
            image_type=row["image_type"],
            alt_text=row["alt_text"],
            description=row["description"],
            url=f"/api/images/{row['id']}",
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
