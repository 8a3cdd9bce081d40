"""
SQLite repository for tasting memories.
"""

import logging
import sqlite3
import uuid
from datetime import datetime, timezone
from typing import Optional

from cellar.db import BaseRepository, dump_json_list, load_json_list, utc_now
from cellar.models import Memory, MemoryCreate, MemorySummary, MemoryUpdate, RecentMemory

logger = logging.getLogger(__name__)

RECENT_MEMORIES_LIMIT = 5


class MemoryRepository(BaseRepository):
    """SQLite repository for memories."""

    def create(self, data: MemoryCreate) -> Memory:
        memory_id = str(uuid.uuid4())
        now = utc_now()
        experienced = (data.date_experienced or datetime.now(timezone.utc)).isoformat()

        with self._transaction() as cursor:
            cursor.execute("""
                INSERT INTO memories
                    (id, wine_id, title, content, date_experienced, location, tags, rating,
                     created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                memory_id,
                data.wine_id,
                data.title,
                data.content,
                experienced,
                data.location,
                dump_json_list(data.tags),
                data.rating,
                now,
                now,
            ))

        logger.info(f"Added memory {memory_id} for wine {data.wine_id}")
        return self.find_by_id(memory_id)

    def find_by_id(self, memory_id: str) -> Optional[Memory]:
        cursor = self._get_connection().cursor()
        cursor.execute("SELECT * FROM memories WHERE id = ?", (memory_id,))
        row = cursor.fetchone()
        return self._row_to_memory(row) if row else None

    def find_by_wine(self, wine_id: str) -> list[Memory]:
        """Memories for a wine, most recent experience first."""
        cursor = self._get_connection().cursor()
        cursor.execute("""
            SELECT * FROM memories
            WHERE wine_id = ?
            ORDER BY date_experienced DESC, created_at DESC
        """, (wine_id,))
        return [self._row_to_memory(row) for row in cursor.fetchall()]

    def update(self, memory_id: str, changes: MemoryUpdate) -> Optional[Memory]:
        fields = changes.model_dump(exclude_unset=True)
        if not fields:
            return self.find_by_id(memory_id)

        updates = []
        params = []
        for column, value in fields.items():
            updates.append(f"{column} = ?")
            if column == "tags":
                params.append(dump_json_list(value))
            elif isinstance(value, datetime):
                params.append(value.isoformat())
            else:
                params.append(value)

        updates.append("updated_at = ?")
        params.append(utc_now())
        params.append(memory_id)

        with self._transaction() as cursor:
            cursor.execute(f"""
                UPDATE memories
                SET {', '.join(updates)}
                WHERE id = ?
            """, tuple(params))
            if cursor.rowcount == 0:
                return None

        return self.find_by_id(memory_id)

    def delete(self, memory_id: str) -> bool:
        """Delete a memory. Its image rows cascade."""
        with self._transaction() as cursor:
            cursor.execute("DELETE FROM memories WHERE id = ?", (memory_id,))
            return cursor.rowcount > 0

    def get_summary(self) -> MemorySummary:
        """Aggregate stats plus the latest few memories."""
        cursor = self._get_connection().cursor()
        cursor.execute("""
            SELECT COUNT(*) AS total,
                   AVG(rating) AS avg_rating,
                   COUNT(DISTINCT wine_id) AS wines
            FROM memories
        """)
        stats = cursor.fetchone()

        cursor.execute("""
            SELECT m.*, w.name AS wine_name
            FROM memories m
            JOIN wines w ON w.id = m.wine_id
            ORDER BY m.date_experienced DESC, m.created_at DESC
            LIMIT ?
        """, (RECENT_MEMORIES_LIMIT,))
        recent = [
            RecentMemory(**self._row_to_memory(row).model_dump(), wine_name=row["wine_name"])
            for row in cursor.fetchall()
        ]

        avg_rating = stats["avg_rating"]
        return MemorySummary(
            total_memories=stats["total"],
            average_rating=round(avg_rating, 1) if avg_rating is not None else None,
            wines_with_memories=stats["wines"],
            recent_memories=recent,
        )

    def _row_to_memory(self, row: sqlite3.Row) -> Memory:
        return Memory(
            id=row["id"],
            wine_id=row["wine_id"],
            title=row["title"],
            content=row["content"],
            date_experienced=row["date_experienced"],
            location=row["location"],
            tags=load_json_list(row["tags"]),
            rating=row["rating"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
