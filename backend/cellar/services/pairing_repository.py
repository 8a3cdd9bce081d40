"""
SQLite repository for food pairings.
"""

import logging
import sqlite3
import uuid
from typing import Optional

from cellar.db import BaseRepository, utc_now
from cellar.models import (
    CategoryCount,
    FoodPairing,
    FoodPairingCreate,
    FoodPairingFilters,
    FoodPairingUpdate,
    PairingCategory,
)

logger = logging.getLogger(__name__)

SUGGESTION_SOURCE = "wine_api_service"


class DuplicatePairingError(Exception):
    """A wine already has a pairing with this food item."""

    def __init__(self, wine_id: str, food_item: str):
        super().__init__(f"Food pairing '{food_item}' already exists for wine {wine_id}")
        self.wine_id = wine_id
        self.food_item = food_item


class FoodPairingRepository(BaseRepository):
    """SQLite repository for food pairings."""

    _SELECT = """
        SELECT fp.*, w.name AS wine_name
        FROM food_pairings fp
        JOIN wines w ON w.id = fp.wine_id
    """

    def create(self, data: FoodPairingCreate) -> FoodPairing:
        pairing_id = str(uuid.uuid4())
        now = utc_now()
        try:
            with self._transaction() as cursor:
                cursor.execute("""
                    INSERT INTO food_pairings
                        (id, wine_id, food_item, category, description, user_rating,
                         is_suggested, source, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """, (
                    pairing_id,
                    data.wine_id,
                    data.food_item,
                    data.category.value,
                    data.description,
                    data.user_rating,
                    int(data.is_suggested),
                    data.source,
                    now,
                    now,
                ))
        except sqlite3.IntegrityError as e:
            if "UNIQUE" in str(e):
                raise DuplicatePairingError(data.wine_id, data.food_item) from e
            raise
        return self.find_by_id(pairing_id)

    def add_suggestions(self, wine_id: str, food_items: list[str]) -> list[FoodPairing]:
        """
        Insert suggested pairings, skipping items the wine already has.

        Returns only the newly created rows.
        """
        created_ids = []
        now = utc_now()
        with self._transaction() as cursor:
            for food_item in food_items:
                pairing_id = str(uuid.uuid4())
                cursor.execute("""
                    INSERT OR IGNORE INTO food_pairings
                        (id, wine_id, food_item, category, is_suggested, source, created_at, updated_at)
                    VALUES (?, ?, ?, ?, 1, ?, ?, ?)
                """, (pairing_id, wine_id, food_item, PairingCategory.OTHER.value, SUGGESTION_SOURCE, now, now))
                if cursor.rowcount:
                    created_ids.append(pairing_id)

        logger.info(f"Added {len(created_ids)}/{len(food_items)} suggested pairings for wine {wine_id}")
        return [self.find_by_id(pairing_id) for pairing_id in created_ids]

    def find_by_id(self, pairing_id: str) -> Optional[FoodPairing]:
        cursor = self._get_connection().cursor()
        cursor.execute(f"{self._SELECT} WHERE fp.id = ?", (pairing_id,))
        row = cursor.fetchone()
        return self._row_to_pairing(row) if row else None

    def find_all(
        self,
        filters: Optional[FoodPairingFilters] = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[FoodPairing], int]:
        filters = filters or FoodPairingFilters()
        clauses = []
        params: list = []
        if filters.wine_id:
            clauses.append("fp.wine_id = ?")
            params.append(filters.wine_id)
        if filters.category is not None:
            clauses.append("fp.category = ?")
            params.append(filters.category.value)
        if filters.search:
            term = f"%{filters.search.strip()}%"
            clauses.append("(fp.food_item LIKE ? OR fp.description LIKE ? OR w.name LIKE ?)")
            params.extend([term, term, term])
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        cursor = self._get_connection().cursor()
        cursor.execute(
            f"SELECT COUNT(*) FROM food_pairings fp JOIN wines w ON w.id = fp.wine_id {where}",
            params,
        )
        total = cursor.fetchone()[0]

        cursor.execute(
            f"{self._SELECT} {where} ORDER BY fp.created_at DESC, fp.rowid DESC LIMIT ? OFFSET ?",
            params + [limit, (page - 1) * limit],
        )
        return [self._row_to_pairing(row) for row in cursor.fetchall()], total

    def category_counts(self) -> list[CategoryCount]:
        cursor = self._get_connection().cursor()
        cursor.execute("""
            SELECT category, COUNT(*) AS n
            FROM food_pairings
            GROUP BY category
            ORDER BY n DESC, category ASC
        """)
        return [CategoryCount(category=row["category"], count=row["n"]) for row in cursor.fetchall()]

    def update(self, pairing_id: str, changes: FoodPairingUpdate) -> Optional[FoodPairing]:
        fields = changes.model_dump(exclude_unset=True)
        if not fields:
            return self.find_by_id(pairing_id)

        updates = []
        params = []
        for column, value in fields.items():
            updates.append(f"{column} = ?")
            params.append(value.value if isinstance(value, PairingCategory) else value)
        updates.append("updated_at = ?")
        params.append(utc_now())
        params.append(pairing_id)

        current = self.find_by_id(pairing_id)
        if current is None:
            return None
        try:
            with self._transaction() as cursor:
                cursor.execute(f"""
                    UPDATE food_pairings
                    SET {', '.join(updates)}
                    WHERE id = ?
                """, tuple(params))
        except sqlite3.IntegrityError as e:
            if "UNIQUE" in str(e):
                raise DuplicatePairingError(current.wine_id, fields.get("food_item", "")) from e
            raise
        return self.find_by_id(pairing_id)

    def delete(self, pairing_id: str) -> bool:
        with self._transaction() as cursor:
            cursor.execute("DELETE FROM food_pairings WHERE id = ?", (pairing_id,))
            return cursor.rowcount > 0

    def _row_to_pairing(self, row: sqlite3.Row) -> FoodPairing:
        return FoodPairing(
            id=row["id"],
            wine_id=row["wine_id"],
            wine_name=row["wine_name"],
            food_item=row["food_item"],
            category=row["category"],
            description=row["description"],
            user_rating=row["user_rating"],
            is_suggested=bool(row["is_suggested"]),
            source=row["source"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
