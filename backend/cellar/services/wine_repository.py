"""
SQLite repository for cellar wines.

Handles CRUD, filtered listing, and dashboard aggregations. Rack slot
bookkeeping happens in the same transaction as the wine write:
- a wine that is (or becomes) Consumed never holds a rack slot
- assigning rack_slot occupies that slot and frees the previous one
"""

import logging
import sqlite3
import uuid
from collections import Counter
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from cellar.db import BaseRepository, dump_json_list, load_json_list, utc_now
from cellar.models import (
    ConsumptionStatistics,
    ConsumptionStatus,
    Wine,
    WineCreate,
    WineFilters,
    WineStatistics,
    WineUpdate,
)
from cellar.services.rack_repository import occupy_slot, release_wine_slots

logger = logging.getLogger(__name__)

JSON_LIST_COLUMNS = ("grape_varieties", "food_pairings")
SEARCH_COLUMNS = ("name", "vineyard", "region", "grape_varieties", "description", "personal_notes")


def _to_db(value: Any) -> Any:
    """Convert a model value into something sqlite3 can bind."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    return value


class WineRepository(BaseRepository):
    """SQLite repository for wines."""

    def create(self, data: WineCreate) -> Wine:
        """Insert a wine. Raises RackSlotNotFoundError / RackSlotOccupiedError for bad slots."""
        wine_id = str(uuid.uuid4())
        now = utc_now()
        consumed = data.consumption_status == ConsumptionStatus.CONSUMED

        with self._transaction() as cursor:
            cursor.execute("""
                INSERT INTO wines
                    (id, name, vineyard, region, color, grape_varieties, price, currency,
                     vintage_year, date_added, consumption_status, date_consumed,
                     description, personal_notes, rating, food_pairings, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                wine_id,
                data.name,
                data.vineyard,
                data.region,
                data.color.value,
                dump_json_list(data.grape_varieties),
                data.price,
                data.currency.upper(),
                data.vintage_year,
                now,
                data.consumption_status.value,
                now if consumed else None,
                data.description,
                data.personal_notes,
                data.rating,
                dump_json_list(data.food_pairings),
                now,
                now,
            ))

            if data.rack_slot and not consumed:
                slot_id = occupy_slot(cursor, data.rack_slot, wine_id)
                cursor.execute("UPDATE wines SET rack_slot = ? WHERE id = ?", (slot_id, wine_id))

        logger.info(f"Added wine {wine_id}: {data.name} ({data.vineyard})")
        return self.find_by_id(wine_id)

    def find_by_id(self, wine_id: str) -> Optional[Wine]:
        cursor = self._get_connection().cursor()
        cursor.execute("SELECT * FROM wines WHERE id = ?", (wine_id,))
        row = cursor.fetchone()
        return self._row_to_wine(row) if row else None

    def find_all(
        self,
        filters: Optional[WineFilters] = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[Wine], int]:
        """
        Filtered, paginated listing ordered newest first.

        Returns:
            (wines on the requested page, total matching count)
        """
        where, params = self._build_where(filters or WineFilters())
        cursor = self._get_connection().cursor()

        cursor.execute(f"SELECT COUNT(*) FROM wines {where}", params)
        total = cursor.fetchone()[0]

        offset = (page - 1) * limit
        cursor.execute(
            f"SELECT * FROM wines {where} ORDER BY date_added DESC, rowid DESC LIMIT ? OFFSET ?",
            params + [limit, offset],
        )
        return [self._row_to_wine(row) for row in cursor.fetchall()], total

    def _build_where(self, filters: WineFilters) -> tuple[str, list]:
        clauses: list[str] = []
        params: list = []

        if filters.search:
            term = f"%{filters.search.strip()}%"
            clauses.append("(" + " OR ".join(f"{col} LIKE ?" for col in SEARCH_COLUMNS) + ")")
            params.extend([term] * len(SEARCH_COLUMNS))
        if filters.color is not None:
            clauses.append("color = ?")
            params.append(filters.color.value)
        if filters.region:
            clauses.append("region LIKE ?")
            params.append(f"%{filters.region.strip()}%")
        if filters.vintage_year_min is not None:
            clauses.append("vintage_year >= ?")
            params.append(filters.vintage_year_min)
        if filters.vintage_year_max is not None:
            clauses.append("vintage_year <= ?")
            params.append(filters.vintage_year_max)
        if filters.price_min is not None:
            clauses.append("price >= ?")
            params.append(filters.price_min)
        if filters.price_max is not None:
            clauses.append("price <= ?")
            params.append(filters.price_max)
        if filters.rating_min is not None:
            clauses.append("rating >= ?")
            params.append(filters.rating_min)
        if filters.rating_max is not None:
            clauses.append("rating <= ?")
            params.append(filters.rating_max)
        if filters.consumption_status is not None:
            clauses.append("consumption_status = ?")
            params.append(filters.consumption_status.value)
        if filters.rack_slot:
            clauses.append("rack_slot LIKE ?")
            params.append(f"%{filters.rack_slot.strip()}%")

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        return where, params

    def update(self, wine_id: str, changes: WineUpdate) -> Optional[Wine]:
        """
        Apply the fields that were explicitly set on `changes`.

        Returns the updated wine, or None if it doesn't exist.
        """
        current = self.find_by_id(wine_id)
        if current is None:
            return None

        fields = changes.model_dump(exclude_unset=True)
        new_status = fields.get("consumption_status") or current.consumption_status

        with self._transaction() as cursor:
            if new_status == ConsumptionStatus.CONSUMED:
                release_wine_slots(cursor, wine_id)
                fields["rack_slot"] = None
                if "date_consumed" not in fields and current.date_consumed is None:
                    fields["date_consumed"] = utc_now()
            elif "rack_slot" in fields:
                if fields["rack_slot"]:
                    fields["rack_slot"] = occupy_slot(cursor, fields["rack_slot"], wine_id)
                else:
                    release_wine_slots(cursor, wine_id)
                    fields["rack_slot"] = None

            if "currency" in fields:
                fields["currency"] = fields["currency"].upper()

            updates = []
            params = []
            for column, value in fields.items():
                updates.append(f"{column} = ?")
                if column in JSON_LIST_COLUMNS:
                    params.append(dump_json_list(value))
                else:
                    params.append(_to_db(value))

            updates.append("updated_at = ?")
            params.append(utc_now())
            params.append(wine_id)

            cursor.execute(f"""
                UPDATE wines
                SET {', '.join(updates)}
                WHERE id = ?
            """, tuple(params))

        logger.info(f"Updated wine {wine_id}: {sorted(fields)}")
        return self.find_by_id(wine_id)

    def mark_consumed(self, wine_id: str, consumed_date: Optional[datetime] = None) -> Optional[Wine]:
        """Mark a wine Consumed and take it out of the rack."""
        when = (consumed_date or datetime.now(timezone.utc)).isoformat()
        with self._transaction() as cursor:
            release_wine_slots(cursor, wine_id)
            cursor.execute("""
                UPDATE wines
                SET consumption_status = ?, date_consumed = ?, rack_slot = NULL, updated_at = ?
                WHERE id = ?
            """, (ConsumptionStatus.CONSUMED.value, when, utc_now(), wine_id))
            if cursor.rowcount == 0:
                return None

        logger.info(f"Wine {wine_id} consumed on {when}")
        return self.find_by_id(wine_id)

    def delete(self, wine_id: str) -> bool:
        """Delete a wine. Images, memories and pairings go with it (ON DELETE CASCADE)."""
        with self._transaction() as cursor:
            release_wine_slots(cursor, wine_id)
            cursor.execute("DELETE FROM wines WHERE id = ?", (wine_id,))
            deleted = cursor.rowcount > 0

        if deleted:
            logger.info(f"Deleted wine {wine_id}")
        return deleted

    def count(self) -> int:
        cursor = self._get_connection().cursor()
        cursor.execute("SELECT COUNT(*) FROM wines")
        return cursor.fetchone()[0]

    def get_statistics(self) -> WineStatistics:
        """Cellar overview: status counts, color breakdown, top regions."""
        cursor = self._get_connection().cursor()

        cursor.execute("""
            SELECT consumption_status, COUNT(*) AS n
            FROM wines
            GROUP BY consumption_status
        """)
        by_status = {row["consumption_status"]: row["n"] for row in cursor.fetchall()}

        cursor.execute("SELECT color, COUNT(*) AS n FROM wines GROUP BY color ORDER BY n DESC")
        colors = {row["color"]: row["n"] for row in cursor.fetchall()}

        cursor.execute("""
            SELECT region, COUNT(*) AS n
            FROM wines
            GROUP BY region
            ORDER BY n DESC, region ASC
            LIMIT 10
        """)
        regions = {row["region"]: row["n"] for row in cursor.fetchall()}

        return WineStatistics(
            total=sum(by_status.values()),
            available=by_status.get(ConsumptionStatus.AVAILABLE.value, 0),
            consumed=by_status.get(ConsumptionStatus.CONSUMED.value, 0),
            reserved=by_status.get(ConsumptionStatus.RESERVED.value, 0),
            colors=colors,
            regions=regions,
        )

    def get_consumption_statistics(self, now: Optional[datetime] = None) -> ConsumptionStatistics:
        """Drinking history: counts this month/year, average rating, favorites."""
        now = now or datetime.now(timezone.utc)
        cursor = self._get_connection().cursor()
        cursor.execute(
            "SELECT region, color, rating, date_consumed FROM wines WHERE consumption_status = ?",
            (ConsumptionStatus.CONSUMED.value,),
        )
        rows = cursor.fetchall()

        this_month = 0
        this_year = 0
        for row in rows:
            consumed_at = _parse_timestamp(row["date_consumed"])
            if consumed_at is None:
                continue
            if consumed_at.year == now.year:
                this_year += 1
                if consumed_at.month == now.month:
                    this_month += 1

        ratings = [row["rating"] for row in rows if row["rating"] is not None]
        regions = Counter(row["region"] for row in rows)
        colors = Counter(row["color"] for row in rows)

        return ConsumptionStatistics(
            total_consumed=len(rows),
            consumed_this_month=this_month,
            consumed_this_year=this_year,
            average_rating=round(sum(ratings) / len(ratings), 1) if ratings else None,
            favorite_region=regions.most_common(1)[0][0] if regions else None,
            favorite_color=colors.most_common(1)[0][0] if colors else None,
        )

    def _row_to_wine(self, row: sqlite3.Row) -> Wine:
        data = dict(row)
        for column in JSON_LIST_COLUMNS:
            data[column] = load_json_list(data.get(column))
        return Wine(**data)


def _parse_timestamp(raw: Optional[str]) -> Optional[datetime]:
    if not raw:
        return None
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        return None
