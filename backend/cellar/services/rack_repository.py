"""
Rack slot repository.

The rack is a fixed 20x20 grid seeded by migration 002. A slot is
occupied exactly when it references a wine; wines.rack_slot mirrors
the label of the slot holding the bottle. The cursor-level helpers
below keep both sides in step and are shared with WineRepository so
wine updates and rack moves commit in the same transaction.
"""

import logging
import sqlite3
from typing import Optional

from cellar.db import BaseRepository, utc_now
from cellar.models import RackSlot, RackSummary

logger = logging.getLogger(__name__)


class RackSlotNotFoundError(Exception):
    """Slot label does not exist in the rack."""

    def __init__(self, slot_id: str):
        super().__init__(f"Unknown rack slot: {slot_id}")
        self.slot_id = slot_id


class RackSlotOccupiedError(Exception):
    """Slot already holds a different wine."""

    def __init__(self, slot_id: str, wine_id: str):
        super().__init__(f"Rack slot {slot_id} is occupied")
        self.slot_id = slot_id
        self.wine_id = wine_id


def normalize_slot_id(slot_id: str) -> str:
    """'c7 ' -> 'C7'."""
    return slot_id.strip().upper()


def release_wine_slots(cursor: sqlite3.Cursor, wine_id: str) -> None:
    """Free every slot held by wine_id."""
    cursor.execute("""
        UPDATE rack_slots
        SET wine_id = NULL, is_occupied = 0, last_updated = ?, updated_at = ?
        WHERE wine_id = ?
    """, (utc_now(), utc_now(), wine_id))


def occupy_slot(cursor: sqlite3.Cursor, slot_id: str, wine_id: str) -> str:
    """
    Put wine_id into slot_id, releasing whatever slot it held before.

    Returns the normalized slot label.

    Raises:
        RackSlotNotFoundError: slot label is not part of the rack
        RackSlotOccupiedError: slot holds another wine
    """
    slot_id = normalize_slot_id(slot_id)
    cursor.execute("SELECT wine_id FROM rack_slots WHERE slot_id = ?", (slot_id,))
    row = cursor.fetchone()
    if row is None:
        raise RackSlotNotFoundError(slot_id)
    if row["wine_id"] and row["wine_id"] != wine_id:
        raise RackSlotOccupiedError(slot_id, row["wine_id"])

    release_wine_slots(cursor, wine_id)
    now = utc_now()
    cursor.execute("""
        UPDATE rack_slots
        SET wine_id = ?, is_occupied = 1, last_updated = ?, updated_at = ?
        WHERE slot_id = ?
    """, (wine_id, now, now, slot_id))
    return slot_id


class RackRepository(BaseRepository):
    """SQLite repository for rack slots."""

    _SELECT = """
        SELECT r.*, w.name AS wine_name
        FROM rack_slots r
        LEFT JOIN wines w ON w.id = r.wine_id
    """

    def list_slots(self) -> list[RackSlot]:
        """All slots, row by row."""
        cursor = self._get_connection().cursor()
        cursor.execute(f"{self._SELECT} ORDER BY r.rack_number, r.row, r.position")
        return [self._row_to_slot(row) for row in cursor.fetchall()]

    def find_by_slot_id(self, slot_id: str) -> Optional[RackSlot]:
        cursor = self._get_connection().cursor()
        cursor.execute(f"{self._SELECT} WHERE r.slot_id = ?", (normalize_slot_id(slot_id),))
        row = cursor.fetchone()
        return self._row_to_slot(row) if row else None

    def summary(self) -> RackSummary:
        cursor = self._get_connection().cursor()
        cursor.execute("""
            SELECT COUNT(*) AS total,
                   COALESCE(SUM(CASE WHEN is_occupied THEN 1 ELSE 0 END), 0) AS occupied
            FROM rack_slots
        """)
        row = cursor.fetchone()
        return RackSummary(
            total=row["total"],
            occupied=row["occupied"],
            available=row["total"] - row["occupied"],
        )

    def assign(self, slot_id: str, wine_id: str) -> RackSlot:
        """Place a wine in a slot and mirror the label onto the wine."""
        with self._transaction() as cursor:
            slot_id = occupy_slot(cursor, slot_id, wine_id)
            cursor.execute(
                "UPDATE wines SET rack_slot = ?, updated_at = ? WHERE id = ?",
                (slot_id, utc_now(), wine_id),
            )
        logger.info(f"Wine {wine_id} placed in rack slot {slot_id}")
        return self.find_by_slot_id(slot_id)

    def clear(self, slot_id: str) -> RackSlot:
        """Empty a slot and clear rack_slot on the wine that held it."""
        slot_id = normalize_slot_id(slot_id)
        with self._transaction() as cursor:
            cursor.execute("SELECT wine_id FROM rack_slots WHERE slot_id = ?", (slot_id,))
            row = cursor.fetchone()
            if row is None:
                raise RackSlotNotFoundError(slot_id)

            if row["wine_id"]:
                release_wine_slots(cursor, row["wine_id"])
                cursor.execute(
                    "UPDATE wines SET rack_slot = NULL, updated_at = ? WHERE id = ?",
                    (utc_now(), row["wine_id"]),
                )
                logger.info(f"Wine {row['wine_id']} removed from rack slot {slot_id}")
        return self.find_by_slot_id(slot_id)

    def _row_to_slot(self, row: sqlite3.Row) -> RackSlot:
        return RackSlot(
            slot_id=row["slot_id"],
            wine_id=row["wine_id"],
            wine_name=row["wine_name"],
            rack_number=row["rack_number"],
            row=row["row"],
            position=row["position"],
            x_coordinate=row["x_coordinate"],
            y_coordinate=row["y_coordinate"],
            width=row["width"],
            height=row["height"],
            is_occupied=bool(row["is_occupied"]),
            last_updated=row["last_updated"],
        )
