"""Add rack_slots table and seed the 20x20 rack.

Revision ID: 002
Revises: 001
Create Date: 2026-10-18

Rows A-T, positions 1-20. Coordinates are the slot's top-left corner
in the rack diagram (slot width 20, height 80, 5px/10px gutters).
"""
from typing import Sequence, Union

from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ROWS = "ABCDEFGHIJKLMNOPQRST"
POSITIONS = 20
SLOT_WIDTH = 20
SLOT_HEIGHT = 80

RACK_SLOTS_SQL = """
CREATE TABLE IF NOT EXISTS rack_slots (
    slot_id TEXT PRIMARY KEY,
    wine_id TEXT,
    rack_number INTEGER NOT NULL DEFAULT 1,
    row TEXT NOT NULL,
    position INTEGER NOT NULL,
    x_coordinate REAL NOT NULL,
    y_coordinate REAL NOT NULL,
    width REAL NOT NULL DEFAULT 20,
    height REAL NOT NULL DEFAULT 80,
    is_occupied BOOLEAN NOT NULL DEFAULT 0,
    last_updated TIMESTAMP,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (wine_id) REFERENCES wines(id) ON DELETE SET NULL,
    UNIQUE(rack_number, row, position)
);

CREATE INDEX IF NOT EXISTS idx_rack_slots_wine_id ON rack_slots(wine_id);
CREATE INDEX IF NOT EXISTS idx_rack_slots_is_occupied ON rack_slots(is_occupied);
"""


def upgrade() -> None:
    conn = op.get_bind()
    raw_conn = conn.connection.dbapi_connection
    raw_conn.executescript(RACK_SLOTS_SQL)

    slots = []
    for row_index, row in enumerate(ROWS):
        for position in range(1, POSITIONS + 1):
            slots.append((
                f"{row}{position}",
                row,
                position,
                10 + (position - 1) * (SLOT_WIDTH + 5),
                10 + row_index * (SLOT_HEIGHT + 10),
                SLOT_WIDTH,
                SLOT_HEIGHT,
            ))

    raw_conn.executemany(
        """
        INSERT OR IGNORE INTO rack_slots
            (slot_id, rack_number, row, position, x_coordinate, y_coordinate, width, height)
        VALUES (?, 1, ?, ?, ?, ?, ?, ?)
        """,
        slots,
    )
    raw_conn.commit()


def downgrade() -> None:
    conn = op.get_bind()
    raw_conn = conn.connection.dbapi_connection
    raw_conn.execute("DROP TABLE IF EXISTS rack_slots")
