"""Add food_pairings table.

Revision ID: 003
Revises: 002
Create Date: 2026-10-18

Manual and suggested pairings per wine. One row per (wine, food item).
"""
from typing import Sequence, Union

from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

FOOD_PAIRINGS_SQL = """
CREATE TABLE IF NOT EXISTS food_pairings (
    id TEXT PRIMARY KEY,
    wine_id TEXT NOT NULL,
    food_item TEXT NOT NULL,
    category TEXT NOT NULL DEFAULT 'Other'
        CHECK (category IN ('Appetizer', 'Main Course', 'Dessert', 'Cheese', 'Other')),
    description TEXT,
    user_rating INTEGER CHECK (user_rating IS NULL OR (user_rating >= 1 AND user_rating <= 5)),
    is_suggested BOOLEAN NOT NULL DEFAULT 0,
    source TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (wine_id) REFERENCES wines(id) ON DELETE CASCADE,
    UNIQUE(wine_id, food_item)
);

CREATE INDEX IF NOT EXISTS idx_food_pairings_wine_id ON food_pairings(wine_id);
CREATE INDEX IF NOT EXISTS idx_food_pairings_category ON food_pairings(category);
"""


def upgrade() -> None:
    conn = op.get_bind()
    raw_conn = conn.connection.dbapi_connection
    raw_conn.executescript(FOOD_PAIRINGS_SQL)


def downgrade() -> None:
    conn = op.get_bind()
    raw_conn = conn.connection.dbapi_connection
    raw_conn.execute("DROP TABLE IF EXISTS food_pairings")
