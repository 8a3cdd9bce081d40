"""Initial schema - cellar inventory tables.

Revision ID: 001
Revises: None
Create Date: 2026-10-18

Creates core tables: wines, memories, images.

Note: rack_slots is created (and seeded) in migration 002.
Note: food_pairings is created in migration 003.
"""
from typing import Sequence, Union

from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Schema SQL inlined for immutability.
SCHEMA_SQL = """
-- Bottles in the cellar
CREATE TABLE IF NOT EXISTS wines (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    vineyard TEXT NOT NULL,
    region TEXT NOT NULL,
    color TEXT NOT NULL CHECK (color IN ('Red', 'White', 'Rosé', 'Sparkling', 'Dessert', 'Fortified')),
    grape_varieties TEXT NOT NULL DEFAULT '[]',
    price REAL,
    currency TEXT NOT NULL DEFAULT 'USD',
    vintage_year INTEGER CHECK (vintage_year IS NULL OR vintage_year >= 1800),
    date_added TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    rack_slot TEXT,
    consumption_status TEXT NOT NULL DEFAULT 'Available'
        CHECK (consumption_status IN ('Available', 'Consumed', 'Reserved')),
    date_consumed TIMESTAMP,
    description TEXT,
    personal_notes TEXT,
    rating INTEGER CHECK (rating IS NULL OR (rating >= 1 AND rating <= 100)),
    food_pairings TEXT NOT NULL DEFAULT '[]',
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- Tasting memories attached to a wine
CREATE TABLE IF NOT EXISTS memories (
    id TEXT PRIMARY KEY,
    wine_id TEXT NOT NULL,
    title TEXT NOT NULL,
    content TEXT NOT NULL,
    date_experienced TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    location TEXT,
    tags TEXT NOT NULL DEFAULT '[]',
    rating INTEGER CHECK (rating IS NULL OR (rating >= 1 AND rating <= 5)),
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (wine_id) REFERENCES wines(id) ON DELETE CASCADE
);

-- Label photos and memory photos (files live in UPLOAD_DIR)
CREATE TABLE IF NOT EXISTS images (
    id TEXT PRIMARY KEY,
    wine_id TEXT NOT NULL,
    memory_id TEXT,
    filename TEXT NOT NULL UNIQUE,
    original_name TEXT,
    mime_type TEXT NOT NULL,
    size INTEGER NOT NULL,
    width INTEGER,
    height INTEGER,
    image_type TEXT NOT NULL DEFAULT 'memory'
        CHECK (image_type IN ('front_label', 'back_label', 'memory')),
    alt_text TEXT,
    description TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (wine_id) REFERENCES wines(id) ON DELETE CASCADE,
    FOREIGN KEY (memory_id) REFERENCES memories(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_wines_name ON wines(name);
CREATE INDEX IF NOT EXISTS idx_wines_color ON wines(color);
CREATE INDEX IF NOT EXISTS idx_wines_region ON wines(region);
CREATE INDEX IF NOT EXISTS idx_wines_vintage_year ON wines(vintage_year);
CREATE INDEX IF NOT EXISTS idx_wines_consumption_status ON wines(consumption_status);
CREATE INDEX IF NOT EXISTS idx_wines_date_added ON wines(date_added);
CREATE INDEX IF NOT EXISTS idx_memories_wine_id ON memories(wine_id);
CREATE INDEX IF NOT EXISTS idx_memories_date_experienced ON memories(date_experienced);
CREATE INDEX IF NOT EXISTS idx_images_wine_id ON images(wine_id);
CREATE INDEX IF NOT EXISTS idx_images_memory_id ON images(memory_id);
"""


def upgrade() -> None:
    # Use raw DBAPI connection for multi-statement SQL
    conn = op.get_bind()
    raw_conn = conn.connection.dbapi_connection
    raw_conn.executescript(SCHEMA_SQL)


def downgrade() -> None:
    conn = op.get_bind()
    raw_conn = conn.connection.dbapi_connection

    # Drop tables in reverse dependency order
    for table in ["images", "memories", "wines"]:
        raw_conn.execute(f"DROP TABLE IF EXISTS {table}")
