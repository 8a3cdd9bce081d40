"""
Centralized configuration for the Wine Cellar backend.

All constants are defined here to avoid scattered magic numbers
and enable easy configuration management.
"""

import os
from pathlib import Path
from typing import List


class Config:
    """Application configuration constants."""

    # === Uploads ===
    MAX_IMAGE_SIZE_MB = 10
    MAX_IMAGE_SIZE_BYTES = MAX_IMAGE_SIZE_MB * 1024 * 1024
    MAX_FILES_PER_UPLOAD = 5
    IMAGE_MAX_DIMENSION = 800  # Fit inside 800x800, never enlarge
    IMAGE_WEBP_QUALITY = 85
    IMAGE_CACHE_SECONDS = 31536000

    # === Rack Layout ===
    RACK_ROWS = "ABCDEFGHIJKLMNOPQRST"
    RACK_POSITIONS = 20

    # === Pagination ===
    DEFAULT_PAGE_SIZE = 20
    MAX_PAGE_SIZE = 100

    # === External Lookup ===
    VIVINO_SEARCH_URL = "https://www.vivino.com/search/wines"
    LOOKUP_MAX_RETRIES = 3
    LOOKUP_RETRY_DELAYS = (1.0, 2.0, 4.0)  # Seconds before attempt 2, 3, ...
    LOOKUP_DEFAULT_LIMIT = 10
    NAVIGATION_TIMEOUT_MS = 45000
    RESULTS_SELECTOR_TIMEOUT_MS = 15000
    BROWSER_VIEWPORT = {"width": 1280, "height": 720}
    BROWSER_USER_AGENT = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )

    # === Deduplication ===
    DUPLICATE_THRESHOLD = 0.8
    MAX_DESCRIPTION_LENGTH = 1000

    # === Environment ===
    @staticmethod
    def log_level() -> str:
        """Log level (DEBUG, INFO, WARNING, ERROR)."""
        return os.getenv("LOG_LEVEL", "INFO").upper()

    @staticmethod
    def database_path() -> str:
        """Path to SQLite database file.
        Default: backend/cellar/data/cellar.db (relative to cellar package).
        Override with DATABASE_PATH env var for container deployments.
        """
        default = str(Path(__file__).parent / "data" / "cellar.db")
        return os.getenv("DATABASE_PATH", default)

    @staticmethod
    def upload_dir() -> str:
        """Directory holding processed image uploads."""
        default = str(Path(__file__).parent.parent / "uploads")
        return os.getenv("UPLOAD_DIR", default)

    @staticmethod
    def cors_origins() -> List[str]:
        """Allowed CORS origins (comma separated). Default: local Vite/CRA dev servers."""
        raw = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173")
        return [origin.strip() for origin in raw.split(",") if origin.strip()]

    @staticmethod
    def lookup_rate_limit_seconds() -> float:
        """Minimum delay between outbound lookup requests. Default: 2.0."""
        try:
            return float(os.getenv("LOOKUP_RATE_LIMIT_SECONDS", "2.0"))
        except ValueError:
            return 2.0

    @staticmethod
    def lookup_headless() -> bool:
        """Run the scraping browser headless. Default: True."""
        return os.getenv("LOOKUP_HEADLESS", "true").lower() == "true"

    @staticmethod
    def lookup_enable_vivino() -> bool:
        """Query Vivino during external search. Default: True."""
        return os.getenv("LOOKUP_ENABLE_VIVINO", "true").lower() == "true"
