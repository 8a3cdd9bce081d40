"""
Database initialization helper.

Provides programmatic Alembic migration runner for:
- Application startup
- Test fixtures
- Any code that needs a fully migrated database

All table creation happens through Alembic migrations.

Also provides BaseRepository class for thread-safe SQLite access.
"""

import json
import logging
import math
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional

from alembic import command
from alembic.config import Config as AlembicConfig

logger = logging.getLogger(__name__)

BACKEND_DIR = Path(__file__).parent.parent


def ensure_schema(db_path: str) -> None:
    """
    Run Alembic migrations to head for the given database.

    Safe to call multiple times - Alembic tracks applied migrations.

    Args:
        db_path: Path to the SQLite database file.
                 Parent directory is created if missing.
    """
    db_dir = Path(db_path).parent
    db_dir.mkdir(parents=True, exist_ok=True)

    alembic_cfg = AlembicConfig(str(BACKEND_DIR / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(BACKEND_DIR / "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", f"sqlite:///{db_path}")
    # Explicit path wins over DATABASE_PATH; leave app logging untouched
    alembic_cfg.attributes["programmatic"] = True

    # Suppress Alembic's default logging to avoid noise in tests
    logging.getLogger("alembic").setLevel(logging.WARNING)

    try:
        command.upgrade(alembic_cfg, "head")
        logger.debug(f"Schema initialized for {db_path}")
    except Exception as e:
        logger.error(f"Migration failed for {db_path}: {e}")
        raise


def utc_now() -> str:
    """Current UTC time as an ISO-8601 string (sortable as text)."""
    return datetime.now(timezone.utc).isoformat()


def dump_json_list(values: Optional[list]) -> str:
    return json.dumps(list(values or []))


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


def load_json_list(raw: Optional[str]) -> list:
    """Decode a JSON list column, tolerating NULL and legacy garbage."""
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        return []
    return value if isinstance(value, list) else []


class BaseRepository:
    """
    Base class for thread-safe SQLite repositories.

    Provides common functionality for:
    - Thread-local connection pooling
    - Transaction context management
    - Foreign key enforcement (cascade deletes depend on it)
    """

    def __init__(self, db_path: Optional[str] = None, use_wal: bool = True):
        """
        Initialize repository.

        Args:
            db_path: Path to SQLite database. Defaults to Config.database_path()
            use_wal: Enable WAL mode for better concurrent access
        """
        if db_path is None:
            from cellar.config import Config
            db_path = Config.database_path()

        self.db_path = str(db_path)
        self._local = threading.local()
        self._use_wal = use_wal

    def _get_connection(self) -> sqlite3.Connection:
        """Get thread-local database connection."""
        if not hasattr(self._local, 'connection') or self._local.connection is None:
            conn = sqlite3.connect(self.db_path, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys = ON")
            if self._use_wal:
                conn.execute("PRAGMA journal_mode = WAL")
            self._local.connection = conn
        return self._local.connection

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Cursor]:
        """Context manager for transactions with automatic commit/rollback."""
        conn = self._get_connection()
        cursor = conn.cursor()
        try:
            yield cursor
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    def close(self) -> None:
        """Close database connection."""
        if hasattr(self._local, 'connection') and self._local.connection:
            self._local.connection.close()
            self._local.connection = None
