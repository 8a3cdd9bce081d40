#!/usr/bin/env python3
"""
Container startup script.

1. Run Alembic migrations (alembic upgrade head)
2. exec uvicorn to replace this process
"""

import logging
import os
import subprocess
import sys
from pathlib import Path

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - startup - %(levelname)s - %(message)s",
)
logger = logging.getLogger("startup")

# Resolve paths relative to backend/ directory
BACKEND_DIR = Path(__file__).parent.parent
DB_DIR = BACKEND_DIR / "cellar" / "data"


def run_migrations() -> bool:
    """Run Alembic migrations (upgrade head).

    Returns True on success, False on failure.
    """
    db_path = os.getenv("DATABASE_PATH", str(DB_DIR / "cellar.db"))
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    if not Path(db_path).exists():
        logger.info(f"No database at {db_path}, migrations will create schema")

    logger.info("Running alembic upgrade head...")
    try:
        result = subprocess.run(
            [sys.executable, "-m", "alembic", "upgrade", "head"],
            cwd=str(BACKEND_DIR),
            capture_output=True,
            text=True,
            timeout=120,
            env={**os.environ, "DATABASE_PATH": db_path},
        )
        if result.returncode != 0:
            logger.error(f"Alembic migration failed:\n{result.stderr}")
            return False
        logger.info(f"Migrations complete: {result.stdout.strip()}")
        return True
    except subprocess.TimeoutExpired:
        logger.error("Alembic migration timed out after 120s")
        return False
    except Exception as e:
        logger.error(f"Migration error: {e}")
        return False


def exec_uvicorn():
    """Replace this process with uvicorn."""
    port = os.getenv("PORT", "8080")
    log_level = os.getenv("LOG_LEVEL", "info").lower()
    logger.info(f"Starting uvicorn on port {port} (log_level={log_level})")

    os.execvp(
        sys.executable,
        [
            sys.executable,
            "-m",
            "uvicorn",
            "main:app",
            "--host",
            "0.0.0.0",
            "--port",
            port,
            "--log-level",
            log_level,
        ],
    )


def main():
    logger.info("=== Wine Cellar API Startup ===")

    if not run_migrations():
        logger.error("Migration failed, exiting")
        sys.exit(1)

    # Replaces this process via execvp
    exec_uvicorn()


if __name__ == "__main__":
    main()
