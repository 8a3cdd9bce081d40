"""
Wine Cellar API

FastAPI backend for a personal wine cellar: inventory, tasting memories,
photos, food pairings, rack layout, and external wine lookup.

Usage:
    uvicorn main:app --reload
"""

# Load environment variables from .env file FIRST
from dotenv import load_dotenv
load_dotenv()

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from cellar.config import Config

# Configure logging from environment
logging.basicConfig(
    level=getattr(logging, Config.log_level(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)
logger.info(f"Starting with LOG_LEVEL={Config.log_level()}")

from cellar.db import ensure_schema
from cellar.dependencies import get_wine_api_service
from cellar.routes import (
    food_pairings_router,
    images_router,
    memories_router,
    rack_router,
    wines_router,
)

API_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown."""
    ensure_schema(Config.database_path())
    logger.info(f"Database ready at {Config.database_path()}")
    yield
    # Only tear down the browser if a lookup ever started one
    if get_wine_api_service.cache_info().currsize:
        await get_wine_api_service().cleanup()
    logger.info("Shutdown complete")


app = FastAPI(
    title="Wine Cellar API",
    description="Track the bottles in your cellar and the memories that go with them",
    version=API_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Processed uploads are also reachable directly by filename
upload_dir = Path(Config.upload_dir())
upload_dir.mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=str(upload_dir)), name="uploads")

# Include routers
app.include_router(wines_router, tags=["wines"])
app.include_router(images_router, tags=["images"])
app.include_router(memories_router, tags=["memories"])
app.include_router(food_pairings_router, tags=["food-pairings"])
app.include_router(rack_router, tags=["rack"])


@app.get("/api")
async def api_info():
    """Root endpoint with API info."""
    return {
        "name": "Wine Cellar API",
        "version": API_VERSION,
        "docs": "/docs",
        "endpoints": {
            "wines": "/api/wines",
            "images": "/api/images",
            "memories": "/api/memories",
            "food_pairings": "/api/food-pairings",
            "rack": "/api/rack",
            "health": "/api/health",
        },
    }


@app.get("/api/health")
async def health():
    """Health check endpoint for container probes."""
    return {"status": "OK", "message": "Wine Cellar API is running"}
