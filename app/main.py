from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
import logging
import os

from app.config import settings
from app.database import init_db
from app.routers import identify, uploads, trees, plants, pages
from app.services import get_shared_http_client, close_shared_http_client

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Initialize database
    await init_db()

    if not settings.plantnet_key:
        logger.warning("PLANTNET_KEY is not set; identify requests will fail")

    # Outbound pool for image downloads and PlantNet
    get_shared_http_client()

    yield

    # Shutdown: close pooled outbound connections
    await close_shared_http_client()


app = FastAPI(
    title="Plant Log API",
    description="Identify plants from photos with PlantNet and keep a personal log",
    version="1.0.0",
    lifespan=lifespan
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Uploaded photos
os.makedirs(settings.upload_dir, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.upload_dir), name="uploads")

# Include routers
app.include_router(identify.router)
app.include_router(uploads.router)
app.include_router(trees.router)
app.include_router(plants.router)
app.include_router(pages.router)


@app.get("/api/v1/health")
async def health_check():
    """API health check endpoint"""
    return {
        "status": "healthy",
        "service": "plant-log-api",
        "version": "1.0.0",
        "plantnet_configured": bool(settings.plantnet_key)
    }
