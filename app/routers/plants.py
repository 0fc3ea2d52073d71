from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import logging

from app.database import get_db
from app.schemas.plant import (
    SpeciesLogResponse,
    PlantResponse,
    SightingResponse,
    TreeEntryUpdate,
    TreeEntryResponse,
    PlantDetailResponse,
)
from app.services import PlantService, normalize_key

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/plants", tags=["plants"])

plant_service = PlantService()


def detail_response(detail: dict) -> PlantDetailResponse:
    return PlantDetailResponse(
        log=SpeciesLogResponse(**detail["log"]) if detail["log"] else None,
        entry=TreeEntryResponse.model_validate(detail["entry"]),
        plant=PlantResponse.model_validate(detail["plant"]) if detail["plant"] else None,
    )


@router.get("", response_model=List[SpeciesLogResponse])
async def list_plants(
    limit: int = Query(None, ge=1, le=500),
    db: AsyncSession = Depends(get_db)
):
    """One row per plant with sighting count, last seen and thumbnail"""
    rows = await plant_service.list_species_log(db, limit)
    return [SpeciesLogResponse(**row) for row in rows]


@router.get("/{key}", response_model=PlantDetailResponse)
async def get_plant(
    key: str,
    db: AsyncSession = Depends(get_db)
):
    """
    Plant page data: log summary, notes and plant record.

    The notes row is created on first access; log and plant are null when the key
    has no sightings yet.
    """
    key = normalize_key(key)
    if not key:
        raise HTTPException(status_code=400, detail="Missing plant key")

    try:
        detail = await plant_service.get_detail(db, key)
    except Exception as e:
        await db.rollback()
        logger.error(f"Error loading plant '{key}': {e}")
        raise HTTPException(status_code=500, detail=f"Error loading plant: {str(e)}")

    return detail_response(detail)


@router.get("/{key}/sightings", response_model=List[SightingResponse])
async def get_plant_sightings(
    key: str,
    db: AsyncSession = Depends(get_db)
):
    """All sightings for a plant, newest first"""
    sightings = await plant_service.list_sightings(db, key)
    return [SightingResponse.model_validate(s) for s in sightings]


@router.put("/{key}/entry", response_model=TreeEntryResponse)
async def save_plant_entry(
    key: str,
    update: TreeEntryUpdate,
    db: AsyncSession = Depends(get_db)
):
    """Save display name and notes. Blank values are stored as null."""
    key = normalize_key(key)
    if not key:
        raise HTTPException(status_code=400, detail="Missing plant key")

    try:
        entry = await plant_service.save_entry(db, key, update.display_name, update.notes)
    except Exception as e:
        await db.rollback()
        logger.error(f"Error saving notes for '{key}': {e}")
        raise HTTPException(status_code=500, detail=f"Save failed: {str(e)}")

    return TreeEntryResponse.model_validate(entry)
