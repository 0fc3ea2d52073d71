from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from app.config import settings
from app.database import get_db
from app.schemas.tree import TreeResponse, PlantLogResponse
from app.services import PlantService

router = APIRouter(prefix="/api/v1", tags=["trees"])

plant_service = PlantService()


@router.get("/trees", response_model=List[TreeResponse])
async def list_trees(
    limit: int = Query(None, ge=1, le=500, description="Max rows (default from config)"),
    db: AsyncSession = Depends(get_db)
):
    """Latest identification events from the flat log, newest first"""
    trees = await plant_service.list_recent_trees(db, limit or settings.log_page_size)
    return [TreeResponse.model_validate(tree) for tree in trees]


@router.get("/plant-log", response_model=List[PlantLogResponse])
async def list_plant_log(db: AsyncSession = Depends(get_db)):
    """Most recent sighting per scientific name"""
    rows = await plant_service.list_plant_log(db)
    return [PlantLogResponse(**row) for row in rows]
