from fastapi import APIRouter, Depends, HTTPException, UploadFile, File, Form
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
import time
import logging

from app.database import get_db
from app.schemas.identify import IdentifyResponse
from app.services import (
    PlantNetService,
    PlantService,
    StorageService,
    IdentificationError,
    ImageValidationError,
    get_plantnet_service,
)
from app.services.identification import (
    InvalidOrganError,
    resolve_organ,
    identify_bytes,
    record_plant_sighting,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["uploads"])

plant_service = PlantService()
storage_service = StorageService()


@router.post("/uploads", response_model=IdentifyResponse, status_code=201)
async def upload_photo(
    file: UploadFile = File(...),
    organ: Optional[str] = Form(None),
    lat: Optional[float] = Form(None),
    lng: Optional[float] = Form(None),
    db: AsyncSession = Depends(get_db),
    plantnet: PlantNetService = Depends(get_plantnet_service)
):
    """
    Store a photo, identify it and log the sighting.

    Non-JPEG uploads are converted to JPEG before they are stored and sent to PlantNet.
    """
    start_time = time.time()

    try:
        plantnet.ensure_configured()
        organ = resolve_organ(organ)
    except (InvalidOrganError, IdentificationError) as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)

    contents = await file.read()
    try:
        stored = storage_service.save_upload(contents, file.content_type)
    except ImageValidationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)

    try:
        match = await identify_bytes(plantnet, stored.data, stored.content_type, organ)
        result = await record_plant_sighting(
            db,
            plant_service,
            match,
            image_url=stored.image_url,
            image_path=stored.image_path,
            lat=lat,
            lng=lng,
            organ=organ,
        )
        logger.info(f"Upload request: key={result['plant_key']}, total={time.time() - start_time:.3f}s")
        return IdentifyResponse(**result)

    except IdentificationError as e:
        storage_service.delete(stored.image_path)
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    except Exception as e:
        await db.rollback()
        storage_service.delete(stored.image_path)
        logger.error(f"Error in upload: {e}")
        raise HTTPException(status_code=500, detail=f"Unexpected server error: {str(e)}")
