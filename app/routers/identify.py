from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
import time
import logging

from app.database import get_db
from app.schemas.identify import IdentifyRequest, IdentifyResponse
from app.services import PlantNetService, PlantService, IdentificationError, get_plantnet_service
from app.services.identification import (
    InvalidOrganError,
    resolve_organ,
    identify_url,
    record_plant_sighting,
    record_tree,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["identify"])

plant_service = PlantService()


def _validate(request: IdentifyRequest, plantnet: PlantNetService) -> str:
    """Check the body, then the server key, then the organ; returns the organ."""
    if not request.image_url or not request.image_url.strip():
        raise HTTPException(status_code=400, detail="Missing required field: imageUrl")
    try:
        plantnet.ensure_configured()
        return resolve_organ(request.organ)
    except (IdentificationError, InvalidOrganError) as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.post("/identify", response_model=IdentifyResponse)
async def identify_plant(
    request: IdentifyRequest,
    db: AsyncSession = Depends(get_db),
    plantnet: PlantNetService = Depends(get_plantnet_service)
):
    """
    Identify the plant in a hosted photo and log it as a sighting.

    - **imageUrl**: publicly reachable image
    - **organ**: leaf, flower, fruit, bark or auto (default leaf)
    - **lat** / **lng**: optional location of the sighting

    The plant is upserted by its key (slugified scientific name) and a new
    sighting is attached to it.
    """
    start_time = time.time()
    organ = _validate(request, plantnet)

    try:
        match = await identify_url(plantnet, request.image_url, organ)
        result = await record_plant_sighting(
            db,
            plant_service,
            match,
            image_url=request.image_url,
            lat=request.lat,
            lng=request.lng,
            organ=organ,
        )
        logger.info(f"Identify request: key={result['plant_key']}, total={time.time() - start_time:.3f}s")
        return IdentifyResponse(**result)

    except IdentificationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Error in identify: {e}")
        raise HTTPException(status_code=500, detail=f"Unexpected server error: {str(e)}")


@router.post("/identify/tree", response_model=IdentifyResponse, response_model_exclude={"plant_key"})
async def identify_tree(
    request: IdentifyRequest,
    db: AsyncSession = Depends(get_db),
    plantnet: PlantNetService = Depends(get_plantnet_service)
):
    """
    Identify the plant in a hosted photo and append it to the flat `trees` log.

    Every call adds a row, including unidentified photos.
    """
    start_time = time.time()
    organ = _validate(request, plantnet)

    try:
        match = await identify_url(plantnet, request.image_url, organ)
        result = await record_tree(
            db,
            plant_service,
            match,
            image_url=request.image_url,
            lat=request.lat,
            lng=request.lng,
        )
        logger.info(f"Identify (trees) request: id={result['id']}, total={time.time() - start_time:.3f}s")
        return IdentifyResponse(**result)

    except IdentificationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Error in identify/tree: {e}")
        raise HTTPException(status_code=500, detail=f"Unexpected server error: {str(e)}")
