"""
Identify-then-record flows shared by the JSON API, the upload endpoint and the pages.
"""
import time
import logging
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.services.plantnet_service import PlantNetService, VALID_ORGANS, extract_best_match
from app.services.plant_service import PlantService
from app.services.plant_keys import plant_key

logger = logging.getLogger(__name__)


class InvalidOrganError(ValueError):
    status_code = 400

    @property
    def detail(self) -> str:
        return str(self)


def resolve_organ(organ: Optional[str]) -> str:
    organ = organ or settings.default_organ
    if organ not in VALID_ORGANS:
        raise InvalidOrganError(
            f"Invalid organ type. Must be one of: {', '.join(VALID_ORGANS)}"
        )
    return organ


def build_result(
    match: Dict[str, Any],
    record_id=None,
    created_at=None,
    key: Optional[str] = None,
) -> Dict[str, Any]:
    return {
        "id": record_id,
        "created_at": created_at,
        "plant_key": key,
        "name": match["name"],
        "scientific_name": match.get("scientific_name"),
        "common_names": match.get("common_names") or [],
        "genus": match.get("genus"),
        "family": match.get("family"),
        "iucn_category": match.get("iucn_category"),
        "gbif_id": match.get("gbif_id"),
        "powo_id": match.get("powo_id"),
        "confidence": match.get("confidence"),
        "features": match.get("features") or [],
        "reference_images": match.get("reference_images") or [],
        "raw_top": match.get("raw_top"),
    }


async def identify_bytes(
    plantnet: PlantNetService,
    image_bytes: bytes,
    content_type: str,
    organ: str,
) -> Dict[str, Any]:
    start = time.time()
    raw = await plantnet.identify(image_bytes, content_type, organ)
    match = extract_best_match(raw)
    logger.info(
        f"PlantNet: organ={organ}, name={match['name']!r}, "
        f"confidence={match['confidence']}, time={time.time() - start:.3f}s"
    )
    return match


async def identify_url(plantnet: PlantNetService, image_url: str, organ: str) -> Dict[str, Any]:
    plantnet.ensure_configured()

    start = time.time()
    image_bytes, content_type = await plantnet.fetch_image(image_url)
    logger.info(f"Fetched image: {len(image_bytes)} bytes, {content_type}, time={time.time() - start:.3f}s")

    return await identify_bytes(plantnet, image_bytes, content_type, organ)


async def record_plant_sighting(
    db: AsyncSession,
    plant_service: PlantService,
    match: Dict[str, Any],
    image_url: Optional[str] = None,
    image_path: Optional[str] = None,
    lat: Optional[float] = None,
    lng: Optional[float] = None,
    organ: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Store a match in plants/sightings.

    Nothing is written when PlantNet returned no usable name.
    """
    common_names = match.get("common_names") or []
    key = plant_key(match.get("scientific_name"), common_names[0] if common_names else None)
    if key is None:
        logger.info("No species identified; sighting not recorded")
        return build_result(match)

    _, sighting = await plant_service.record_sighting(
        db,
        key,
        match,
        image_url=image_url,
        image_path=image_path,
        lat=lat,
        lng=lng,
        organ=organ,
    )
    return build_result(match, sighting.id, sighting.created_at, key)


async def record_tree(
    db: AsyncSession,
    plant_service: PlantService,
    match: Dict[str, Any],
    image_url: Optional[str] = None,
    image_path: Optional[str] = None,
    lat: Optional[float] = None,
    lng: Optional[float] = None,
) -> Dict[str, Any]:
    """Store a match as one flat `trees` row."""
    tree = await plant_service.record_tree(
        db, match, image_url=image_url, image_path=image_path, lat=lat, lng=lng
    )
    return build_result(match, tree.id, tree.created_at)
