from app.services.plantnet_service import (
    PlantNetService,
    get_plantnet_service,
    IdentificationError,
    extract_best_match,
    reference_image_url,
    VALID_ORGANS,
)
from app.services.plant_service import PlantService
from app.services.storage_service import StorageService, ImageValidationError
from app.services.plant_keys import plant_key, normalize_key
from app.services.http_client import get_shared_http_client, close_shared_http_client

__all__ = [
    "PlantNetService", "get_plantnet_service",
    "IdentificationError", "extract_best_match", "reference_image_url", "VALID_ORGANS",
    "PlantService",
    "StorageService", "ImageValidationError",
    "plant_key", "normalize_key",
    "get_shared_http_client", "close_shared_http_client",
]
