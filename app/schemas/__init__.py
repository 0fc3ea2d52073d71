from app.schemas.identify import (
    IdentifyRequest,
    IdentifyResponse,
    ReferenceImage
)
from app.schemas.tree import (
    TreeResponse,
    PlantLogResponse
)
from app.schemas.plant import (
    SpeciesLogResponse,
    PlantResponse,
    SightingResponse,
    TreeEntryUpdate,
    TreeEntryResponse,
    PlantDetailResponse
)

__all__ = [
    "IdentifyRequest",
    "IdentifyResponse",
    "ReferenceImage",
    "TreeResponse",
    "PlantLogResponse",
    "SpeciesLogResponse",
    "PlantResponse",
    "SightingResponse",
    "TreeEntryUpdate",
    "TreeEntryResponse",
    "PlantDetailResponse"
]
