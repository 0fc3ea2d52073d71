from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime
from uuid import UUID


class SpeciesLogResponse(BaseModel):
    key: str
    name: Optional[str] = None
    scientific_name: Optional[str] = None
    sightings_count: int = 0
    last_seen: Optional[datetime] = None
    thumbnail_url: Optional[str] = None


class PlantResponse(BaseModel):
    id: UUID
    key: str
    common_name: Optional[str] = None
    scientific_name: Optional[str] = None
    scientific_name_authorship: Optional[str] = None
    common_names: Optional[List[str]] = None
    genus: Optional[str] = None
    family: Optional[str] = None
    gbif_id: Optional[str] = None
    powo_id: Optional[str] = None
    iucn_category: Optional[str] = None
    reference_images: Optional[List[Dict[str, Any]]] = None
    plant_details: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SightingResponse(BaseModel):
    id: UUID
    plant_id: UUID
    image_url: Optional[str] = None
    image_path: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    organ: Optional[str] = None
    identified_name: Optional[str] = None
    confidence: Optional[float] = None
    created_at: datetime

    class Config:
        from_attributes = True


class TreeEntryUpdate(BaseModel):
    display_name: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None


class TreeEntryResponse(BaseModel):
    key: str
    display_name: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PlantDetailResponse(BaseModel):
    log: Optional[SpeciesLogResponse] = None
    entry: TreeEntryResponse
    plant: Optional[PlantResponse] = None
