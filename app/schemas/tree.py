from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from uuid import UUID


class TreeResponse(BaseModel):
    id: UUID
    created_at: datetime
    image_path: Optional[str] = None
    image_url: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    identified_name: Optional[str] = None
    scientific_name: Optional[str] = None
    genus: Optional[str] = None
    family: Optional[str] = None
    common_names: Optional[List[str]] = None
    gbif_id: Optional[str] = None
    powo_id: Optional[str] = None
    iucn_category: Optional[str] = None
    confidence: Optional[float] = None
    features: Optional[List[str]] = None

    class Config:
        from_attributes = True


class PlantLogResponse(BaseModel):
    """Row of the plant_log view: latest trees row per scientific name"""
    id: UUID
    scientific_name: str
    identified_name: Optional[str] = None
    genus: Optional[str] = None
    family: Optional[str] = None
    common_names: Optional[List[str]] = None
    gbif_id: Optional[str] = None
    powo_id: Optional[str] = None
    iucn_category: Optional[str] = None
    confidence: Optional[float] = None
    image_url: Optional[str] = None
    image_path: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    features: Optional[List[str]] = None
    last_seen: datetime
