from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime
from uuid import UUID


class IdentifyRequest(BaseModel):
    # Checked by the router so a missing URL answers 400 like the other input errors
    image_url: Optional[str] = Field(None, alias="imageUrl")
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lng: Optional[float] = Field(None, ge=-180, le=180)
    organ: Optional[str] = None

    class Config:
        populate_by_name = True


class ReferenceImage(BaseModel):
    url: str
    organ: Optional[str] = None
    author: Optional[str] = None
    license: Optional[str] = None
    citation: Optional[str] = None


class IdentifyResponse(BaseModel):
    id: Optional[UUID] = None
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    plant_key: Optional[str] = Field(None, alias="plantKey")
    name: str
    scientific_name: Optional[str] = Field(None, alias="scientificName")
    common_names: List[str] = Field(default_factory=list, alias="commonNames")
    genus: Optional[str] = None
    family: Optional[str] = None
    iucn_category: Optional[str] = Field(None, alias="iucnCategory")
    gbif_id: Optional[str] = Field(None, alias="gbifId")
    powo_id: Optional[str] = Field(None, alias="powoId")
    confidence: Optional[float] = None
    features: List[str] = Field(default_factory=list)
    reference_images: List[ReferenceImage] = Field(default_factory=list, alias="referenceImages")
    raw_top: Optional[Dict[str, Any]] = Field(None, alias="rawTop")

    class Config:
        populate_by_name = True
