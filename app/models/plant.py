import uuid

from sqlalchemy import Column, String, DateTime, Text, text
from sqlalchemy.dialects.postgresql import UUID, ARRAY, JSONB
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base


class Plant(Base):
    __tablename__ = "plants"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
                server_default=text("gen_random_uuid()"))

    # Slugified scientific (or common) name, see app.services.plant_keys
    key = Column(String(255), nullable=False, unique=True, index=True)

    common_name = Column(Text, nullable=True)
    scientific_name = Column(Text, nullable=True)
    scientific_name_authorship = Column(Text, nullable=True)
    common_names = Column(ARRAY(Text), nullable=True)
    genus = Column(Text, nullable=True)
    family = Column(Text, nullable=True)
    gbif_id = Column(String(64), nullable=True)
    powo_id = Column(String(64), nullable=True)
    iucn_category = Column(String(16), nullable=True)

    # Cached from the last PlantNet answer for this key
    reference_images = Column(JSONB, nullable=True)
    plant_details = Column(JSONB, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    sightings = relationship("Sighting", back_populates="plant")
