import uuid

from sqlalchemy import Column, String, Float, DateTime, Text, ForeignKey, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base


class Sighting(Base):
    __tablename__ = "sightings"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
                server_default=text("gen_random_uuid()"))
    plant_id = Column(UUID(as_uuid=True), ForeignKey("plants.id"), nullable=False, index=True)

    image_path = Column(Text, nullable=True)
    image_url = Column(Text, nullable=True)
    lat = Column(Float, nullable=True)
    lng = Column(Float, nullable=True)
    organ = Column(String(16), nullable=True)
    identified_name = Column(Text, nullable=True)
    confidence = Column(Float, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    plant = relationship("Plant", back_populates="sightings")
