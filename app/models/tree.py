import uuid

from sqlalchemy import Column, String, Float, DateTime, Text, Index, text
from sqlalchemy.dialects.postgresql import UUID, ARRAY
from sqlalchemy.sql import func
from app.database import Base


class Tree(Base):
    """One identification event, stored flat (legacy schema)."""
    __tablename__ = "trees"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
                server_default=text("gen_random_uuid()"))
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Where the photo lives
    image_path = Column(Text, nullable=True)
    image_url = Column(Text, nullable=True)

    lat = Column(Float, nullable=True)
    lng = Column(Float, nullable=True)

    # Identification result
    identified_name = Column(Text, nullable=True)
    scientific_name = Column(Text, nullable=True)
    genus = Column(Text, nullable=True)
    family = Column(Text, nullable=True)
    common_names = Column(ARRAY(Text), nullable=True)
    gbif_id = Column(String(64), nullable=True)
    powo_id = Column(String(64), nullable=True)
    iucn_category = Column(String(16), nullable=True)
    confidence = Column(Float, nullable=True)
    features = Column(ARRAY(Text), nullable=True)


Index("trees_created_at_idx", Tree.created_at.desc())
