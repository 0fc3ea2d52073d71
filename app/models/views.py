"""
Read-only mappings of the log views.

They live on their own MetaData so create_all never tries to create them as tables;
the views themselves are created from the DDL below, by migrations and by
app.database.init_db for dev databases.
"""
from sqlalchemy import MetaData, Table, Column, String, Float, DateTime, Integer, Text
from sqlalchemy.dialects.postgresql import UUID, ARRAY

view_metadata = MetaData()

# Latest trees row per scientific name
plant_log = Table(
    "plant_log",
    view_metadata,
    Column("id", UUID(as_uuid=True), primary_key=True),
    Column("scientific_name", Text),
    Column("identified_name", Text),
    Column("genus", Text),
    Column("family", Text),
    Column("common_names", ARRAY(Text)),
    Column("gbif_id", String(64)),
    Column("powo_id", String(64)),
    Column("iucn_category", String(16)),
    Column("confidence", Float),
    Column("image_url", Text),
    Column("image_path", Text),
    Column("lat", Float),
    Column("lng", Float),
    Column("features", ARRAY(Text)),
    Column("last_seen", DateTime(timezone=True)),
)

# One row per plant key with sighting stats
species_log = Table(
    "species_log",
    view_metadata,
    Column("key", String(255), primary_key=True),
    Column("name", Text),
    Column("scientific_name", Text),
    Column("sightings_count", Integer),
    Column("last_seen", DateTime(timezone=True)),
    Column("thumbnail_url", Text),
)

# View DDL shared by the migrations and app.database.init_db

PLANT_LOG_VIEW = """
CREATE OR REPLACE VIEW plant_log AS
SELECT DISTINCT ON (scientific_name)
  id,
  scientific_name,
  identified_name,
  genus,
  family,
  common_names,
  gbif_id,
  powo_id,
  iucn_category,
  confidence,
  image_url,
  image_path,
  lat,
  lng,
  features,
  created_at AS last_seen
FROM trees
WHERE scientific_name IS NOT NULL
ORDER BY scientific_name, created_at DESC
"""

SPECIES_LOG_VIEW = """
CREATE OR REPLACE VIEW species_log AS
SELECT
  p.key,
  COALESCE(p.common_name, p.scientific_name) AS name,
  p.scientific_name,
  COUNT(s.id) AS sightings_count,
  MAX(s.created_at) AS last_seen,
  (
    SELECT s2.image_url
    FROM sightings s2
    WHERE s2.plant_id = p.id
    ORDER BY s2.created_at DESC
    LIMIT 1
  ) AS thumbnail_url
FROM plants p
LEFT JOIN sightings s ON s.plant_id = p.id
GROUP BY p.id, p.key, p.common_name, p.scientific_name
"""
