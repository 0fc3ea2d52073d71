import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select, func
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Tree, Plant, Sighting, TreeEntry, plant_log, species_log
from app.services.plant_keys import normalize_key

logger = logging.getLogger(__name__)

# Columns of `plants` refreshed from every new identification of the same key
PLANT_FIELDS = (
    "common_name",
    "scientific_name",
    "scientific_name_authorship",
    "common_names",
    "genus",
    "family",
    "gbif_id",
    "powo_id",
    "iucn_category",
    "reference_images",
    "plant_details",
)


def plant_values(key: str, match: Dict[str, Any]) -> Dict[str, Any]:
    common_names = match.get("common_names") or []
    return {
        "key": key,
        "common_name": common_names[0] if common_names else None,
        "scientific_name": match.get("scientific_name"),
        "scientific_name_authorship": match.get("scientific_name_authorship"),
        "common_names": common_names,
        "genus": match.get("genus"),
        "family": match.get("family"),
        "gbif_id": match.get("gbif_id"),
        "powo_id": match.get("powo_id"),
        "iucn_category": match.get("iucn_category"),
        "reference_images": match.get("reference_images") or [],
        "plant_details": match.get("raw_top"),
    }


def clean_text(value: Optional[str]) -> Optional[str]:
    """Trim form input; blank becomes None."""
    if value is None:
        return None
    value = value.strip()
    return value or None


class PlantService:
    """
    Database access for identification records, the log views and plant notes.

    Write methods commit; callers roll back on failure.
    """

    # --- legacy flat schema -------------------------------------------------

    async def record_tree(
        self,
        db: AsyncSession,
        match: Dict[str, Any],
        image_url: Optional[str] = None,
        image_path: Optional[str] = None,
        lat: Optional[float] = None,
        lng: Optional[float] = None,
    ) -> Tree:
        """Append one identification event to `trees`."""
        tree = Tree(
            image_url=image_url,
            image_path=image_path,
            lat=lat,
            lng=lng,
            identified_name=match.get("name"),
            scientific_name=match.get("scientific_name"),
            genus=match.get("genus"),
            family=match.get("family"),
            common_names=match.get("common_names") or [],
            gbif_id=match.get("gbif_id"),
            powo_id=match.get("powo_id"),
            iucn_category=match.get("iucn_category"),
            confidence=match.get("confidence"),
            features=match.get("features") or [],
        )
        db.add(tree)
        await db.commit()
        await db.refresh(tree)
        return tree

    async def list_recent_trees(self, db: AsyncSession, limit: int = 50) -> List[Tree]:
        result = await db.execute(
            select(Tree).order_by(Tree.created_at.desc()).limit(limit)
        )
        return list(result.scalars().all())

    async def list_plant_log(self, db: AsyncSession) -> List[Dict[str, Any]]:
        result = await db.execute(
            select(plant_log).order_by(plant_log.c.last_seen.desc())
        )
        return [dict(row) for row in result.mappings().all()]

    # --- normalized schema --------------------------------------------------

    async def upsert_plant(self, db: AsyncSession, key: str, match: Dict[str, Any]) -> Plant:
        """Insert the plant for `key`, or refresh its taxonomy and cached images."""
        values = plant_values(key, match)
        stmt = insert(Plant).values(**values)
        update = {field: stmt.excluded[field] for field in PLANT_FIELDS}
        update["updated_at"] = func.now()
        stmt = (
            stmt.on_conflict_do_update(index_elements=[Plant.key], set_=update)
            .returning(Plant)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(stmt)
        return result.scalar_one()

    async def record_sighting(
        self,
        db: AsyncSession,
        key: str,
        match: Dict[str, Any],
        image_url: Optional[str] = None,
        image_path: Optional[str] = None,
        lat: Optional[float] = None,
        lng: Optional[float] = None,
        organ: Optional[str] = None,
    ) -> Tuple[Plant, Sighting]:
        """Upsert the plant and attach a new sighting to it, in one commit."""
        plant = await self.upsert_plant(db, key, match)

        sighting = Sighting(
            plant_id=plant.id,
            image_url=image_url,
            image_path=image_path,
            lat=lat,
            lng=lng,
            organ=organ,
            identified_name=match.get("name"),
            confidence=match.get("confidence"),
        )
        db.add(sighting)
        await db.commit()
        await db.refresh(sighting)

        logger.info(f"Recorded sighting {sighting.id} for plant '{key}'")
        return plant, sighting

    async def list_species_log(self, db: AsyncSession, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        query = select(species_log).order_by(species_log.c.last_seen.desc().nulls_last())
        if limit is not None:
            query = query.limit(limit)
        result = await db.execute(query)
        return [dict(row) for row in result.mappings().all()]

    async def get_log_row(self, db: AsyncSession, key: str) -> Optional[Dict[str, Any]]:
        result = await db.execute(
            select(species_log).where(species_log.c.key == key)
        )
        row = result.mappings().one_or_none()
        return dict(row) if row is not None else None

    async def get_plant(self, db: AsyncSession, key: str) -> Optional[Plant]:
        result = await db.execute(
            select(Plant).where(func.lower(Plant.key) == normalize_key(key))
        )
        return result.scalar_one_or_none()

    async def list_sightings(self, db: AsyncSession, key: str) -> List[Sighting]:
        result = await db.execute(
            select(Sighting)
            .join(Plant, Sighting.plant_id == Plant.id)
            .where(func.lower(Plant.key) == normalize_key(key))
            .order_by(Sighting.created_at.desc())
        )
        return list(result.scalars().all())

    # --- notes --------------------------------------------------------------

    async def get_entry(self, db: AsyncSession, key: str) -> Optional[TreeEntry]:
        result = await db.execute(
            select(TreeEntry).where(TreeEntry.key == key)
        )
        return result.scalar_one_or_none()

    async def get_or_create_entry(
        self,
        db: AsyncSession,
        key: str,
        display_name: Optional[str] = None,
    ) -> TreeEntry:
        """Notes rows are created the first time a plant page is opened."""
        entry = await self.get_entry(db, key)
        if entry is not None:
            return entry

        # A concurrent first view may have created it already
        await db.execute(
            insert(TreeEntry)
            .values(key=key, display_name=display_name, notes=None)
            .on_conflict_do_nothing(index_elements=[TreeEntry.key])
        )
        await db.commit()
        return await self.get_entry(db, key)

    async def save_entry(
        self,
        db: AsyncSession,
        key: str,
        display_name: Optional[str],
        notes: Optional[str],
    ) -> TreeEntry:
        values = {
            "key": key,
            "display_name": clean_text(display_name),
            "notes": clean_text(notes),
        }
        stmt = insert(TreeEntry).values(**values, updated_at=func.now())
        stmt = (
            stmt.on_conflict_do_update(
                index_elements=[TreeEntry.key],
                set_={
                    "display_name": stmt.excluded.display_name,
                    "notes": stmt.excluded.notes,
                    "updated_at": func.now(),
                },
            )
            .returning(TreeEntry)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(stmt)
        entry = result.scalar_one()
        await db.commit()
        return entry

    async def get_detail(self, db: AsyncSession, key: str) -> Dict[str, Any]:
        """Everything the plant page shows: log summary, notes (created if missing), plant record."""
        log = await self.get_log_row(db, key)
        entry = await self.get_or_create_entry(db, key, display_name=log["name"] if log else None)
        plant = await self.get_plant(db, key)
        return {"log": log, "entry": entry, "plant": plant}
