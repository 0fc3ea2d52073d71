"""HTML pages: upload form, plant log and plant detail/notes."""
from fastapi import APIRouter, Depends, Request, UploadFile, File, Form
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import ValidationError
from pathlib import Path
from typing import Optional
import logging
from urllib.parse import quote

from app.config import settings
from app.database import get_db
from app.schemas.plant import TreeEntryUpdate
from app.services import (
    PlantNetService,
    PlantService,
    StorageService,
    IdentificationError,
    ImageValidationError,
    VALID_ORGANS,
    get_plantnet_service,
    normalize_key,
    reference_image_url,
)
from app.services.identification import (
    InvalidOrganError,
    resolve_organ,
    identify_bytes,
    record_plant_sighting,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["pages"], include_in_schema=False)

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))
templates.env.filters["ref_url"] = reference_image_url

plant_service = PlantService()
storage_service = StorageService()


@router.get("/")
async def index():
    return RedirectResponse("/log")


@router.get("/upload", response_class=HTMLResponse)
async def upload_page(request: Request):
    return templates.TemplateResponse(
        request,
        "upload.html",
        {"organs": VALID_ORGANS, "organ": settings.default_organ},
    )


@router.post("/upload", response_class=HTMLResponse)
async def upload_submit(
    request: Request,
    file: Optional[UploadFile] = File(None),
    organ: Optional[str] = Form(None),
    lat: Optional[float] = Form(None),
    lng: Optional[float] = Form(None),
    db: AsyncSession = Depends(get_db),
    plantnet: PlantNetService = Depends(get_plantnet_service)
):
    context = {"organs": VALID_ORGANS, "organ": organ or settings.default_organ}

    if file is None or not file.filename:
        context["error"] = "Please choose a photo first."
        return templates.TemplateResponse(request, "upload.html", context, status_code=400)

    stored = None
    try:
        plantnet.ensure_configured()
        organ = resolve_organ(organ)
        stored = storage_service.save_upload(await file.read(), file.content_type)
        match = await identify_bytes(plantnet, stored.data, stored.content_type, organ)
        result = await record_plant_sighting(
            db,
            plant_service,
            match,
            image_url=stored.image_url,
            image_path=stored.image_path,
            lat=lat,
            lng=lng,
            organ=organ,
        )
    except (InvalidOrganError, ImageValidationError, IdentificationError) as e:
        if stored is not None:
            storage_service.delete(stored.image_path)
        message = e.detail if isinstance(e.detail, str) else e.detail.get("error", "Identify failed")
        context["error"] = message
        return templates.TemplateResponse(request, "upload.html", context, status_code=e.status_code)
    except Exception as e:
        await db.rollback()
        if stored is not None:
            storage_service.delete(stored.image_path)
        logger.error(f"Error in upload page: {e}")
        context["error"] = f"Unexpected server error: {e}"
        return templates.TemplateResponse(request, "upload.html", context, status_code=500)

    context.update({"result": result, "image_url": stored.image_url})
    return templates.TemplateResponse(request, "upload.html", context)


@router.get("/log", response_class=HTMLResponse)
async def log_page(request: Request, db: AsyncSession = Depends(get_db)):
    error = None
    rows = []
    try:
        rows = await plant_service.list_species_log(db, settings.log_page_size)
    except Exception as e:
        logger.error(f"Error loading log: {e}")
        error = str(e)

    return templates.TemplateResponse(request, "log.html", {"rows": rows, "error": error})


@router.get("/plants/{key}", response_class=HTMLResponse)
async def plant_page(
    request: Request,
    key: str,
    edit: bool = False,
    saved: bool = False,
    db: AsyncSession = Depends(get_db)
):
    key = normalize_key(key)
    if not key:
        return templates.TemplateResponse(
            request, "plant.html", {"key": key, "error": "Missing plant key"}, status_code=404
        )

    return await render_plant(request, db, key, editing=edit, saved=saved)


@router.post("/plants/{key}")
async def plant_save(
    request: Request,
    key: str,
    display_name: Optional[str] = Form(None),
    notes: Optional[str] = Form(None),
    db: AsyncSession = Depends(get_db)
):
    key = normalize_key(key)
    if not key:
        return templates.TemplateResponse(
            request, "plant.html", {"key": key, "error": "Missing plant key"}, status_code=404
        )

    try:
        update = TreeEntryUpdate(display_name=display_name, notes=notes)
    except ValidationError as e:
        message = e.errors()[0]["msg"]
        return await render_plant(
            request,
            db,
            key,
            editing=True,
            form_error=f"Display name: {message}",
            form={"display_name": display_name, "notes": notes},
            status_code=400,
        )

    try:
        await plant_service.save_entry(db, key, update.display_name, update.notes)
    except Exception:
        await db.rollback()
        raise

    return RedirectResponse(f"/plants/{quote(key)}?saved=1", status_code=303)


async def render_plant(
    request: Request,
    db: AsyncSession,
    key: str,
    editing: bool = False,
    saved: bool = False,
    form_error: Optional[str] = None,
    form: Optional[dict] = None,
    status_code: int = 200,
):
    try:
        detail = await plant_service.get_detail(db, key)
    except Exception as e:
        await db.rollback()
        logger.error(f"Error loading plant page '{key}': {e}")
        return templates.TemplateResponse(
            request, "plant.html", {"key": key, "error": str(e)}, status_code=500
        )

    log, entry = detail["log"], detail["entry"]
    title = entry.display_name or (log["name"] if log else None) or "Unknown plant"
    return templates.TemplateResponse(
        request,
        "plant.html",
        {
            "key": key,
            "title": title,
            "log": log,
            "entry": entry,
            "plant": detail["plant"],
            "editing": editing,
            "saved": saved,
            "form_error": form_error,
            "form": form,
        },
        status_code=status_code,
    )
