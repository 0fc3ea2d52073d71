"""
PlantNet identification client.

Downloads the photo to identify, forwards it to the PlantNet identify endpoint as a
multipart upload and reshapes the best result into the fields we store.
"""
import httpx
import logging
from typing import Dict, Any, List, Optional, Tuple

from app.config import settings
from app.services.http_client import get_shared_http_client

logger = logging.getLogger(__name__)

VALID_ORGANS = ["leaf", "flower", "fruit", "bark", "auto"]


class IdentificationError(Exception):
    """Base error; carries the HTTP status the API answers with."""
    status_code = 500

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details

    @property
    def detail(self) -> Any:
        return self.message


class MissingApiKeyError(IdentificationError):
    status_code = 500


class ImageFetchError(IdentificationError):
    status_code = 400


class ImageFetchTimeout(IdentificationError):
    status_code = 408


class PlantNetTimeout(IdentificationError):
    status_code = 408


class PlantNetError(IdentificationError):
    status_code = 502

    def __init__(self, message: str, upstream_status: int, details: Any = None):
        super().__init__(message, details)
        self.upstream_status = upstream_status

    @property
    def detail(self) -> Any:
        return {
            "error": self.message,
            "status": self.upstream_status,
            "details": self.details,
        }


def image_extension(content_type: str) -> str:
    if "png" in content_type:
        return "png"
    if "webp" in content_type:
        return "webp"
    return "jpg"


def reference_image_url(img: Any) -> Optional[str]:
    """Pick a displayable URL from a PlantNet image entry (prefers the medium size)."""
    if not isinstance(img, dict):
        return None
    url = img.get("url")
    if isinstance(url, str) and url:
        return url
    for sizes in (img.get("urls"), url):
        if isinstance(sizes, dict):
            for size in ("m", "s", "o"):
                if sizes.get(size):
                    return sizes[size]
    return None


def reference_images(best: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    images = []
    for img in (best or {}).get("images") or []:
        url = reference_image_url(img)
        if not url:
            continue
        images.append({
            "url": url,
            "organ": img.get("organ"),
            "author": img.get("author"),
            "license": img.get("license"),
            "citation": img.get("citation"),
        })
    return images


def _name_of(taxon: Any) -> Optional[str]:
    if isinstance(taxon, dict):
        return taxon.get("scientificNameWithoutAuthor") or taxon.get("scientificName")
    return None


def _id_of(ref: Any, field: str = "id") -> Optional[str]:
    if isinstance(ref, dict) and ref.get(field) is not None:
        return str(ref[field])
    return None


def extract_best_match(raw: Any) -> Dict[str, Any]:
    """
    Reshape the first PlantNet result.

    Always returns a dict; when PlantNet found nothing the name is "Unknown"
    and every other field is empty.
    """
    results = raw.get("results") if isinstance(raw, dict) else None
    best = results[0] if results and isinstance(results[0], dict) else None

    species = (best or {}).get("species") or {}
    common_names = [n for n in species.get("commonNames") or [] if n]
    scientific_name = species.get("scientificNameWithoutAuthor") or species.get("scientificName")

    score = (best or {}).get("score")
    confidence = float(score) if isinstance(score, (int, float)) and not isinstance(score, bool) else None

    return {
        "name": (common_names[0] if common_names else None) or scientific_name or "Unknown",
        "scientific_name": scientific_name,
        "scientific_name_authorship": species.get("scientificNameAuthorship"),
        "common_names": common_names,
        "genus": _name_of(species.get("genus")),
        "family": _name_of(species.get("family")),
        "gbif_id": _id_of((best or {}).get("gbif")),
        "powo_id": _id_of((best or {}).get("powo")),
        "iucn_category": _id_of((best or {}).get("iucn"), "category"),
        "confidence": confidence,
        # PlantNet has no feature tags; kept for the trees schema
        "features": [],
        "reference_images": reference_images(best),
        "raw_top": best,
    }


class PlantNetService:
    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: Optional[str] = None,
        url: Optional[str] = None,
        lang: Optional[str] = None,
        include_related_images: Optional[bool] = None,
        image_fetch_timeout: Optional[float] = None,
        plantnet_timeout: Optional[float] = None,
    ):
        self.client = client
        self.api_key = api_key if api_key is not None else settings.plantnet_key
        self.url = url or settings.plantnet_url
        self.lang = lang or settings.plantnet_lang
        self.include_related_images = (
            settings.plantnet_include_related_images
            if include_related_images is None else include_related_images
        )
        self.image_fetch_timeout = image_fetch_timeout or settings.image_fetch_timeout
        self.plantnet_timeout = plantnet_timeout or settings.plantnet_timeout

    def ensure_configured(self) -> None:
        if not self.api_key:
            raise MissingApiKeyError("Server misconfigured: missing PLANTNET_KEY")

    async def fetch_image(self, image_url: str) -> Tuple[bytes, str]:
        """Download an image. Returns (bytes, content_type)."""
        try:
            response = await self.client.get(image_url, timeout=self.image_fetch_timeout)
        except httpx.TimeoutException:
            raise ImageFetchTimeout(
                f"Image fetch timeout after {self.image_fetch_timeout:g} seconds"
            )
        except httpx.ReadError:
            raise ImageFetchError("Failed to read image data from URL")
        except httpx.HTTPError as e:
            logger.warning(f"Image fetch failed for {image_url}: {e}")
            raise ImageFetchError(f"Could not fetch imageUrl ({e.__class__.__name__})")

        if not response.is_success:
            raise ImageFetchError(f"Could not fetch imageUrl (HTTP {response.status_code})")

        if not response.content:
            raise ImageFetchError("Failed to read image data from URL")

        content_type = response.headers.get("content-type") or "image/jpeg"
        return response.content, content_type.split(";")[0].strip()

    async def identify(self, image_bytes: bytes, content_type: str, organ: str) -> Dict[str, Any]:
        """Send one image to PlantNet and return its raw JSON answer."""
        self.ensure_configured()

        files = {"images": (f"tree.{image_extension(content_type)}", image_bytes, content_type)}
        params = {
            "include-related-images": "true" if self.include_related_images else "false",
            "lang": self.lang,
        }

        try:
            response = await self.client.post(
                self.url,
                params=params,
                files=files,
                data={"organs": organ},
                headers={"Api-Key": self.api_key},
                timeout=self.plantnet_timeout,
            )
        except httpx.TimeoutException:
            raise PlantNetTimeout(f"PlantNet API timeout after {self.plantnet_timeout:g} seconds")

        try:
            raw = response.json()
        except ValueError:
            raw = {}

        if not response.is_success:
            logger.warning(f"PlantNet returned HTTP {response.status_code}")
            raise PlantNetError("PlantNet request failed", response.status_code, details=raw)

        return raw


def get_plantnet_service() -> PlantNetService:
    return PlantNetService(get_shared_http_client())
