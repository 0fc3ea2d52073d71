import io
import os
import uuid
import logging
from typing import NamedTuple, Optional

from PIL import Image, UnidentifiedImageError

from app.config import settings

logger = logging.getLogger(__name__)

# Image validation constants
MIN_DIMENSION = 100  # Minimum width/height
MAX_DIMENSION = 4096  # Maximum width/height
ALLOWED_FORMATS = {"JPEG", "MPO", "PNG", "WEBP", "BMP", "GIF"}
JPEG_QUALITY = 90


class ImageValidationError(Exception):
    status_code = 400

    @property
    def detail(self) -> str:
        return str(self)


class StoredImage(NamedTuple):
    image_path: str  # relative to the uploads mount
    image_url: str
    data: bytes
    content_type: str


class StorageService:
    """Keeps uploaded photos on local disk, served from /uploads."""

    def __init__(
        self,
        upload_dir: Optional[str] = None,
        public_base_url: Optional[str] = None,
        max_size: Optional[int] = None,
    ):
        self.upload_dir = upload_dir or settings.upload_dir
        self.public_base_url = (public_base_url or settings.public_base_url).rstrip("/")
        self.max_size = max_size or settings.max_upload_size

    def validate_image(self, contents: bytes, content_type: Optional[str] = None) -> Image.Image:
        """Validate type, size, format and dimensions. Returns the opened image."""
        if content_type is not None and not content_type.startswith("image/"):
            raise ImageValidationError("File must be an image")

        if not contents:
            raise ImageValidationError("Empty file")

        if len(contents) > self.max_size:
            raise ImageValidationError(
                f"File too large. Max size: {self.max_size // (1024 * 1024)}MB"
            )

        try:
            image = Image.open(io.BytesIO(contents))
        except Image.DecompressionBombError:
            raise ImageValidationError(
                f"Image too large. Maximum: {MAX_DIMENSION}x{MAX_DIMENSION}px"
            )
        except (UnidentifiedImageError, OSError):
            raise ImageValidationError("Could not read image")

        if image.format and image.format.upper() not in ALLOWED_FORMATS:
            raise ImageValidationError(
                f"Unsupported format: {image.format}. Allowed: {', '.join(sorted(ALLOWED_FORMATS))}"
            )

        # Checked from the header, before any pixel data is decoded
        width, height = image.size
        if width < MIN_DIMENSION or height < MIN_DIMENSION:
            raise ImageValidationError(
                f"Image too small. Minimum: {MIN_DIMENSION}x{MIN_DIMENSION}px"
            )
        if width > MAX_DIMENSION or height > MAX_DIMENSION:
            raise ImageValidationError(
                f"Image too large. Maximum: {MAX_DIMENSION}x{MAX_DIMENSION}px"
            )

        try:
            image.load()
        except (Image.DecompressionBombError, OSError):
            raise ImageValidationError("Could not read image")

        return image

    def to_jpeg(self, image: Image.Image, contents: bytes) -> bytes:
        """PlantNet takes JPEG/PNG; normalize everything to JPEG."""
        if image.format in ("JPEG", "MPO"):
            return contents

        if image.mode != "RGB":
            image = image.convert("RGB")

        buffer = io.BytesIO()
        image.save(buffer, format="JPEG", quality=JPEG_QUALITY)
        return buffer.getvalue()

    def save_upload(self, contents: bytes, content_type: Optional[str] = None) -> StoredImage:
        image = self.validate_image(contents, content_type)
        data = self.to_jpeg(image, contents)

        os.makedirs(self.upload_dir, exist_ok=True)
        filename = f"{uuid.uuid4()}.jpg"
        file_path = os.path.join(self.upload_dir, filename)
        with open(file_path, "wb") as f:
            f.write(data)

        logger.info(f"Stored upload {filename} ({len(data)} bytes)")

        image_path = f"uploads/{filename}"
        return StoredImage(
            image_path=image_path,
            image_url=f"{self.public_base_url}/{image_path}",
            data=data,
            content_type="image/jpeg",
        )

    def delete(self, image_path: str) -> None:
        """Remove a stored upload, e.g. when identification fails afterwards."""
        filename = os.path.basename(image_path)
        file_path = os.path.join(self.upload_dir, filename)
        if os.path.exists(file_path):
            os.remove(file_path)
