"""
Product Image Storage

Uploaded product images are validated, bounded to 1000x1000 and then stored
either with the hosted image provider (when credentials are configured) or
on local disk under the uploads directory.

Deletion accepts both reference shapes, so products created before hosted
storage was enabled keep working:
- hosted:  https://res.cloudinary.com/<cloud>/image/upload/v123/<folder>/<id>.jpg
- local:   /uploads/<file>
"""
import logging
import re
import uuid
from io import BytesIO
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

import cloudinary.uploader
from PIL import Image, UnidentifiedImageError

from storefront.config import Settings

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/webp"}
ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp"}
PIL_FORMATS = {"JPEG": ".jpg", "PNG": ".png", "WEBP": ".webp"}

# Image optimization settings
MAX_IMAGE_SIZE = (1000, 1000)
JPEG_QUALITY = 85

HOSTED_FORMATS = ["jpg", "jpeg", "png", "webp"]
HOSTED_TRANSFORMATION = {"width": MAX_IMAGE_SIZE[0], "height": MAX_IMAGE_SIZE[1], "crop": "limit"}
VERSION_SEGMENT = re.compile(r"^v\d+$")


class ImageValidationError(ValueError):
    """The uploaded file is not an acceptable image."""


class ImageStorage:
    """Stores and removes product images."""

    def __init__(self, settings: Settings):
        self.max_bytes = settings.max_upload_bytes
        self.upload_dir = Path(settings.upload_dir)
        self.url_prefix = settings.uploads_url_prefix.rstrip("/")
        self.hosted = settings.hosted_storage_enabled
        self.cloud_name = settings.cloudinary_cloud_name
        self.api_key = settings.cloudinary_api_key
        self.api_secret = settings.cloudinary_api_secret
        self.folder = settings.cloudinary_folder

    def ensure_directories(self):
        self.upload_dir.mkdir(parents=True, exist_ok=True)

    # ---------- validation ----------

    def validate(self, filename: Optional[str], content_type: Optional[str], content: bytes):
        """Reject files that are too large or of a disallowed type."""
        if len(content) > self.max_bytes:
            raise ImageValidationError(
                f"Image exceeds the {self.max_bytes // (1024 * 1024)}MB upload limit"
            )
        extension = Path(filename or "").suffix.lower()
        if (content_type or "").lower() not in ALLOWED_CONTENT_TYPES or extension not in ALLOWED_EXTENSIONS:
            raise ImageValidationError("Only .jpeg, .jpg, .png and .webp images are allowed")
        if not content:
            raise ImageValidationError("Image file is empty")

    def optimize(self, content: bytes) -> tuple[bytes, str]:
        """Resize to fit MAX_IMAGE_SIZE. Returns (bytes, extension)."""
        try:
            img = Image.open(BytesIO(content))
            img.load()
        except (UnidentifiedImageError, OSError) as e:
            raise ImageValidationError("Uploaded file is not a valid image") from e

        image_format = img.format if img.format in PIL_FORMATS else "JPEG"
        img.thumbnail(MAX_IMAGE_SIZE, Image.Resampling.LANCZOS)

        # Convert to RGB if necessary (for JPEG)
        if image_format == "JPEG" and img.mode not in ("RGB", "L"):
            img = img.convert("RGB")

        output = BytesIO()
        if image_format == "JPEG":
            img.save(output, format="JPEG", quality=JPEG_QUALITY, optimize=True)
        else:
            img.save(output, format=image_format)
        return output.getvalue(), PIL_FORMATS[image_format]

    # ---------- storing ----------

    def save(self, filename: Optional[str], content_type: Optional[str], content: bytes) -> str:
        """Validate, optimize and store an image. Returns the reference to persist."""
        self.validate(filename, content_type, content)
        data, extension = self.optimize(content)

        if self.hosted:
            return self._upload_hosted(data)
        return self._save_local(data, extension)

    def _save_local(self, data: bytes, extension: str) -> str:
        self.ensure_directories()
        name = f"{uuid.uuid4().hex}{extension}"
        (self.upload_dir / name).write_bytes(data)
        logger.info(f"Stored image locally: {name}")
        return f"{self.url_prefix}/{name}"

    def _credentials(self) -> dict:
        return {
            "cloud_name": self.cloud_name,
            "api_key": self.api_key,
            "api_secret": self.api_secret,
        }

    def _upload_hosted(self, data: bytes) -> str:
        result = cloudinary.uploader.upload(
            BytesIO(data),
            folder=self.folder,
            resource_type="image",
            allowed_formats=HOSTED_FORMATS,
            transformation=[HOSTED_TRANSFORMATION],
            **self._credentials(),
        )
        url = result["secure_url"]
        logger.info(f"Uploaded image to hosted storage: {url}")
        return url

    # ---------- removal ----------

    @staticmethod
    def is_hosted_url(reference: str) -> bool:
        parsed = urlparse(reference)
        return parsed.scheme in ("http", "https") and (parsed.hostname or "").endswith("cloudinary.com") \
            and "/upload/" in parsed.path

    @staticmethod
    def public_id_from_url(url: str) -> str:
        """Extract the provider's public id from a delivery URL ("" when there is none)."""
        path = urlparse(url).path
        after_upload = path.split("/upload/", 1)[1]
        segments = [s for s in after_upload.split("/") if s]
        # Drop transformation segments and the version
        while segments and ("," in segments[0] or VERSION_SEGMENT.match(segments[0])):
            segments.pop(0)
        if not segments:
            return ""
        public_id = "/".join(segments)
        return public_id.rsplit(".", 1)[0] if "." in segments[-1] else public_id

    def is_local_path(self, reference: str) -> bool:
        return reference.startswith(f"{self.url_prefix}/")

    def delete(self, reference: Optional[str]):
        """Remove a stored image. Missing local files are not an error."""
        if not reference:
            return

        if self.is_hosted_url(reference):
            public_id = self.public_id_from_url(reference)
            if not public_id:
                logger.warning(f"No public id in hosted image URL, leaving it: {reference}")
                return
            self._destroy_hosted(public_id)
        elif self.is_local_path(reference):
            # Only the basename is used so a stored path cannot escape the uploads dir
            path = self.upload_dir / Path(reference).name
            if path.exists():
                path.unlink()
                logger.info(f"Deleted local image: {path.name}")
        else:
            logger.debug(f"Image reference not managed by storage, leaving it: {reference}")

    def _destroy_hosted(self, public_id: str):
        if not self.hosted:
            logger.warning(f"Hosted storage is not configured, cannot delete {public_id}")
            return

        result = cloudinary.uploader.destroy(public_id, resource_type="image", **self._credentials())
        logger.info(f"Deleted hosted image {public_id}: {result.get('result')}")

    def discard(self, reference: Optional[str]):
        """delete() that logs failures instead of raising."""
        try:
            self.delete(reference)
        except Exception as e:
            logger.error(f"Failed to delete image {reference}: {e}")
