"""
Image store adapters for property photos.
An adapter takes an image payload (a data URI or a remote URL) and returns the durable URL of the stored image.
"""

import base64
import binascii
import hashlib
import io
import time
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional, Tuple

import aiofiles
import httpx
from PIL import Image

from listing_api.config import ImageStoreSettings
from listing_api.utils.exceptions import UploadError
import logging

logger = logging.getLogger(__name__)

# PIL format names accepted for each MIME type
EXPECTED_FORMATS = {
    "image/jpeg": ["jpeg", "jpg"],
    "image/png": ["png"],
    "image/webp": ["webp"],
}

EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
}


def parse_data_uri(payload: str) -> Tuple[str, bytes]:
    """
    Split a base64 data URI into its MIME type and decoded bytes.

    Raises:
        UploadError: If the payload is not a base64 data URI
    """
    if not payload.startswith("data:") or "," not in payload:
        raise UploadError("Photo must be a base64 data URI")

    header, encoded = payload[5:].split(",", 1)
    parts = header.split(";")
    mime_type = parts[0].lower() or "text/plain"
    if "base64" not in parts[1:]:
        raise UploadError("Photo data URI must be base64 encoded")

    try:
        content = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise UploadError(f"Invalid base64 photo data: {e}")

    return mime_type, content


class ImageStore(ABC):
    """Adapter interface for the image hosting service."""

    @abstractmethod
    async def upload(self, payload: str) -> str:
        """
        Store an image and return its durable URL.

        Raises:
            UploadError: On any hosting or transport failure
        """

    async def aclose(self) -> None:
        """Release any resources held by the adapter."""


class CloudinaryImageStore(ImageStore):
    """
    Uploads photos to Cloudinary through its signed upload REST endpoint.
    Cloudinary accepts data URIs and remote URLs directly as the file parameter.
    """

    def __init__(self, settings: ImageStoreSettings, client: Optional[httpx.AsyncClient] = None):
        if not (settings.cloud_name and settings.api_key and settings.api_secret):
            raise ValueError("Cloudinary cloud name, API key and API secret are required")

        self.settings = settings
        self.upload_url = (
            f"{settings.api_base_url.rstrip('/')}/v1_1/{settings.cloud_name}/image/upload"
        )
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=settings.timeout)

    def _sign(self, params: Dict[str, str]) -> str:
        """Compute the Cloudinary request signature for the given parameters."""
        to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params))
        return hashlib.sha1(f"{to_sign}{self.settings.api_secret}".encode("utf-8")).hexdigest()

    async def upload(self, payload: str) -> str:
        if not payload:
            raise UploadError("No photo provided")

        params = {"timestamp": str(int(time.time()))}
        if self.settings.folder:
            params["folder"] = self.settings.folder

        data = {
            **params,
            "file": payload,
            "api_key": self.settings.api_key,
            "signature": self._sign(params),
        }

        try:
            response = await self.client.post(self.upload_url, data=data)
        except httpx.HTTPError as e:
            logger.error(f"Cloudinary upload request failed: {e}")
            raise UploadError(str(e) or type(e).__name__) from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.is_error:
            message = body.get("error", {}).get("message") or f"HTTP {response.status_code}"
            logger.error(f"Cloudinary rejected upload: {message}")
            raise UploadError(message)

        url = body.get("secure_url") if self.settings.secure else body.get("url")
        url = url or body.get("url") or body.get("secure_url")
        if not url:
            raise UploadError("Image host returned no URL")

        logger.info(f"Uploaded photo to Cloudinary: {body.get('public_id')}")
        return url

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()


class LocalImageStore(ImageStore):
    """
    Stores photos on local disk and serves them from the application's uploads mount.
    Only data URIs are accepted; the image is validated with Pillow before it is written.
    """

    def __init__(self, settings: ImageStoreSettings):
        self.settings = settings
        self.upload_dir = Path(settings.upload_dir)
        self.max_file_size = settings.max_file_size
        self.allowed_types = settings.allowed_file_types

        self.upload_dir.mkdir(parents=True, exist_ok=True)

    def validate_image(self, mime_type: str, content: bytes) -> None:
        """
        Validate decoded image content.

        Raises:
            UploadError: If the image is too large, of a disallowed type, or not a real image
        """
        if len(content) > self.max_file_size:
            max_mb = self.max_file_size / (1024 * 1024)
            raise UploadError(f"File size exceeds maximum allowed size of {max_mb:.1f}MB")

        if mime_type not in self.allowed_types:
            raise UploadError(
                f"File type '{mime_type}' not allowed. Allowed types: {', '.join(self.allowed_types)}"
            )

        try:
            with Image.open(io.BytesIO(content)) as img:
                pil_format = (img.format or "").lower()
        except Exception as e:
            raise UploadError(f"Invalid image file: {str(e)}")

        if mime_type in EXPECTED_FORMATS and pil_format not in EXPECTED_FORMATS[mime_type]:
            raise UploadError(f"File content doesn't match declared type {mime_type}")

    def _generate_file_path(self, mime_type: str) -> Path:
        property_dir = self.upload_dir / "properties"
        property_dir.mkdir(parents=True, exist_ok=True)
        return property_dir / f"{uuid.uuid4()}{EXTENSIONS.get(mime_type, '')}"

    async def upload(self, payload: str) -> str:
        if not payload:
            raise UploadError("No photo provided")

        mime_type, content = parse_data_uri(payload)
        self.validate_image(mime_type, content)

        file_path = self._generate_file_path(mime_type)
        try:
            async with aiofiles.open(file_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            # Clean up partial file if it exists
            if file_path.exists():
                file_path.unlink()
            raise UploadError(f"Failed to save image file: {str(e)}")

        relative_path = file_path.relative_to(self.upload_dir).as_posix()
        logger.info(f"Stored photo locally: {relative_path} ({len(content)} bytes)")
        return f"{self.settings.public_base_url.rstrip('/')}/{relative_path}"


def build_image_store(settings: ImageStoreSettings) -> ImageStore:
    """Create the image store adapter selected by configuration."""
    if settings.backend == "cloudinary":
        return CloudinaryImageStore(settings)
    return LocalImageStore(settings)
