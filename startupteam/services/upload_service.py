"""
Upload Service - avatar and startup logo storage on Cloudinary.

Cloudinary returns a stable secure URL plus a public_id; the public_id is
all we need to delete an image later. Deleting a replaced image is
best-effort (an orphaned image is harmless, a failed upload is not).
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from urllib3.exceptions import HTTPError as TransportError

from startupteam.core.config import Settings, get_settings
from startupteam.core.exceptions import UploadFailed

logger = logging.getLogger(__name__)

AVATAR_PRESET = {
    "folder": "startupteam/avatars",
    "transformation": [
        {"width": 400, "height": 400, "crop": "fill", "gravity": "face"},
        {"quality": "auto", "fetch_format": "auto"},
    ],
}

LOGO_PRESET = {
    "folder": "startupteam/logos",
    "transformation": [
        {"width": 300, "height": 300, "crop": "fill"},
        {"quality": "auto", "fetch_format": "auto"},
    ],
}

_VERSION_SEGMENT = re.compile(r"^v\d+$")

# API errors plus the transport failures the SDK lets through (urllib3, sockets)
UPLOAD_ERRORS = (CloudinaryError, TransportError, OSError)


@dataclass(frozen=True)
class UploadedImage:
    url: str
    public_id: str


def public_id_from_url(url: Optional[str]) -> Optional[str]:
    """
    https://res.cloudinary.com/demo/image/upload/v1712/startupteam/logos/abc.png
    -> startupteam/logos/abc
    """
    if not url or "/upload/" not in url:
        return None
    path = url.split("/upload/", 1)[1].split("?", 1)[0]
    segments = [s for s in path.split("/") if s]
    if segments and _VERSION_SEGMENT.match(segments[0]):
        segments = segments[1:]
    if not segments:
        return None
    segments[-1] = segments[-1].rsplit(".", 1)[0]
    return "/".join(segments)


class ImageStore:
    """store(bytes) -> (url, public_id); delete(public_id) -> ok"""

    def __init__(self, settings: Settings = None, uploader=None):
        self.settings = settings or get_settings()
        self.uploader = uploader or cloudinary.uploader
        if uploader is None:
            cloudinary.config(
                cloud_name=self.settings.cloudinary_cloud_name,
                api_key=self.settings.cloudinary_api_key,
                api_secret=self.settings.cloudinary_api_secret,
                secure=True,
            )

    def store(self, data: bytes, preset: dict) -> UploadedImage:
        try:
            result = self.uploader.upload(data, resource_type="image", **preset)
        except UPLOAD_ERRORS as e:
            logger.error("Cloudinary upload error: %s", e)
            raise UploadFailed("Failed to upload image")
        return UploadedImage(url=result["secure_url"], public_id=result["public_id"])

    def delete(self, public_id: str) -> bool:
        try:
            result = self.uploader.destroy(public_id)
        except UPLOAD_ERRORS as e:
            logger.error("Cloudinary delete error: %s", e)
            return False
        return result.get("result") == "ok"

    def replace(self, data: bytes, preset: dict, old_url: Optional[str]) -> UploadedImage:
        """Upload the new image, then drop the old one (best-effort)."""
        image = self.store(data, preset)
        old_public_id = public_id_from_url(old_url)
        if old_public_id and old_public_id != image.public_id:
            if not self.delete(old_public_id):
                logger.warning("Failed to delete old image %s", old_public_id)
        return image


# Singleton instance
_image_store: ImageStore = None


def get_image_store() -> ImageStore:
    """Get or create the image store (singleton pattern)"""
    global _image_store
    if _image_store is None:
        _image_store = ImageStore()
    return _image_store
