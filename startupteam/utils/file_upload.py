"""
File Upload Utility - validate image uploads before they go to Cloudinary.

Supported formats: JPG, JPEG, PNG, GIF, WEBP
Max file size: 5MB
"""

from typing import Tuple
from fastapi import UploadFile

from startupteam.core.exceptions import ValidationFailed


MAX_FILE_SIZE_MB = 5
MAX_FILE_SIZE_BYTES = MAX_FILE_SIZE_MB * 1024 * 1024
ALLOWED_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.gif', '.webp'}


def get_file_extension(filename: str) -> str:
    """Get lowercase file extension."""
    if '.' not in filename:
        return ''
    return '.' + filename.rsplit('.', 1)[1].lower()


async def read_image_upload(file: UploadFile) -> Tuple[bytes, str]:
    """
    Read and validate an uploaded image.

    Args:
        file: FastAPI UploadFile

    Returns:
        Tuple of (content, filename)

    Raises:
        ValidationFailed on missing name, wrong type, empty or oversized file
    """
    if not file.filename:
        raise ValidationFailed("Please upload an image file")

    ext = get_file_extension(file.filename)
    if ext not in ALLOWED_EXTENSIONS:
        raise ValidationFailed(
            f"Unsupported file type '{ext}'. Allowed: JPG, PNG, GIF, WEBP",
            details={"allowed": sorted(ALLOWED_EXTENSIONS)}
        )

    if file.content_type and not file.content_type.startswith("image/"):
        raise ValidationFailed("Only image files are allowed")

    content = await file.read()

    if not content:
        raise ValidationFailed("Uploaded file is empty")

    if len(content) > MAX_FILE_SIZE_BYTES:
        raise ValidationFailed(f"File too large. Maximum size: {MAX_FILE_SIZE_MB}MB")

    return content, file.filename
