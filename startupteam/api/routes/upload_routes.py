"""
Upload Routes

POST /upload/avatar - Upload profile picture (any user)
POST /upload/startup-logo - Upload startup logo (founders only)

Images go to Cloudinary; the previous image is removed after a successful upload.
"""

from fastapi import APIRouter, Depends, File, UploadFile

from startupteam.api.deps import get_identity_service, get_startup_service
from startupteam.core.auth import get_current_user, get_current_founder
from startupteam.services.identity_service import IdentityService
from startupteam.services.startup_service import StartupService
from startupteam.services.upload_service import AVATAR_PRESET, LOGO_PRESET, ImageStore, get_image_store
from startupteam.utils.file_upload import read_image_upload
from startupteam.schemas.schemas import UploadResponse

router = APIRouter(prefix="/upload", tags=["Uploads"])


@router.post("/avatar", response_model=UploadResponse)
async def upload_avatar(
    file: UploadFile = File(..., description="Image file (JPG, PNG, GIF, WEBP), max 5MB"),
    user: dict = Depends(get_current_user),
    identity: IdentityService = Depends(get_identity_service),
    images: ImageStore = Depends(get_image_store),
):
    """Upload or replace the current user's avatar."""
    content, _ = await read_image_upload(file)
    image = images.replace(content, AVATAR_PRESET, user.get("avatar"))
    identity.update_user(user["id"], {"avatar": image.url})
    return UploadResponse(url=image.url, message="Avatar uploaded successfully")


@router.post("/startup-logo", response_model=UploadResponse)
async def upload_startup_logo(
    file: UploadFile = File(..., description="Image file (JPG, PNG, GIF, WEBP), max 5MB"),
    founder: dict = Depends(get_current_founder),
    startups: StartupService = Depends(get_startup_service),
    images: ImageStore = Depends(get_image_store),
):
    """Upload or replace the founder's startup logo. The startup must exist."""
    startup = startups.get_startup_for_founder(founder["id"])
    content, _ = await read_image_upload(file)
    image = images.replace(content, LOGO_PRESET, startup.get("logo"))
    startups.set_logo(founder["id"], image.url)
    return UploadResponse(url=image.url, message="Logo uploaded successfully")
