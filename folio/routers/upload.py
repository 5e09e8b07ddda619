"""Cover image upload (admin)."""

import logging

from fastapi import APIRouter, Depends, File, UploadFile

from folio.models.auth import AdminSession
from folio.models.contact import UploadLimits, UploadResponse
from folio.routers.deps import require_admin
from folio.services.blob_storage import ALLOWED_IMAGE_TYPES, MAX_IMAGE_SIZE, upload_image

router = APIRouter(prefix="/upload", tags=["upload"])
logger = logging.getLogger(__name__)


@router.post("", response_model=UploadResponse)
async def upload_cover_image(
    admin: AdminSession = Depends(require_admin),
    file: UploadFile = File(...),
):
    """Store an image in blob storage and return its public URL."""
    data = await file.read()
    url = await upload_image(
        data, file.filename or "", file.content_type or "application/octet-stream"
    )
    logger.info("Admin %s uploaded %s (%d bytes)", admin.username, file.filename, len(data))
    return UploadResponse(url=url)


@router.get("", response_model=UploadLimits)
async def upload_limits():
    return UploadLimits(max_size=MAX_IMAGE_SIZE, allowed_types=list(ALLOWED_IMAGE_TYPES))
