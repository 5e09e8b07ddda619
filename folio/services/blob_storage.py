"""Azure Blob Storage service for blog cover images."""

import logging
import re
import secrets
import string
import time

from azure.core.exceptions import AzureError
from azure.identity import ManagedIdentityCredential
from azure.storage.blob import ContainerClient, ContentSettings

from folio.config import get_settings
from folio.errors import BadRequest, InternalError, PayloadTooLarge

logger = logging.getLogger(__name__)

MAX_IMAGE_SIZE = 5 * 1024 * 1024  # 5MB

# MIME type -> accepted file extensions
ALLOWED_IMAGE_TYPES: dict[str, tuple[str, ...]] = {
    "image/jpeg": ("jpg", "jpeg"),
    "image/jpg": ("jpg", "jpeg"),
    "image/png": ("png",),
    "image/gif": ("gif",),
    "image/webp": ("webp",),
}

_UNSAFE_FILENAME_RE = re.compile(r"[^a-zA-Z0-9.-]")
_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits

# Lazy singleton, lives for the process lifetime
_container_client: ContainerClient | None = None


def _get_credential() -> ManagedIdentityCredential:
    """Return Managed Identity credential."""
    settings = get_settings()
    return ManagedIdentityCredential(client_id=settings.managed_identity_client_id)


def create_container_client(container_name: str) -> ContainerClient:
    """Create a ContainerClient for the given container."""
    settings = get_settings()
    account_url = f"https://{settings.azure_storage_account}.blob.core.windows.net"
    return ContainerClient(
        account_url=account_url,
        container_name=container_name,
        credential=_get_credential(),
    )


def _get_container_client() -> ContainerClient:
    """Return a shared blob container client for images (lazy singleton)."""
    global _container_client
    if _container_client is None:
        _container_client = create_container_client(
            get_settings().azure_image_container
        )
    return _container_client


def storage_configured() -> bool:
    settings = get_settings()
    return bool(settings.azure_storage_account and settings.azure_image_container)


def validate_image(filename: str, content_type: str, size: int) -> str:
    """Check an upload's type, extension and size. Returns the safe filename."""
    allowed = ALLOWED_IMAGE_TYPES.get(content_type)
    if allowed is None:
        raise BadRequest(
            "Invalid file type. Only JPEG, PNG, GIF, and WebP images are allowed"
        )
    if size > MAX_IMAGE_SIZE:
        raise PayloadTooLarge("File size exceeds 5MB limit")

    safe_name = _UNSAFE_FILENAME_RE.sub("_", filename or "")
    extension = safe_name.rsplit(".", 1)[-1].lower() if "." in safe_name else "jpg"
    if extension not in allowed:
        raise BadRequest("File extension does not match file type")
    return safe_name


def build_blob_name(safe_name: str, now: float | None = None) -> str:
    """``{millis}-{random6}-{name}`` so repeated uploads never collide."""
    millis = int((now if now is not None else time.time()) * 1000)
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(6))
    return f"{millis}-{suffix}-{safe_name}"


async def upload_image(data: bytes, filename: str, content_type: str) -> str:
    """Validate and store an image. Returns its public URL."""
    if not storage_configured():
        logger.error("Image upload attempted but Azure storage is not configured")
        raise InternalError("Storage service not configured")

    safe_name = validate_image(filename, content_type, len(data))
    blob_name = build_blob_name(safe_name)

    client = _get_container_client()
    try:
        blob = client.get_blob_client(blob_name)
        blob.upload_blob(
            data,
            overwrite=False,
            content_settings=ContentSettings(content_type=content_type),
        )
    except AzureError as e:
        logger.error("Azure error uploading %s: %s", blob_name, e)
        raise InternalError("File upload failed")

    logger.info("Uploaded image %s", blob_name)
    return blob.url
