"""Contact form and newsletter models."""

from folio.models.base import ApiModel


class ContactResponse(ApiModel):
    success: bool = True
    message: str
    message_id: str | None = None


class SubscribeResponse(ApiModel):
    success: bool = True
    message: str


class UploadResponse(ApiModel):
    url: str


class UploadLimits(ApiModel):
    """What ``POST /api/upload`` accepts."""

    max_size: int
    allowed_types: list[str]
    max_size_label: str = "5MB"
