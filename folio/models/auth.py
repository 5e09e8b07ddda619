"""Admin authentication models."""

from pydantic import Field

from folio.models.base import ApiModel


class LoginRequest(ApiModel):
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1, max_length=200)


class AdminSession(ApiModel):
    """A verified admin identity carried by a session token."""

    id: str
    username: str
    name: str


class LoginResponse(ApiModel):
    token: str
    expires_in: int
    user: AdminSession
