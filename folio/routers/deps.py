"""Shared router dependencies."""

import json
from typing import Any

from fastapi import Request

from folio.database import get_db
from folio.errors import BadRequest, Unauthorized
from folio.models.auth import AdminSession
from folio.services.auth import get_session
from folio.services.rate_limit import RateLimiter

__all__ = [
    "get_db",
    "get_comment_limiter",
    "get_form_limiter",
    "read_json",
    "require_admin",
]


def require_admin(request: Request) -> AdminSession:
    """Reject the request before any other work unless an admin is signed in."""
    session = get_session(request)
    if session is None:
        raise Unauthorized("Authentication required")
    return session


def get_comment_limiter(request: Request) -> RateLimiter:
    return request.app.state.comment_limiter


def get_form_limiter(request: Request) -> RateLimiter:
    return request.app.state.form_limiter


async def read_json(request: Request) -> Any:
    """Parse the request body as JSON or raise BadRequest."""
    try:
        return json.loads(await request.body())
    except ValueError:
        raise BadRequest("Invalid JSON payload")
