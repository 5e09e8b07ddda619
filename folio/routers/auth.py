"""Admin sign-in endpoints."""

import logging

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from folio.config import get_settings
from folio.errors import InternalError, Unauthorized
from folio.models.auth import AdminSession, LoginRequest, LoginResponse
from folio.models.blog import MessageResponse
from folio.routers.deps import get_db, require_admin
from folio.services.auth import SESSION_COOKIE, authenticate, issue_session_token
from folio.services.security import get_client_ip

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


@router.post("/login", response_model=LoginResponse)
async def login(
    credentials: LoginRequest,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    """Verify admin credentials and start a session (cookie + bearer token)."""
    settings = get_settings()
    try:
        session = await authenticate(db, credentials.username, credentials.password)
    except SQLAlchemyError:
        logger.exception("Admin lookup failed")
        raise InternalError("Failed to sign in")

    if session is None:
        logger.warning(
            "Failed admin login for %r from %s",
            credentials.username,
            get_client_ip(request),
        )
        raise Unauthorized("Invalid username or password")

    token = issue_session_token(session)
    response.set_cookie(
        SESSION_COOKIE,
        token,
        max_age=settings.session_max_age,
        httponly=True,
        secure=settings.environment == "production",
        samesite="lax",
    )
    logger.info("Admin %s signed in", session.username)
    return LoginResponse(token=token, expires_in=settings.session_max_age, user=session)


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response):
    response.delete_cookie(SESSION_COOKIE)
    return MessageResponse(message="Signed out")


@router.get("/session", response_model=AdminSession)
async def current_session(admin: AdminSession = Depends(require_admin)):
    return admin
