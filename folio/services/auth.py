"""Admin authentication: password hashing and signed session tokens.

Sessions are stateless HS256 JWTs carrying the admin's id, username and
display name. They arrive either as an ``Authorization: Bearer`` header or
in the ``folio_session`` cookie set at login.
"""

import logging
import time

import bcrypt
import jwt
from sqlalchemy.exc import IntegrityError
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession
from starlette.requests import Request

from folio.config import get_settings
from folio.errors import BadRequest, Conflict, NotFound
from folio.models.auth import AdminSession
from folio.models.tables import Admin

logger = logging.getLogger(__name__)

SESSION_COOKIE = "folio_session"
JWT_ALGORITHM = "HS256"
BCRYPT_ROUNDS = 12


def hash_password(password: str) -> str:
    return bcrypt.hashpw(
        password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    ).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        logger.warning("Admin password hash is malformed")
        return False


async def authenticate(
    db: AsyncSession, username: str, password: str
) -> AdminSession | None:
    """Verify credentials against the admin table. Returns None on mismatch."""
    result = await db.exec(select(Admin).where(Admin.username == username))
    admin = result.first()
    if admin is None or not verify_password(password, admin.password):
        return None
    return AdminSession(id=admin.id, username=admin.username, name=admin.name)


def issue_session_token(session: AdminSession, now: float | None = None) -> str:
    """Sign a session token valid for ``settings.session_max_age`` seconds."""
    settings = get_settings()
    issued = int(now if now is not None else time.time())
    payload = {
        "sub": session.id,
        "username": session.username,
        "name": session.name,
        "iat": issued,
        "exp": issued + settings.session_max_age,
    }
    return jwt.encode(payload, settings.session_secret, algorithm=JWT_ALGORITHM)


def decode_session_token(token: str) -> AdminSession | None:
    """Return the session in *token*, or None if it is invalid or expired."""
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.session_secret,
            algorithms=[JWT_ALGORITHM],
            options={"require": ["sub", "exp"]},
        )
    except jwt.InvalidTokenError as e:
        logger.debug("Rejected session token: %s", e)
        return None
    return AdminSession(
        id=payload["sub"],
        username=payload.get("username", ""),
        name=payload.get("name", ""),
    )


def _token_from_request(request: Request) -> str | None:
    header = request.headers.get("authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return request.cookies.get(SESSION_COOKIE) or None


def get_session(request: Request) -> AdminSession | None:
    """The authenticated admin for this request, if any."""
    token = _token_from_request(request)
    if not token:
        return None
    return decode_session_token(token)


# --- Admin account management (scripts/manage_admin.py) ---------------------

MIN_PASSWORD_LENGTH = 8


def _check_password(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise BadRequest(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        )


async def _find_admin(db: AsyncSession, username: str) -> Admin:
    admin = (await db.exec(select(Admin).where(Admin.username == username))).first()
    if admin is None:
        raise NotFound(f"Admin user {username!r} not found")
    return admin


async def create_admin(
    db: AsyncSession, username: str, password: str, name: str = "Admin"
) -> Admin:
    _check_password(password)
    existing = (await db.exec(select(Admin).where(Admin.username == username))).first()
    if existing is not None:
        raise Conflict(f"Admin user {username!r} already exists")

    admin = Admin(username=username, password=hash_password(password), name=name)
    db.add(admin)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise Conflict(f"Admin user {username!r} already exists")
    await db.refresh(admin)
    logger.info("Created admin %s (%s)", admin.username, admin.id)
    return admin


async def reset_admin_password(db: AsyncSession, username: str, password: str) -> Admin:
    _check_password(password)
    admin = await _find_admin(db, username)
    admin.password = hash_password(password)
    db.add(admin)
    await db.commit()
    logger.info("Reset password for admin %s", username)
    return admin


async def delete_admin(db: AsyncSession, username: str) -> str:
    """Remove an admin account. Returns the deleted id."""
    admin = await _find_admin(db, username)
    admin_id = admin.id
    await db.delete(admin)
    await db.commit()
    logger.info("Deleted admin %s (%s)", username, admin_id)
    return admin_id


async def list_admins(db: AsyncSession) -> list[Admin]:
    result = await db.exec(select(Admin).order_by(col(Admin.created_at)))
    return list(result.all())
