"""Comment submission (public) and moderation (admin) endpoints."""

import logging

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from folio.errors import BadRequest, InternalError
from folio.models.auth import AdminSession
from folio.models.comment import ActionResponse, CommentListResponse
from folio.routers.deps import get_comment_limiter, get_db, require_admin
from folio.services import comments as comment_service
from folio.services.rate_limit import RateLimiter
from folio.services.security import get_client_ip

router = APIRouter(prefix="/comments", tags=["comments"])
logger = logging.getLogger(__name__)


def _parse_approved(value: str | None) -> bool | None:
    if value is None or value == "":
        return None
    if value == "true":
        return True
    if value == "false":
        return False
    raise BadRequest("approved must be 'true' or 'false'")


@router.post("", status_code=201, response_model=ActionResponse)
async def submit_comment(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
    limiter: RateLimiter = Depends(get_comment_limiter),
):
    """Submit a comment for moderation. Rate limited per client IP."""
    client_ip = get_client_ip(request)
    body = await request.body()
    try:
        result = await comment_service.submit_comment(db, limiter, client_ip, body)
    except SQLAlchemyError:
        logger.exception("Storing comment from %s failed", client_ip)
        raise InternalError("Failed to submit comment")

    response.headers.update(
        comment_service.rate_limit_headers(result.rate_limit, result.limit)
    )
    return ActionResponse(message=result.message)


@router.get("", response_model=CommentListResponse)
async def list_comments(
    response: Response,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    approved: str | None = Query(None),
    search: str | None = Query(None, max_length=200),
    admin: AdminSession = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Moderation listing with filters and whole-set statistics."""
    query = comment_service.CommentQuery(
        page=page,
        limit=limit,
        approved=_parse_approved(approved),
        search=(search or "").strip() or None,
    )
    try:
        result = await comment_service.list_comments(db, query)
    except SQLAlchemyError:
        logger.exception("Listing comments failed")
        raise InternalError("Failed to fetch comments")

    response.headers["X-Total-Count"] = str(result.stats.total)
    response.headers["X-Page"] = str(query.page)
    response.headers["X-Per-Page"] = str(query.limit)
    return result


@router.post("/{comment_id}/approve", response_model=ActionResponse)
async def approve_comment(
    comment_id: str,
    admin: AdminSession = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    try:
        message = await comment_service.approve_comment(db, comment_id, admin)
    except SQLAlchemyError:
        logger.exception("Approving comment %s failed", comment_id)
        raise InternalError("Failed to approve comment")
    return ActionResponse(message=message)


@router.delete("/{comment_id}", response_model=ActionResponse)
async def delete_comment(
    comment_id: str,
    admin: AdminSession = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    try:
        message = await comment_service.delete_comment(db, comment_id, admin)
    except SQLAlchemyError:
        logger.exception("Deleting comment %s failed", comment_id)
        raise InternalError("Failed to delete comment")
    return ActionResponse(message=message)
