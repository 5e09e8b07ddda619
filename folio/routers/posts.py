"""Admin blog post management."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from folio.errors import InternalError
from folio.models.auth import AdminSession
from folio.models.blog import (
    MessageResponse,
    PostCreate,
    PostListResponse,
    PostOut,
    PostResponse,
    PostUpdate,
)
from folio.routers.deps import get_db, require_admin
from folio.services import posts as post_service

router = APIRouter(prefix="/posts", tags=["posts"])
logger = logging.getLogger(__name__)


@router.get("", response_model=PostListResponse)
async def list_posts(
    admin: AdminSession = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """All posts, drafts included, with their comment counts."""
    try:
        posts = await post_service.list_posts(db)
    except SQLAlchemyError:
        logger.exception("Listing posts failed")
        raise InternalError("Failed to fetch posts")
    return PostListResponse(posts=posts)


@router.post("", status_code=201, response_model=PostResponse)
async def create_post(
    data: PostCreate,
    admin: AdminSession = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    try:
        post = await post_service.create_post(db, data)
    except SQLAlchemyError:
        logger.exception("Creating post failed")
        raise InternalError("Failed to create post")
    return PostResponse(post=PostOut.model_validate(post))


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(
    post_id: str,
    admin: AdminSession = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    try:
        post = await post_service.get_post(db, post_id)
    except SQLAlchemyError:
        logger.exception("Fetching post %s failed", post_id)
        raise InternalError("Failed to fetch post")
    return PostResponse(post=PostOut.model_validate(post))


@router.put("/{post_id}", response_model=PostResponse)
async def update_post(
    post_id: str,
    data: PostUpdate,
    admin: AdminSession = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    try:
        post = await post_service.update_post(db, post_id, data)
    except SQLAlchemyError:
        logger.exception("Updating post %s failed", post_id)
        raise InternalError("Failed to update post")
    return PostResponse(post=PostOut.model_validate(post))


@router.delete("/{post_id}", response_model=MessageResponse)
async def delete_post(
    post_id: str,
    admin: AdminSession = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Delete a post together with all of its comments."""
    try:
        message = await post_service.delete_post(db, post_id, admin)
    except SQLAlchemyError:
        logger.exception("Deleting post %s failed", post_id)
        raise InternalError("Failed to delete post")
    return MessageResponse(message=message)
