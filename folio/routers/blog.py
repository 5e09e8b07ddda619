"""Public blog endpoints: listing, featured post, tags and post detail."""

import logging

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from folio.errors import InternalError
from folio.models.blog import PostDetail, PostPage, PostSummary, PublicComment, TagCount
from folio.routers.deps import get_db
from folio.services import comments as comment_service
from folio.services import posts as post_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/blog", tags=["blog"])


@router.get("/posts", response_model=PostPage)
async def list_blog_posts(
    page: int = Query(default=1, ge=1),
    tag: str | None = Query(default=None, max_length=50),
    q: str | None = Query(default=None, max_length=200),
    db: AsyncSession = Depends(get_db),
):
    """Published posts, newest first."""
    try:
        return await post_service.list_public_posts(
            db,
            page=page,
            tag=(tag or "").strip().lower() or None,
            query=(q or "").strip() or None,
        )
    except SQLAlchemyError:
        logger.exception("Listing blog posts failed")
        raise InternalError("Failed to fetch posts")


@router.get("/posts/featured", response_model=PostSummary)
async def featured_post(db: AsyncSession = Depends(get_db)):
    try:
        return await post_service.get_featured_post(db)
    except SQLAlchemyError:
        logger.exception("Fetching featured post failed")
        raise InternalError("Failed to fetch featured post")


@router.get("/tags", response_model=list[TagCount])
async def popular_tags(db: AsyncSession = Depends(get_db)):
    try:
        return await post_service.top_tags(db)
    except SQLAlchemyError:
        logger.exception("Fetching tags failed")
        raise InternalError("Failed to fetch tags")


@router.get("/posts/{slug}", response_model=PostDetail)
async def get_blog_post(
    slug: str = Path(max_length=120),
    db: AsyncSession = Depends(get_db),
):
    """A visible post with its approved comments, oldest first."""
    try:
        post = await post_service.get_public_post(db, slug)
        comments = await comment_service.list_approved_comments(db, post.id)
    except SQLAlchemyError:
        logger.exception("Fetching blog post %s failed", slug)
        raise InternalError("Failed to fetch post")
    return PostDetail.model_validate(post).model_copy(
        update={"comments": [PublicComment.model_validate(c) for c in comments]}
    )
