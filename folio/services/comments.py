"""Comment submission and moderation.

Visitors submit comments through ``submit_comment``; every comment starts
unapproved and stays off the public site until an admin approves it.
"""

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from folio.config import get_settings
from folio.errors import (
    BadRequest,
    ContentRejected,
    NotFound,
    RateLimited,
    ValidationError,
)
from folio.models.auth import AdminSession
from folio.models.comment import (
    AdminComment,
    CommentListResponse,
    CommentPostRef,
    CommentStats,
)
from folio.models.tables import Comment, Post
from folio.services.rate_limit import RateLimiter, RateLimitStatus
from folio.services.security import (
    check_spam_patterns,
    sanitize_input,
    validate_comment_form,
    validate_record_id,
)

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("postId", "author", "email", "content")
MAX_AUTHOR_LENGTH = 50

SUBMITTED_MESSAGE = "Comment submitted successfully! It will be published after review."


@dataclass
class SubmissionResult:
    """A stored (pending) comment plus the caller's remaining quota."""

    comment: Comment
    rate_limit: RateLimitStatus
    limit: int
    message: str = SUBMITTED_MESSAGE


@dataclass
class CommentQuery:
    """Filters for the moderation listing. ``None`` means "don't filter"."""

    page: int = 1
    limit: int = 50
    approved: bool | None = None
    search: str | None = None


def rate_limit_headers(status: RateLimitStatus, limit: int) -> dict[str, str]:
    return {
        "X-RateLimit-Limit": str(limit),
        "X-RateLimit-Remaining": str(status.remaining),
        "X-RateLimit-Reset": status.reset_at.isoformat().replace("+00:00", "Z"),
    }


def _parse_submission(raw_body: bytes) -> dict[str, str]:
    try:
        data = json.loads(raw_body)
    except ValueError:
        raise BadRequest("Invalid JSON payload")

    if not isinstance(data, dict) or not all(
        isinstance(data.get(field), str) for field in REQUIRED_FIELDS
    ):
        raise BadRequest(
            "Missing required fields: " + ", ".join(REQUIRED_FIELDS)
        )
    return {field: data[field] for field in REQUIRED_FIELDS}


async def submit_comment(
    db: AsyncSession,
    limiter: RateLimiter,
    client_ip: str,
    raw_body: bytes,
    *,
    spam_check: Callable[[str], bool] = check_spam_patterns,
) -> SubmissionResult:
    """Rate-limit, validate, sanitize and store a visitor comment.

    Raises RateLimited, BadRequest, ValidationError, NotFound or
    ContentRejected; nothing is written unless every check passes.
    """
    settings = get_settings()
    limit = settings.comment_rate_limit_max

    status = limiter.check(
        f"comment:{client_ip}", limit, settings.comment_rate_limit_window
    )
    if not status.allowed:
        logger.warning("Comment rate limit hit for %s", client_ip)
        headers = rate_limit_headers(status, limit)
        headers["Retry-After"] = str(status.retry_after(limiter.now()))
        raise RateLimited(
            "Too many comments submitted. Please try again in a few minutes.",
            headers=headers,
        )

    data = _parse_submission(raw_body)

    errors = validate_comment_form(data)
    if errors:
        raise ValidationError(errors)

    post_id = data["postId"].strip()
    post = await db.get(Post, post_id)
    if post is None:
        raise NotFound("Blog post not found")
    if not post.published:
        raise BadRequest("Cannot comment on unpublished posts")

    author = data["author"].strip()[:MAX_AUTHOR_LENGTH]
    email = data["email"].strip().lower()
    content = sanitize_input(data["content"].strip())

    if spam_check(content) or spam_check(author):
        logger.warning("Spam comment rejected from %s on post %s", client_ip, post_id)
        raise ContentRejected("Comment appears to be spam and was rejected")

    comment = Comment(
        post_id=post_id,
        author=author,
        email=email,
        content=content,
        approved=False,
    )
    db.add(comment)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise BadRequest("Invalid post ID")
    await db.refresh(comment)

    logger.info("Comment %s submitted on post %s, awaiting review", comment.id, post_id)
    return SubmissionResult(comment=comment, rate_limit=status, limit=limit)


async def _get_comment(db: AsyncSession, comment_id: str) -> Comment:
    if not validate_record_id(comment_id):
        raise BadRequest("Invalid comment ID format")
    comment = await db.get(Comment, comment_id)
    if comment is None:
        raise NotFound("Comment not found")
    return comment


async def approve_comment(
    db: AsyncSession, comment_id: str, admin: AdminSession
) -> str:
    """Mark a pending comment approved. Approving twice is an error."""
    comment = await _get_comment(db, comment_id)
    if comment.approved:
        raise BadRequest("Comment is already approved")

    author, post_id = comment.author, comment.post_id
    comment.approved = True
    db.add(comment)
    await db.commit()

    logger.info(
        "Comment %s by %s on post %s approved by admin %s",
        comment_id,
        author,
        post_id,
        admin.username,
    )
    return f"Comment by {author} has been approved successfully"


async def delete_comment(
    db: AsyncSession, comment_id: str, admin: AdminSession
) -> str:
    """Delete a comment whether or not it was approved."""
    comment = await _get_comment(db, comment_id)
    author, post_id = comment.author, comment.post_id

    await db.delete(comment)
    await db.commit()

    logger.info(
        "Comment %s by %s on post %s deleted by admin %s",
        comment_id,
        author,
        post_id,
        admin.username,
    )
    return f"Comment by {author} has been deleted successfully"


def _filter_conditions(query: CommentQuery, *, approved: bool | None = None) -> list[Any]:
    """Translate a CommentQuery into SQL conditions over Comment joined to Post."""
    conditions: list[Any] = []
    if query.approved is not None:
        conditions.append(col(Comment.approved) == query.approved)
    if approved is not None:
        conditions.append(col(Comment.approved) == approved)
    if query.search:
        text = query.search
        conditions.append(
            or_(
                col(Comment.author).icontains(text, autoescape=True),
                col(Comment.content).icontains(text, autoescape=True),
                col(Post.title).icontains(text, autoescape=True),
            )
        )
    return conditions


async def _count(db: AsyncSession, conditions: list[Any]) -> int:
    stmt = (
        select(func.count())
        .select_from(Comment)
        .join(Post, col(Comment.post_id) == col(Post.id))
        .where(*conditions)
    )
    result = await db.exec(stmt)
    return result.one()


async def list_comments(db: AsyncSession, query: CommentQuery) -> CommentListResponse:
    """A page of comments, newest first, with counts over the whole filtered set."""
    page = max(1, query.page)
    limit = max(1, query.limit)

    stmt = (
        select(Comment, Post)
        .join(Post, col(Comment.post_id) == col(Post.id))
        .where(*_filter_conditions(query))
        .order_by(col(Comment.created_at).desc(), col(Comment.id).desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    rows = (await db.exec(stmt)).all()

    comments = [
        AdminComment(
            id=comment.id,
            author=comment.author,
            email=comment.email,
            content=comment.content,
            approved=comment.approved,
            created_at=comment.created_at,
            post=CommentPostRef(id=post.id, title=post.title, slug=post.slug),
        )
        for comment, post in rows
    ]

    stats = CommentStats(
        total=await _count(db, _filter_conditions(query)),
        pending=await _count(db, _filter_conditions(query, approved=False)),
        approved=await _count(db, _filter_conditions(query, approved=True)),
    )
    return CommentListResponse(comments=comments, stats=stats)


async def list_approved_comments(db: AsyncSession, post_id: str) -> list[Comment]:
    """Publicly visible comments on a post, oldest first."""
    stmt = (
        select(Comment)
        .where(col(Comment.post_id) == post_id, col(Comment.approved) == True)  # noqa: E712
        .order_by(col(Comment.created_at).asc(), col(Comment.id).asc())
    )
    return list((await db.exec(stmt)).all())
