"""Blog post storage: admin CRUD and the public read queries."""

import json
import logging
import math
from collections import Counter
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import String, cast, func, or_
from sqlalchemy.exc import IntegrityError
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from folio.errors import BadRequest, Conflict, NotFound
from folio.models.auth import AdminSession
from folio.models.blog import (
    PostCreate,
    PostPage,
    PostSummary,
    PostUpdate,
    PostWithCount,
    TagCount,
)
from folio.models.tables import Comment, Post
from folio.services.blog_utils import (
    calculate_read_time,
    generate_excerpt,
    generate_slug,
    normalize_tags,
    parse_publish_date,
    validate_slug_format,
)

logger = logging.getLogger(__name__)

POSTS_PER_PAGE = 6
TOP_TAGS = 5

SLUG_CONFLICT_MESSAGE = "A post with this slug already exists"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_date(value: str | None) -> datetime | None:
    try:
        return parse_publish_date(value)
    except ValueError:
        raise BadRequest("Invalid publishedAt date format")


def _slug_for(title: str) -> str:
    slug = generate_slug(title)
    if not validate_slug_format(slug):
        raise BadRequest("Invalid title format for slug generation")
    return slug


async def _unique_slug(
    db: AsyncSession, base: str, exclude_id: str | None = None
) -> str:
    """First of ``base``, ``base-1``, ``base-2``, … not taken by another post."""
    candidate = base
    counter = 1
    while True:
        result = await db.exec(select(Post.id).where(Post.slug == candidate))
        owner = result.first()
        if owner is None or owner == exclude_id:
            return candidate
        candidate = f"{base}-{counter}"
        counter += 1


async def _commit_post(db: AsyncSession, post: Post) -> Post:
    db.add(post)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise Conflict(SLUG_CONFLICT_MESSAGE)
    await db.refresh(post)
    return post


async def list_posts(db: AsyncSession) -> list[PostWithCount]:
    """All posts (drafts included), most recently updated first."""
    stmt = (
        select(Post, func.count(col(Comment.id)))
        .outerjoin(Comment, col(Comment.post_id) == col(Post.id))
        .group_by(col(Post.id))
        .order_by(col(Post.updated_at).desc())
    )
    rows = (await db.exec(stmt)).all()
    return [
        PostWithCount.model_validate(post).model_copy(update={"comment_count": count})
        for post, count in rows
    ]


async def get_post(db: AsyncSession, post_id: str) -> Post:
    post = await db.get(Post, post_id)
    if post is None:
        raise NotFound("Post not found")
    return post


async def create_post(db: AsyncSession, data: PostCreate) -> Post:
    title = (data.title or "").strip()
    content = (data.content or "").strip()
    if not title or not content:
        raise BadRequest("Title and content are required")

    slug = await _unique_slug(db, _slug_for(title))
    published_at = _parse_date(data.published_at)

    now = _now()
    published = bool(data.published)
    if published_at and published_at <= now:
        published = True
    if published and published_at is None:
        published_at = now

    post = Post(
        slug=slug,
        title=title,
        excerpt=(data.excerpt or "").strip() or generate_excerpt(content),
        content=content,
        cover_image=(data.cover_image or "").strip() or None,
        published=published,
        is_featured=bool(data.is_featured),
        published_at=published_at,
        tags=normalize_tags(data.tags),
        read_time=calculate_read_time(content),
    )
    post = await _commit_post(db, post)
    logger.info("Created post %s (%s)", post.id, post.slug)
    return post


async def update_post(db: AsyncSession, post_id: str, data: PostUpdate) -> Post:
    """Apply the fields present in *data* to an existing post."""
    post = await get_post(db, post_id)
    fields = data.model_fields_set
    updates: dict[str, Any] = {}

    title = (data.title or "").strip()
    if title:
        updates["title"] = title
        if title != post.title:
            updates["slug"] = await _unique_slug(
                db, _slug_for(title), exclude_id=post.id
            )

    content = (data.content or "").strip()
    if content:
        updates["content"] = content
        updates["read_time"] = calculate_read_time(content)
        if not data.excerpt and content != post.content:
            updates["excerpt"] = generate_excerpt(content)

    if "excerpt" in fields:
        updates["excerpt"] = (data.excerpt or "").strip() or None
    if "cover_image" in fields:
        updates["cover_image"] = (data.cover_image or "").strip() or None
    if "tags" in fields:
        updates["tags"] = normalize_tags(data.tags)
    if "published" in fields and data.published is not None:
        updates["published"] = data.published
    if "is_featured" in fields and data.is_featured is not None:
        updates["is_featured"] = data.is_featured

    now = _now()
    if "published_at" in fields:
        published_at = _parse_date(data.published_at)
        updates["published_at"] = published_at
        if published_at and published_at <= now and data.published is not False:
            updates["published"] = True

    if not updates:
        raise BadRequest("No valid fields provided for update")

    will_publish = updates.get("published", post.published)
    publish_date = updates.get("published_at", post.published_at)
    if will_publish and publish_date is None:
        updates["published_at"] = now

    for key, value in updates.items():
        setattr(post, key, value)
    post.updated_at = now
    post = await _commit_post(db, post)
    logger.info("Updated post %s fields: %s", post.id, ", ".join(sorted(updates)))
    return post


async def delete_post(db: AsyncSession, post_id: str, admin: AdminSession) -> str:
    """Delete a post and every comment on it. Returns the confirmation message."""
    post = await get_post(db, post_id)
    title = post.title

    comments = (await db.exec(select(Comment).where(Comment.post_id == post_id))).all()
    for comment in comments:
        await db.delete(comment)
    # Comments must be gone before the post row under foreign key enforcement
    await db.flush()
    await db.delete(post)
    await db.commit()

    count = len(comments)
    logger.info(
        "Post %s deleted with %d comments by admin %s", post_id, count, admin.username
    )
    if count:
        plural = "s" if count > 1 else ""
        return (
            f'Post "{title}" and {count} associated comment{plural} deleted successfully'
        )
    return f'Post "{title}" deleted successfully'


# --- Public reads -----------------------------------------------------------


def _visible(now: datetime) -> list[Any]:
    """Published and past its publish date."""
    return [
        col(Post.published) == True,  # noqa: E712
        col(Post.published_at).is_not(None),
        col(Post.published_at) <= now,
    ]


def _approved_count():
    return (
        select(func.count(col(Comment.id)))
        .where(col(Comment.post_id) == col(Post.id), col(Comment.approved) == True)  # noqa: E712
        .correlate(Post)
        .scalar_subquery()
    )


def _summary(post: Post, comment_count: int) -> PostSummary:
    return PostSummary.model_validate(post).model_copy(
        update={"comment_count": comment_count}
    )


async def list_public_posts(
    db: AsyncSession,
    page: int = 1,
    tag: str | None = None,
    query: str | None = None,
    per_page: int = POSTS_PER_PAGE,
) -> PostPage:
    """Visible posts, newest first, optionally filtered by tag or search text."""
    page = max(1, page)
    conditions = _visible(_now())
    if tag:
        # Tags are a JSON array; match the quoted element in its text form
        conditions.append(
            cast(col(Post.tags), String).contains(json.dumps(tag), autoescape=True)
        )
    if query:
        conditions.append(
            or_(
                col(Post.title).icontains(query, autoescape=True),
                col(Post.content).icontains(query, autoescape=True),
            )
        )

    total = (
        await db.exec(select(func.count()).select_from(Post).where(*conditions))
    ).one()

    stmt = (
        select(Post, _approved_count())
        .where(*conditions)
        .order_by(col(Post.published_at).desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    rows = (await db.exec(stmt)).all()
    return PostPage(
        posts=[_summary(post, count) for post, count in rows],
        total=total,
        page=page,
        pages=math.ceil(total / per_page) if total else 0,
    )


async def get_featured_post(db: AsyncSession) -> PostSummary:
    stmt = (
        select(Post, _approved_count())
        .where(*_visible(_now()), col(Post.is_featured) == True)  # noqa: E712
        .order_by(col(Post.published_at).desc())
        .limit(1)
    )
    row = (await db.exec(stmt)).first()
    if row is None:
        raise NotFound("No featured post")
    post, count = row
    return _summary(post, count)


async def get_public_post(db: AsyncSession, slug: str) -> Post:
    stmt = select(Post).where(col(Post.slug) == slug, *_visible(_now()))
    post = (await db.exec(stmt)).first()
    if post is None:
        raise NotFound("Blog post not found")
    return post


async def top_tags(db: AsyncSession, limit: int = TOP_TAGS) -> list[TagCount]:
    """Most used tags across visible posts."""
    result = await db.exec(select(Post.tags).where(*_visible(_now())))
    counts: Counter[str] = Counter()
    for tags in result.all():
        counts.update(tags or [])
    return [TagCount(name=name, count=count) for name, count in counts.most_common(limit)]
