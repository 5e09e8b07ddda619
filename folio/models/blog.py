"""Blog post request/response models."""

from datetime import datetime

from folio.models.base import ApiModel


class PostCreate(ApiModel):
    """Body of ``POST /api/posts``. Title and content are checked by the service."""

    title: str = ""
    content: str = ""
    excerpt: str | None = None
    cover_image: str | None = None
    published: bool | None = None
    is_featured: bool | None = None
    published_at: str | None = None
    tags: list[str] | None = None


class PostUpdate(ApiModel):
    """Body of ``PUT /api/posts/{id}``. Only fields present are applied."""

    title: str | None = None
    content: str | None = None
    excerpt: str | None = None
    cover_image: str | None = None
    published: bool | None = None
    is_featured: bool | None = None
    published_at: str | None = None
    tags: list[str] | None = None


class PostOut(ApiModel):
    id: str
    slug: str
    title: str
    excerpt: str | None = None
    content: str
    cover_image: str | None = None
    published: bool
    is_featured: bool
    published_at: datetime | None = None
    tags: list[str] = []
    read_time: int
    created_at: datetime
    updated_at: datetime


class PostWithCount(PostOut):
    comment_count: int = 0


class PostResponse(ApiModel):
    post: PostOut


class PostListResponse(ApiModel):
    posts: list[PostWithCount]


class PostSummary(ApiModel):
    """Public listing entry (no body)."""

    id: str
    slug: str
    title: str
    excerpt: str | None = None
    cover_image: str | None = None
    published_at: datetime | None = None
    tags: list[str] = []
    read_time: int
    is_featured: bool
    comment_count: int = 0


class PostPage(ApiModel):
    posts: list[PostSummary]
    total: int
    page: int
    pages: int


class PublicComment(ApiModel):
    """An approved comment as shown under a post (email withheld)."""

    id: str
    author: str
    content: str
    created_at: datetime


class PostDetail(PostOut):
    comments: list[PublicComment] = []


class TagCount(ApiModel):
    name: str
    count: int


class MessageResponse(ApiModel):
    message: str
