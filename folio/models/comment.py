"""Comment request/response models."""

from datetime import datetime

from folio.models.base import ApiModel


class CommentPostRef(ApiModel):
    id: str
    title: str
    slug: str


class AdminComment(ApiModel):
    """A comment as listed on the moderation dashboard."""

    id: str
    author: str
    email: str
    content: str
    approved: bool
    created_at: datetime
    post: CommentPostRef


class CommentStats(ApiModel):
    total: int
    pending: int
    approved: int


class CommentListResponse(ApiModel):
    comments: list[AdminComment]
    stats: CommentStats


class ActionResponse(ApiModel):
    success: bool = True
    message: str
