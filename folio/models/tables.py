"""Database tables: blog posts, comments and the admin account."""

import secrets
import string
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Text
from sqlmodel import Field, SQLModel

_ID_ALPHABET = string.ascii_lowercase + string.digits


def new_id() -> str:
    """Return a new record id: ``c`` followed by 24 lowercase alphanumerics."""
    return "c" + "".join(secrets.choice(_ID_ALPHABET) for _ in range(24))


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Post(SQLModel, table=True):
    """A blog article."""

    __tablename__ = "blog_posts"  # type: ignore

    id: str = Field(default_factory=new_id, primary_key=True, max_length=25)
    slug: str = Field(unique=True, index=True, max_length=120)
    title: str
    excerpt: str | None = None
    content: str = Field(sa_column=Column(Text, nullable=False))
    cover_image: str | None = None
    published: bool = Field(default=False, index=True)
    is_featured: bool = False
    published_at: datetime | None = Field(
        default=None, sa_column=Column(DateTime(timezone=True), index=True)
    )
    tags: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    read_time: int = 1
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, onupdate=utcnow),
    )


class Comment(SQLModel, table=True):
    """A visitor comment; hidden from the public site until approved."""

    __tablename__ = "comments"  # type: ignore

    id: str = Field(default_factory=new_id, primary_key=True, max_length=25)
    post_id: str = Field(foreign_key="blog_posts.id", index=True, ondelete="CASCADE")
    author: str = Field(max_length=50)
    email: str
    content: str = Field(sa_column=Column(Text, nullable=False))
    approved: bool = Field(default=False, index=True)
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True),
    )


class Admin(SQLModel, table=True):
    """The site administrator. Provisioned by ``scripts/manage_admin.py``."""

    __tablename__ = "admins"  # type: ignore

    id: str = Field(default_factory=new_id, primary_key=True, max_length=25)
    username: str = Field(unique=True, index=True)
    password: str  # bcrypt hash
    name: str
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
