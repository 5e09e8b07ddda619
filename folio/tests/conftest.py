"""Shared fixtures for folio tests."""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel.ext.asyncio.session import AsyncSession

from folio.database import enforce_sqlite_foreign_keys, get_db, init_db
from folio.models.auth import AdminSession
from folio.models.tables import Comment, Post, new_id
from folio.services.rate_limit import RateLimiter


@pytest.fixture(autouse=True)
def _reset_global_state():
    """Reset all module-level singletons and caches between tests."""
    yield

    # 1. Settings LRU cache
    from folio.config import get_settings

    get_settings.cache_clear()

    # 2. Blob storage singleton
    import folio.services.blob_storage as blob_mod

    blob_mod._container_client = None

    # 3. HTTP client singleton
    import folio.services.http_client as http_mod

    http_mod._client = None

    # 4. Health check cache
    import folio.main as main_mod

    main_mod._health_cache = None
    main_mod.app.dependency_overrides.clear()


@pytest.fixture
def mock_settings(monkeypatch):
    """Provide a Settings object with safe test defaults."""
    from folio.config import Settings, get_settings

    test_settings = Settings(
        _env_file=None,
        environment="test",
        database_url="sqlite+aiosqlite://",
        session_secret="test-session-secret-with-enough-length",
        allowed_origins=["https://example.dev"],
        azure_storage_account="teststorage",
        azure_image_container="test-images",
        managed_identity_client_id="test-client-id",
        brevo_api_key="test-brevo-key",
        recipient_email="owner@example.dev",
        sender_email="noreply@example.dev",
    )

    get_settings.cache_clear()
    monkeypatch.setattr("folio.config.get_settings", lambda: test_settings)

    # Patch get_settings in every module that imports it directly
    # (from folio.config import get_settings creates a local binding that
    # the folio.config monkeypatch above does not affect)
    for mod_path in [
        "folio.database",
        "folio.services.auth",
        "folio.services.blob_storage",
        "folio.services.comments",
        "folio.services.http_client",
        "folio.services.mailer",
        "folio.routers.auth",
        "folio.routers.contact",
        "folio.main",
    ]:
        monkeypatch.setattr(f"{mod_path}.get_settings", lambda: test_settings)

    return test_settings


@pytest.fixture
async def session_factory():
    """A fresh in-memory database with all tables created."""
    engine = enforce_sqlite_foreign_keys(
        create_async_engine(
            "sqlite+aiosqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    )
    await init_db(engine)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
async def client(mock_settings, session_factory):
    """HTTP client against the app, wired to the test database."""
    from folio.main import app

    async def _get_test_db():
        async with session_factory() as s:
            yield s

    app.dependency_overrides[get_db] = _get_test_db
    app.state.comment_limiter = RateLimiter()
    app.state.form_limiter = RateLimiter()

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as c:
        yield c


@pytest.fixture
def admin():
    return AdminSession(id=new_id(), username="admin", name="Site Admin")


@pytest.fixture
def admin_headers(mock_settings, admin):
    from folio.services.auth import issue_session_token

    return {"Authorization": f"Bearer {issue_session_token(admin)}"}


@pytest.fixture
def make_post(session):
    """Factory inserting a post; published yesterday unless overridden."""

    async def _make(**overrides) -> Post:
        suffix = new_id()[-6:]
        fields = {
            "title": f"Post {suffix}",
            "slug": f"post-{suffix}",
            "content": "Some post content that is long enough to read.",
            "published": True,
            "published_at": datetime.now(timezone.utc) - timedelta(days=1),
            "tags": [],
        }
        fields.update(overrides)
        post = Post(**fields)
        session.add(post)
        await session.commit()
        await session.refresh(post)
        return post

    return _make


@pytest.fixture
def make_comment(session):
    """Factory inserting a comment on an existing post; pending by default."""

    async def _make(post: Post, **overrides) -> Comment:
        fields = {
            "post_id": post.id,
            "author": "Jane Doe",
            "email": "jane@example.com",
            "content": "Thanks for writing this up, very helpful.",
            "approved": False,
        }
        fields.update(overrides)
        comment = Comment(**fields)
        session.add(comment)
        await session.commit()
        await session.refresh(comment)
        return comment

    return _make
