"""
Portfolio Blog API

FastAPI backend for the portfolio site: public blog reads, moderated
comments, the admin content API and the contact form.
"""

import logging
import time
from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from folio.config import get_settings
from folio.database import check_database_connectivity, dispose_engine, init_db
from folio.errors import BlogError, InternalError, ValidationError
from folio.middleware import (
    RequestIDMiddleware,
    SecurityHeadersMiddleware,
    configure_logging,
)
from folio.routers import auth, blog, comments, contact, posts, upload
from folio.services.http_client import close_shared_client
from folio.services.rate_limit import RateLimiter
from folio.services.security import get_security_headers

logger = logging.getLogger(__name__)

settings = get_settings()
configure_logging(logging.DEBUG if settings.debug else logging.INFO)

# Health check cache: (result_dict, timestamp)
_health_cache: tuple[dict[str, Any], float] | None = None
_HEALTH_CACHE_TTL = 30  # seconds

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: create tables on startup, release clients on shutdown."""
    await init_db()
    logger.info("Database ready (%s)", settings.environment)
    yield
    await close_shared_client()
    await dispose_engine()


app = FastAPI(
    title="Portfolio Blog API",
    description="Blog, moderated comments and contact form for the portfolio site",
    version=VERSION,
    lifespan=lifespan,
)

# Process-local rate limiters, swappable in tests
app.state.comment_limiter = RateLimiter()
app.state.form_limiter = RateLimiter()

# Security headers, then request ID (outermost)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestIDMiddleware)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    expose_headers=[
        "X-Request-ID",
        "X-Total-Count",
        "X-Page",
        "X-Per-Page",
        "X-RateLimit-Limit",
        "X-RateLimit-Remaining",
        "X-RateLimit-Reset",
        "Retry-After",
    ],
)


@app.exception_handler(BlogError)
async def blog_error_handler(request: Request, exc: BlogError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code, content=exc.to_dict(), headers=exc.headers
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed bodies and query params are a 400, same shape as BlogError."""
    messages = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        messages.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    error = ValidationError(messages or ["Invalid request"])
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort for crashes. Runs outside the middleware stack, so it sets
    the security headers itself."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    error = InternalError("An unexpected error occurred")
    return JSONResponse(
        status_code=error.status_code,
        content=error.to_dict(),
        headers=get_security_headers(),
    )


# Routers
app.include_router(auth.router, prefix="/api")
app.include_router(blog.router, prefix="/api")
app.include_router(comments.router, prefix="/api")
app.include_router(posts.router, prefix="/api")
app.include_router(upload.router, prefix="/api")
app.include_router(contact.router, prefix="/api")


def _check_config() -> str:
    """Verify required configuration is loaded. Returns 'ok' or 'fail'."""
    s = get_settings()
    if s.database_url and s.session_secret and s.session_secret != "change-me":
        return "ok"
    return "fail"


async def _run_health_checks() -> dict[str, Any]:
    """Run all health checks, returning the full response body."""
    global _health_cache
    now = time.time()
    if _health_cache is not None:
        cached_result, cached_at = _health_cache
        if now - cached_at < _HEALTH_CACHE_TTL:
            return cached_result

    config_status = _check_config()
    database_status = "ok" if await check_database_connectivity() else "fail"

    checks = {"config": config_status, "database": database_status}
    failed = [k for k, v in checks.items() if v != "ok"]

    if failed:
        overall = "degraded"
        logger.warning("Health check degraded, failed: %s", ", ".join(failed))
    else:
        overall = "ok"

    result: dict[str, Any] = {
        "status": overall,
        "service": "folio-api",
        "version": VERSION,
        "checks": checks,
    }
    _health_cache = (result, now)
    return result


@app.get("/api/health")
async def health_check() -> JSONResponse:
    """Health check verifying configuration and the database."""
    result = await _run_health_checks()
    status_code = 200 if result["status"] in ("ok", "degraded") else 503
    return JSONResponse(content=result, status_code=status_code)
