"""Shared HTTP client utilities: one reusable httpx client."""

import httpx

from folio.config import get_settings

BREVO_API_URL = "https://api.brevo.com/v3/smtp/email"

# Module-level shared client (created lazily, lives for the process lifetime)
_client: httpx.AsyncClient | None = None


def get_shared_client() -> httpx.AsyncClient:
    """Return a shared httpx.AsyncClient, creating it on first call."""
    global _client
    if _client is None or _client.is_closed:
        _client = httpx.AsyncClient(timeout=10.0)
    return _client


async def close_shared_client() -> None:
    global _client
    if _client is not None and not _client.is_closed:
        await _client.aclose()
    _client = None


def brevo_headers() -> dict[str, str]:
    """Build standard Brevo API request headers."""
    settings = get_settings()
    return {
        "accept": "application/json",
        "content-type": "application/json",
        "api-key": settings.brevo_api_key,
    }
