"""Outbound mail through the Brevo transactional email API.

Used by the contact form and the newsletter signup; both simply notify the
site owner. Field values are expected to be sanitized by the caller.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import httpx

from folio.config import get_settings
from folio.errors import InternalError, RequestTimeout, ServiceUnavailable
from folio.services.http_client import BREVO_API_URL, brevo_headers, get_shared_client

logger = logging.getLogger(__name__)

_PLACEHOLDER_KEYS = ("your-brevo-api-key-here", "your-api-key-here")


@dataclass
class ContactMessage:
    """A sanitized contact form submission."""

    name: str
    email: str
    subject: str
    message: str
    ip: str


def mail_configured() -> bool:
    settings = get_settings()
    key = settings.brevo_api_key
    return bool(key and settings.recipient_email) and not any(
        placeholder in key for placeholder in _PLACEHOLDER_KEYS
    )


def _error_message(status_code: int, data: dict[str, Any]) -> str:
    """Map a Brevo error response to something we can show a visitor."""
    detail = str(data.get("message", ""))
    if status_code == 401 or "Invalid API key" in detail:
        return "Mail service rejected our credentials. Please contact the site administrator."
    if status_code == 429 or "rate limit" in detail:
        return "Too many mail requests. Please wait a few minutes."
    if "Invalid email" in detail:
        return "The email address format was rejected."
    if "blocked" in detail:
        return "This email address is blocked. Please use a different address."
    return "Mail could not be sent. Please try again later."


async def _send(payload: dict[str, Any]) -> dict[str, Any]:
    if not mail_configured():
        logger.error("Brevo mail is not configured (BREVO_API_KEY / RECIPIENT_EMAIL)")
        raise InternalError(
            "Server configuration error. Please contact the site administrator."
        )

    client = get_shared_client()
    try:
        resp = await client.post(BREVO_API_URL, headers=brevo_headers(), json=payload)
    except httpx.TimeoutException:
        logger.warning("Brevo request timed out")
        raise RequestTimeout("The request timed out. Please try again.")
    except httpx.TransportError as e:
        logger.warning("Brevo request failed: %s", e)
        raise ServiceUnavailable("Network error while sending mail. Please try again later.")

    try:
        data = resp.json()
    except ValueError:
        data = {}

    if resp.is_success:
        return data

    logger.error("Brevo API %d: %s", resp.status_code, data)
    raise InternalError(_error_message(resp.status_code, data))


def _render_contact_html(msg: ContactMessage, sent_at: datetime) -> str:
    return f"""<html>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
  <h2>New portfolio contact message</h2>
  <p><strong>From:</strong> {msg.name}</p>
  <p><strong>Email:</strong> <a href="mailto:{msg.email}">{msg.email}</a></p>
  <p><strong>Subject:</strong> {msg.subject}</p>
  <p><strong>Date:</strong> {sent_at.strftime("%Y-%m-%d %H:%M UTC")}</p>
  <p><strong>IP:</strong> {msg.ip}</p>
  <hr>
  <p style="white-space: pre-wrap;">{msg.message}</p>
</body>
</html>"""


async def send_contact_message(msg: ContactMessage) -> str | None:
    """Forward a contact form message to the site owner. Returns Brevo's message id."""
    settings = get_settings()
    payload = {
        "sender": {"name": settings.sender_name, "email": settings.sender_email},
        "to": [{"email": settings.recipient_email}],
        "subject": f"Portfolio contact: {msg.subject}",
        "htmlContent": _render_contact_html(msg, datetime.now(timezone.utc)),
        "replyTo": {"email": msg.email, "name": msg.name},
    }
    data = await _send(payload)
    logger.info("Contact message from %s forwarded", msg.ip)
    return data.get("messageId")


async def send_subscription_notice(email: str, ip: str) -> None:
    """Tell the site owner someone joined the newsletter."""
    settings = get_settings()
    sent_at = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
    payload = {
        "sender": {"name": "Newsletter Subscription", "email": settings.sender_email},
        "to": [{"email": settings.recipient_email}],
        "subject": f"New newsletter subscription: {email}",
        "htmlContent": (
            "<html><body><h2>New Newsletter Subscription</h2>"
            f"<p><strong>Email:</strong> {email}</p>"
            f"<p><strong>IP Address:</strong> {ip}</p>"
            f"<p><strong>Date:</strong> {sent_at}</p>"
            "</body></html>"
        ),
    }
    await _send(payload)
    logger.info("Newsletter subscription from %s", ip)
