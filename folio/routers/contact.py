"""Contact form and newsletter signup."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request

from folio.config import get_settings
from folio.errors import BadRequest, Forbidden, RateLimited, ValidationError
from folio.models.contact import ContactResponse, SubscribeResponse
from folio.routers.deps import get_form_limiter, read_json
from folio.services.mailer import (
    ContactMessage,
    send_contact_message,
    send_subscription_notice,
)
from folio.services.rate_limit import RateLimiter
from folio.services.security import (
    get_client_ip,
    sanitize_input,
    validate_contact_form,
    validate_email,
    validate_origin,
)

router = APIRouter(tags=["contact"])
logger = logging.getLogger(__name__)


def _guard(request: Request, limiter: RateLimiter, scope: str) -> str:
    """Origin allow-list and per-IP rate limit shared by both forms."""
    settings = get_settings()
    origin = request.headers.get("origin")
    if not validate_origin(origin, settings.allowed_origins, settings.environment):
        logger.warning("Rejected %s request from origin %r", scope, origin)
        raise Forbidden("Origin not allowed")

    client_ip = get_client_ip(request)
    status = limiter.check(
        f"{scope}:{client_ip}",
        settings.form_rate_limit_max,
        settings.form_rate_limit_window,
    )
    if not status.allowed:
        retry_after = status.retry_after(limiter.now())
        logger.warning("%s rate limit hit for %s", scope, client_ip)
        raise RateLimited(
            "Too many requests. Please try again later.",
            headers={"Retry-After": str(retry_after)},
            retry_after=retry_after,
        )
    return client_ip


def _fields(data: Any, names: tuple[str, ...]) -> dict[str, str]:
    if not isinstance(data, dict):
        raise BadRequest("Invalid JSON payload")
    return {
        name: sanitize_input(data[name]) if isinstance(data.get(name), str) else ""
        for name in names
    }


@router.post("/contact", response_model=ContactResponse)
async def contact(request: Request, limiter: RateLimiter = Depends(get_form_limiter)):
    """Forward a visitor's message to the site owner."""
    client_ip = _guard(request, limiter, "contact")
    form = _fields(await read_json(request), ("name", "email", "subject", "message"))

    errors = validate_contact_form(form)
    if errors:
        raise ValidationError(errors)

    message_id = await send_contact_message(
        ContactMessage(
            name=form["name"],
            email=form["email"],
            subject=form["subject"],
            message=form["message"],
            ip=client_ip,
        )
    )
    return ContactResponse(
        message="Your message has been sent successfully!", message_id=message_id
    )


@router.post("/subscribe", response_model=SubscribeResponse)
async def subscribe(request: Request, limiter: RateLimiter = Depends(get_form_limiter)):
    """Register interest in the newsletter."""
    client_ip = _guard(request, limiter, "subscribe")
    email = _fields(await read_json(request), ("email",))["email"]

    if not email:
        raise ValidationError(["Email address is required"])
    if not validate_email(email):
        raise ValidationError(["Please enter a valid email address"])

    await send_subscription_notice(email, client_ip)
    return SubscribeResponse(message="Thanks for subscribing!")
