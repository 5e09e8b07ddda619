"""Request-level security helpers.

Input sanitization, format validation, spam heuristics, client IP
extraction and the security headers attached to every response.
"""

import re
from collections.abc import Iterable, Mapping

from starlette.requests import Request

_SCRIPT_RE = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.I)
_IFRAME_RE = re.compile(r"<iframe\b[^<]*(?:(?!</iframe>)<[^<]*)*</iframe>", re.I)
_EMBED_RE = re.compile(r"<(object|embed|form)[^>]*>.*?</\1>", re.I | re.S)
_JS_PROTOCOL_RE = re.compile(r"javascript:", re.I)
_EVENT_HANDLER_RE = re.compile(r"""\s*on\w+\s*=\s*["'][^"']*["']""", re.I)

_HTML_ENTITIES = [
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&#x27;"),
]

_EMAIL_RE = re.compile(
    r"[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+"
    r"@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*"
)

_RECORD_ID_RE = re.compile(r"c[a-z0-9]{24}")

DEV_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]


def sanitize_input(text: str) -> str:
    """Strip active markup from untrusted text and entity-encode the rest.

    Removes script/iframe/object/embed/form blocks, ``javascript:`` URIs and
    inline ``on*=`` handlers, then escapes ``& < > " '``. Text without any of
    those characters comes back unchanged (apart from surrounding whitespace).
    """
    if not isinstance(text, str):
        return ""

    text = _SCRIPT_RE.sub("", text)
    text = _IFRAME_RE.sub("", text)
    text = _EMBED_RE.sub("", text)
    text = _JS_PROTOCOL_RE.sub("", text)
    text = _EVENT_HANDLER_RE.sub("", text)
    for char, entity in _HTML_ENTITIES:
        text = text.replace(char, entity)
    return text.strip()


def validate_email(text: str) -> bool:
    return isinstance(text, str) and _EMAIL_RE.fullmatch(text) is not None


def validate_length(text: str, min_length: int, max_length: int) -> bool:
    return min_length <= len(text) <= max_length


def validate_record_id(text: str) -> bool:
    """True if *text* looks like an id generated by ``folio.models.tables.new_id``."""
    return isinstance(text, str) and _RECORD_ID_RE.fullmatch(text) is not None


class SpamDetector:
    """Pattern-based spam heuristic.

    A detector is a callable returning True when any of its patterns match.
    Swap in a different instance (or any ``Callable[[str], bool]``) to tune
    what the comment pipeline rejects.
    """

    DEFAULT_PATTERNS = [
        # Three or more links
        re.compile(r"(?:https?://\S+[\s\S]*?){3,}", re.I),
        # Shouting
        re.compile(r"[A-Z]{10,}"),
        # The same character over and over
        re.compile(r"(.)\1{10,}"),
        # Promotional phrases
        re.compile(
            r"\b(?:buy now|click here|free money|guaranteed|make money|viagra|casino)\b",
            re.I,
        ),
        # Excessive punctuation
        re.compile(r"[!?]{5,}"),
        # Raw or already-escaped script / iframe tags
        re.compile(r"(?:<|&lt;)\s*/?\s*(?:script|iframe)\b", re.I),
    ]

    def __init__(self, patterns: Iterable[str | re.Pattern[str]] | None = None) -> None:
        sources = self.DEFAULT_PATTERNS if patterns is None else patterns
        self._patterns = [re.compile(p) for p in sources]

    def __call__(self, text: str) -> bool:
        if not text:
            return False
        return any(p.search(text) for p in self._patterns)


_default_detector = SpamDetector()


def check_spam_patterns(text: str) -> bool:
    """Return True if *text* looks like spam according to the default detector."""
    return _default_detector(text)


def get_client_ip(request: Request) -> str:
    """Best-effort client IP from proxy headers.

    Checks the Cloudflare, AWS load balancer, generic forwarded-for and
    real-IP headers in that order. No format validation is done.
    """
    headers = request.headers

    cf_ip = headers.get("cf-connecting-ip")
    if cf_ip:
        return cf_ip

    aws_forwarded = headers.get("x-amzn-forwarded-for")
    if aws_forwarded:
        return aws_forwarded.split(",")[0].strip() or "unknown"

    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip() or "unknown"

    real_ip = headers.get("x-real-ip")
    if real_ip:
        return real_ip

    return "unknown"


def validate_origin(
    origin: str | None, allowed_origins: list[str], environment: str = "production"
) -> bool:
    """Check a browser ``Origin`` header against the allow-list."""
    if not origin:
        return False
    allowed = list(allowed_origins)
    if environment == "development":
        allowed.extend(DEV_ORIGINS)
    return origin in allowed


def get_security_headers() -> dict[str, str]:
    """Headers attached to every API response."""
    return {
        "X-Frame-Options": "DENY",
        "X-Content-Type-Options": "nosniff",
        "Referrer-Policy": "origin-when-cross-origin",
        "X-XSS-Protection": "1; mode=block",
        "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
        "Access-Control-Allow-Headers": "Content-Type",
    }


def _text(data: Mapping[str, object], field: str) -> str:
    value = data.get(field)
    return value.strip() if isinstance(value, str) else ""


def validate_comment_form(data: Mapping[str, object]) -> list[str]:
    """Validate a comment submission. Returns the list of violations."""
    errors: list[str] = []

    post_id = _text(data, "postId")
    if not post_id:
        errors.append("Post ID is required")
    elif not validate_length(post_id, 1, 50):
        errors.append("Invalid post ID format")

    author = _text(data, "author")
    if not author:
        errors.append("Author name is required")
    elif not validate_length(author, 2, 50):
        errors.append("Author name must be between 2-50 characters")
    elif "<" in author or ">" in author:
        errors.append("Author name contains invalid characters")

    email = _text(data, "email")
    if not email:
        errors.append("Email address is required")
    elif not validate_email(email):
        errors.append("Please enter a valid email address")

    content = _text(data, "content")
    if not content:
        errors.append("Comment content is required")
    elif not validate_length(content, 10, 1000):
        errors.append("Comment must be between 10-1000 characters")

    return errors


def validate_contact_form(data: Mapping[str, object]) -> list[str]:
    """Validate a contact form submission. Returns the list of violations."""
    errors: list[str] = []

    name = _text(data, "name")
    if not name:
        errors.append("Name is required")
    elif not validate_length(name, 2, 100):
        errors.append("Name must be between 2-100 characters")

    email = _text(data, "email")
    if not email:
        errors.append("Email address is required")
    elif not validate_email(email):
        errors.append("Please enter a valid email address")

    subject = _text(data, "subject")
    if not subject:
        errors.append("Subject is required")
    elif not validate_length(subject, 3, 200):
        errors.append("Subject must be between 3-200 characters")

    message = _text(data, "message")
    if not message:
        errors.append("Message is required")
    elif not validate_length(message, 10, 2000):
        errors.append("Message must be between 10-2000 characters")

    return errors
