"""Derived-field helpers for blog posts: slugs, read time, excerpts, tags."""

import math
import re
from datetime import datetime, timezone

WORDS_PER_MINUTE = 200
EXCERPT_LENGTH = 200
MAX_TAGS = 10
MAX_TAG_LENGTH = 50

_TURKISH_CHARS = str.maketrans(
    {
        "ç": "c", "Ç": "c",
        "ğ": "g", "Ğ": "g",
        "ı": "i", "İ": "i",
        "ö": "o", "Ö": "o",
        "ş": "s", "Ş": "s",
        "ü": "u", "Ü": "u",
    }
)

_SLUG_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")

_MARKUP_STRIPPERS = [
    (re.compile(r"<[^>]*>"), ""),  # HTML tags
    (re.compile(r"\*\*(.*?)\*\*"), r"\1"),  # bold
    (re.compile(r"\*(.*?)\*"), r"\1"),  # italic
    (re.compile(r"`(.*?)`"), r"\1"),  # inline code
    (re.compile(r"#{1,6}\s"), ""),  # headings
    (re.compile(r">\s"), ""),  # blockquotes
]


def generate_slug(title: str) -> str:
    """Build a URL slug from a title, transliterating Turkish letters.

    >>> generate_slug("Merhaba Dünya: İlk Yazı!")
    'merhaba-dunya-ilk-yazi'
    """
    slug = title.translate(_TURKISH_CHARS).lower()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def validate_slug_format(slug: str) -> bool:
    return bool(_SLUG_RE.match(slug)) and 3 <= len(slug) <= 100


def calculate_read_time(content: str) -> int:
    """Estimated reading time in whole minutes, at least 1."""
    words = len(content.split())
    return max(1, math.ceil(words / WORDS_PER_MINUTE))


def generate_excerpt(content: str, max_length: int = EXCERPT_LENGTH) -> str:
    """Plain-text excerpt of Markdown/HTML content.

    Cuts at the last sentence end in the window when that keeps at least
    half of it, otherwise at the last word boundary, appending ``...``.
    """
    text = content
    for pattern, replacement in _MARKUP_STRIPPERS:
        text = pattern.sub(replacement, text)
    text = text.strip()

    if len(text) <= max_length:
        return text

    truncated = text[:max_length]
    last_sentence = truncated.rfind(".")
    last_space = truncated.rfind(" ")

    if last_sentence > max_length * 0.5:
        return text[: last_sentence + 1]
    if last_space > max_length * 0.5:
        return text[:last_space] + "..."
    return truncated + "..."


def normalize_tags(tags: list[str] | None) -> list[str]:
    """Trim, lowercase and dedupe tags, keeping order; at most ten survive."""
    result: list[str] = []
    for tag in tags or []:
        if not isinstance(tag, str):
            continue
        tag = tag.strip().lower()
        if not tag or len(tag) > MAX_TAG_LENGTH or tag in result:
            continue
        result.append(tag)
    return result[:MAX_TAGS]


def parse_publish_date(value: str | datetime | None) -> datetime | None:
    """Parse an ISO-8601 publish date. Naive values are taken as UTC.

    Raises ValueError on an unparseable string.
    """
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
