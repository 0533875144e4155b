"""URL and slug validation helpers.

Pure string functions shared by the link creation flow, the slug
suggestion engine and the link management controller.
"""

import re
from urllib.parse import urlsplit, urlunsplit

URL_PATTERN = re.compile(r"https?://[^\s<>\"{}|\\^`\[\]]+", re.IGNORECASE)

# Characters allowed in user-supplied slugs (custom slug, slug edit)
CUSTOM_SLUG_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
MAX_CUSTOM_SLUG_LENGTH = 50

# Suggested slugs are stricter: lowercase, digits and hyphens only
MAX_SUGGESTED_SLUG_LENGTH = 12
_SUGGESTED_SLUG_STRIP = re.compile(r"[^a-z0-9-]")
_CUSTOM_SLUG_STRIP = re.compile(r"[^a-z0-9_-]")

SHORTENER_DOMAINS = (
    "bit.ly",
    "tinyurl.com",
    "short.link",
    "dub.sh",
    "dub.co",
    "t.co",
    "goo.gl",
    "ow.ly",
    "is.gd",
    "buff.ly",
)


def is_valid_url(text: str) -> bool:
    """Return True for absolute http(s) URLs with a host."""
    try:
        parts = urlsplit(text)
        # Accessing .port validates the netloc (raises on garbage ports)
        parts.port
    except ValueError:
        return False
    return parts.scheme.lower() in ("http", "https") and bool(parts.hostname)


def extract_urls(text: str) -> list[str]:
    """Find every http(s) URL in free text, in order of appearance.

    Args:
        text: Arbitrary message text.

    Returns:
        Matched URLs that also pass ``is_valid_url``.
    """
    return [m for m in URL_PATTERN.findall(text) if is_valid_url(m)]


def normalize_url(url: str) -> str:
    """Canonicalize a URL for shortening.

    Lowercases scheme and host, gives an empty path a single ``/`` and
    removes one trailing slash from any longer path. Unparseable input
    is returned unchanged.
    """
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    if not parts.scheme or not parts.netloc:
        return url

    path = parts.path or "/"
    if path.endswith("/") and path != "/":
        path = path[:-1]
    return urlunsplit(
        (parts.scheme.lower(), parts.netloc.lower(), path, parts.query, parts.fragment)
    )


def get_domain_from_url(url: str) -> str:
    """Return the URL host without a leading ``www.``, or 'unknown'."""
    try:
        host = urlsplit(url).hostname
    except ValueError:
        return "unknown"
    if not host:
        return "unknown"
    return re.sub(r"^www\.", "", host)


def is_short_url(url: str) -> bool:
    """Return True when the URL already points at a known link shortener."""
    try:
        host = urlsplit(url).hostname
    except ValueError:
        return False
    if not host:
        return False
    return any(host == d or host.endswith("." + d) for d in SHORTENER_DOMAINS)


def is_valid_slug(slug: str) -> bool:
    """Validate a user-supplied slug: 1-50 chars of letters, digits, ``-`` or ``_``."""
    if not slug or len(slug) > MAX_CUSTOM_SLUG_LENGTH:
        return False
    return bool(CUSTOM_SLUG_PATTERN.fullmatch(slug))


def sanitize_custom_slug(slug: str) -> str:
    """Lowercase a user slug, drop disallowed characters, clip to 50."""
    cleaned = _CUSTOM_SLUG_STRIP.sub("", slug.lower())
    return cleaned[:MAX_CUSTOM_SLUG_LENGTH].strip("-_")


def sanitize_slug(slug: str) -> str:
    """Reduce any candidate to a suggested slug.

    Lowercase, keep only ``[a-z0-9-]``, clip to 12 characters and trim
    hyphens from both ends. Idempotent; the result is either empty or
    matches ``^[a-z0-9]([a-z0-9-]{0,10}[a-z0-9])?$``.
    """
    cleaned = _SUGGESTED_SLUG_STRIP.sub("", slug.lower())
    return cleaned[:MAX_SUGGESTED_SLUG_LENGTH].strip("-")
