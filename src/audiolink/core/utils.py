from __future__ import annotations

from urllib.parse import urljoin, urlparse

HTTP_SCHEMES = frozenset({"http", "https"})
HTML_MIME_TYPES = frozenset({"text/html", "application/xhtml+xml"})


def is_http_url(value: object) -> bool:
    """True when ``value`` is an absolute http(s) URL with a host."""

    if not value or not isinstance(value, str):
        return False
    try:
        parsed = urlparse(value.strip())
        host = parsed.hostname
    except ValueError:
        return False
    return parsed.scheme.lower() in HTTP_SCHEMES and bool(host)


def normalize_hostname(host: str | None) -> str:
    h = (host or "").strip().lower()
    if h.endswith("."):
        h = h[:-1]
    return h


def resolve_location(base: str, location: str) -> str:
    return urljoin(base, location.strip())


def is_html_content_type(content_type: str | None) -> bool:
    mime = (content_type or "").split(";", 1)[0].strip().lower()
    return mime in HTML_MIME_TYPES
