from __future__ import annotations

from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

from audiolink.core.models import Metadata
from audiolink.core.utils import HTTP_SCHEMES

# (css selector, attribute) pairs, tried in order. Open Graph first, then
# Twitter cards, then generic tags.
TITLE_SELECTORS: tuple[tuple[str, str], ...] = (
    ("meta[property='og:title']", "content"),
    ("meta[name='twitter:title']", "content"),
    ("meta[name='title']", "content"),
)
DESCRIPTION_SELECTORS: tuple[tuple[str, str], ...] = (
    ("meta[property='og:description']", "content"),
    ("meta[name='twitter:description']", "content"),
    ("meta[name='description']", "content"),
)
IMAGE_SELECTORS: tuple[tuple[str, str], ...] = (
    ("meta[property='og:image']", "content"),
    ("meta[property='og:image:url']", "content"),
    ("meta[name='twitter:image']", "content"),
    ("link[rel='image_src']", "href"),
)


def _first_value(soup: BeautifulSoup, selectors: tuple[tuple[str, str], ...]) -> str | None:
    for selector, attr in selectors:
        tag = soup.select_one(selector)
        if tag is None:
            continue
        value = tag.get(attr)
        if isinstance(value, list):
            value = " ".join(value)
        value = (value or "").strip()
        if value:
            return value
    return None


def _document_title(soup: BeautifulSoup) -> str | None:
    if soup.title is None:
        return None
    text = soup.title.get_text().strip()
    return text or None


def extract(html: str, final_url: str) -> Metadata:
    """Build preview metadata from an HTML document.

    Fields that no selector fills stay ``None``; ``url`` is always set, so a
    page without any tags still yields a (bare) preview.
    """

    if not html or not html.strip():
        return Metadata(url=final_url)

    soup = BeautifulSoup(html, "lxml")

    title = _first_value(soup, TITLE_SELECTORS) or _document_title(soup)
    description = _first_value(soup, DESCRIPTION_SELECTORS)
    image = _first_value(soup, IMAGE_SELECTORS)
    if image:
        image = urljoin(final_url, image)
        if urlparse(image).scheme.lower() not in HTTP_SCHEMES:
            image = None

    return Metadata(url=final_url, title=title, description=description, image=image)
