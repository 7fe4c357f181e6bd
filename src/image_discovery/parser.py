"""HTML parser for locating seed image URLs on a product page."""

from __future__ import annotations

from urllib.parse import urljoin

from bs4 import BeautifulSoup

from .codec import decode
from .models import ParseResult

_IMAGE_ATTRS = ("src", "data-src", "data-original", "data-zoom-image")


def extract_seed_urls(html: str, page_url: str) -> ParseResult:
    """Extract decodable product image URLs in page order.

    Looks at ``og:image``/``twitter:image`` meta tags first, then every
    ``<img>`` source attribute and ``srcset`` entry. Only URLs the codec can
    decode are kept, so the first entry is always a usable seed.
    """
    soup = BeautifulSoup(html, "html.parser")
    found: list[str] = []

    for meta in soup.select('meta[property="og:image"], meta[name="twitter:image"]'):
        content = meta.get("content")
        if content:
            found.append(urljoin(page_url, content))

    for img in soup.select("img"):
        for attr in _IMAGE_ATTRS:
            value = img.get(attr)
            if value:
                found.append(urljoin(page_url, value))
        srcset = img.get("srcset")
        if srcset:
            for entry in srcset.split(","):
                parts = entry.strip().split()
                if parts:
                    found.append(urljoin(page_url, parts[0]))

    image_urls = [url for url in _stable_unique(found) if decode(url) is not None]
    return ParseResult(page_url=page_url, image_urls=image_urls)


def _stable_unique(items: list[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        result.append(item)
    return result
