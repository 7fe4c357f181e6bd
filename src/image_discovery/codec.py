"""Helpers for decoding a product image URL and building its siblings."""

from __future__ import annotations

import re
from dataclasses import replace

from .models import ORIGINAL_RESOLUTION, DecodedImageRef, ImageType

BASE_URL = "https://www.jiomart.com/images/product"

_IMAGE_URL_RE = re.compile(
    r"https://www\.jiomart\.com/images/product/(\d+x\d+|original)/(\d+)/"
    r"([^/]+)-(product-images|legal-images)-([^-]+)-p(\d+)-(\d+)-(\d+)\.jpg"
)


def decode(url: str) -> DecodedImageRef | None:
    """Extract structured fields from an image URL, or None when it does not match."""
    match = _IMAGE_URL_RE.search(url)
    if match is None:
        return None
    return DecodedImageRef(
        base_url=BASE_URL,
        resolution=match.group(1),
        product_id=match.group(2),
        name=match.group(3),
        image_type=match.group(4),  # type: ignore[arg-type]
        product_code=match.group(5),
        p_number=match.group(6),
        index=int(match.group(7)),
        timestamp=match.group(8),
    )


def encode(ref: DecodedImageRef, image_type: ImageType, index: int) -> str:
    """Build one original-tier image URL for the given type and index."""
    return (
        f"{ref.base_url}/{ORIGINAL_RESOLUTION}/{ref.product_id}/"
        f"{ref.name}-{image_type}-{ref.product_code}-p{ref.p_number}-{index}-{ref.timestamp}.jpg"
    )


def encode_original(ref: DecodedImageRef) -> str:
    """Re-encode the ref's own type and index at the original tier."""
    return encode(ref, ref.image_type, ref.index)


def with_p_number(ref: DecodedImageRef, p_number: int | str) -> DecodedImageRef:
    """Return a copy of ``ref`` with only the p-number segment replaced."""
    return replace(ref, p_number=str(p_number))
