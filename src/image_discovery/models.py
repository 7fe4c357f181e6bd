"""Core datatypes used across codec, engine, and CLI."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal

ImageType = Literal["product-images", "legal-images"]

IMAGE_TYPES: tuple[ImageType, ...] = ("product-images", "legal-images")
ORIGINAL_RESOLUTION = "original"


def utc_now_iso() -> str:
    """Return UTC timestamp in ISO-8601."""
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True, slots=True)
class DecodedImageRef:
    """Structured form of one hosted product image URL."""

    base_url: str
    resolution: str
    product_id: str
    name: str
    image_type: ImageType
    product_code: str
    p_number: str
    index: int
    timestamp: str

    def as_dict(self) -> dict[str, str | int]:
        return {
            "base_url": self.base_url,
            "resolution": self.resolution,
            "product_id": self.product_id,
            "name": self.name,
            "image_type": self.image_type,
            "product_code": self.product_code,
            "p_number": self.p_number,
            "index": self.index,
            "timestamp": self.timestamp,
        }


@dataclass(slots=True)
class DiscoveryConfig:
    """Runtime configuration for image discovery."""

    probe_timeout_sec: float = 4.0
    max_workers: int = 20
    priority_start: int = 0
    priority_end: int = 6
    secondary_start: int = 6
    secondary_end: int = 16
    pnumber_fallback: bool = True
    cache_ttl_sec: float = 0.0
    page_timeout_sec: float = 20.0

    @property
    def priority_indices(self) -> range:
        return range(self.priority_start, self.priority_end)

    @property
    def secondary_indices(self) -> range:
        return range(self.secondary_start, self.secondary_end)


@dataclass(slots=True)
class DiscoveryEvent:
    """One diagnostic record emitted while discovering."""

    event_type: str
    message: str
    url: str | None = None
    created_at: str = field(default_factory=utc_now_iso)


@dataclass(slots=True)
class DiscoveryReport:
    """Aggregate outcome of one discover call."""

    seed_url: str
    decoded: DecodedImageRef | None = None
    urls: set[str] = field(default_factory=set)
    probes_issued: int = 0
    phases: list[str] = field(default_factory=list)
    events: list[DiscoveryEvent] = field(default_factory=list)
    started_at: str = field(default_factory=utc_now_iso)
    finished_at: str | None = None


@dataclass(slots=True)
class FetchResult:
    """Result of fetching a page."""

    url: str
    ok: bool
    html: str | None
    status_code: int | None
    error: str | None
    elapsed_ms: int
    fetched_at: str = field(default_factory=utc_now_iso)


@dataclass(slots=True)
class ParseResult:
    """Seed-grammar image URLs extracted from page HTML."""

    page_url: str
    image_urls: list[str]
