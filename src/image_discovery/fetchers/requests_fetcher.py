"""Requests-based product page fetcher."""

from __future__ import annotations

import time

import requests

from ..models import FetchResult
from .base import BaseFetcher

_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/122.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-IN,en;q=0.9",
}


class RequestsFetcher(BaseFetcher):
    """HTML fetcher for a single product page."""

    def __init__(self, session: requests.Session | None = None) -> None:
        self._session = session or requests.Session()
        self._session.headers.update(_HEADERS)

    def fetch(self, url: str, timeout_sec: float) -> FetchResult:
        started = time.perf_counter()
        try:
            response = self._session.get(url, timeout=timeout_sec)
            response.raise_for_status()
            response.encoding = response.encoding or response.apparent_encoding or "utf-8"
            return FetchResult(
                url=url,
                ok=True,
                html=response.text,
                status_code=response.status_code,
                error=None,
                elapsed_ms=_elapsed_ms(started),
            )
        except requests.RequestException as exc:
            status_code = getattr(getattr(exc, "response", None), "status_code", None)
            return FetchResult(
                url=url,
                ok=False,
                html=None,
                status_code=status_code,
                error=str(exc),
                elapsed_ms=_elapsed_ms(started),
            )


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)
