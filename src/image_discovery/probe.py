"""Existence probes for candidate image URLs."""

from __future__ import annotations

import threading
import time
from abc import ABC, abstractmethod

import requests
from requests.adapters import HTTPAdapter


class BaseProbe(ABC):
    """Abstract existence check. Implementations must never raise for network failures."""

    @abstractmethod
    def probe(self, url: str) -> bool:
        """Return True when ``url`` loads as an image."""


class RequestsProbe(BaseProbe):
    """Existence check using a pooled requests.Session per thread."""

    def __init__(
        self,
        *,
        timeout_sec: float = 4.0,
        pool_connections: int = 32,
        pool_maxsize: int = 32,
    ) -> None:
        self.timeout_sec = timeout_sec
        self._pool_connections = max(1, pool_connections)
        self._pool_maxsize = max(1, pool_maxsize)
        self._local = threading.local()

    def _build_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update(
            {
                "User-Agent": (
                    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
                    "AppleWebKit/537.36 (KHTML, like Gecko) "
                    "Chrome/122.0.0.0 Safari/537.36"
                ),
                "Accept": "image/avif,image/webp,image/*,*/*;q=0.8",
            }
        )
        adapter = HTTPAdapter(
            pool_connections=self._pool_connections,
            pool_maxsize=self._pool_maxsize,
        )
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        return session

    def _session(self) -> requests.Session:
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._build_session()
            self._local.session = session
        return session

    def probe(self, url: str) -> bool:
        try:
            # stream=True: only headers are read, the body is never downloaded.
            with self._session().get(url, timeout=self.timeout_sec, stream=True) as response:
                if not response.ok:
                    return False
                content_type = response.headers.get("Content-Type", "")
                return not content_type or content_type.lower().startswith("image/")
        except requests.RequestException:
            return False


class CachedProbe(BaseProbe):
    """Thread-safe in-memory cache of probe outcomes with expiry."""

    def __init__(
        self,
        inner: BaseProbe,
        ttl_sec: float = 600.0,
        max_duration_sec: float | None = None,
    ) -> None:
        self.inner = inner
        self.ttl_sec = ttl_sec
        self.max_duration_sec = max_duration_sec
        self._entries: dict[str, tuple[bool, float]] = {}
        self._lock = threading.Lock()

    def probe(self, url: str) -> bool:
        now = time.monotonic()
        with self._lock:
            cached = self._entries.get(url)
            if cached is not None and now - cached[1] < self.ttl_sec:
                return cached[0]
        exists = self.inner.probe(url)
        if self.max_duration_sec is not None and time.monotonic() - now > self.max_duration_sec:
            # Late outcomes are not cached.
            return exists
        with self._lock:
            self._entries[url] = (exists, now)
        return exists

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
