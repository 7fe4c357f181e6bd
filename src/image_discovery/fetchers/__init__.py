"""Product page fetchers."""

from .base import BaseFetcher
from .requests_fetcher import RequestsFetcher

__all__ = ["BaseFetcher", "RequestsFetcher"]
