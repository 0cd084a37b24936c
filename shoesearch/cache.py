"""In-memory catalog snapshot with a freshness window."""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from .catalog import CatalogClient, CatalogProduct
from .config import settings

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Sequence[CatalogProduct]]


@dataclass(frozen=True)
class CatalogSnapshot:
    products: tuple[CatalogProduct, ...]
    fetched_at: float


class CatalogCache:
    """Serves the last catalog fetch until it is older than ``ttl_seconds``.

    Refreshes are single-flight: callers that race past the staleness check
    queue on the lock and re-check, so only the first one hits the upstream.
    A failed refresh raises and leaves the previous snapshot in place; it is
    not served, and the next call tries again.
    """

    def __init__(
        self,
        fetch_all: Fetcher,
        ttl_seconds: float = settings.cache_ttl_seconds,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._fetch_all = fetch_all
        self._ttl = ttl_seconds
        self._clock = clock
        self._snapshot: Optional[CatalogSnapshot] = None
        self._lock = threading.Lock()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    @property
    def snapshot(self) -> Optional[CatalogSnapshot]:
        return self._snapshot

    def age(self) -> Optional[float]:
        snapshot = self._snapshot
        if snapshot is None:
            return None
        return self._clock() - snapshot.fetched_at

    def _is_fresh(self, snapshot: Optional[CatalogSnapshot]) -> bool:
        return snapshot is not None and self._clock() - snapshot.fetched_at < self._ttl

    def get_products(self) -> tuple[CatalogProduct, ...]:
        snapshot = self._snapshot
        if self._is_fresh(snapshot):
            return snapshot.products
        with self._lock:
            snapshot = self._snapshot
            if self._is_fresh(snapshot):
                return snapshot.products
            return self._refresh_locked().products

    def refresh(self) -> CatalogSnapshot:
        with self._lock:
            return self._refresh_locked()

    def invalidate(self) -> None:
        with self._lock:
            self._snapshot = None

    def _refresh_locked(self) -> CatalogSnapshot:
        stale = self._snapshot
        logger.info("Refreshing catalog (cached=%s)", stale is not None)
        products = tuple(self._fetch_all())
        snapshot = CatalogSnapshot(products=products, fetched_at=self._clock())
        self._snapshot = snapshot
        return snapshot


_cache: CatalogCache | None = None
_client: CatalogClient | None = None
_cache_lock = threading.Lock()


def get_catalog_cache() -> CatalogCache:
    global _cache, _client
    if _cache is not None:
        return _cache
    with _cache_lock:
        if _cache is None:
            _client = CatalogClient()
            logger.info("Using catalog %s (ttl=%ss)", _client.url, settings.cache_ttl_seconds)
            _cache = CatalogCache(_client.fetch_all)
    return _cache


def close_catalog_cache() -> None:
    global _cache, _client
    with _cache_lock:
        if _client is not None:
            _client.close()
        _client = None
        _cache = None
