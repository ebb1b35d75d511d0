"""
Optional memoization of bucket listings.

By default the catalogue lists the bucket on every request. When
``CATALOG_CACHE_TTL`` is set, ``CatalogStore.from_config`` wraps the S3
store in ``CachingObjectStore``, which keeps listing results in memory
for that many seconds. Entries are dropped when they expire or when
``invalidate()`` is called (for instance after uploading new pages);
nothing else refreshes them. Object downloads are never cached.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Dict, List, Optional, Tuple

from ..storage import ObjectRecord, ObjectStore, StoredObject


logger = logging.getLogger(__name__)

_PREFIXES = "__prefixes__"


class CachingObjectStore:
    """``ObjectStore`` wrapper that memoizes listings for ``ttl`` seconds."""

    def __init__(
        self,
        inner: ObjectStore,
        ttl: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self.inner = inner
        self.ttl = ttl
        self._clock = clock
        self._prefix_cache: Dict[str, Tuple[float, List[str]]] = {}
        self._object_cache: Dict[str, Tuple[float, List[ObjectRecord]]] = {}
        self._lock = threading.Lock()

    def _lookup(self, cache: Dict, key: str):
        with self._lock:
            entry = cache.get(key)
            if entry is None:
                return None
            stored_at, value = entry
            if self._clock() - stored_at >= self.ttl:
                del cache[key]
                return None
            return value

    def _store(self, cache: Dict, key: str, value) -> None:
        with self._lock:
            cache[key] = (self._clock(), value)

    def list_prefixes(self) -> List[str]:
        cached = self._lookup(self._prefix_cache, _PREFIXES)
        if cached is not None:
            logger.debug("Prefix listing served from cache")
            return list(cached)
        # Failures are not cached; the next call tries the store again.
        prefixes = list(self.inner.list_prefixes())
        self._store(self._prefix_cache, _PREFIXES, prefixes)
        return list(prefixes)

    def list_objects(self, prefix: str) -> List[ObjectRecord]:
        cached = self._lookup(self._object_cache, prefix)
        if cached is not None:
            logger.debug("Listing of %r served from cache", prefix)
            return list(cached)
        objects = list(self.inner.list_objects(prefix))
        self._store(self._object_cache, prefix, objects)
        return list(objects)

    def get_object(self, key: str) -> StoredObject:
        return self.inner.get_object(key)

    def object_url(self, key: str) -> str:
        return self.inner.object_url(key)

    def invalidate(self, prefix: Optional[str] = None) -> None:
        """Forget cached listings: everything, or just one prefix.

        Dropping one prefix also drops the top-level listing, since a new
        folder changes it.
        """
        with self._lock:
            self._prefix_cache.clear()
            if prefix is None:
                self._object_cache.clear()
            else:
                self._object_cache.pop(prefix, None)
        logger.debug("Listing cache invalidated (%s)", prefix or "all")
