"""Structure cache shared by pipeline runs of one orchestrator.

Eliminates redundant parsing when the same README is analyzed repeatedly.
Concurrent requests for one fingerprint collapse into a single parse
(single flight): the first caller computes, the others wait on its future.
"""

from __future__ import annotations

import threading
import time
from concurrent.futures import Future
from typing import Callable

from readme_insight.constants import DEFAULT_CACHE_MAX_ENTRIES, DEFAULT_CACHE_TTL_SECONDS
from readme_insight.parsing.nodes import StructureTree
from readme_insight.utils.logger import logger


class StructureCache:
    """Bounded fingerprint -> StructureTree map with TTL and single flight.

    Uses oldest-first eviction with configurable max entries. Failed parses
    are never cached; every waiter of a failed in-flight parse receives the
    same exception.

    Thread safety: Uses threading.Lock; the compute function runs outside
    the lock.
    """

    def __init__(
        self,
        max_entries: int = DEFAULT_CACHE_MAX_ENTRIES,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._cache: dict[str, tuple[StructureTree, float]] = {}
        self._in_flight: dict[str, Future[StructureTree]] = {}
        self._max_entries = max_entries
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._computations = 0

    def get(self, fingerprint: str) -> StructureTree | None:
        """Get cached tree if available and not expired."""
        with self._lock:
            tree = self._lookup(fingerprint)
            if tree is not None:
                self._hits += 1
            else:
                self._misses += 1
            return tree

    def put(self, fingerprint: str, tree: StructureTree) -> None:
        """Store a tree in the cache."""
        with self._lock:
            self._store(fingerprint, tree)

    def get_or_compute(
        self,
        fingerprint: str,
        compute: Callable[[], StructureTree],
    ) -> tuple[StructureTree, bool]:
        """Return the cached tree or compute it exactly once.

        This is the primary entry point. Callers that find a parse already in
        flight wait for it and count as cache hits.

        Returns:
            (tree, cache_hit)
        """
        with self._lock:
            tree = self._lookup(fingerprint)
            if tree is not None:
                self._hits += 1
                return tree, True

            pending = self._in_flight.get(fingerprint)
            if pending is not None:
                self._hits += 1
                owner = False
            else:
                pending = Future()
                self._in_flight[fingerprint] = pending
                self._misses += 1
                self._computations += 1
                owner = True

        if not owner:
            return pending.result(), True

        try:
            tree = compute()
        except BaseException as e:
            with self._lock:
                self._in_flight.pop(fingerprint, None)
            pending.set_exception(e)
            raise

        with self._lock:
            self._store(fingerprint, tree)
            self._in_flight.pop(fingerprint, None)
        pending.set_result(tree)
        return tree, False

    def _lookup(self, fingerprint: str) -> StructureTree | None:
        """Must be called with self._lock held."""
        entry = self._cache.get(fingerprint)
        if entry is None:
            return None
        tree, stored_at = entry
        if self._clock() - stored_at < self._ttl_seconds:
            return tree
        del self._cache[fingerprint]
        return None

    def _store(self, fingerprint: str, tree: StructureTree) -> None:
        """Must be called with self._lock held."""
        self._cache[fingerprint] = (tree, self._clock())
        self._evict_if_needed()

    def _evict_if_needed(self) -> None:
        """Evict oldest entries if cache exceeds max size.

        Must be called with self._lock held.
        """
        if len(self._cache) <= self._max_entries:
            return

        sorted_keys = sorted(
            self._cache.keys(),
            key=lambda k: self._cache[k][1],
        )
        to_remove = len(self._cache) - self._max_entries
        for key in sorted_keys[:to_remove]:
            del self._cache[key]
        logger.debug("Evicted {} cached structure(s)", to_remove)

    def __contains__(self, fingerprint: str) -> bool:
        with self._lock:
            return self._lookup(fingerprint) is not None

    def __len__(self) -> int:
        return len(self._cache)

    def clear(self) -> None:
        """Clear all cached entries."""
        with self._lock:
            self._cache.clear()
            self._hits = 0
            self._misses = 0
            self._computations = 0

    @property
    def stats(self) -> dict[str, int | float]:
        """Cache statistics."""
        return {
            "entries": len(self._cache),
            "hits": self._hits,
            "misses": self._misses,
            "computations": self._computations,
            "hit_rate": round(
                self._hits / max(self._hits + self._misses, 1) * 100, 1
            ),
        }
