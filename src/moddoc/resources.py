"""Size-bounded in-memory cache of fetched module sources.

Entries are kept in recency order (least-recent first) and evicted whole once
the summed ``size_bytes`` exceeds the configured bound. Eviction is deferred to
the next event loop iteration after a ``put`` so that handing fresh content
back to the extractor never waits on cache bookkeeping.

Two loads racing on the same uncached specifier both fetch and both ``put``;
the last write wins. That redundancy is accepted; there is no in-flight
coalescing at this level.
"""

from __future__ import annotations

import asyncio
from collections import OrderedDict
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from moddoc.models.resources import CachedResource

log = structlog.get_logger()


class ResourceCache:
    """LRU cache of CachedResource keyed by requested specifier."""

    def __init__(self, max_bytes: int) -> None:
        self._max_bytes = max_bytes
        self._current_bytes = 0
        self._entries: OrderedDict[str, CachedResource] = OrderedDict()
        self._eviction_pending = False

    @property
    def max_bytes(self) -> int:
        return self._max_bytes

    @property
    def current_bytes(self) -> int:
        return self._current_bytes

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, specifier: object) -> bool:
        # Membership only: does not count as a use
        return specifier in self._entries

    def keys(self) -> list[str]:
        """Specifiers from least- to most-recently used."""
        return list(self._entries)

    def get(self, specifier: str) -> CachedResource | None:
        """Return the cached resource and mark it most-recently used.

        Returns ``None`` on a miss without touching any state.
        """
        resource = self._entries.get(specifier)
        if resource is None:
            return None
        self._entries.move_to_end(specifier)
        return resource

    def put(self, specifier: str, resource: CachedResource) -> None:
        """Store a resource at the most-recently-used end and schedule eviction."""
        previous = self._entries.pop(specifier, None)
        if previous is not None:
            self._current_bytes -= previous.size_bytes
        self._entries[specifier] = resource
        self._current_bytes += resource.size_bytes
        self._schedule_eviction()

    def evict_if_needed(self) -> list[str]:
        """Drop least-recently-used entries until the bound holds again.

        Returns the evicted specifiers, oldest first.
        """
        self._eviction_pending = False
        evicted: list[str] = []
        while self._current_bytes > self._max_bytes and self._entries:
            specifier, resource = self._entries.popitem(last=False)
            self._current_bytes -= resource.size_bytes
            evicted.append(specifier)

        if evicted:
            log.info(
                "resource_cache_evicted",
                evicted_count=len(evicted),
                current_bytes=self._current_bytes,
                max_bytes=self._max_bytes,
            )
        return evicted

    def clear(self) -> None:
        self._entries.clear()
        self._current_bytes = 0

    def _schedule_eviction(self) -> None:
        if self._current_bytes <= self._max_bytes or self._eviction_pending:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Synchronous caller (no event loop): nothing to defer past
            self.evict_if_needed()
            return
        self._eviction_pending = True
        loop.call_soon(self.evict_if_needed)
