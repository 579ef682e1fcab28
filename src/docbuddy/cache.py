"""
In-process TTL caches.

Used for both the discovery cache (fixed one-hour TTL) and the generic
result cache (TTL chosen from the requested time range). Entries are
visible while ``now <= created_at + ttl``; expired entries are dropped
lazily on lookup and by a periodic background sweep.
"""

from __future__ import annotations

import asyncio
import json
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Generic, Mapping, TypeVar

import structlog

from docbuddy.core.timerange import DAY_MS, HOUR_MS, parse_duration_ms

logger = structlog.get_logger()

T = TypeVar("T")

SHORT_TTL = 30.0
MEDIUM_TTL = 5 * 60.0
LONG_TTL = 15 * 60.0


@dataclass
class CacheEntry(Generic[T]):
    value: T
    created_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now > self.created_at + self.ttl


class TTLCache:
    """Bounded TTL cache with approximate LRU eviction."""

    def __init__(
        self,
        max_entries: int = 1000,
        default_ttl: float = MEDIUM_TTL,
        *,
        name: str = "cache",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self.name = name
        self._max_entries = max_entries
        self._default_ttl = default_ttl
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry[Any]] = OrderedDict()
        self._sweeper: asyncio.Task[None] | None = None
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Any | None:
        """Get value from cache, or None if absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None
        if entry.is_expired(self._clock()):
            del self._entries[key]
            self._misses += 1
            return None
        self._entries.move_to_end(key)
        self._hits += 1
        return entry.value

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Set value in cache with TTL in seconds."""
        if key in self._entries:
            del self._entries[key]
        while len(self._entries) >= self._max_entries:
            evicted, _ = self._entries.popitem(last=False)
            self._evictions += 1
            logger.debug("cache_evicted", cache=self.name, key=evicted)
        self._entries[key] = CacheEntry(
            value=value,
            created_at=self._clock(),
            ttl=self._default_ttl if ttl is None else ttl,
        )

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def sweep(self) -> int:
        """Remove expired entries; returns how many were dropped."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("cache_swept", cache=self.name, removed=len(expired))
        return len(expired)

    def stats(self) -> dict[str, int]:
        return {
            "entries": len(self._entries),
            "hits": self._hits,
            "misses": self._misses,
            "evictions": self._evictions,
        }

    def start_sweeper(self, interval: float) -> None:
        """Start the periodic sweep on the running event loop (idempotent)."""
        if self._sweeper is not None and not self._sweeper.done():
            return
        self._sweeper = asyncio.get_running_loop().create_task(self._sweep_forever(interval))

    async def _sweep_forever(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            self.sweep()

    async def aclose(self) -> None:
        """Stop the background sweep."""
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        try:
            await self._sweeper
        except asyncio.CancelledError:
            pass
        self._sweeper = None


def generate_cache_key(prefix: str, params: Mapping[str, Any]) -> str:
    """Canonical key: prefix plus sorted ``name=json(value)`` pairs, None values dropped."""
    parts = [
        f"{key}={json.dumps(params[key], sort_keys=True, default=str)}"
        for key in sorted(params)
        if params[key] is not None
    ]
    return f"{prefix}:{'&'.join(parts)}"


def calculate_cache_ttl(time_range: str) -> float:
    """
    Pick a TTL (seconds) from the width of the requested window.

    Narrow recent windows change quickly; wide historical ones are
    effectively static within a session.
    """
    duration = parse_duration_ms(time_range)
    if duration < HOUR_MS:
        return SHORT_TTL
    if duration < DAY_MS:
        return MEDIUM_TTL
    return LONG_TTL
