"""
Time-bounded cache for upstream lookup results

Entries are shared across sessions; keys are derived from the operation name
and its normalized arguments so that semantically equal invocations collide.
"""

import asyncio
import copy
import hashlib
import json
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from src.logging import cache_logger as logger


_MISSING = object()


@dataclass(frozen=True)
class CacheEntry:
    """Stored payload with the instant it was written and its lifetime."""
    key: str
    value: Any
    stored_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now >= self.stored_at + self.ttl


def _normalize(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k): _normalize(v) for k, v in value.items() if v is not None}
    if isinstance(value, (list, tuple)):
        return [_normalize(v) for v in value]
    return value


def make_cache_key(operation_name: str, arguments: Optional[Dict[str, Any]] = None) -> str:
    """
    Derive a deterministic cache key.

    Arguments are normalized (None values dropped, keys sorted at every level)
    so that maps differing only in key order produce the same key.

    Args:
        operation_name: Registered operation name
        arguments: Validated operation arguments

    Returns:
        Hex digest identifying the invocation
    """
    canonical = json.dumps(
        _normalize(arguments or {}),
        sort_keys=True,
        separators=(',', ':'),
        default=str
    )
    digest = hashlib.sha256(f"{operation_name}\n{canonical}".encode('utf-8')).hexdigest()
    return f"{operation_name}:{digest}"


class CacheStore:
    """In-memory TTL cache. Last writer wins; expired entries read as absent."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._entries: Dict[str, CacheEntry] = {}
        self._clock = clock
        self._cleanup_task: Optional[asyncio.Task] = None
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Return a copy of the cached value, or default when missing or expired.

        Stored entries are never handed out directly, so callers cannot mutate them.
        """
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return default

        if entry.is_expired(self._clock()):
            # Expired reads behave like a miss
            del self._entries[key]
            self.misses += 1
            logger.debug(f"expired | key:{key[:48]}")
            return default

        self.hits += 1
        return copy.deepcopy(entry.value)

    def lookup(self, key: str) -> tuple:
        """
        Return (found, value) so that cached None payloads are distinguishable
        from misses.
        """
        value = self.get(key, _MISSING)
        if value is _MISSING:
            return False, None
        return True, value

    def set(self, key: str, value: Any, ttl: float) -> None:
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")
        self._entries[key] = CacheEntry(key=key, value=copy.deepcopy(value), stored_at=self._clock(), ttl=ttl)
        logger.debug(f"stored | key:{key[:48]} | ttl:{ttl}s")

    def invalidate(self, key: str) -> bool:
        """
        Remove a key explicitly.

        Returns:
            True if an entry was removed
        """
        removed = self._entries.pop(key, None) is not None
        if removed:
            logger.debug(f"invalidated | key:{key[:48]}")
        return removed

    def clear(self) -> None:
        self._entries.clear()
        logger.info("cache cleared")

    def cleanup_expired(self) -> int:
        """
        Remove every expired entry.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"cleanup | removed:{len(expired)} | remaining:{len(self._entries)}")
        return len(expired)

    def stats(self) -> Dict[str, Any]:
        now = self._clock()
        return {
            "size": len(self._entries),
            "hits": self.hits,
            "misses": self.misses,
            "entries": [
                {"key": key, "age": now - entry.stored_at, "ttl": entry.ttl}
                for key, entry in self._entries.items()
            ],
        }

    def start_cleanup(self, interval: float) -> asyncio.Task:
        """Start the periodic expired-entry sweep on the running loop."""
        if self._cleanup_task is None or self._cleanup_task.done():
            self._cleanup_task = asyncio.create_task(self._cleanup_loop(interval))
            logger.info(f"cleanup task started | interval:{interval}s")
        return self._cleanup_task

    async def stop_cleanup(self) -> None:
        task, self._cleanup_task = self._cleanup_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _cleanup_loop(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            self.cleanup_expired()
