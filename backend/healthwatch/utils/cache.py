"""In-memory cache with TTL support."""

from __future__ import annotations

import asyncio
import time
from typing import Any

_cache: dict[str, tuple[float, Any]] = {}
_cache_lock = asyncio.Lock()


class CacheKeys:
    """Centralized cache key builders."""

    @staticmethod
    def preferences(subject_id: int) -> str:
        """Cache key for a subject's notification preferences."""
        return f"preferences:{subject_id}"

    @staticmethod
    def recipient(subject_id: int) -> str:
        """Cache key for a subject's email recipient details."""
        return f"recipient:{subject_id}"


async def get_cached(key: str) -> Any | None:
    now = time.monotonic()
    async with _cache_lock:
        entry = _cache.get(key)
        if not entry:
            return None
        expires_at, value = entry
        if now >= expires_at:
            _cache.pop(key, None)
            return None
        return value


async def set_cached(key: str, value: Any, ttl_seconds: int) -> None:
    expires_at = time.monotonic() + ttl_seconds
    async with _cache_lock:
        _cache[key] = (expires_at, value)

