"""
In-memory TTL cache for AI adjustments.
Identical inputs within the TTL reuse the earlier adjustment instead of
calling the language model again.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, Generic, Optional, TypeVar

from app.schemas.prediction import PredictionInput
from core.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    value: T
    expires_at: float

    def is_expired(self, now: Optional[float] = None) -> bool:
        return (now if now is not None else time.monotonic()) > self.expires_at


@dataclass
class TTLCache(Generic[T]):
    """
    Thread-safe TTL cache with a size bound.

    When full, the entry closest to expiry is evicted first.
    """

    default_ttl: float = 600.0
    max_size: int = 256
    _entries: Dict[str, CacheEntry[T]] = field(default_factory=dict)
    _lock: threading.RLock = field(default_factory=threading.RLock)

    def get(self, key: str) -> Optional[T]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired():
                del self._entries[key]
                return None
            return entry.value

    def set(self, key: str, value: T, ttl: Optional[float] = None) -> None:
        with self._lock:
            now = time.monotonic()
            if key not in self._entries and len(self._entries) >= self.max_size:
                self._purge_expired(now)
                if len(self._entries) >= self.max_size:
                    oldest_key = min(self._entries, key=lambda k: self._entries[k].expires_at)
                    del self._entries[oldest_key]
            expires_at = now + (ttl if ttl is not None else self.default_ttl)
            self._entries[key] = CacheEntry(value=value, expires_at=expires_at)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def size(self) -> int:
        """Number of entries, including expired ones not yet purged."""
        with self._lock:
            return len(self._entries)

    def _purge_expired(self, now: float) -> None:
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("Purged %d expired adjustment cache entries", len(expired))


def adjustment_cache_key(prediction_input: PredictionInput) -> str:
    """
    Key on the figures the prompt is built from.

    The timestamp is truncated to the hour, the resolution time decay works in.
    """
    p = prediction_input
    stamp = ""
    if p.analysis_timestamp is not None:
        stamp = p.analysis_timestamp.replace(minute=0, second=0, microsecond=0).isoformat()
    return f"{p.quota}:{p.real_applicants}:{p.revealed_count}:{p.my_rank}:{stamp}"


_adjustment_cache: Optional[TTLCache] = None


def get_adjustment_cache() -> TTLCache:
    global _adjustment_cache
    if _adjustment_cache is None:
        _adjustment_cache = TTLCache(default_ttl=settings.AI_CACHE_TTL_SECONDS)
    return _adjustment_cache


def clear_adjustment_cache() -> None:
    """Clear the global adjustment cache. Useful for testing."""
    if _adjustment_cache is not None:
        _adjustment_cache.clear()
