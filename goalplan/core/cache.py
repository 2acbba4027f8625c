"""
TTL cache used in front of the stores.

Expiry is checked on read; nothing sweeps the cache in the background.
"""
import logging
import time
from typing import Callable, Dict, Generic, Hashable, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)

V = TypeVar("V")


class TTLCache(Generic[V]):
    def __init__(self, default_ttl: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.default_ttl = default_ttl
        self._clock = clock
        # key -> (value, expires_at)
        self._entries: Dict[Hashable, Tuple[V, float]] = {}

    def get(self, key: Hashable) -> Optional[V]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            logger.debug(f"[CACHE] expired: {key}")
            return None
        logger.debug(f"[CACHE] hit: {key}")
        return value

    def put(self, key: Hashable, value: V, ttl: Optional[float] = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        self._entries[key] = (value, self._clock() + ttl)

    def invalidate(self, key: Hashable) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
