"""
Short-lived TTL cache for room images.

Instances are created by the caller and passed in; there is no
module-level cache. A stale or missing entry only means a refetch.
"""
import logging
import time
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

logger = logging.getLogger(__name__)


class TTLCache:
    """Dict-backed cache whose entries expire `ttl_seconds` after being set."""

    def __init__(self, ttl_seconds: float = 300, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[float, Any]] = {}

    def get(self, key: Hashable) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if self._clock() - stored_at >= self.ttl_seconds:
            self._entries.pop(key, None)
            logger.debug(f"[CACHE] Expired {key}")
            return None
        return value

    def set(self, key: Hashable, value: Any) -> None:
        self._entries[key] = (self._clock(), value)

    def invalidate(self, key: Hashable) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def stats(self) -> Dict[str, Any]:
        return {
            "entries": len(self._entries),
            "keys": [str(k) for k in self._entries],
            "ttl_seconds": self.ttl_seconds,
        }

    def __len__(self) -> int:
        return len(self._entries)
