"""In-memory cache store with per-entry write timestamps."""
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class CacheEntry:
    key: str
    value: Any
    written_at: float  # epoch seconds from the store's clock


class CacheStore:
    """Thread-safe key -> value map that records when each entry was written.

    The store has no freshness policy of its own; callers decide what an
    entry's age means. ``clock`` is injectable so tests can move time.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def get(self, key: str) -> Tuple[Any, Optional[float], bool]:
        """Return ``(value, age_seconds, present)`` for ``key``."""
        with self._lock:
            entry = self._entries.get(key)
        if entry is None:
            return None, None, False
        return entry.value, max(0.0, self._clock() - entry.written_at), True

    def set(self, key: str, value: Any) -> None:
        """Store value, refreshing its write timestamp."""
        entry = CacheEntry(key=key, value=value, written_at=self._clock())
        with self._lock:
            self._entries[key] = entry

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        """Clear all entries."""
        with self._lock:
            self._entries.clear()

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            entries: List[CacheEntry] = list(self._entries.values())
        return {
            "count": len(entries),
            "keys": [e.key for e in entries],
            "oldest_write_timestamp": min((e.written_at for e in entries), default=None),
        }

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


# Global cache instance
cache = CacheStore()
