"""
Small time-boxed in-memory cache for read-mostly lookups (menu prices).

Entries expire after a fixed TTL; writers clear the affected key.
"""
import time
from threading import Lock
from typing import Any, Callable, Dict, Optional, Tuple


class TTLCache:
    """Thread-safe key/value map whose entries expire after ttl_seconds."""

    def __init__(self, ttl_seconds: float = 30.0, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = Lock()
        self._entries: Dict[str, Tuple[Any, float]] = {}

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None when missing or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, stored_at = entry
            if self._clock() - stored_at >= self.ttl_seconds:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = (value, self._clock())

    def clear(self, key: Optional[str] = None) -> None:
        """Drop one key, or everything when key is None."""
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


# Global menu price cache
_menu_cache: Optional[TTLCache] = None
_cache_lock = Lock()


def get_menu_cache() -> TTLCache:
    """Get the process-wide menu price cache."""
    global _menu_cache
    if _menu_cache is None:
        with _cache_lock:
            if _menu_cache is None:
                from tiffinos.lib.config_flags import get_billing_defaults
                _menu_cache = TTLCache(get_billing_defaults().menu_cache_ttl_seconds)
    return _menu_cache


def reset_menu_cache() -> None:
    """Drop the global cache so the next call rebuilds it (for testing)."""
    global _menu_cache
    with _cache_lock:
        _menu_cache = None
