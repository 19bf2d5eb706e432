import threading
import time
from typing import Generic, Optional, Tuple, TypeVar

from cachetools import TLRUCache

V = TypeVar("V")

ITEMS_PREFIX = "items:"
ITEMS_ACTIVE_KEY = "items:active"
ITEMS_ALL_KEY = "items:all"

_MISSING = object()


def _entry_expiry(key, entry: Tuple[object, float], now: float) -> float:
    return now + entry[1]


class TTLCache(Generic[V]):
    """In-process key/value cache with per-entry expiry.

    Storage is a ``cachetools.TLRUCache`` holding ``(value, ttl)`` pairs;
    cachetools containers are not thread-safe, so every access goes
    through one lock. Owned by the Flask app (``app.extensions["item_cache"]``);
    every catalog mutation drops the ``items:`` namespace through
    :meth:`invalidate`.
    """

    def __init__(self, default_ttl: float = 3600.0, maxsize: int = 256, clock=time.monotonic):
        self.default_ttl = default_ttl
        self._lock = threading.Lock()
        self._entries = TLRUCache(maxsize=maxsize, ttu=_entry_expiry, timer=clock)

    def get(self, key: str) -> Optional[V]:
        with self._lock:
            entry = self._entries.get(key)
        return None if entry is None else entry[0]

    def set(self, key: str, value: V, ttl: Optional[float] = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        with self._lock:
            self._entries[key] = (value, ttl)

    def invalidate(self, prefix: str = "") -> int:
        """Drop every key starting with ``prefix``; an empty prefix clears all."""
        with self._lock:
            self._entries.expire()
            doomed = [k for k in list(self._entries.keys()) if k.startswith(prefix)]
            dropped = 0
            for key in doomed:
                if self._entries.pop(key, _MISSING) is not _MISSING:
                    dropped += 1
            return dropped

    def __len__(self):
        with self._lock:
            self._entries.expire()
            return len(self._entries)


def get_item_cache(app=None) -> "TTLCache[list]":
    from flask import current_app
    app = app or current_app
    return app.extensions["item_cache"]


def invalidate_items(app=None) -> None:
    get_item_cache(app).invalidate(ITEMS_PREFIX)
