import threading
import time
from collections import OrderedDict
from typing import Any, Hashable, Optional, Tuple

DEFAULT_MAXSIZE = 1024


class TTLCache:
    """In-process cache where every entry expires ``ttl_seconds`` after it was stored.

    Shared by the request threads, so every access holds the lock. Expired
    entries are swept on write, and past ``maxsize`` the oldest entry goes.
    """

    def __init__(self, ttl_seconds: float, maxsize: int = DEFAULT_MAXSIZE):
        self.ttl_seconds = ttl_seconds
        self.maxsize = maxsize
        self._entries: "OrderedDict[Hashable, Tuple[float, Any]]" = OrderedDict()
        self._lock = threading.Lock()

    def _expired(self, stored_at: float, now: float) -> bool:
        return now - stored_at >= self.ttl_seconds

    def get(self, key: Hashable) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, value = entry
            if self._expired(stored_at, time.monotonic()):
                self._entries.pop(key, None)
                return None
            return value

    def set(self, key: Hashable, value: Any) -> None:
        now = time.monotonic()
        with self._lock:
            # insertion order is store order, so expired entries sit at the front
            while self._entries:
                oldest_key, (stored_at, _) = next(iter(self._entries.items()))
                if not self._expired(stored_at, now):
                    break
                self._entries.pop(oldest_key, None)

            self._entries.pop(key, None)
            self._entries[key] = (now, value)
            while len(self._entries) > self.maxsize:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
