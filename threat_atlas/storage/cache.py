"""Short-lived read cache used by the CSV-backed stores."""

import threading
import time
from typing import Any, Callable, Optional


class TTLCache:
    """
    Holds one loaded value until it is invalidated or its TTL runs out.

    The clock is injectable so expiry can be tested without sleeping. A value
    loaded while an invalidation happened is handed to its caller but never
    cached, so a read that started before a write cannot outlive it.
    """

    def __init__(self, ttl_seconds: float = 30, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = float(ttl_seconds)
        self._clock = clock
        self._value: Any = None
        self._expires_at: Optional[float] = None
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def is_fresh(self) -> bool:
        return self._expires_at is not None and self._clock() < self._expires_at

    def get(self, loader: Callable[[], Any]) -> Any:
        """Return the cached value, calling loader to repopulate it when stale."""
        with self._lock:
            if self.is_fresh:
                return self._value
            generation = self._generation

        value = loader()

        with self._lock:
            if generation == self._generation:
                self._value = value
                self._expires_at = self._clock() + self.ttl_seconds
        return value

    def invalidate(self):
        with self._lock:
            self._generation += 1
            self._value = None
            self._expires_at = None
