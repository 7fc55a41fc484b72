"""
Keyed cache with a maximum entry age.

Entries are stored as (value, inserted_at). Reads check the age and evict
stale entries on read; writes sweep out expired entries as well. There is
no global instance; callers own the cache and pass it to the component
that needs it.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from threading import Lock
from typing import Generic, Protocol, TypeVar

K = TypeVar("K")
V = TypeVar("V")


class TimePort(Protocol):
    """Time provider interface."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...


class TTLCache(Generic[K, V]):
    """
    Thread-safe TTL cache with evict-on-read.

    Writes also sweep expired entries, at most once per max age, so keys
    that are never read again are still released. ``max_entries`` bounds
    the size; the oldest entries go first.
    """

    def __init__(
        self,
        max_age_seconds: float,
        time_port: TimePort | None = None,
        max_entries: int | None = None,
    ) -> None:
        if max_age_seconds <= 0:
            raise ValueError("max_age_seconds must be positive")
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be positive")
        self._max_age = timedelta(seconds=max_age_seconds)
        self._max_entries = max_entries
        self._time = time_port
        self._entries: dict[K, tuple[V, datetime]] = {}
        self._next_sweep: datetime | None = None
        self._lock = Lock()

    @property
    def max_age_seconds(self) -> float:
        return self._max_age.total_seconds()

    def _now(self) -> datetime:
        if self._time is not None:
            return self._time.now_utc()
        from linkpulse.adapters.clock import SystemClock

        return SystemClock().now_utc()

    def _purge_locked(self, now: datetime) -> int:
        expired = [
            key
            for key, (_, inserted_at) in self._entries.items()
            if now - inserted_at >= self._max_age
        ]
        for key in expired:
            del self._entries[key]
        self._next_sweep = now + self._max_age
        return len(expired)

    def get(self, key: K) -> V | None:
        """Return the cached value, or None if missing or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, inserted_at = entry
            if self._now() - inserted_at >= self._max_age:
                del self._entries[key]
                return None
            return value

    def set(self, key: K, value: V) -> None:
        with self._lock:
            now = self._now()
            if self._next_sweep is None or now >= self._next_sweep:
                self._purge_locked(now)
            # Re-inserting moves the key to the end of the eviction order.
            self._entries.pop(key, None)
            self._entries[key] = (value, now)
            if self._max_entries is not None:
                while len(self._entries) > self._max_entries:
                    del self._entries[next(iter(self._entries))]

    def purge_expired(self) -> int:
        """Drop every expired entry. Returns how many were removed."""
        with self._lock:
            return self._purge_locked(self._now())

    def delete(self, key: K) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return self.get(key) is not None  # type: ignore[arg-type]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
