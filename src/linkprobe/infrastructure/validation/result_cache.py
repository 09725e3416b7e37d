"""In-memory TTL cache for URL validation outcomes."""

from __future__ import annotations

import threading
import time

import structlog

from linkprobe.domain.entities.validation import CacheEntry, ValidationOutcome

log = structlog.get_logger(__name__)

_DEFAULT_TTL_MINUTES = 5.0


class ResultCache:
    """Maps a URL to its last known validation outcome.

    Expired entries are evicted lazily on :meth:`get` and in bulk by
    :meth:`cleanup`, which is meant to run on a fixed period so that
    URLs validated once and never re-queried do not accumulate.

    A non-positive TTL makes every entry expired immediately.

    Args:
        ttl_minutes: Maximum entry age in minutes (default: 5).
    """

    def __init__(self, ttl_minutes: float = _DEFAULT_TTL_MINUTES) -> None:
        self._ttl_seconds = max(0.0, ttl_minutes * 60.0)
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        if self._ttl_seconds == 0:
            return True
        return (now - entry.timestamp) > self._ttl_seconds

    def get(self, url: str) -> CacheEntry | None:
        """Return the cached entry for *url*, or None if missing/expired."""
        with self._lock:
            entry = self._entries.get(url)
            if entry is None:
                return None
            if self._is_expired(entry, time.monotonic()):
                del self._entries[url]
                return None
            return entry

    def set(self, url: str, outcome: ValidationOutcome) -> None:
        """Store *outcome* for *url*, overwriting any previous entry."""
        entry = CacheEntry(
            is_valid=outcome.is_valid,
            status_code=outcome.status_code,
            status_text=outcome.status_text,
            error=outcome.error,
            timestamp=time.monotonic(),
        )
        with self._lock:
            self._entries[url] = entry

    def has(self, url: str) -> bool:
        """True if *url* has a non-expired entry."""
        return self.get(url) is not None

    def cleanup(self) -> int:
        """Evict every expired entry regardless of access.

        Returns:
            Number of entries evicted.
        """
        now = time.monotonic()
        with self._lock:
            expired = [
                url
                for url, entry in self._entries.items()
                if self._is_expired(entry, now)
            ]
            for url in expired:
                del self._entries[url]
            remaining = len(self._entries)

        if expired:
            log.debug("cache_cleanup", evicted=len(expired), remaining=remaining)
        return len(expired)

    def clear(self) -> None:
        """Drop all entries. Useful for testing or manual invalidation."""
        with self._lock:
            self._entries.clear()

    @property
    def size(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
