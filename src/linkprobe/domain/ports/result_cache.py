"""Port for the validation result cache."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from linkprobe.domain.entities.validation import CacheEntry, ValidationOutcome


@runtime_checkable
class ResultCachePort(Protocol):
    """TTL-bounded store of the last known outcome per URL."""

    def get(self, url: str) -> CacheEntry | None:
        """Return the entry if it is not older than the TTL; evict otherwise."""
        ...

    def set(self, url: str, outcome: ValidationOutcome) -> None:
        """Insert or overwrite the entry for *url*, stamped with now."""
        ...

    def cleanup(self) -> int:
        """Evict all expired entries. Returns the number evicted."""
        ...

    def clear(self) -> None:
        """Evict everything."""
        ...
