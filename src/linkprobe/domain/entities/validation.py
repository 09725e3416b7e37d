"""Domain entities for URL liveness validation.

Pure value objects with no framework dependencies and no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Mapping

ProbeMethod = Literal["HEAD", "GET"]

# Status texts produced by the 403 escalation path.
STATUS_TEXT_CDN_MISSING = "Not Found (CDN)"
STATUS_TEXT_PROTECTED = "Protected"

# Error strings for normalized transport failures.
ERROR_CANCELLED = "Request cancelled"
ERROR_TIMEOUT = "Request timeout"
ERROR_DNS = "Domain not found"
ERROR_REFUSED = "Connection refused"
ERROR_UNKNOWN = "Unknown error"


@dataclass(frozen=True)
class ValidationOutcome:
    """Result of validating a single URL."""

    url: str
    is_valid: bool
    status_code: int | None = None
    status_text: str | None = None
    error: str | None = None

    @property
    def is_cancelled(self) -> bool:
        return self.error == ERROR_CANCELLED


@dataclass(frozen=True)
class CacheEntry:
    """Cached outcome (without URL) stamped with its insertion time."""

    is_valid: bool
    timestamp: float
    status_code: int | None = None
    status_text: str | None = None
    error: str | None = None

    def to_outcome(self, url: str) -> ValidationOutcome:
        return ValidationOutcome(
            url=url,
            is_valid=self.is_valid,
            status_code=self.status_code,
            status_text=self.status_text,
            error=self.error,
        )


@dataclass(frozen=True)
class ProbeResponse:
    """Normalized response of one probe call (after redirects).

    ``headers`` keys are lower-cased; ``body`` is empty for HEAD and
    truncated to the probe's byte cap for GET.
    """

    status_code: int
    status_text: str
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: str = ""

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "")

    @property
    def is_success(self) -> bool:
        """True for 2xx/3xx, the range treated as a live resource."""
        return 200 <= self.status_code < 400
