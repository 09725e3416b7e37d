"""Probe failure taxonomy.

Raised by HTTP probe implementations and normalized into
``ValidationOutcome`` by the link validator; never propagated to
batch callers.
"""

from __future__ import annotations

from linkprobe.domain.entities.validation import (
    ERROR_CANCELLED,
    ERROR_DNS,
    ERROR_REFUSED,
    ERROR_TIMEOUT,
    ERROR_UNKNOWN,
)


class ProbeError(Exception):
    """Base class for all probe failures."""

    #: User-facing message reported in ``ValidationOutcome.error``.
    default_message = ERROR_UNKNOWN

    def __init__(self, url: str, message: str | None = None) -> None:
        self.url = url
        self.message = message or self.default_message
        super().__init__(f"{self.message}: {url}")


class ProbeCancelled(ProbeError):
    """The batch owning this probe was cancelled or superseded."""

    default_message = ERROR_CANCELLED


class ProbeTimeout(ProbeError):
    """Connection + response did not finish within the probe timeout."""

    default_message = ERROR_TIMEOUT


class DnsFailure(ProbeError):
    """Host name could not be resolved."""

    default_message = ERROR_DNS


class ConnectionRefused(ProbeError):
    """Remote host actively refused the connection."""

    default_message = ERROR_REFUSED


class TransportError(ProbeError):
    """Any other transport-level failure (TLS, reset, protocol, bad URL)."""
