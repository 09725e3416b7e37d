"""Port for a single outbound liveness probe."""

from __future__ import annotations

from typing import Mapping, Protocol, runtime_checkable

from linkprobe.domain.entities.validation import ProbeMethod, ProbeResponse
from linkprobe.domain.ports.cancellation import CancellationTokenPort


@runtime_checkable
class HttpProbePort(Protocol):
    """Performs one HTTP request honoring method, headers, timeout,
    cancellation and the redirect bound.

    Implementations raise a ``linkprobe.domain.exceptions.ProbeError``
    subclass on any transport failure.
    """

    async def probe(
        self,
        url: str,
        *,
        method: ProbeMethod,
        headers: Mapping[str, str] | None = None,
        timeout: float,
        cancel_token: CancellationTokenPort | None = None,
    ) -> ProbeResponse:
        """Probe *url* and return the final (post-redirect) response."""
        ...
