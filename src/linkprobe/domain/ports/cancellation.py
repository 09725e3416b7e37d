"""Port for batch-scoped cancellation signals."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class CancellationTokenPort(Protocol):
    """Read-only view of a batch cancellation signal.

    Validators and probes only observe the token; the batch
    coordinator that created it is the sole writer.
    """

    @property
    def is_cancelled(self) -> bool:
        """True once the owning batch was cancelled or superseded."""
        ...

    async def wait(self) -> None:
        """Block until the token is cancelled."""
        ...
