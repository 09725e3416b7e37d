"""Port for validating batches of URLs."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from linkprobe.domain.entities.validation import ValidationOutcome


@runtime_checkable
class LinkValidatorPort(Protocol):
    """Classifies URLs as live or broken.

    Implementations try HEAD first and escalate to a ranged GET when
    HEAD is blocked (403/405).
    """

    async def validate_batch(self, urls: list[str]) -> list[ValidationOutcome]:
        """Validate unique URLs of *urls*, cancelling any previous batch.

        Args:
            urls: Candidate URLs (may contain duplicates).

        Returns:
            One outcome per unique URL that was dispatched. A batch that
            is cancelled returns only the outcomes gathered so far.
        """
        ...

    def cancel(self) -> None:
        """Abandon the in-flight batch without waiting for it."""
        ...
