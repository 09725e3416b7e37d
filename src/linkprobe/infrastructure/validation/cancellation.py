"""Batch-scoped cancellation: one fresh token per batch, newest wins."""

from __future__ import annotations

import asyncio

import structlog

log = structlog.get_logger(__name__)


class CancellationToken:
    """One-shot cancellation signal for a single batch run.

    Validators hold the token read-only (``is_cancelled`` / ``wait``);
    only the :class:`BatchCancellation` that issued it calls ``cancel``.
    """

    __slots__ = ("generation", "_event")

    def __init__(self, generation: int) -> None:
        self.generation = generation
        self._event = asyncio.Event()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()

    def __repr__(self) -> str:
        state = "cancelled" if self.is_cancelled else "active"
        return f"CancellationToken(generation={self.generation}, {state})"


class BatchCancellation:
    """Issues batch tokens; starting a new batch supersedes the previous one.

    At most one token is current. :meth:`start` cancels the current
    token (without waiting for its work to unwind) and returns a new one.
    """

    def __init__(self) -> None:
        self._generation = 0
        self._current: CancellationToken | None = None

    @property
    def current(self) -> CancellationToken | None:
        return self._current

    @property
    def generation(self) -> int:
        return self._generation

    def start(self) -> CancellationToken:
        """Cancel the running batch (if any) and issue a fresh token."""
        self.cancel()
        self._generation += 1
        self._current = CancellationToken(self._generation)
        return self._current

    def cancel(self) -> None:
        """Cancel the current token, if one is active."""
        token = self._current
        if token is None:
            return
        self._current = None
        if not token.is_cancelled:
            token.cancel()
            log.debug("batch_cancelled", generation=token.generation)

    def finish(self, token: CancellationToken) -> None:
        """Retire *token* after its batch ended, unless already superseded."""
        if self._current is token:
            self._current = None

    def is_current(self, token: CancellationToken) -> bool:
        """True if *token* is still the active, uncancelled batch token."""
        return token is self._current and not token.is_cancelled
