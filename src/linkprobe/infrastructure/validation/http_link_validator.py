"""HTTP-based link validator using HEAD requests with ranged GET fallback."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Mapping

import structlog

from linkprobe.domain.entities.validation import (
    ERROR_CANCELLED,
    ERROR_UNKNOWN,
    STATUS_TEXT_CDN_MISSING,
    STATUS_TEXT_PROTECTED,
    ProbeMethod,
    ProbeResponse,
    ValidationOutcome,
)
from linkprobe.domain.exceptions import ProbeCancelled, ProbeError
from linkprobe.infrastructure.validation.cancellation import BatchCancellation
from linkprobe.infrastructure.validation.cdn import looks_like_missing_resource

if TYPE_CHECKING:
    from linkprobe.domain.ports import (
        CancellationTokenPort,
        HttpProbePort,
        ResultCachePort,
    )

log = structlog.get_logger(__name__)

# HEAD statuses that definitely mean the resource is gone.
_BROKEN_STATUS_CODES: frozenset[int] = frozenset({404, 410})

# HEAD statuses that may just mean "HEAD not allowed here"; retried via GET.
_ESCALATE_STATUS_CODES: frozenset[int] = frozenset({403, 405})

# Only the first KiB is needed to recognise a CDN error page.
_RANGE_HEADERS: Mapping[str, str] = {"Range": "bytes=0-1023"}


class HttpLinkValidator:
    """Validates URLs via HTTP HEAD with a ranged GET fallback.

    Per URL: cache lookup, HEAD probe, then for 403/405 a GET of the
    first KiB whose body is inspected for CDN "missing object" pages.
    Ambiguous 403s are reported valid ("Protected") since a false
    broken-link warning is worse than a missed one.

    Features:
        - URL deduplication: each unique URL is validated once per batch.
        - Result caching: every non-cancelled outcome goes to the cache.
        - Windowed concurrency: ``max_concurrent`` URLs per window,
          windows run one after another.
        - Supersession: a new batch cancels the one still in flight.

    Args:
        probe: HTTP probe implementation (injected).
        cache: Result cache shared across batches (injected).
        timeout_seconds: Timeout per probe (default: 5s).
        max_concurrent: URLs validated in parallel per window (default: 5).
    """

    def __init__(
        self,
        probe: HttpProbePort,
        cache: ResultCachePort,
        timeout_seconds: float = 5.0,
        max_concurrent: int = 5,
    ) -> None:
        self.probe = probe
        self.cache = cache
        self.timeout = timeout_seconds
        self.max_concurrent = max(1, max_concurrent)
        self._batches = BatchCancellation()

    def cancel(self) -> None:
        """Cancel the running batch (if any) without waiting for it."""
        self._batches.cancel()

    async def validate(
        self,
        url: str,
        cancel_token: CancellationTokenPort | None = None,
    ) -> ValidationOutcome:
        """Validate a single URL.

        Never raises for network problems: every failure is folded into
        the returned outcome. Cancellation yields a *valid* outcome
        tagged ``"Request cancelled"`` that is not cached.
        """
        if cancel_token is not None and cancel_token.is_cancelled:
            return _cancelled(url)

        cached = self.cache.get(url)
        if cached is not None:
            log.debug("link_cache_hit", url=url, valid=cached.is_valid)
            return cached.to_outcome(url)

        try:
            outcome = await self._probe_and_classify(url, cancel_token)
        except ProbeCancelled:
            log.debug("link_validation_cancelled", url=url)
            return _cancelled(url)
        except ProbeError as e:
            log.debug(
                "link_validation_failed",
                url=url,
                kind=type(e).__name__,
                error=e.message,
            )
            outcome = ValidationOutcome(url=url, is_valid=False, error=e.message)
        except Exception as e:  # noqa: BLE001
            log.warning("link_validation_unexpected_error", url=url, error=str(e))
            outcome = ValidationOutcome(
                url=url, is_valid=False, error=str(e) or ERROR_UNKNOWN
            )

        self.cache.set(url, outcome)
        return outcome

    async def _probe_and_classify(
        self,
        url: str,
        cancel_token: CancellationTokenPort | None,
    ) -> ValidationOutcome:
        head = await self._probe(url, "HEAD", cancel_token)
        log.debug("link_head_result", url=url, status_code=head.status_code)

        if head.is_success:
            return _outcome(url, True, head)

        if head.status_code in _BROKEN_STATUS_CODES:
            return _outcome(url, False, head)

        response = head
        if head.status_code in _ESCALATE_STATUS_CODES:
            response = await self._probe(url, "GET", cancel_token, _RANGE_HEADERS)
            log.debug(
                "link_get_fallback_result",
                url=url,
                head_status=head.status_code,
                status_code=response.status_code,
            )

            if response.is_success:
                return _outcome(url, True, response)

            if response.status_code == 403:
                if looks_like_missing_resource(response):
                    return _outcome(url, False, response, STATUS_TEXT_CDN_MISSING)
                return _outcome(url, True, response, STATUS_TEXT_PROTECTED)

        return _outcome(url, response.is_success, response)

    async def _probe(
        self,
        url: str,
        method: ProbeMethod,
        cancel_token: CancellationTokenPort | None,
        headers: Mapping[str, str] | None = None,
    ) -> ProbeResponse:
        # Never launch a new request once the batch is cancelled.
        if cancel_token is not None and cancel_token.is_cancelled:
            raise ProbeCancelled(url)
        return await self.probe.probe(
            url,
            method=method,
            headers=headers,
            timeout=self.timeout,
            cancel_token=cancel_token,
        )

    async def validate_batch(self, urls: list[str]) -> list[ValidationOutcome]:
        """Validate multiple URLs with windowed concurrency and deduplication.

        Starting a batch cancels the previous one. Each unique URL is
        validated at most once; mapping outcomes back onto duplicate
        positions is up to the caller.

        Args:
            urls: Candidate URLs (may contain duplicates).

        Returns:
            Outcomes in first-seen order of the unique URLs. If the batch
            is cancelled, only the windows started so far are included.
        """
        if not urls:
            return []

        token = self._batches.start()
        unique_urls = list(dict.fromkeys(urls))

        log.info(
            "batch_validation_started",
            batch=token.generation,
            total=len(urls),
            unique=len(unique_urls),
            duplicates_skipped=len(urls) - len(unique_urls),
        )

        outcomes: list[ValidationOutcome] = []
        try:
            for start in range(0, len(unique_urls), self.max_concurrent):
                if token.is_cancelled:
                    log.info(
                        "batch_validation_cancelled",
                        batch=token.generation,
                        completed=len(outcomes),
                        skipped=len(unique_urls) - len(outcomes),
                    )
                    break

                window = unique_urls[start : start + self.max_concurrent]
                results = await asyncio.gather(
                    *(self.validate(url, token) for url in window)
                )
                outcomes.extend(results)
        finally:
            self._batches.finish(token)

        valid_count = sum(1 for o in outcomes if o.is_valid)
        log.info(
            "batch_validation_completed",
            batch=token.generation,
            validated=len(outcomes),
            valid=valid_count,
            invalid=len(outcomes) - valid_count,
            cancelled=token.is_cancelled,
        )
        return outcomes


def _outcome(
    url: str,
    is_valid: bool,
    response: ProbeResponse,
    status_text: str | None = None,
) -> ValidationOutcome:
    return ValidationOutcome(
        url=url,
        is_valid=is_valid,
        status_code=response.status_code,
        status_text=status_text if status_text is not None else response.status_text,
    )


def _cancelled(url: str) -> ValidationOutcome:
    return ValidationOutcome(url=url, is_valid=True, error=ERROR_CANCELLED)
