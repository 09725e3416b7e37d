"""Tests for HttpLinkValidator with a mocked probe."""

from __future__ import annotations

import asyncio
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from linkprobe.domain.entities import ProbeResponse, ValidationOutcome
from linkprobe.domain.exceptions import (
    ConnectionRefused,
    DnsFailure,
    ProbeCancelled,
    ProbeTimeout,
    TransportError,
)
from linkprobe.domain.ports import LinkValidatorPort
from linkprobe.infrastructure.validation.cancellation import CancellationToken
from linkprobe.infrastructure.validation.http_link_validator import HttpLinkValidator
from linkprobe.infrastructure.validation.result_cache import ResultCache

_URL = "https://cdn.example.com/img/hero.png"


def _response(
    status_code: int,
    status_text: str = "",
    *,
    content_type: str = "",
    body: str = "",
) -> ProbeResponse:
    headers = {"content-type": content_type} if content_type else {}
    return ProbeResponse(
        status_code=status_code,
        status_text=status_text,
        url=_URL,
        headers=headers,
        body=body,
    )


def _mock_probe(head: Any = None, get: Any = None) -> MagicMock:
    """Probe answering HEAD with *head* and GET with *get*.

    Exceptions are raised instead of returned.
    """

    async def _probe(url: str, *, method: str, **kwargs: Any) -> ProbeResponse:
        result = head if method == "HEAD" else get
        if isinstance(result, BaseException):
            raise result
        return result

    probe = MagicMock()
    probe.probe = AsyncMock(side_effect=_probe)
    return probe


def _slow_probe(delay: float = 0.05) -> MagicMock:
    """Probe that returns 200 after *delay* unless its token fires first."""

    async def _probe(
        url: str, *, method: str, cancel_token: Any = None, **kwargs: Any
    ) -> ProbeResponse:
        try:
            await asyncio.wait_for(cancel_token.wait(), timeout=delay)
        except TimeoutError:
            return _response(200, "OK")
        raise ProbeCancelled(url)

    probe = MagicMock()
    probe.probe = AsyncMock(side_effect=_probe)
    return probe


def _methods(probe: MagicMock) -> list[str]:
    return [c.kwargs["method"] for c in probe.probe.call_args_list]


def _validator(
    probe: MagicMock, cache: ResultCache | None = None, **kwargs: Any
) -> HttpLinkValidator:
    if cache is None:
        cache = ResultCache()
    return HttpLinkValidator(probe=probe, cache=cache, **kwargs)


class TestHeadResults:
    async def test_head_200_is_valid(self) -> None:
        probe = _mock_probe(head=_response(200, "OK"))

        outcome = await _validator(probe).validate(_URL)

        assert outcome == ValidationOutcome(
            url=_URL, is_valid=True, status_code=200, status_text="OK"
        )
        assert _methods(probe) == ["HEAD"]

    async def test_head_redirect_status_is_valid(self) -> None:
        probe = _mock_probe(head=_response(301, "Moved Permanently"))

        outcome = await _validator(probe).validate(_URL)

        assert outcome.is_valid is True
        assert outcome.status_code == 301

    @pytest.mark.parametrize(
        ("status", "text"), [(404, "Not Found"), (410, "Gone")]
    )
    async def test_head_gone_is_broken_without_get(self, status: int, text: str) -> None:
        probe = _mock_probe(head=_response(status, text))

        outcome = await _validator(probe).validate(_URL)

        assert outcome.is_valid is False
        assert outcome.status_code == status
        assert outcome.status_text == text
        assert _methods(probe) == ["HEAD"]

    @pytest.mark.parametrize("status", [400, 429, 500, 503])
    async def test_other_head_errors_are_broken_without_get(self, status: int) -> None:
        probe = _mock_probe(head=_response(status, "Error"))

        outcome = await _validator(probe).validate(_URL)

        assert outcome.is_valid is False
        assert outcome.status_code == status
        assert _methods(probe) == ["HEAD"]


class TestGetFallback:
    @pytest.mark.parametrize("head_status", [403, 405])
    async def test_get_success_is_valid(self, head_status: int) -> None:
        probe = _mock_probe(
            head=_response(head_status, "Forbidden"),
            get=_response(206, "Partial Content"),
        )

        outcome = await _validator(probe).validate(_URL)

        assert outcome.is_valid is True
        assert outcome.status_code == 206
        assert _methods(probe) == ["HEAD", "GET"]

    async def test_get_requests_first_kilobyte(self) -> None:
        probe = _mock_probe(head=_response(405), get=_response(200, "OK"))

        await _validator(probe).validate(_URL)

        get_call = probe.probe.call_args_list[1]
        assert get_call.kwargs["headers"] == {"Range": "bytes=0-1023"}

    async def test_cdn_missing_object_is_broken(self) -> None:
        probe = _mock_probe(
            head=_response(403, "Forbidden"),
            get=_response(
                403,
                "Forbidden",
                content_type="application/xml",
                body="<Error><Code>NoSuchKey</Code></Error>",
            ),
        )

        outcome = await _validator(probe).validate(_URL)

        assert outcome == ValidationOutcome(
            url=_URL, is_valid=False, status_code=403, status_text="Not Found (CDN)"
        )

    async def test_protected_asset_is_valid(self) -> None:
        probe = _mock_probe(
            head=_response(403, "Forbidden"),
            get=_response(403, "Forbidden", content_type="application/octet-stream"),
        )

        outcome = await _validator(probe).validate(_URL)

        assert outcome == ValidationOutcome(
            url=_URL, is_valid=True, status_code=403, status_text="Protected"
        )

    async def test_get_404_is_broken(self) -> None:
        probe = _mock_probe(head=_response(403), get=_response(404, "Not Found"))

        outcome = await _validator(probe).validate(_URL)

        assert outcome.is_valid is False
        assert outcome.status_code == 404

    async def test_get_500_is_broken(self) -> None:
        probe = _mock_probe(
            head=_response(405, "Method Not Allowed"),
            get=_response(500, "Internal Server Error"),
        )

        outcome = await _validator(probe).validate(_URL)

        assert outcome.is_valid is False
        assert outcome.status_code == 500
        assert outcome.status_text == "Internal Server Error"


class TestTransportErrors:
    @pytest.mark.parametrize(
        ("exc", "message"),
        [
            (ProbeTimeout(_URL), "Request timeout"),
            (DnsFailure(_URL), "Domain not found"),
            (ConnectionRefused(_URL), "Connection refused"),
            (TransportError(_URL, "TLS handshake failed"), "TLS handshake failed"),
            (TransportError(_URL), "Unknown error"),
        ],
    )
    async def test_probe_errors_become_broken_outcomes(
        self, exc: Exception, message: str
    ) -> None:
        probe = _mock_probe(head=exc)

        outcome = await _validator(probe).validate(_URL)

        assert outcome == ValidationOutcome(url=_URL, is_valid=False, error=message)

    async def test_get_error_after_head_403(self) -> None:
        probe = _mock_probe(head=_response(403), get=ProbeTimeout(_URL))

        outcome = await _validator(probe).validate(_URL)

        assert outcome.is_valid is False
        assert outcome.error == "Request timeout"

    async def test_unexpected_exception_is_caught(self) -> None:
        probe = _mock_probe(head=RuntimeError("boom"))

        outcome = await _validator(probe).validate(_URL)

        assert outcome.is_valid is False
        assert outcome.error == "boom"

    async def test_unexpected_exception_without_message(self) -> None:
        probe = _mock_probe(head=RuntimeError())

        outcome = await _validator(probe).validate(_URL)

        assert outcome.error == "Unknown error"


class TestCaching:
    async def test_second_call_uses_cache(self, cache: ResultCache) -> None:
        probe = _mock_probe(head=_response(404, "Not Found"))
        validator = _validator(probe, cache)

        first = await validator.validate(_URL)
        second = await validator.validate(_URL)

        assert first == second
        assert probe.probe.await_count == 1

    async def test_errors_are_cached(self, cache: ResultCache) -> None:
        probe = _mock_probe(head=DnsFailure(_URL))

        await _validator(probe, cache).validate(_URL)

        assert cache.get(_URL).error == "Domain not found"

    async def test_cache_hit_skips_probe(self, cache: ResultCache) -> None:
        stored = ValidationOutcome(url=_URL, is_valid=True, status_code=200, status_text="OK")
        cache.set(_URL, stored)
        probe = _mock_probe(head=_response(404))

        outcome = await _validator(probe, cache).validate(_URL)

        assert outcome == stored
        probe.probe.assert_not_called()

    async def test_cancelled_outcome_is_not_cached(self, cache: ResultCache) -> None:
        probe = _mock_probe(head=ProbeCancelled(_URL))

        outcome = await _validator(probe, cache).validate(_URL)

        assert outcome.is_valid is True
        assert outcome.is_cancelled is True
        assert cache.has(_URL) is False


class TestCancelledValidation:
    async def test_cancelled_token_skips_probe(self) -> None:
        probe = _mock_probe(head=_response(200))
        token = CancellationToken(1)
        token.cancel()

        outcome = await _validator(probe).validate(_URL, token)

        assert outcome == ValidationOutcome(
            url=_URL, is_valid=True, error="Request cancelled"
        )
        probe.probe.assert_not_called()

    async def test_no_get_after_cancel_between_requests(self) -> None:
        token = CancellationToken(1)

        async def _probe(url: str, *, method: str, **kwargs: Any) -> ProbeResponse:
            token.cancel()
            return _response(403, "Forbidden")

        probe = MagicMock()
        probe.probe = AsyncMock(side_effect=_probe)

        outcome = await _validator(probe).validate(_URL, token)

        assert outcome.is_cancelled is True
        assert outcome.is_valid is True
        assert _methods(probe) == ["HEAD"]


class TestBatch:
    def test_satisfies_port(self) -> None:
        assert isinstance(_validator(_mock_probe()), LinkValidatorPort)

    async def test_empty_batch(self) -> None:
        probe = _mock_probe(head=_response(200))
        cache = MagicMock(spec=ResultCache)

        assert await _validator(probe, cache).validate_batch([]) == []
        probe.probe.assert_not_called()
        cache.get.assert_not_called()
        cache.set.assert_not_called()

    async def test_duplicates_validated_once(self) -> None:
        probe = _mock_probe(head=_response(200, "OK"))

        outcomes = await _validator(probe).validate_batch([_URL, _URL, _URL])

        assert [o.url for o in outcomes] == [_URL]
        assert probe.probe.await_count == 1

    async def test_preserves_first_seen_order(self) -> None:
        urls = [f"https://cdn.example.com/{i}.png" for i in range(7)]
        probe = _mock_probe(head=_response(200, "OK"))

        outcomes = await _validator(probe, max_concurrent=3).validate_batch(
            urls + urls[:2]
        )

        assert [o.url for o in outcomes] == urls

    async def test_windowed_concurrency(self) -> None:
        in_flight = 0
        peak = 0

        async def _probe(url: str, **kwargs: Any) -> ProbeResponse:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return _response(200, "OK")

        probe = MagicMock()
        probe.probe = AsyncMock(side_effect=_probe)
        urls = [f"https://cdn.example.com/{i}.png" for i in range(10)]

        outcomes = await _validator(probe, max_concurrent=4).validate_batch(urls)

        assert len(outcomes) == 10
        assert peak == 4

    async def test_mixed_results(self) -> None:
        ok = "https://cdn.example.com/ok.png"
        gone = "https://cdn.example.com/gone.png"

        async def _probe(url: str, **kwargs: Any) -> ProbeResponse:
            return _response(200 if url == ok else 404)

        probe = MagicMock()
        probe.probe = AsyncMock(side_effect=_probe)

        outcomes = await _validator(probe).validate_batch([ok, gone])

        assert [(o.url, o.is_valid) for o in outcomes] == [(ok, True), (gone, False)]

    async def test_batch_fills_cache(self, cache: ResultCache) -> None:
        probe = _mock_probe(head=_response(200, "OK"))
        urls = ["https://cdn.example.com/a.png", "https://cdn.example.com/b.png"]

        await _validator(probe, cache).validate_batch(urls)

        assert all(cache.has(u) for u in urls)


class TestBatchCancellation:
    async def test_cancel_returns_started_window_only(self) -> None:
        urls = [f"https://cdn.example.com/{i}.png" for i in range(6)]
        validator = _validator(_slow_probe(delay=1.0), max_concurrent=2)

        task = asyncio.create_task(validator.validate_batch(urls))
        await asyncio.sleep(0.01)
        validator.cancel()
        outcomes = await asyncio.wait_for(task, timeout=2.0)

        assert [o.url for o in outcomes] == urls[:2]
        assert all(o.is_cancelled and o.is_valid for o in outcomes)

    async def test_new_batch_supersedes_previous(self, cache: ResultCache) -> None:
        first = [f"https://cdn.example.com/first/{i}.png" for i in range(4)]
        second = [f"https://cdn.example.com/second/{i}.png" for i in range(2)]
        validator = _validator(_slow_probe(delay=0.05), cache, max_concurrent=2)

        first_task = asyncio.create_task(validator.validate_batch(first))
        await asyncio.sleep(0.01)
        second_outcomes = await validator.validate_batch(second)
        first_outcomes = await asyncio.wait_for(first_task, timeout=2.0)

        assert [o.url for o in second_outcomes] == second
        assert all(o.is_valid and not o.is_cancelled for o in second_outcomes)

        assert [o.url for o in first_outcomes] == first[:2]
        assert all(o.is_cancelled for o in first_outcomes)
        # Superseded work never reports a broken link and is not cached.
        assert all(o.is_valid for o in first_outcomes)
        assert not any(cache.has(u) for u in first)

    async def test_cancel_without_batch_is_noop(self) -> None:
        validator = _validator(_mock_probe(head=_response(200)))
        validator.cancel()

        outcomes = await validator.validate_batch([_URL])

        assert outcomes[0].is_valid is True
        assert outcomes[0].is_cancelled is False

    async def test_batch_after_cancel_runs_normally(self) -> None:
        validator = _validator(_slow_probe(delay=0.01), max_concurrent=2)
        urls = [f"https://cdn.example.com/{i}.png" for i in range(3)]

        task = asyncio.create_task(validator.validate_batch(urls))
        await asyncio.sleep(0)
        validator.cancel()
        await task

        outcomes = await validator.validate_batch(urls)

        assert len(outcomes) == 3
        assert not any(o.is_cancelled for o in outcomes)
