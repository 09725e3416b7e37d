"""Single-request liveness probe on top of a shared httpx.AsyncClient.

Redirects are followed manually so the hop bound can surface the last
redirect response instead of raising ``httpx.TooManyRedirects``. The
whole probe (all hops) runs under one timeout budget and is raced
against the batch cancellation token; whichever fires first aborts the
in-flight request.
"""

from __future__ import annotations

import asyncio
import socket
from contextlib import suppress
from typing import TYPE_CHECKING, Iterator, Mapping
from urllib.parse import urljoin, urlsplit

import httpx
import structlog

from linkprobe.domain.entities.validation import ProbeMethod, ProbeResponse
from linkprobe.domain.exceptions import (
    ConnectionRefused,
    DnsFailure,
    ProbeCancelled,
    ProbeError,
    ProbeTimeout,
    TransportError,
)

if TYPE_CHECKING:
    from linkprobe.domain.ports.cancellation import CancellationTokenPort

log = structlog.get_logger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)

_ACCEPT = "image/avif,image/webp,image/apng,image/svg+xml,image/*,*/*;q=0.8"
_ACCEPT_LANGUAGE = "en-US,en;q=0.9"

DEFAULT_MAX_REDIRECTS = 5
DEFAULT_MAX_BODY_BYTES = 10 * 1024

_DEFAULT_PORTS = {"http": 80, "https": 443}

# Fallback message fragments when the exception chain carries no OSError.
_DNS_MARKERS: tuple[str, ...] = (
    "name or service not known",
    "nodename nor servname",
    "temporary failure in name resolution",
    "getaddrinfo failed",
    "no address associated with hostname",
)


def url_origin(url: str) -> str:
    """Return ``scheme://host[:port]`` for *url*, or ``""`` if unparseable."""
    try:
        parts = urlsplit(url)
        host = parts.hostname
        port = parts.port
    except ValueError:
        return ""
    if not parts.scheme or not host:
        return ""
    if ":" in host:
        host = f"[{host}]"
    if port is not None and port != _DEFAULT_PORTS.get(parts.scheme):
        return f"{parts.scheme}://{host}:{port}"
    return f"{parts.scheme}://{host}"


def browser_headers(url: str, user_agent: str = DEFAULT_USER_AGENT) -> dict[str, str]:
    """Browser-like request headers with a same-origin Referer.

    Many CDNs apply hotlink protection that rejects requests without a
    plausible browser User-Agent or Referer.
    """
    headers = {
        "User-Agent": user_agent,
        "Accept": _ACCEPT,
        "Accept-Language": _ACCEPT_LANGUAGE,
    }
    origin = url_origin(url)
    if origin:
        headers["Referer"] = origin
    return headers


def _iter_causes(exc: BaseException) -> Iterator[BaseException]:
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def classify_transport_error(url: str, exc: Exception) -> ProbeError:
    """Map an httpx (or underlying OS) exception to the probe taxonomy."""
    if isinstance(exc, httpx.TimeoutException):
        return ProbeTimeout(url)

    for cause in _iter_causes(exc):
        if isinstance(cause, socket.gaierror):
            return DnsFailure(url)
        if isinstance(cause, ConnectionRefusedError):
            return ConnectionRefused(url)

    message = str(exc)
    lowered = message.lower()
    if any(marker in lowered for marker in _DNS_MARKERS):
        return DnsFailure(url)
    if "connection refused" in lowered or "errno 111" in lowered:
        return ConnectionRefused(url)
    return TransportError(url, message or None)


class HttpxProbe:
    """Probes URLs with HEAD or capped GET requests.

    Args:
        http_client: Shared httpx.AsyncClient (injected). Its own
            redirect setting is ignored; redirects are followed here.
        user_agent: User-Agent sent with every request.
        max_redirects: Redirects followed before the last redirect
            response is returned as-is (default: 5).
        max_body_bytes: GET body bytes kept for inspection (default: 10 KiB).
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        user_agent: str = DEFAULT_USER_AGENT,
        max_redirects: int = DEFAULT_MAX_REDIRECTS,
        max_body_bytes: int = DEFAULT_MAX_BODY_BYTES,
    ) -> None:
        self.http_client = http_client
        self.user_agent = user_agent
        self.max_redirects = max_redirects
        self.max_body_bytes = max_body_bytes

    async def probe(
        self,
        url: str,
        *,
        method: ProbeMethod,
        headers: Mapping[str, str] | None = None,
        timeout: float,
        cancel_token: CancellationTokenPort | None = None,
    ) -> ProbeResponse:
        """Probe *url* and return the final response after redirects.

        Raises:
            ProbeCancelled: *cancel_token* fired before or during the request.
            ProbeTimeout: The probe exceeded *timeout* seconds.
            DnsFailure, ConnectionRefused, TransportError: transport failures.
        """
        if cancel_token is not None and cancel_token.is_cancelled:
            raise ProbeCancelled(url)

        request_headers = browser_headers(url, self.user_agent)
        if headers:
            request_headers.update(headers)

        work = asyncio.ensure_future(
            self._follow_redirects(url, method, request_headers, timeout)
        )
        waiters: set[asyncio.Future] = {work}
        cancel_wait: asyncio.Future | None = None
        if cancel_token is not None:
            cancel_wait = asyncio.ensure_future(cancel_token.wait())
            waiters.add(cancel_wait)

        try:
            done, _ = await asyncio.wait(
                waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
            )
            if work in done:
                return work.result()
        finally:
            if cancel_wait is not None:
                cancel_wait.cancel()
            if not work.done():
                work.cancel()
                with suppress(asyncio.CancelledError, Exception):
                    await work

        if cancel_wait is not None and cancel_wait in done:
            log.debug("probe_cancelled", url=url, method=method)
            raise ProbeCancelled(url)

        log.debug("probe_timeout", url=url, method=method, timeout=timeout)
        raise ProbeTimeout(url)

    async def _follow_redirects(
        self,
        url: str,
        method: ProbeMethod,
        headers: Mapping[str, str],
        timeout: float,
    ) -> ProbeResponse:
        current_url = url
        redirects = 0
        while True:
            response = await self._send(current_url, method, headers, timeout)
            location = response.headers.get("location")
            if not (300 <= response.status_code < 400 and location):
                return response

            if redirects >= self.max_redirects:
                log.debug(
                    "probe_redirect_limit_reached",
                    url=url,
                    last_url=current_url,
                    max_redirects=self.max_redirects,
                )
                return response

            current_url = urljoin(current_url, location)
            redirects += 1
            log.debug(
                "probe_redirect",
                url=url,
                status_code=response.status_code,
                location=current_url,
                hop=redirects,
            )

    async def _send(
        self,
        url: str,
        method: ProbeMethod,
        headers: Mapping[str, str],
        timeout: float,
    ) -> ProbeResponse:
        try:
            request = self.http_client.build_request(
                method, url, headers=dict(headers), timeout=timeout
            )
            response = await self.http_client.send(
                request, stream=True, follow_redirects=False
            )
            try:
                body = ""
                if method == "GET" and not response.is_redirect:
                    body = await self._read_capped(response)
            finally:
                await response.aclose()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise classify_transport_error(url, e) from e

        return ProbeResponse(
            status_code=response.status_code,
            status_text=response.reason_phrase,
            url=str(response.url),
            headers={k.lower(): v for k, v in response.headers.items()},
            body=body,
        )

    async def _read_capped(self, response: httpx.Response) -> str:
        """Read at most ``max_body_bytes`` of the (decoded) body."""
        buffer = bytearray()
        async for chunk in response.aiter_bytes():
            remaining = self.max_body_bytes - len(buffer)
            buffer.extend(chunk[:remaining])
            if len(buffer) >= self.max_body_bytes:
                break

        encoding = response.charset_encoding or "utf-8"
        try:
            return buffer.decode(encoding, errors="replace")
        except LookupError:
            return buffer.decode("utf-8", errors="replace")
