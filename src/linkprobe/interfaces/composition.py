"""Composition root: builds the validation engine from an AppConfig."""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator

import httpx
import structlog

from linkprobe.application.use_cases import CheckLinksUseCase
from linkprobe.infrastructure.config import AppConfig
from linkprobe.infrastructure.scanning.url_scanner import scan_text
from linkprobe.infrastructure.validation.cache_sweeper import CacheSweeper
from linkprobe.infrastructure.validation.http_link_validator import HttpLinkValidator
from linkprobe.infrastructure.validation.http_probe import HttpxProbe
from linkprobe.infrastructure.validation.result_cache import ResultCache

log = structlog.get_logger(__name__)


@dataclass
class ValidationContext:
    """Everything a host needs to validate links, explicitly owned.

    One context = one cache, one HTTP connection pool, one validator
    (and therefore one current batch).
    """

    config: AppConfig
    http_client: httpx.AsyncClient
    cache: ResultCache
    probe: HttpxProbe
    validator: HttpLinkValidator
    sweeper: CacheSweeper

    def check_links(self, *, include_valid: bool = False) -> CheckLinksUseCase:
        return CheckLinksUseCase(
            validator=self.validator,
            scanner=scan_text,
            include_valid=include_valid,
        )


def build_context(
    config: AppConfig,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> ValidationContext:
    """Wire cache, probe, validator and sweeper (no I/O, no tasks started)."""
    settings = config.validation

    if http_client is None:
        http_client = httpx.AsyncClient(
            timeout=httpx.Timeout(settings.timeout_seconds),
            follow_redirects=False,
        )

    cache = ResultCache(ttl_minutes=settings.ttl_minutes)
    probe = HttpxProbe(
        http_client,
        user_agent=settings.user_agent,
        max_redirects=settings.max_redirects,
        max_body_bytes=settings.max_body_bytes,
    )
    validator = HttpLinkValidator(
        probe=probe,
        cache=cache,
        timeout_seconds=settings.timeout_seconds,
        max_concurrent=settings.max_concurrent,
    )
    sweeper = CacheSweeper(cache, interval_seconds=settings.cleanup_interval_seconds)

    return ValidationContext(
        config=config,
        http_client=http_client,
        cache=cache,
        probe=probe,
        validator=validator,
        sweeper=sweeper,
    )


@asynccontextmanager
async def validation_context(
    config: AppConfig,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> AsyncIterator[ValidationContext]:
    """Build a context, run the cache sweeper, and tear everything down.

    On exit the current batch is cancelled, the sweeper stopped and the
    HTTP client closed (only if it was created here).
    """
    owns_client = http_client is None
    ctx = build_context(config, http_client=http_client)
    ctx.sweeper.start()
    log.info(
        "validation_context_started",
        ttl_minutes=config.validation.ttl_minutes,
        timeout_ms=config.validation.timeout_ms,
        max_concurrent=config.validation.max_concurrent,
    )
    try:
        yield ctx
    finally:
        ctx.validator.cancel()
        await ctx.sweeper.stop()
        if owns_client:
            await ctx.http_client.aclose()
        log.info("validation_context_stopped", cached_entries=ctx.cache.size)
