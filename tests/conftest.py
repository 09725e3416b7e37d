"""Shared test fixtures for the linkprobe test suite."""

from __future__ import annotations

import pytest

from linkprobe.domain.entities import ValidationOutcome
from linkprobe.infrastructure.config import AppConfig
from linkprobe.infrastructure.validation.result_cache import ResultCache


@pytest.fixture()
def cache() -> ResultCache:
    """Fresh cache with the default 5 minute TTL."""
    return ResultCache(ttl_minutes=5)


@pytest.fixture()
def app_config() -> AppConfig:
    """Default configuration in the test environment."""
    return AppConfig(environment="test")


@pytest.fixture()
def broken_outcome() -> ValidationOutcome:
    return ValidationOutcome(
        url="https://cdn.example.com/missing.png",
        is_valid=False,
        status_code=404,
        status_text="Not Found",
    )
