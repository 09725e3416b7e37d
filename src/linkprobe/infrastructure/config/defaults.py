"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "linkprobe",
    "environment": "dev",
    "validation": {
        "ttl_minutes": 5.0,
        "timeout_ms": 5000,
        "max_concurrent": 5,
        "max_redirects": 5,
        "cleanup_interval_seconds": 300.0,
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
}
