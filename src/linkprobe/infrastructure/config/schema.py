"""Pydantic configuration models with validation."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from linkprobe.infrastructure.validation.http_probe import (
    DEFAULT_MAX_BODY_BYTES,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_USER_AGENT,
)

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]


class ValidationConfig(BaseModel):
    """Link validation engine settings (YAML section: validation.*)."""

    ttl_minutes: float = Field(
        default=5.0,
        description="Lifetime of cached validation outcomes (minutes). 0 = no caching.",
    )
    timeout_ms: int = Field(
        default=5000,
        description="Per-probe timeout in milliseconds (HEAD and GET each get one).",
    )
    max_concurrent: int = Field(
        default=5,
        description="URLs validated in parallel per window.",
    )
    max_redirects: int = Field(
        default=DEFAULT_MAX_REDIRECTS,
        description="Redirects followed before the last redirect response is reported.",
    )
    max_body_bytes: int = Field(
        default=DEFAULT_MAX_BODY_BYTES,
        description="GET body bytes kept for CDN error-page inspection.",
    )
    cleanup_interval_seconds: float = Field(
        default=300.0,
        description="Interval of the background cache sweep (seconds).",
    )
    user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        description="Browser-like User-Agent sent with probes.",
    )

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0

    @field_validator("timeout_ms", "max_concurrent", "max_body_bytes")
    @classmethod
    def _validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be > 0")
        return v

    @field_validator("ttl_minutes", "max_redirects")
    @classmethod
    def _validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("must be >= 0")
        return v

    @field_validator("cleanup_interval_seconds")
    @classmethod
    def _validate_interval(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("cleanup_interval_seconds must be > 0")
        return v


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (validation/logging).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    # General
    app_name: str = Field(default="linkprobe", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # Validation engine (YAML section: validation.*)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Dump configuration in the sectioned shape used by config.yaml/docs.
        """
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "validation": self.validation.model_dump(),
            "logging": {"level": self.log_level, "format": self.log_format},
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    Intended usage:
    - load.py creates EnvOverrides() to read LINKPROBE_* variables,
      converts to dict of set values, merges into YAML/defaults,
      then validates AppConfig.

    Supported env var examples (flat, explicit):
    - LINKPROBE_TTL_MINUTES
    - LINKPROBE_TIMEOUT_MS
    - LINKPROBE_MAX_CONCURRENT
    - LINKPROBE_LOG_LEVEL
    """

    model_config = SettingsConfigDict(
        env_prefix="LINKPROBE_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    ttl_minutes: Optional[float] = None
    timeout_ms: Optional[int] = None
    max_concurrent: Optional[int] = None
    max_redirects: Optional[int] = None
    cleanup_interval_seconds: Optional[float] = None
    user_agent: Optional[str] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
