from __future__ import annotations

from .load import load_config
from .schema import AppConfig, EnvOverrides, ValidationConfig

__all__ = ["AppConfig", "EnvOverrides", "ValidationConfig", "load_config"]
