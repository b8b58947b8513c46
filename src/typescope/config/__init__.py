"""Config module exports."""

from typescope.config.loader import load_config
from typescope.config.models import (
    LoggingConfig,
    LogOutputConfig,
    ResolveConfig,
    TypeScopeConfig,
)

__all__ = [
    "load_config",
    "LoggingConfig",
    "LogOutputConfig",
    "ResolveConfig",
    "TypeScopeConfig",
]
