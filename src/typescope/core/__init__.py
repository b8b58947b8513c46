"""Core module exports."""

from typescope.core.errors import (
    ConfigError,
    ErrorCode,
    InternalError,
    ResolveError,
    TypeScopeError,
)
from typescope.core.logging import configure_logging, get_logger

__all__ = [
    # Errors
    "ConfigError",
    "ErrorCode",
    "InternalError",
    "ResolveError",
    "TypeScopeError",
    # Logging
    "configure_logging",
    "get_logger",
]
