"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (TYPESCOPE__SECTION__KEY)
3. Workspace YAML (.typescope/config.yaml)
4. Global YAML (~/.config/typescope/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    TYPESCOPE__<SECTION>__<KEY>=<VALUE>

Examples:
    TYPESCOPE__LOGGING__LEVEL=DEBUG
    TYPESCOPE__RESOLVE__ALLOW_HARD_ERRORS=false
    TYPESCOPE__RESOLVE__INCLUDE_TESTS=true
"""

import sysconfig
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _default_system_root() -> Path:
    return Path(sysconfig.get_paths()["stdlib"])


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        TYPESCOPE__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every resolved package.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class ResolveConfig(BaseModel):
    """Package resolution configuration.

    Env vars:
        TYPESCOPE__RESOLVE__WORKSPACE_ROOT: Root that user import paths are relative to
        TYPESCOPE__RESOLVE__SYSTEM_ROOT: Standard library directory
        TYPESCOPE__RESOLVE__VENDOR_DIR_NAME: Name of vendored dependency directories
        TYPESCOPE__RESOLVE__INCLUDE_TESTS: Hand test modules to the checker
        TYPESCOPE__RESOLVE__ALLOW_HARD_ERRORS: Recover from hard type errors
        TYPESCOPE__RESOLVE__MISSING_IS_ERROR: Raise when a package cannot be found
    """

    workspace_root: Path = Field(
        default_factory=Path.cwd,
        description="User packages resolve relative to this directory. "
        "The upward search for vendored packages stops here.",
    )
    system_root: Path = Field(
        default_factory=_default_system_root,
        description="Standard library directory. Packages found here are not parsed.",
    )
    vendor_dir_name: str = Field(
        default="_vendor",
        description="Directory name searched for vendored packages at each level.",
    )
    vendor_paths: list[Path] = Field(
        default_factory=list,
        description="Extra roots (e.g. a locked site-packages) classified as vendored.",
    )
    include_tests: bool = Field(
        default=False,
        description="Include test modules (test_*.py, *_test.py, conftest.py) in checking.",
    )
    allow_hard_errors: bool = Field(
        default=True,
        description="Recover from hard type errors instead of failing the package. "
        "Keeps generators usable against packages that are missing generated code.",
    )
    missing_is_error: bool = Field(
        default=False,
        description="Raise PACKAGE_NOT_FOUND instead of reporting an absent package as None.",
    )
    enum_marker: str = Field(
        default="is_enum",
        description="Zero-argument method that marks a constant group as an enum.",
    )

    @field_validator("workspace_root", "system_root")
    @classmethod
    def resolve_root(cls, v: Path) -> Path:
        return v.expanduser().resolve()

    @field_validator("vendor_dir_name")
    @classmethod
    def validate_vendor_dir_name(cls, v: str) -> str:
        if not v or "/" in v or "\\" in v:
            raise ValueError(f"Vendor dir name must be a single path segment: {v!r}")
        return v

    @field_validator("enum_marker")
    @classmethod
    def validate_enum_marker(cls, v: str) -> str:
        if not v.isidentifier():
            raise ValueError(f"Enum marker must be an identifier: {v!r}")
        return v


class TypeScopeConfig(BaseModel):
    """Root configuration for typescope."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    resolve: ResolveConfig = Field(default_factory=ResolveConfig)
