"""typescope error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Resolution (packages, sources, type checking, lookups)
- 9xxx: Internal invariants

Resolution errors are data conditions and may be recovered by callers.
Internal errors signal a programming error in the engine or its caller and
must never be swallowed.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Resolution (3xxx)
    PACKAGE_NOT_FOUND = 3001
    SOURCE_LOAD_FAILED = 3002
    TYPE_CHECK_FAILED = 3003
    IMPORT_CYCLE = 3004
    SYSTEM_IMPORT_FAILED = 3005
    OBJECT_NOT_FOUND = 3006
    NOT_AN_INTERFACE = 3007
    NOT_A_NAMED_TYPE = 3008
    SOURCE_UNAVAILABLE = 3009
    NOT_WALKABLE = 3010

    # Internal (9xxx)
    INTERNAL_ERROR = 9001
    DUPLICATE_DEFINITION = 9002
    UNHANDLED_TYPE_KIND = 9003
    INVALID_TYPE_NAME = 9004


@dataclass(frozen=True, slots=True)
class TypeScopeError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'PACKAGE_NOT_FOUND')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(TypeScopeError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class ResolveError(TypeScopeError):
    """Package resolution and lookup errors.

    Always carries the import path (or type name) being resolved so the
    failure can be diagnosed without a traceback.
    """

    @property
    def import_path(self) -> str | None:
        value = self.details.get("import_path")
        return str(value) if value is not None else None

    @classmethod
    def package_not_found(cls, import_path: str, origin: str) -> "ResolveError":
        return cls(
            code=ErrorCode.PACKAGE_NOT_FOUND,
            message=f"Package {import_path} not found from {origin}",
            details={"import_path": import_path, "origin": origin},
        )

    @classmethod
    def source_load_failed(
        cls, import_path: str, directory: str, failures: list[str]
    ) -> "ResolveError":
        joined = "; ".join(failures)
        return cls(
            code=ErrorCode.SOURCE_LOAD_FAILED,
            message=f"Could not load {import_path} from {directory}: {joined}",
            details={"import_path": import_path, "directory": directory, "failures": failures},
        )

    @classmethod
    def type_check_failed(cls, import_path: str, cause: str) -> "ResolveError":
        return cls(
            code=ErrorCode.TYPE_CHECK_FAILED,
            message=f"Type check of {import_path} failed: {cause}",
            details={"import_path": import_path, "cause": cause},
        )

    @classmethod
    def import_cycle(cls, import_path: str, chain: list[str]) -> "ResolveError":
        return cls(
            code=ErrorCode.IMPORT_CYCLE,
            message=f"Import cycle through {import_path}: {' -> '.join(chain)}",
            details={"import_path": import_path, "chain": chain},
        )

    @classmethod
    def system_import_failed(cls, import_path: str, cause: str) -> "ResolveError":
        return cls(
            code=ErrorCode.SYSTEM_IMPORT_FAILED,
            message=f"Could not import system package {import_path}: {cause}",
            details={"import_path": import_path, "cause": cause},
        )

    @classmethod
    def object_not_found(cls, name: str) -> "ResolveError":
        return cls(
            code=ErrorCode.OBJECT_NOT_FOUND,
            message=f"Could not find object {name}",
            details={"name": name},
        )

    @classmethod
    def not_an_interface(cls, name: str) -> "ResolveError":
        return cls(
            code=ErrorCode.NOT_AN_INTERFACE,
            message=f"Type {name} is not a protocol",
            details={"name": name},
        )

    @classmethod
    def not_a_named_type(cls, name: str, found: str) -> "ResolveError":
        return cls(
            code=ErrorCode.NOT_A_NAMED_TYPE,
            message=f"Type {name} must be a named type, found {found}",
            details={"name": name, "found": found},
        )

    @classmethod
    def not_walkable(cls, name: str, kind: str) -> "ResolveError":
        return cls(
            code=ErrorCode.NOT_WALKABLE,
            message=f"Type {name} has no walkable structure ({kind})",
            details={"name": name, "kind": kind},
        )

    @classmethod
    def source_unavailable(cls, name: str, reason: str) -> "ResolveError":
        return cls(
            code=ErrorCode.SOURCE_UNAVAILABLE,
            message=f"No source for {name}: {reason}",
            details={"name": name, "reason": reason},
        )


class InternalError(TypeScopeError):
    """Invariant violations. Never recovered."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )

    @classmethod
    def duplicate_definition(cls, import_path: str, name: str) -> "InternalError":
        return cls(
            code=ErrorCode.DUPLICATE_DEFINITION,
            message=f"Double-up: {name} already indexed while indexing {import_path}",
            details={"import_path": import_path, "name": name},
        )

    @classmethod
    def unhandled_type_kind(cls, kind: str) -> "InternalError":
        return cls(
            code=ErrorCode.UNHANDLED_TYPE_KIND,
            message=f"Unhandled type kind {kind}",
            details={"kind": kind},
        )

    @classmethod
    def invalid_type_name(cls, name: str) -> "InternalError":
        return cls(
            code=ErrorCode.INVALID_TYPE_NAME,
            message=f"Invalid type {name!r}, expected format full.package.path.Type",
            details={"name": name},
        )
