"""Data models for package resolution."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

from typescope.names import TypeName
from typescope.types import Form, Named, Type

if TYPE_CHECKING:
    from typescope.resolve._internal.loader import LoadedPackage


class PackageKind(str, Enum):
    """Provenance of a resolved package. Fixed once assigned."""

    NONE = "none"
    VENDORED = "vendored"
    SYSTEM = "system"
    USER = "user"


class ObjectKind(str, Enum):
    """What a package-scope definition declares."""

    TYPE = "type"
    ALIAS = "alias"
    CONST = "const"
    VAR = "var"
    FUNC = "func"


@dataclass(slots=True)
class Definition:
    """A package-scope name and its checked type.

    ``file`` is the base name of the declaring file; byte offsets span the
    whole declaration statement (decorators included).
    """

    name: TypeName
    kind: ObjectKind
    type: Type
    value: Any = None
    file: str | None = None
    start_byte: int = -1
    end_byte: int = -1

    @property
    def is_exported(self) -> bool:
        return self.name.is_exported

    @property
    def has_source(self) -> bool:
        return self.file is not None and 0 <= self.start_byte <= self.end_byte


@dataclass(slots=True)
class Package:
    """A checked package: its scope, plus the packages its files import."""

    import_path: str
    kind: PackageKind
    directory: Path | None = None
    scope: dict[str, Definition] = field(default_factory=dict)
    imports: set[str] = field(default_factory=set)

    @property
    def name(self) -> str:
        return self.import_path.rsplit(".", 1)[-1]

    def lookup(self, name: str) -> Definition | None:
        return self.scope.get(name)

    def names(self) -> list[str]:
        return sorted(self.scope)


@dataclass(frozen=True, slots=True)
class CheckError:
    """A type error reported by a checker.

    Soft errors leave the rest of the package trustworthy (an unresolved
    reference, say). Hard errors mean the package is structurally broken.
    """

    import_path: str
    message: str
    soft: bool
    file: str | None = None
    line: int | None = None

    @property
    def severity(self) -> str:
        return "soft" if self.soft else "hard"

    def __str__(self) -> str:
        if self.file is None:
            return f"{self.import_path}: {self.message}"
        if self.line is None:
            return f"{self.file}: {self.message}"
        return f"{self.file}:{self.line}: {self.message}"


@dataclass(slots=True)
class CheckResult:
    package: Package
    errors: list[CheckError] = field(default_factory=list)

    @property
    def hard_errors(self) -> list[CheckError]:
        return [e for e in self.errors if not e.soft]

    @property
    def soft_errors(self) -> list[CheckError]:
        return [e for e in self.errors if e.soft]


class Importer(Protocol):
    """Resolves imports on behalf of a checker."""

    def import_from(self, import_path: str, src_dir: Path | None = None) -> Package | None: ...


class Checker(Protocol):
    """Type-checks one package.

    Fills ``package.scope`` from the files named in ``files`` and returns
    every error found. Must not raise for type errors; ``InternalError`` and
    ``ResolveError`` raised by ``importer`` are the only exceptions that may
    escape, and only if the checker chooses not to report them.
    """

    def check(
        self,
        package: Package,
        loaded: LoadedPackage,
        files: list[str],
        importer: Importer,
    ) -> CheckResult: ...


@dataclass(frozen=True, slots=True)
class ConstValue:
    name: TypeName
    value: Any


@dataclass(slots=True)
class Consts:
    """Constants of one declared type, and whether that type is an enum.

    Values are in no particular order; use sorted_values() for output.
    """

    type: TypeName
    underlying: TypeName
    is_enum: bool
    values: list[ConstValue] = field(default_factory=list)

    def sorted_values(self) -> list[ConstValue]:
        return sorted(self.values, key=lambda v: v.name)


@dataclass(frozen=True, slots=True)
class Implementer:
    """A type that satisfies a protocol, and the form it satisfies it in."""

    type: Named
    form: Form


@dataclass(slots=True)
class ResolveStats:
    """Work counters for one engine."""

    provenance_lookups: int = 0
    loads: int = 0
    checks: int = 0
    system_imports: int = 0
    cache_hits: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "provenance_lookups": self.provenance_lookups,
            "loads": self.loads,
            "checks": self.checks,
            "system_imports": self.system_imports,
            "cache_hits": self.cache_hits,
        }
