"""Resolve module - package resolution and the object index.

This module provides:
- Provenance: vendored, system or user classification of import paths
- Source loading: tree-sitter parsing of one package directory at a time
- Checking: an injected Checker, with AnnotationChecker as the default
- Queries: object lookup, protocol implementers, constant groups, docs

Public API is `typescope.resolve.engine.ResolutionEngine`.

Internal implementations are in `typescope.resolve._internal/`.
"""

from typescope.resolve._internal.checker import AnnotationChecker
from typescope.resolve._internal.loader import LoadedPackage, SourceFile
from typescope.resolve._internal.system import SystemImporter
from typescope.resolve.engine import ResolutionEngine
from typescope.resolve.models import (
    CheckError,
    Checker,
    CheckResult,
    Consts,
    ConstValue,
    Definition,
    Implementer,
    Importer,
    ObjectKind,
    Package,
    PackageKind,
    ResolveStats,
)

__all__ = [
    # Engine
    "ResolutionEngine",
    # Checking
    "AnnotationChecker",
    "CheckError",
    "Checker",
    "CheckResult",
    "Importer",
    "LoadedPackage",
    "SourceFile",
    "SystemImporter",
    # Models
    "Consts",
    "ConstValue",
    "Definition",
    "Implementer",
    "ObjectKind",
    "Package",
    "PackageKind",
    "ResolveStats",
]
