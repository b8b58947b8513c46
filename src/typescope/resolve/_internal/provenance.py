"""Provenance: where an import path lives on disk, and what kind of package it is.

Search order for ``resolve(import_path, origin_dir)``:

1. Vendored: ``<level>/<vendor_dir_name>/<import/path>`` for each level from
   ``origin_dir`` up to the workspace root (inclusive), then each configured
   vendor path.
2. System: the stdlib directory (package directory, ``.py`` module, or
   extension module), or a module compiled into the interpreter.
3. User: ``<workspace_root>/<import/path>``.

Not finding a package is not an error; callers decide.
"""

from __future__ import annotations

import sys
from importlib.machinery import EXTENSION_SUFFIXES
from pathlib import Path

from typescope.resolve.models import PackageKind


def _is_relative_to(path: Path, root: Path) -> bool:
    try:
        path.relative_to(root)
    except ValueError:
        return False
    return True


class ProvenanceResolver:
    """Classifies import paths and files as vendored, system or user packages."""

    def __init__(
        self,
        workspace_root: Path,
        system_root: Path,
        *,
        vendor_dir_name: str = "_vendor",
        vendor_paths: list[Path] | None = None,
    ) -> None:
        self.workspace_root = workspace_root.resolve()
        self.system_root = system_root.resolve()
        self.vendor_dir_name = vendor_dir_name
        self.vendor_paths = [p.resolve() for p in vendor_paths or []]

    def resolve(self, import_path: str, origin_dir: Path | None = None) -> tuple[PackageKind, Path | None]:
        """Locate ``import_path`` searching from ``origin_dir``.

        Returns:
            ``(kind, path)``. ``path`` is a directory, a stdlib module file,
            or None for interpreter builtins and for ``PackageKind.NONE``.
        """
        parts = import_path.split(".")
        if not import_path or not all(p.isidentifier() for p in parts):
            return PackageKind.NONE, None
        rel = Path(*parts)

        origin = (origin_dir or self.workspace_root).resolve()
        for level in self._vendor_levels(origin):
            candidate = level / self.vendor_dir_name / rel
            if candidate.is_dir():
                return PackageKind.VENDORED, candidate
        for root in self.vendor_paths:
            candidate = root / rel
            if candidate.is_dir():
                return PackageKind.VENDORED, candidate

        system = self._find_system(parts)
        if system is not None:
            return PackageKind.SYSTEM, system
        if import_path in sys.builtin_module_names:
            return PackageKind.SYSTEM, None

        candidate = self.workspace_root / rel
        if candidate.is_dir():
            return PackageKind.USER, candidate

        return PackageKind.NONE, None

    def _vendor_levels(self, origin: Path) -> list[Path]:
        if not _is_relative_to(origin, self.workspace_root):
            return [origin]
        levels = []
        cur = origin
        while True:
            levels.append(cur)
            if cur == self.workspace_root or cur.parent == cur:
                break
            cur = cur.parent
        return levels

    def _find_system(self, parts: list[str]) -> Path | None:
        rel = Path(*parts)
        candidate = self.system_root / rel
        if candidate.is_dir():
            return candidate
        module = candidate.with_suffix(".py")
        if module.is_file():
            return module
        if len(parts) == 1:
            dynload = self.system_root / "lib-dynload"
            for suffix in EXTENSION_SUFFIXES:
                ext = dynload / f"{parts[0]}{suffix}"
                if ext.is_file():
                    return ext
        return None

    def file_package(self, file: Path) -> tuple[PackageKind, str]:
        """Classify the package that ``file`` (or directory) belongs to.

        Returns:
            ``(kind, import_path)``, or ``(PackageKind.NONE, "")`` when the
            file is outside every known root.
        """
        path = file.resolve()
        directory = path if path.is_dir() else path.parent

        # Innermost vendor directory wins
        parts = directory.parts
        for i in range(len(parts) - 1, -1, -1):
            if parts[i] == self.vendor_dir_name:
                return PackageKind.VENDORED, ".".join(parts[i + 1 :])
        for root in self.vendor_paths:
            if _is_relative_to(directory, root):
                return PackageKind.VENDORED, ".".join(directory.relative_to(root).parts)

        if _is_relative_to(path, self.system_root):
            rel = path.relative_to(self.system_root)
            if path.is_file() and rel.parent == Path("."):
                # Top-level stdlib module: the module is its own package
                return PackageKind.SYSTEM, path.name.split(".", 1)[0]
            return PackageKind.SYSTEM, ".".join(directory.relative_to(self.system_root).parts)

        if _is_relative_to(directory, self.workspace_root):
            return PackageKind.USER, ".".join(directory.relative_to(self.workspace_root).parts)

        return PackageKind.NONE, ""
