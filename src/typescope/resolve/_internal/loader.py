"""Source loading: one directory of .py files into syntax trees.

A load either succeeds for every file in the directory or fails as a whole.
Failures are per package; a broken package never affects its siblings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from fnmatch import fnmatch
from pathlib import Path
from typing import Any

from typescope.core.errors import ResolveError
from typescope.core.logging import get_logger
from typescope.resolve._internal.parsing import PythonParser, find_node

log = get_logger(__name__)

TEST_FILE_PATTERNS = ("test_*.py", "*_test.py", "conftest.py")


def is_test_file(name: str) -> bool:
    return any(fnmatch(name, pattern) for pattern in TEST_FILE_PATTERNS)


@dataclass
class SourceFile:
    """One parsed file. ``name`` is the base name within the package directory."""

    name: str
    path: Path
    content: bytes
    tree: Any

    @property
    def root_node(self) -> Any:
        return self.tree.root_node

    @property
    def is_test(self) -> bool:
        return is_test_file(self.name)

    def source(self, start_byte: int, end_byte: int) -> bytes:
        return self.content[start_byte:end_byte]


@dataclass
class LoadedPackage:
    """Syntax trees and raw contents of every file in one package directory."""

    import_path: str
    directory: Path
    files: dict[str, SourceFile] = field(default_factory=dict)

    @property
    def file_names(self) -> list[str]:
        return sorted(self.files)

    def file(self, name: str) -> SourceFile | None:
        return self.files.get(name)

    def node_at(self, file: str, start_byte: int, end_byte: int) -> Any | None:
        """Outermost syntax node spanning exactly ``[start_byte, end_byte)`` in ``file``."""
        src = self.files.get(file)
        if src is None:
            return None
        return find_node(src.root_node, start_byte, end_byte)


def load_package(directory: Path, import_path: str, parser: PythonParser) -> LoadedPackage:
    """Read and parse every ``*.py`` file in ``directory``.

    Raises:
        ResolveError: SOURCE_LOAD_FAILED if the directory is missing, or if
            any file cannot be read or has syntax errors. The error names
            every failing file.
    """
    if not directory.is_dir():
        log.warning("source_load_failed", import_path=import_path, directory=str(directory))
        raise ResolveError.source_load_failed(import_path, str(directory), ["not a directory"])

    loaded = LoadedPackage(import_path=import_path, directory=directory)
    failures: list[str] = []

    for path in sorted(directory.glob("*.py")):
        if not path.is_file():
            continue
        try:
            content = path.read_bytes()
        except OSError as e:
            failures.append(f"{path.name}: {e}")
            continue

        try:
            result = parser.parse(content)
        except (ValueError, RecursionError, MemoryError) as e:
            failures.append(f"{path.name}: parse failed: {type(e).__name__}: {e}")
            continue
        if not result.ok:
            failures.append(f"{path.name}:{result.first_error_line}: syntax error")
            continue

        loaded.files[path.name] = SourceFile(
            name=path.name, path=path, content=content, tree=result.tree
        )

    if failures:
        log.warning(
            "source_load_failed",
            import_path=import_path,
            directory=str(directory),
            failures=failures,
        )
        raise ResolveError.source_load_failed(import_path, str(directory), failures)

    return loaded


class SourceSet:
    """Every package loaded in one session, keyed by import path."""

    def __init__(self) -> None:
        self._packages: dict[str, LoadedPackage] = {}

    def add(self, loaded: LoadedPackage) -> None:
        self._packages[loaded.import_path] = loaded

    def get(self, import_path: str) -> LoadedPackage | None:
        return self._packages.get(import_path)

    def __contains__(self, import_path: object) -> bool:
        return import_path in self._packages

    def __len__(self) -> int:
        return len(self._packages)

    def node_at(self, import_path: str, file: str, start_byte: int, end_byte: int) -> Any | None:
        loaded = self._packages.get(import_path)
        if loaded is None:
            return None
        return loaded.node_at(file, start_byte, end_byte)

    def source(self, import_path: str, file: str, start_byte: int, end_byte: int) -> bytes | None:
        loaded = self._packages.get(import_path)
        if loaded is None:
            return None
        src = loaded.file(file)
        if src is None:
            return None
        return src.source(start_byte, end_byte)
