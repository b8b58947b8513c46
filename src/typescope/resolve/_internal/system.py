"""Standard-library packages, imported at runtime instead of parsed.

Parsing the stdlib would dominate resolution time for any package graph,
and its public classes matter only as opaque names: an ``IntEnum`` needs to
be known as an ``int``, nothing more.
"""

from __future__ import annotations

import importlib
import inspect
from pathlib import Path

from typescope.core.errors import ResolveError
from typescope.names import TypeName
from typescope.resolve.models import Definition, ObjectKind, Package, PackageKind
from typescope.types import BOOL, BYTES, COMPLEX, FLOAT, INT, OBJECT, STR, Named, Primitive

_PRIMITIVE_BASES: dict[type, Primitive] = {
    bool: BOOL,
    int: INT,
    float: FLOAT,
    complex: COMPLEX,
    str: STR,
    bytes: BYTES,
}


def primitive_base(cls: type) -> Primitive:
    """First primitive in ``cls``'s MRO, or ``object``."""
    for base in inspect.getmro(cls):
        prim = _PRIMITIVE_BASES.get(base)
        if prim is not None:
            return prim
    return OBJECT


class SystemImporter:
    """Builds packages of opaque named types from importable modules."""

    def import_package(self, import_path: str, directory: Path | None = None) -> Package:
        """Import ``import_path`` and expose its public classes.

        Raises:
            ResolveError: SYSTEM_IMPORT_FAILED if the module cannot be imported.
        """
        try:
            module = importlib.import_module(import_path)
        except Exception as e:  # noqa: BLE001 - any import-time failure
            raise ResolveError.system_import_failed(import_path, f"{type(e).__name__}: {e}") from e

        package = Package(import_path=import_path, kind=PackageKind.SYSTEM, directory=directory)
        for name, obj in sorted(vars(module).items()):
            if name.startswith("_") or not inspect.isclass(obj):
                continue
            tn = TypeName(import_path, name)
            package.scope[name] = Definition(
                name=tn,
                kind=ObjectKind.TYPE,
                type=Named(tn, primitive_base(obj)),
            )
        return package
