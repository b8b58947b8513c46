"""Fully-qualified type names.

A TypeName identifies a named type by its declaring package's dotted import
path and its local name: ``samples.consts.TestString``. Builtin names
(``int``, ``str``) have no package path.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from typescope.core.errors import InternalError


@dataclass(frozen=True, slots=True, eq=False)
class TypeName:
    """Package path plus local name.

    Equality, hashing and ordering all use the fully-qualified form, so a
    TypeName can key the object index and sort deterministically.
    """

    package_path: str
    name: str
    is_builtin: bool = field(default=False, kw_only=True)

    @property
    def full(self) -> str:
        if self.is_builtin:
            return self.name
        return f"{self.package_path}.{self.name}"

    @property
    def package_name(self) -> str:
        """Last segment of the package path (``consts`` for ``samples.consts``)."""
        return self.package_path.rsplit(".", 1)[-1]

    @property
    def is_exported(self) -> bool:
        if self.is_builtin:
            return True
        return not self.name.startswith("_")

    def import_name(self, rel: str, use_package_name: bool = False) -> str:
        """Name as written from package ``rel``.

        ``rel`` is compared to the package path, or also to the package name
        when ``use_package_name`` is set.
        """
        if self.is_builtin:
            return self.name
        if rel == self.package_path or (use_package_name and rel == self.package_name):
            return self.name
        return f"{self.package_name}.{self.name}"

    def is_before(self, other: TypeName) -> bool:
        return self.full < other.full

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TypeName):
            return NotImplemented
        return self.full == other.full

    def __lt__(self, other: TypeName) -> bool:
        return self.full < other.full

    def __hash__(self) -> int:
        return hash(self.full)

    def __str__(self) -> str:
        return self.full


def builtin(name: str) -> TypeName:
    return TypeName("", name, is_builtin=True)


def parse_type_name(name: str) -> TypeName:
    """Parse ``pkg.path.Name``.

    Raises:
        InternalError: If there is no package part or no name part. A
            malformed name is a caller bug, not a lookup miss.
    """
    pkg, sep, local = name.rpartition(".")
    if not sep or not pkg or not local or not local.isidentifier():
        raise InternalError.invalid_type_name(name)
    if not all(part.isidentifier() for part in pkg.split(".")):
        raise InternalError.invalid_type_name(name)
    return TypeName(pkg, local)


def parse_local_name(name: str, local_pkg: str) -> TypeName:
    """Parse a name that may be unqualified, in which case it belongs to ``local_pkg``."""
    if "." not in name:
        return TypeName(local_pkg, name)
    return parse_type_name(name)


def split_type(name: str) -> tuple[str, str]:
    """Split ``pkg.path.Name`` into ``("pkg.path", "Name")``."""
    tn = parse_type_name(name)
    return tn.package_path, tn.name
