"""Tests for runtime import of standard-library packages."""

import pytest

from typescope.core.errors import ErrorCode, ResolveError
from typescope.names import TypeName
from typescope.resolve._internal.system import SystemImporter, primitive_base
from typescope.resolve.models import ObjectKind, PackageKind
from typescope.types import INT, OBJECT, STR, Named


class TestPrimitiveBase:
    """Underlying primitive of a runtime class."""

    def test_int_subclass(self) -> None:
        class Flag(int):
            pass

        assert primitive_base(Flag) == INT

    def test_str_first_in_mro(self) -> None:
        class Mixed(str, object):
            pass

        assert primitive_base(Mixed) == STR

    def test_plain_class(self) -> None:
        assert primitive_base(dict) == OBJECT


class TestSystemImporter:
    """Importing stdlib modules as opaque named types."""

    def test_public_classes_become_named_types(self) -> None:
        package = SystemImporter().import_package("decimal")

        assert package.kind is PackageKind.SYSTEM
        definition = package.lookup("Decimal")
        assert definition is not None
        assert definition.kind is ObjectKind.TYPE
        assert definition.type == Named(TypeName("decimal", "Decimal"))
        assert definition.type.underlying == OBJECT
        assert not definition.has_source

    def test_int_enum_is_an_int(self) -> None:
        package = SystemImporter().import_package("enum")
        assert package.scope["IntEnum"].type.underlying == INT

    def test_private_names_skipped(self) -> None:
        package = SystemImporter().import_package("enum")
        assert all(not name.startswith("_") for name in package.scope)

    def test_import_failure(self) -> None:
        with pytest.raises(ResolveError) as exc_info:
            SystemImporter().import_package("typescope_no_such_module")
        assert exc_info.value.code == ErrorCode.SYSTEM_IMPORT_FAILED
        assert exc_info.value.import_path == "typescope_no_such_module"
