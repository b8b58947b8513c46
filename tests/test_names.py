"""Tests for fully-qualified type names."""

import pytest

from typescope.core.errors import ErrorCode, InternalError
from typescope.names import TypeName, builtin, parse_local_name, parse_type_name, split_type


class TestTypeName:
    """TypeName formatting and identity."""

    def test_full_joins_package_and_name(self) -> None:
        tn = TypeName("samples.consts", "TestString")
        assert tn.full == "samples.consts.TestString"
        assert str(tn) == "samples.consts.TestString"
        assert tn.package_name == "consts"

    def test_builtin_has_no_package(self) -> None:
        """Builtin names print bare and are always exported."""
        tn = builtin("int")
        assert tn.full == "int"
        assert tn.is_builtin
        assert tn.is_exported

    @pytest.mark.parametrize(
        ("name", "exported"),
        [("TestString", True), ("testString", True), ("_testString5", False), ("__private", False)],
    )
    def test_is_exported(self, name: str, exported: bool) -> None:
        """Names starting with an underscore are not exported."""
        assert TypeName("pkg", name).is_exported is exported

    def test_equality_and_hash_use_full_name(self) -> None:
        """Equal names can key the same dict entry."""
        a = TypeName("a.b", "C")
        b = TypeName("a.b", "C")
        assert a == b
        assert {a: 1}[b] == 1
        assert a != TypeName("a.x", "C")

    def test_ordering(self) -> None:
        """Sorting is by full name."""
        names = [TypeName("b", "A"), TypeName("a.z", "Z"), TypeName("a", "B")]
        assert [n.full for n in sorted(names)] == ["a.B", "a.z.Z", "b.A"]
        assert TypeName("a", "B").is_before(TypeName("b", "A"))
        assert not TypeName("b", "A").is_before(TypeName("a", "B"))


class TestImportName:
    """Writing a name relative to another package."""

    def test_same_package_is_bare(self) -> None:
        tn = TypeName("samples.consts", "TestString")
        assert tn.import_name("samples.consts") == "TestString"

    def test_other_package_is_qualified_by_package_name(self) -> None:
        tn = TypeName("samples.consts", "TestString")
        assert tn.import_name("samples.valid") == "consts.TestString"

    def test_package_name_match_needs_flag(self) -> None:
        """A bare package name matches only when asked to."""
        tn = TypeName("samples.consts", "TestString")
        assert tn.import_name("consts") == "consts.TestString"
        assert tn.import_name("consts", use_package_name=True) == "TestString"

    def test_builtin_is_always_bare(self) -> None:
        assert builtin("str").import_name("anything") == "str"


class TestParseTypeName:
    """Parsing dotted names."""

    def test_parse(self) -> None:
        tn = parse_type_name("samples.consts.TestString")
        assert tn.package_path == "samples.consts"
        assert tn.name == "TestString"

    @pytest.mark.parametrize("name", ["NoPackage", ".Name", "pkg.", "pkg..Name", "pkg.1Name", ""])
    def test_malformed_names_raise_internal_error(self, name: str) -> None:
        """A malformed name is a programming error."""
        with pytest.raises(InternalError) as exc_info:
            parse_type_name(name)
        assert exc_info.value.code == ErrorCode.INVALID_TYPE_NAME

    def test_parse_local_name_unqualified(self) -> None:
        tn = parse_local_name("Thing", "samples.valid")
        assert tn == TypeName("samples.valid", "Thing")

    def test_parse_local_name_qualified(self) -> None:
        tn = parse_local_name("samples.other.Thing", "samples.valid")
        assert tn == TypeName("samples.other", "Thing")

    def test_split_type(self) -> None:
        assert split_type("a.b.C") == ("a.b", "C")
