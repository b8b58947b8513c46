"""Tests for source loading."""

from pathlib import Path

import pytest

from typescope.core.errors import ErrorCode, ResolveError
from typescope.resolve._internal.loader import SourceSet, is_test_file, load_package
from typescope.resolve._internal.parsing import PythonParser


@pytest.fixture
def parser() -> PythonParser:
    return PythonParser()


class TestIsTestFile:
    """Test module detection."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("test_first.py", True),
            ("first_test.py", True),
            ("conftest.py", True),
            ("first.py", False),
            ("testing.py", False),
            ("contest.py", False),
        ],
    )
    def test_patterns(self, name: str, expected: bool) -> None:
        assert is_test_file(name) is expected


class TestLoadPackage:
    """Loading one directory."""

    def test_loads_every_python_file(self, tmp_path: Path, parser: PythonParser) -> None:
        """Every .py file is parsed; other files are ignored."""
        (tmp_path / "a.py").write_text("class A:\n    x: int\n")
        (tmp_path / "b.py").write_text("B = 1\n")
        (tmp_path / "notes.txt").write_text("not python")

        loaded = load_package(tmp_path, "pkg", parser)

        assert loaded.file_names == ["a.py", "b.py"]
        assert loaded.import_path == "pkg"
        assert loaded.file("a.py").root_node.type == "module"
        assert loaded.file("missing.py") is None

    def test_syntax_error_fails_whole_package(self, tmp_path: Path, parser: PythonParser) -> None:
        """One broken file fails the load, naming the file and line."""
        (tmp_path / "good.py").write_text("class Good:\n    x: int\n")
        (tmp_path / "bad.py").write_text("x = 1\nclass Broken(:\n    pass\n")

        with pytest.raises(ResolveError) as exc_info:
            load_package(tmp_path, "pkg", parser)

        error = exc_info.value
        assert error.code == ErrorCode.SOURCE_LOAD_FAILED
        assert error.import_path == "pkg"
        assert len(error.details["failures"]) == 1
        assert error.details["failures"][0].startswith("bad.py:")

    def test_deeply_nested_file_loads(self, tmp_path: Path, parser: PythonParser) -> None:
        """Node counting does not use the interpreter stack."""
        (tmp_path / "deep.py").write_text("X = " + " + ".join(["1"] * 5000) + "\n")

        loaded = load_package(tmp_path, "pkg", parser)

        assert loaded.file_names == ["deep.py"]

    def test_parser_exception_becomes_failure(self, tmp_path: Path) -> None:
        """A parser crash on one file is reported like a syntax error."""

        class _CrashingParser:
            def parse(self, content: bytes) -> None:
                raise RecursionError("maximum recursion depth exceeded")

        (tmp_path / "a.py").write_text("A = 1\n")
        (tmp_path / "b.py").write_text("B = 2\n")

        with pytest.raises(ResolveError) as exc_info:
            load_package(tmp_path, "pkg", _CrashingParser())  # type: ignore[arg-type]

        failures = exc_info.value.details["failures"]
        assert [f.split(":", 1)[0] for f in failures] == ["a.py", "b.py"]
        assert "RecursionError" in failures[0]

    def test_missing_directory(self, tmp_path: Path, parser: PythonParser) -> None:
        with pytest.raises(ResolveError) as exc_info:
            load_package(tmp_path / "nope", "pkg.nope", parser)
        assert exc_info.value.code == ErrorCode.SOURCE_LOAD_FAILED

    def test_empty_directory_loads(self, tmp_path: Path, parser: PythonParser) -> None:
        """A directory without sources is an empty package."""
        loaded = load_package(tmp_path, "pkg", parser)
        assert loaded.file_names == []

    def test_node_at_finds_statement(self, tmp_path: Path, parser: PythonParser) -> None:
        source = b"X = 1\n\nclass A:\n    x: int\n"
        (tmp_path / "a.py").write_bytes(source)
        loaded = load_package(tmp_path, "pkg", parser)

        start = source.index(b"class")
        node = loaded.node_at("a.py", start, len(source) - 1)

        assert node is not None
        assert node.type == "class_definition"
        assert loaded.node_at("other.py", start, len(source) - 1) is None


class TestSourceSet:
    """Session-wide source access."""

    def test_source_slices_file_contents(self, tmp_path: Path, parser: PythonParser) -> None:
        (tmp_path / "a.py").write_text("X = 1\nY = 2\n")
        sources = SourceSet()
        sources.add(load_package(tmp_path, "pkg", parser))

        assert "pkg" in sources
        assert len(sources) == 1
        assert sources.source("pkg", "a.py", 6, 11) == b"Y = 2"
        assert sources.source("pkg", "b.py", 0, 1) is None
        assert sources.source("other", "a.py", 0, 1) is None
        assert sources.node_at("other", "a.py", 0, 5) is None
