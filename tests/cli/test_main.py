"""Tests for the typescope command line."""

from __future__ import annotations

import json
import logging
from collections.abc import Generator
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner, Result

from typescope.cli.main import cli

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path) -> Generator[None, None, None]:
    """No global config file, and no log handlers left on the runner's streams."""
    with patch("typescope.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "global.yaml"):
        yield
    logging.getLogger().handlers.clear()


def invoke(workspace_root: Path, *args: str) -> Result:
    return runner.invoke(cli, ["--root", str(workspace_root), *args])


class TestCliGroup:
    """Options shared by every command."""

    def test_version(self) -> None:
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "typescope, version 0.1.0" in result.output

    def test_help_lists_commands(self) -> None:
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for command in ("resolve", "implementers", "consts", "walk", "source", "doc"):
            assert command in result.output

    def test_root_must_exist(self, tmp_path: Path) -> None:
        result = runner.invoke(cli, ["--root", str(tmp_path / "missing"), "resolve", "x"])
        assert result.exit_code == 2


class TestResolveCommand:
    """typescope resolve."""

    def test_table(self, workspace_root: Path) -> None:
        result = invoke(workspace_root, "resolve", "samples.valid")

        assert result.exit_code == 0, result.output
        assert "samples.valid (user)" in result.stdout
        assert "Valid" in result.stdout

    def test_json(self, workspace_root: Path) -> None:
        result = invoke(workspace_root, "resolve", "--json", "samples.valid", "samples.nope")

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["packages"]["samples.nope"] is None
        package = data["packages"]["samples.valid"]
        assert package["kind"] == "user"
        assert [d["name"] for d in package["definitions"]] == ["samples.valid.Valid"]
        assert package["definitions"][0]["kind"] == "type"
        assert data["stats"]["loads"] == 1

    def test_missing_package(self, workspace_root: Path) -> None:
        result = invoke(workspace_root, "resolve", "samples.nope")
        assert result.exit_code == 0
        assert "samples.nope: not found" in result.stdout

    def test_strict_fails_on_hard_errors(self, workspace_root: Path) -> None:
        """--strict turns a hard type error into a failed command."""
        lenient = invoke(workspace_root, "resolve", "samples.intferr")
        strict = invoke(workspace_root, "--strict", "resolve", "samples.intferr")

        assert lenient.exit_code == 0
        assert strict.exit_code == 1
        assert "heterogeneous tuple" in strict.output

    def test_requires_an_import_path(self, workspace_root: Path) -> None:
        assert invoke(workspace_root, "resolve").exit_code == 2


class TestQueryCommands:
    """implementers, consts, source and doc."""

    def test_implementers(self, workspace_root: Path) -> None:
        result = invoke(workspace_root, "implementers", "samples.intfdecl1.Test")

        assert result.exit_code == 0, result.output
        assert result.stdout.splitlines() == [
            "samples.intfdecl1.TestPrimitive\tinstance",
            "samples.intfdecl1.TestStatic\tinstance",
            "samples.intfdecl1.TestStruct\tinstance",
        ]

    def test_implementers_extra_packages(self, workspace_root: Path) -> None:
        result = invoke(
            workspace_root, "implementers", "--json", "-p", "samples.intfdecl2", "samples.intfdecl1.Test"
        )

        assert result.exit_code == 0, result.output
        names = [entry["name"] for entry in json.loads(result.stdout)]
        assert "samples.intfdecl2.TestStruct" in names
        assert len(names) == 5

    def test_implementers_of_a_struct(self, workspace_root: Path) -> None:
        result = invoke(workspace_root, "implementers", "samples.valid.Valid")
        assert result.exit_code == 1
        assert "is not a protocol" in result.output

    def test_consts_json(self, workspace_root: Path) -> None:
        result = invoke(workspace_root, "consts", "--json", "samples.consts.TestString")

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["type"] == "samples.consts.TestString"
        assert data["underlying"] == "str"
        assert data["is_enum"] is False
        assert [v["value"] for v in data["values"]] == ["foo", "bar", "baz", "qux"]

    def test_consts_all(self, workspace_root: Path) -> None:
        result = invoke(workspace_root, "consts", "--json", "--all", "samples.consts.TestString")
        assert len(json.loads(result.stdout)["values"]) == 5

    def test_consts_enum_table(self, workspace_root: Path) -> None:
        result = invoke(workspace_root, "consts", "samples.consts.TestEnum")

        assert result.exit_code == 0, result.output
        assert "enum of str" in result.stdout
        assert "TestEnum1" in result.stdout
        assert "'foo'" in result.stdout

    def test_consts_unknown_type(self, workspace_root: Path) -> None:
        result = invoke(workspace_root, "consts", "samples.consts.Missing")
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_malformed_type_name(self, workspace_root: Path) -> None:
        result = invoke(workspace_root, "consts", "nodots")
        assert result.exit_code == 1
        assert "nodots" in result.output

    def test_source(self, workspace_root: Path) -> None:
        result = invoke(workspace_root, "source", "samples.valid.Valid")

        assert result.exit_code == 0, result.output
        assert result.stdout.startswith("class Valid:")
        assert "name: str" in result.stdout

    def test_type_doc(self, workspace_root: Path) -> None:
        result = invoke(workspace_root, "doc", "samples.doc.TestStruct")
        assert result.exit_code == 0, result.output
        assert result.stdout == "TestStruct is a struct.\n\nIt has five fields.\n"

    def test_field_doc(self, workspace_root: Path) -> None:
        result = invoke(workspace_root, "doc", "samples.doc.TestStruct", "c")
        assert result.exit_code == 0, result.output
        assert result.stdout == "C is c!\n"

    def test_undocumented(self, workspace_root: Path) -> None:
        result = invoke(workspace_root, "doc", "samples.doc.TestString5")
        assert result.exit_code == 1
        assert "No documentation for samples.doc.TestString5" in result.output


class TestWalkCommand:
    """typescope walk."""

    def test_tree(self, workspace_root: Path) -> None:
        result = invoke(workspace_root, "walk", "samples.nested.Node")

        assert result.exit_code == 0, result.output
        out = result.stdout
        assert out.splitlines()[0] == "samples.nested.Node"
        assert "value: int" in out
        assert "next: optional" in out
        assert "children: list" in out
        assert "samples.nested.Node" in out.splitlines()[-1]

    def test_nested_struct_and_tags(self, workspace_root: Path) -> None:
        result = invoke(workspace_root, "walk", "samples.nested.Outer")

        assert result.exit_code == 0, result.output
        assert "inner: struct" in result.stdout
        assert "y ['json:y']: str" in result.stdout
        assert "pairs: dict" in result.stdout
        assert "grid: tuple of 3" in result.stdout

    def test_unknown_type(self, workspace_root: Path) -> None:
        result = invoke(workspace_root, "walk", "samples.nested.Missing")
        assert result.exit_code == 1

    @pytest.mark.parametrize(
        ("type_name", "kind"),
        [("samples.intfdecl1.Test", "Interface"), ("samples.aliases.names_of", "Signature")],
    )
    def test_type_without_structure(self, workspace_root: Path, type_name: str, kind: str) -> None:
        """Protocols and functions are rejected as lookup errors."""
        result = invoke(workspace_root, "walk", type_name)

        assert result.exit_code == 1
        assert "[3010] NOT_WALKABLE" in result.output
        assert kind in result.output
        assert "UNHANDLED_TYPE_KIND" not in result.output


class TestLoggingOutput:
    """Log events stay off stdout."""

    def test_verbose_json_stays_parseable(self, workspace_root: Path) -> None:
        result = invoke(workspace_root, "-v", "resolve", "--json", "samples.valid", "samples.nope")

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["packages"]["samples.nope"] is None
        assert "package_resolved" in result.stderr
        assert "package_resolved" not in result.stdout
