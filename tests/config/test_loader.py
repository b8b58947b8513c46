"""Tests for config/loader.py module.

Covers:
- _load_yaml() function
- _deep_merge() function
- load_config() function
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from typescope.config.loader import GLOBAL_CONFIG_PATH, _deep_merge, _load_yaml, load_config
from typescope.core.errors import ConfigError, ErrorCode


class TestLoadYaml:
    """Tests for _load_yaml function."""

    def test_returns_empty_dict_for_missing_file(self, tmp_path: Path) -> None:
        """Returns empty dict when file doesn't exist."""
        assert _load_yaml(tmp_path / "nonexistent.yaml") == {}

    def test_loads_valid_yaml(self, tmp_path: Path) -> None:
        """Loads valid YAML content."""
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text("resolve:\n  include_tests: true\n")

        assert _load_yaml(yaml_file) == {"resolve": {"include_tests": True}}

    def test_returns_empty_for_empty_file(self, tmp_path: Path) -> None:
        """Returns empty dict for empty file."""
        yaml_file = tmp_path / "empty.yaml"
        yaml_file.write_text("")

        assert _load_yaml(yaml_file) == {}

    def test_raises_config_error_for_invalid_yaml(self, tmp_path: Path) -> None:
        """Raises ConfigError for invalid YAML syntax."""
        yaml_file = tmp_path / "invalid.yaml"
        yaml_file.write_text("logging:\n  level:\n    - invalid: [unclosed")

        with pytest.raises(ConfigError) as exc_info:
            _load_yaml(yaml_file)
        assert exc_info.value.code == ErrorCode.CONFIG_PARSE_ERROR

    def test_raises_config_error_for_non_mapping(self, tmp_path: Path) -> None:
        """A YAML list at the top level is rejected."""
        yaml_file = tmp_path / "list.yaml"
        yaml_file.write_text("- a\n- b\n")

        with pytest.raises(ConfigError, match="mapping"):
            _load_yaml(yaml_file)


class TestDeepMerge:
    """Tests for _deep_merge function."""

    def test_override_wins(self) -> None:
        """Override values replace base values."""
        assert _deep_merge({"a": 1, "b": 2}, {"b": 3}) == {"a": 1, "b": 3}

    def test_nested_merge(self) -> None:
        """Nested dicts are merged recursively."""
        base = {"resolve": {"include_tests": False, "vendor_dir_name": "_vendor"}}
        override = {"resolve": {"include_tests": True}}
        assert _deep_merge(base, override) == {
            "resolve": {"include_tests": True, "vendor_dir_name": "_vendor"}
        }

    def test_override_replaces_non_dict(self) -> None:
        """Non-dict override replaces dict base."""
        base: dict[str, Any] = {"a": {"nested": 1}}
        override: dict[str, Any] = {"a": "simple"}
        assert _deep_merge(base, override) == {"a": "simple"}

    def test_does_not_mutate_base(self) -> None:
        """Base dict is not mutated."""
        base = {"a": 1}
        _deep_merge(base, {"b": 2})
        assert base == {"a": 1}


class TestLoadConfig:
    """Tests for load_config function."""

    def test_returns_default_config_when_no_files(self, tmp_path: Path) -> None:
        """Returns default config when no config files exist."""
        with patch("typescope.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"):
            config = load_config(tmp_path)
        assert config.logging.level == "INFO"
        assert config.resolve.allow_hard_errors is True

    def test_workspace_root_defaults_to_argument(self, tmp_path: Path) -> None:
        """The loaded workspace is the resolution root unless configured."""
        with patch("typescope.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"):
            config = load_config(tmp_path)
        assert config.resolve.workspace_root == tmp_path.resolve()

    def test_loads_workspace_config(self, tmp_path: Path) -> None:
        """Loads config from the workspace .typescope directory."""
        config_dir = tmp_path / ".typescope"
        config_dir.mkdir()
        (config_dir / "config.yaml").write_text(
            "logging:\n  level: DEBUG\nresolve:\n  include_tests: true\n"
        )

        with patch("typescope.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"):
            config = load_config(tmp_path)
        assert config.logging.level == "DEBUG"
        assert config.resolve.include_tests is True

    def test_workspace_config_overrides_global(self, tmp_path: Path) -> None:
        """Workspace YAML wins over global YAML."""
        global_file = tmp_path / "global.yaml"
        global_file.write_text("resolve:\n  enum_marker: marker\n  include_tests: true\n")
        config_dir = tmp_path / ".typescope"
        config_dir.mkdir()
        (config_dir / "config.yaml").write_text("resolve:\n  enum_marker: is_enum_type\n")

        with patch("typescope.config.loader.GLOBAL_CONFIG_PATH", global_file):
            config = load_config(tmp_path)
        assert config.resolve.enum_marker == "is_enum_type"
        assert config.resolve.include_tests is True

    def test_env_vars_override_yaml(self, tmp_path: Path) -> None:
        """Environment variables override YAML config."""
        config_dir = tmp_path / ".typescope"
        config_dir.mkdir()
        (config_dir / "config.yaml").write_text("logging:\n  level: INFO\n")

        with (
            patch("typescope.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"),
            patch.dict(os.environ, {"TYPESCOPE__LOGGING__LEVEL": "WARNING"}),
        ):
            config = load_config(tmp_path)
        assert config.logging.level == "WARNING"

    def test_kwargs_override_all(self, tmp_path: Path) -> None:
        """Keyword arguments override everything."""
        config_dir = tmp_path / ".typescope"
        config_dir.mkdir()
        (config_dir / "config.yaml").write_text("resolve:\n  allow_hard_errors: true\n")

        with patch("typescope.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"):
            config = load_config(tmp_path, resolve={"allow_hard_errors": False})
        assert config.resolve.allow_hard_errors is False

    def test_raises_config_error_for_invalid_value(self, tmp_path: Path) -> None:
        """Raises ConfigError naming the invalid field."""
        config_dir = tmp_path / ".typescope"
        config_dir.mkdir()
        (config_dir / "config.yaml").write_text("resolve:\n  vendor_dir_name: a/b\n")

        with (
            patch("typescope.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"),
            pytest.raises(ConfigError) as exc_info,
        ):
            load_config(tmp_path)
        assert exc_info.value.code == ErrorCode.CONFIG_INVALID_VALUE
        assert "vendor_dir_name" in exc_info.value.message


class TestGlobalConfigPath:
    """Tests for GLOBAL_CONFIG_PATH constant."""

    def test_is_in_user_config(self) -> None:
        """Path is in user config directory."""
        assert isinstance(GLOBAL_CONFIG_PATH, Path)
        assert "typescope" in str(GLOBAL_CONFIG_PATH)
