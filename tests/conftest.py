"""Root conftest.py: shared fixtures for resolution tests.

The fixture workspace lives in tests/fixtures/workspace; its packages are
imported as ``samples.<name>``.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from typescope.config.models import ResolveConfig
from typescope.resolve.engine import ResolutionEngine
from typescope.resolve.models import CheckError

FIXTURE_WORKSPACE = Path(__file__).parent / "fixtures" / "workspace"


@pytest.fixture
def workspace_root() -> Path:
    return FIXTURE_WORKSPACE


@pytest.fixture
def check_errors() -> list[CheckError]:
    """Collects every check error reported by engines built with make_engine."""
    return []


@pytest.fixture
def make_engine(
    workspace_root: Path, check_errors: list[CheckError]
) -> Callable[..., ResolutionEngine]:
    """Factory for engines over the fixture workspace.

    Keyword arguments override ResolveConfig fields.
    """

    def _make(**overrides: Any) -> ResolutionEngine:
        config = ResolveConfig(workspace_root=workspace_root, **overrides)
        return ResolutionEngine(config, on_error=check_errors.append)

    return _make


@pytest.fixture
def engine(make_engine: Callable[..., ResolutionEngine]) -> ResolutionEngine:
    return make_engine()
