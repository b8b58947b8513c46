"""CLI utilities."""

import functools
import json
from collections.abc import Callable
from typing import Any, TypeVar

import click
from rich.console import Console

from typescope.config.models import TypeScopeConfig
from typescope.core.errors import TypeScopeError
from typescope.resolve.engine import ResolutionEngine

F = TypeVar("F", bound=Callable[..., Any])

_console = Console()


def get_console() -> Console:
    return _console


def get_engine(ctx: click.Context) -> ResolutionEngine:
    """Engine for this invocation, created on first use."""
    obj = ctx.ensure_object(dict)
    engine = obj.get("engine")
    if engine is None:
        config: TypeScopeConfig = obj["config"]
        engine = ResolutionEngine(config.resolve)
        obj["engine"] = engine
    return engine


def echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


def handle_errors(func: F) -> F:
    """Report TypeScopeError as a CLI error instead of a traceback."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except TypeScopeError as e:
            raise click.ClickException(str(e)) from e

    return wrapper  # type: ignore[return-value]
