"""typescope CLI - typescope command."""

from pathlib import Path

import click

from typescope.cli.query import consts_command, doc_command, implementers_command, source_command
from typescope.cli.resolve import resolve_command
from typescope.cli.walk import walk_command
from typescope.config.loader import load_config
from typescope.core.errors import ConfigError
from typescope.core.logging import configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="typescope")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option(
    "--root",
    default=".",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Workspace root that import paths resolve against",
)
@click.option("--include-tests", is_flag=True, help="Check test modules too")
@click.option("--strict", is_flag=True, help="Fail packages with hard type errors")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, root: Path, include_tests: bool, strict: bool) -> None:
    """typescope - introspect the types of a Python workspace."""
    overrides: dict[str, bool] = {}
    if include_tests:
        overrides["include_tests"] = True
    if strict:
        overrides["allow_hard_errors"] = False

    try:
        config = load_config(root, **({"resolve": overrides} if overrides else {}))
    except ConfigError as e:
        raise click.ClickException(str(e)) from e

    if verbose:
        config.logging.level = "DEBUG"
    configure_logging(config=config.logging)

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config"] = config


cli.add_command(resolve_command, name="resolve")
cli.add_command(implementers_command, name="implementers")
cli.add_command(consts_command, name="consts")
cli.add_command(walk_command, name="walk")
cli.add_command(source_command, name="source")
cli.add_command(doc_command, name="doc")


if __name__ == "__main__":
    cli()
