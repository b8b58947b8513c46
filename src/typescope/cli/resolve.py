"""typescope resolve command - resolve packages and list their definitions."""

import click
from rich.markup import escape
from rich.table import Table

from typescope.cli.utils import echo_json, get_console, get_engine, handle_errors
from typescope.resolve.models import ObjectKind, Package
from typescope.types import underlying


def _package_dict(package: Package) -> dict[str, object]:
    return {
        "import_path": package.import_path,
        "kind": package.kind.value,
        "directory": str(package.directory) if package.directory else None,
        "imports": sorted(package.imports),
        "definitions": [
            {
                "name": d.name.full,
                "kind": d.kind.value,
                "type": str(d.type),
                "value": d.value,
                "file": d.file,
            }
            for d in (package.scope[n] for n in package.names())
        ],
    }


@click.command()
@click.argument("import_paths", nargs=-1, required=True)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
@handle_errors
def resolve_command(ctx: click.Context, import_paths: tuple[str, ...], as_json: bool) -> None:
    """Resolve packages and list their package-scope definitions.

    IMPORT_PATHS are dotted import paths relative to the workspace root.
    """
    engine = get_engine(ctx)
    packages = {path: engine.resolve(path) for path in import_paths}

    if as_json:
        echo_json(
            {
                "packages": {
                    path: _package_dict(pkg) if pkg is not None else None
                    for path, pkg in packages.items()
                },
                "stats": engine.stats.to_dict(),
            }
        )
        return

    console = get_console()
    for path, package in packages.items():
        if package is None:
            console.print(f"[yellow]{path}[/yellow]: not found")
            continue

        table = Table(title=f"{path} ({package.kind.value})", title_justify="left")
        table.add_column("Name")
        table.add_column("Kind")
        table.add_column("Type")
        for name in package.names():
            d = package.scope[name]
            shown = underlying(d.type) if d.kind is ObjectKind.TYPE else d.type
            table.add_row(name, d.kind.value, escape(str(shown)))
        console.print(table)
