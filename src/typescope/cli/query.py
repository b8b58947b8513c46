"""typescope query commands - implementers, consts, source, doc."""

import click
from rich.markup import escape
from rich.table import Table

from typescope.cli.utils import echo_json, get_console, get_engine, handle_errors
from typescope.names import parse_type_name


@click.command()
@click.argument("protocol")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option(
    "-p",
    "--package",
    "packages",
    multiple=True,
    help="Also resolve this package before searching (repeatable)",
)
@click.pass_context
@handle_errors
def implementers_command(
    ctx: click.Context, protocol: str, as_json: bool, packages: tuple[str, ...]
) -> None:
    """List resolved types that satisfy PROTOCOL (pkg.path.Name).

    Only packages resolved so far are searched: the protocol's own package
    and its imports, plus any given with --package.
    """
    engine = get_engine(ctx)
    for path in packages:
        engine.resolve(path)
    found = engine.find_implementers(parse_type_name(protocol))

    rows = [(name.full, impl.form.value) for name, impl in sorted(found.items())]
    if as_json:
        echo_json([{"name": name, "form": form} for name, form in rows])
        return
    for name, form in rows:
        click.echo(f"{name}\t{form}")


@click.command()
@click.argument("type_name")
@click.option("--all", "include_unexported", is_flag=True, help="Include _private constants")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
@handle_errors
def consts_command(ctx: click.Context, type_name: str, include_unexported: bool, as_json: bool) -> None:
    """List the constants declared with type TYPE_NAME."""
    engine = get_engine(ctx)
    tn = parse_type_name(type_name)
    engine.must_find_import_object(tn)
    consts = engine.extract_consts(tn, include_unexported=include_unexported)

    if as_json:
        echo_json(
            {
                "type": consts.type.full,
                "underlying": consts.underlying.full,
                "is_enum": consts.is_enum,
                "values": [{"name": v.name.full, "value": v.value} for v in consts.sorted_values()],
            }
        )
        return

    kind = "enum" if consts.is_enum else "consts"
    table = Table(title=f"{consts.type} ({kind} of {consts.underlying})", title_justify="left")
    table.add_column("Name")
    table.add_column("Value")
    for value in consts.sorted_values():
        table.add_row(value.name.name, escape(repr(value.value)))
    get_console().print(table)


@click.command()
@click.argument("type_name")
@click.pass_context
@handle_errors
def source_command(ctx: click.Context, type_name: str) -> None:
    """Print the declaration source of TYPE_NAME."""
    engine = get_engine(ctx)
    tn = parse_type_name(type_name)
    engine.must_find_import_object(tn)
    click.echo(engine.extract_source(tn).decode("utf-8", errors="replace"))


@click.command()
@click.argument("type_name")
@click.argument("field", required=False)
@click.pass_context
@handle_errors
def doc_command(ctx: click.Context, type_name: str, field: str | None) -> None:
    """Print the documentation of TYPE_NAME, or of one of its FIELDs."""
    engine = get_engine(ctx)
    tn = parse_type_name(type_name)
    engine.must_find_import_object(tn)
    doc = engine.field_doc(tn, field) if field else engine.type_doc(tn)
    if doc is None:
        raise click.ClickException(f"No documentation for {type_name}{'.' + field if field else ''}")
    click.echo(doc)
