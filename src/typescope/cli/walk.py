"""typescope walk command - print the shape of a type as a tree."""

import click
from rich.markup import escape
from rich.tree import Tree

from typescope.cli.utils import get_console, get_engine, handle_errors
from typescope.core.errors import ResolveError
from typescope.names import parse_type_name
from typescope.types import (
    Field,
    FixedSequence,
    Interface,
    Map,
    Named,
    Pointer,
    Primitive,
    Sequence,
    Signature,
    Type,
    underlying,
)
from typescope.walk import CONTINUE, BaseTypeVisitor, HookResult, StructInfo, WalkContext, walk


class TreeVisitor(BaseTypeVisitor):
    """Builds a rich Tree of the walked shape."""

    def __init__(self, root: Tree) -> None:
        self.nodes = [root]
        self._label: str | None = None

    def _open(self, label: str) -> HookResult:
        prefix, self._label = self._label, None
        text = f"{prefix}: {label}" if prefix else label
        self.nodes.append(self.nodes[-1].add(escape(text)))
        return CONTINUE

    def _close(self) -> HookResult:
        self.nodes.pop()
        return CONTINUE

    def _leaf(self, label: str) -> HookResult:
        prefix, self._label = self._label, None
        self.nodes[-1].add(escape(f"{prefix}: {label}" if prefix else label))
        return CONTINUE

    def enter_struct(self, ctx: WalkContext, info: StructInfo) -> HookResult:
        if ctx.depth == 1:
            return CONTINUE
        return self._open("struct")

    def leave_struct(self, ctx: WalkContext, info: StructInfo) -> HookResult:
        if ctx.depth == 1:
            return CONTINUE
        return self._close()

    def enter_field(self, ctx: WalkContext, info: StructInfo, field: Field) -> HookResult:
        tags = f" {list(field.tags)}" if field.tags else ""
        self._label = f"{field.name}{tags}"
        return CONTINUE

    def enter_map_key(self, ctx: WalkContext, typ: Map, key: Type) -> HookResult:
        self._open("dict")
        self._label = "key"
        return CONTINUE

    def enter_map_elem(self, ctx: WalkContext, typ: Map, elem: Type) -> HookResult:
        self._label = "value"
        return CONTINUE

    def leave_map_elem(self, ctx: WalkContext, typ: Map, elem: Type) -> HookResult:
        return self._close()

    def enter_pointer(self, ctx: WalkContext, typ: Pointer) -> HookResult:
        return self._open("optional")

    def leave_pointer(self, ctx: WalkContext, typ: Pointer) -> HookResult:
        return self._close()

    def enter_sequence(self, ctx: WalkContext, typ: Sequence) -> HookResult:
        return self._open("list")

    def leave_sequence(self, ctx: WalkContext, typ: Sequence) -> HookResult:
        return self._close()

    def enter_fixed_sequence(self, ctx: WalkContext, typ: FixedSequence) -> HookResult:
        return self._open(f"tuple of {typ.length}")

    def leave_fixed_sequence(self, ctx: WalkContext, typ: FixedSequence) -> HookResult:
        return self._close()

    def visit_primitive(self, ctx: WalkContext, typ: Primitive) -> HookResult:
        return self._leaf(str(typ))

    def visit_named(self, ctx: WalkContext, typ: Named) -> HookResult:
        return self._leaf(str(typ))


@click.command()
@click.argument("type_name")
@click.pass_context
@handle_errors
def walk_command(ctx: click.Context, type_name: str) -> None:
    """Print the structure of TYPE_NAME (pkg.path.Name).

    Named types inside the structure are shown by name and not expanded.
    """
    engine = get_engine(ctx)
    tn = parse_type_name(type_name)
    definition = engine.must_find_import_object(tn)

    shape = underlying(definition.type)
    if isinstance(shape, Interface | Signature):
        raise ResolveError.not_walkable(tn.full, type(shape).__name__)

    tree = Tree(escape(tn.full))
    walk(tn, shape, TreeVisitor(tree))
    get_console().print(tree)
