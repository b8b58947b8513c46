"""Evaluation of annotation expressions into the structural type model.

Annotation text comes from the syntax tree and is parsed with ``ast`` in
eval mode. Names are looked up through a ``Scope``; the evaluator only
knows the shapes of the special forms.
"""

from __future__ import annotations

import ast
import builtins
import inspect
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from typescope.names import builtin
from typescope.resolve._internal.system import primitive_base
from typescope.types import (
    ANY,
    BUILTIN_PRIMITIVES,
    BYTES,
    INVALID,
    NONE,
    STR,
    FixedSequence,
    Map,
    Named,
    Pointer,
    Sequence,
    Type,
)


@dataclass(frozen=True, slots=True)
class Special:
    """A typing special form or builtin generic, by canonical name."""

    name: str


@dataclass(frozen=True, slots=True)
class ModuleRef:
    import_path: str


@dataclass(frozen=True, slots=True)
class ValueRef:
    """A name bound to something other than a type (a constant, a function)."""

    name: str


Symbol = Type | Special | ModuleRef | ValueRef

SEQUENCE_FORMS = frozenset(
    {
        "list",
        "List",
        "set",
        "Set",
        "frozenset",
        "FrozenSet",
        "Sequence",
        "MutableSequence",
        "AbstractSet",
        "MutableSet",
        "Collection",
        "Container",
        "Iterable",
        "Iterator",
        "Reversible",
        "deque",
        "Deque",
        "KeysView",
        "ValuesView",
    }
)
MAP_FORMS = frozenset(
    {
        "dict",
        "Dict",
        "Mapping",
        "MutableMapping",
        "defaultdict",
        "DefaultDict",
        "OrderedDict",
        "ChainMap",
    }
)
TUPLE_FORMS = frozenset({"tuple", "Tuple"})
STR_FORMS = frozenset({"LiteralString", "Text"})

# Forms that never denote a type on their own
NON_TYPE_FORMS = frozenset(
    {"Protocol", "Generic", "NamedTuple", "TypedDict", "NewType", "TypeVar", "ParamSpec"}
)

TYPING_MODULES = frozenset({"typing", "typing_extensions"})

MODULE_FORMS: dict[str, frozenset[str]] = {
    "collections.abc": SEQUENCE_FORMS | MAP_FORMS | frozenset({"Callable", "Awaitable", "Generator"}),
    "collections": frozenset({"deque", "defaultdict", "OrderedDict", "ChainMap"}),
}

_BUILTIN_FORMS = frozenset({"list", "dict", "set", "frozenset", "tuple", "type"})


def _builtin_symbols() -> dict[str, Symbol]:
    table: dict[str, Symbol] = {}
    for name, obj in vars(builtins).items():
        if name.startswith("_") or not inspect.isclass(obj):
            continue
        if name in _BUILTIN_FORMS:
            table[name] = Special(name)
        elif name in BUILTIN_PRIMITIVES:
            table[name] = BUILTIN_PRIMITIVES[name]
        elif name in ("bytearray", "memoryview"):
            table[name] = BYTES
        else:
            table[name] = Named(builtin(name), primitive_base(obj))
    for name in vars(builtins):
        if not name.startswith("_") and name not in table:
            table[name] = ValueRef(name)
    return table


BUILTIN_SYMBOLS = _builtin_symbols()


class Scope(Protocol):
    def lookup(self, name: str) -> Symbol:
        """Resolve a bare name. Unknown names are reported and give ``INVALID``."""
        ...

    def attribute(self, module: ModuleRef, name: str) -> Symbol: ...

    def owner(self) -> Named | None:
        """Class whose body is being evaluated, for ``Self``."""
        ...


@dataclass(slots=True)
class Annotation:
    """An evaluated annotation with its top-level qualifiers peeled off.

    ``bare_final`` means ``Final`` without an argument: the type comes from
    the assigned value.
    """

    type: Type
    tags: tuple[str, ...] = ()
    class_var: bool = False
    final: bool = False
    bare_final: bool = False
    type_alias: bool = False


class TypeEvaluator:
    """Turns annotation text into a Type, reporting errors through ``report``.

    ``report(message, soft)`` is called once per problem. Every failure
    evaluates to ``INVALID`` so the enclosing shape survives.
    """

    def __init__(self, scope: Scope, report: Callable[[str, bool], None]) -> None:
        self._scope = scope
        self._report = report

    def evaluate(self, text: str) -> Annotation:
        expr = self._parse(text)
        if expr is None:
            return Annotation(INVALID)

        ann = Annotation(INVALID)
        tags: list[str] = []
        while True:
            head, args = self._split(expr)
            sym = self._symbol(head) if head is not None else None
            form = sym.name if isinstance(sym, Special) else None
            if form == "Annotated" and args:
                tags.extend(
                    a.value for a in args[1:] if isinstance(a, ast.Constant) and isinstance(a.value, str)
                )
                expr = args[0]
                continue
            if form in ("ClassVar", "Final"):
                ann.class_var = ann.class_var or form == "ClassVar"
                ann.final = ann.final or form == "Final"
                if not args:
                    ann.bare_final = form == "Final"
                    ann.type = ANY
                    break
                expr = args[0]
                continue
            if form == "TypeAlias" and not args:
                ann.type_alias = True
                ann.type = ANY
                break

            text = ast.unparse(expr)
            if isinstance(expr, ast.Subscript):
                ann.type = self._subscript(sym, args, text)
            elif head is not None:
                ann.type = self._as_type(sym, text)
            else:
                ann.type = self.eval_expr(expr)
            break

        ann.tags = tuple(tags)
        return ann

    def type_of(self, text: str) -> Type:
        expr = self._parse(text)
        if expr is None:
            return INVALID
        return self.eval_expr(expr)

    def symbol_of(self, text: str) -> Symbol:
        """Symbol for the head of a (possibly subscripted) expression, such as a base class."""
        expr = self._parse(text)
        if expr is None:
            return INVALID
        if isinstance(expr, ast.Subscript):
            expr = expr.value
        sym = self._symbol(expr)
        if sym is None:
            self._hard(f"invalid base expression {text}")
            return INVALID
        return sym

    def lookup(self, text: str) -> Symbol | None:
        """Symbol named by a dotted name in value position.

        Returns None for anything that is not a plain dotted name, or whose
        prefix is not a module, without reporting.
        """
        try:
            expr = ast.parse(text.strip(), mode="eval").body
        except (SyntaxError, RecursionError):
            return None
        return self._lookup(expr)

    def _lookup(self, expr: ast.expr) -> Symbol | None:
        if isinstance(expr, ast.Name):
            return self._scope.lookup(expr.id)
        if isinstance(expr, ast.Attribute):
            base = self._lookup(expr.value)
            if isinstance(base, ModuleRef):
                return self._scope.attribute(base, expr.attr)
        return None

    def _parse(self, text: str) -> ast.expr | None:
        try:
            return ast.parse(text.strip(), mode="eval").body
        except (SyntaxError, RecursionError):
            self._hard(f"invalid type expression {text!r}")
            return None

    def _hard(self, message: str) -> None:
        self._report(message, False)

    def _split(self, expr: ast.expr) -> tuple[ast.expr | None, list[ast.expr]]:
        if isinstance(expr, ast.Subscript):
            sl = expr.slice
            args = list(sl.elts) if isinstance(sl, ast.Tuple) else [sl]
            return expr.value, args
        if isinstance(expr, ast.Name | ast.Attribute):
            return expr, []
        return None, []

    def _symbol(self, expr: ast.expr) -> Symbol | None:
        if isinstance(expr, ast.Name):
            return self._scope.lookup(expr.id)
        if isinstance(expr, ast.Attribute):
            base = self._symbol(expr.value)
            if isinstance(base, ModuleRef):
                return self._scope.attribute(base, expr.attr)
            if base == INVALID:
                return INVALID
            self._hard(f"invalid type expression {ast.unparse(expr)}")
            return INVALID
        return None

    def eval_expr(self, expr: ast.expr) -> Type:
        if isinstance(expr, ast.Constant):
            if expr.value is None:
                return NONE
            if isinstance(expr.value, str):
                # Forward reference
                inner = self._parse(expr.value)
                return INVALID if inner is None else self.eval_expr(inner)
            self._hard(f"invalid type expression {ast.unparse(expr)}")
            return INVALID

        if isinstance(expr, ast.Name | ast.Attribute):
            return self._as_type(self._symbol(expr), ast.unparse(expr))

        if isinstance(expr, ast.Subscript):
            head = self._symbol(expr.value)
            _, args = self._split(expr)
            return self._subscript(head, args, ast.unparse(expr))

        if isinstance(expr, ast.BinOp) and isinstance(expr.op, ast.BitOr):
            return self._union([self.eval_expr(m) for m in _flatten_union(expr)], ast.unparse(expr))

        self._hard(f"invalid type expression {ast.unparse(expr)}")
        return INVALID

    def _as_type(self, sym: Symbol | None, text: str) -> Type:
        if isinstance(sym, Type):
            return sym
        if isinstance(sym, Special):
            name = sym.name
            if name in SEQUENCE_FORMS or name in TUPLE_FORMS:
                return Sequence(ANY)
            if name in MAP_FORMS:
                return Map(ANY, ANY)
            if name in STR_FORMS:
                return STR
            if name == "Self":
                owner = self._scope.owner()
                if owner is not None:
                    return owner
                self._hard("Self used outside a class")
                return INVALID
            if name in NON_TYPE_FORMS or name in ("Optional", "Union", "Annotated", "Literal"):
                self._hard(f"{text} is not a type")
                return INVALID
            if name in ("ClassVar", "Final", "TypeAlias"):
                self._hard(f"{text} is not allowed here")
                return INVALID
            return ANY
        if isinstance(sym, ModuleRef):
            self._hard(f"module {sym.import_path} is not a type")
            return INVALID
        if isinstance(sym, ValueRef):
            self._hard(f"{sym.name} is not a type")
            return INVALID
        self._hard(f"invalid type expression {text}")
        return INVALID

    def _arity(self, text: str, args: list[ast.expr], want: int) -> bool:
        if len(args) != want:
            self._hard(f"wrong number of type arguments in {text}: want {want}, got {len(args)}")
            return False
        return True

    def _subscript(self, head: Symbol | None, args: list[ast.expr], text: str) -> Type:
        if head == INVALID:
            return INVALID

        if isinstance(head, Named):
            # User generic: parameters do not change identity
            for arg in args:
                self.eval_expr(arg)
            return head

        if not isinstance(head, Special):
            if head is None or isinstance(head, ModuleRef | ValueRef):
                return self._as_type(head, text)
            self._hard(f"{text}: type is not generic")
            return INVALID

        name = head.name
        if name in SEQUENCE_FORMS:
            if not self._arity(text, args, 1):
                return INVALID
            return Sequence(self.eval_expr(args[0]))

        if name in MAP_FORMS:
            if not self._arity(text, args, 2):
                return INVALID
            return Map(self.eval_expr(args[0]), self.eval_expr(args[1]))

        if name in TUPLE_FORMS:
            return self._tuple(args, text)

        if name == "Optional":
            if not self._arity(text, args, 1):
                return INVALID
            return self._union([self.eval_expr(args[0]), NONE], text)

        if name == "Union":
            return self._union([self.eval_expr(a) for a in args], text)

        if name == "Annotated":
            if not args:
                self._hard(f"{text}: Annotated requires a type")
                return INVALID
            return self.eval_expr(args[0])

        if name == "Literal":
            return self._literal(args, text)

        if name in ("ClassVar", "Final", "TypeAlias"):
            self._hard(f"{text}: {name} is not allowed here")
            return INVALID

        if name in NON_TYPE_FORMS:
            self._hard(f"{text} is not a type")
            return INVALID

        # Callable, type[...], Awaitable[...]: opaque
        return ANY

    def _tuple(self, args: list[ast.expr], text: str) -> Type:
        if len(args) == 2 and isinstance(args[1], ast.Constant) and args[1].value is Ellipsis:
            return Sequence(self.eval_expr(args[0]))
        if not args:
            self._hard(f"{text}: empty tuple type is not supported")
            return INVALID
        elems = [self.eval_expr(a) for a in args]
        if any(e == INVALID for e in elems):
            return FixedSequence(INVALID, len(elems))
        if any(e != elems[0] for e in elems[1:]):
            self._hard(f"{text}: heterogeneous tuple is not supported")
            return INVALID
        return FixedSequence(elems[0], len(elems))

    def _literal(self, args: list[ast.expr], text: str) -> Type:
        kinds: list[Type] = []
        for arg in args:
            if not isinstance(arg, ast.Constant):
                self._hard(f"{text}: Literal values must be constants")
                return INVALID
            value = arg.value
            kinds.append(NONE if value is None else BUILTIN_PRIMITIVES.get(type(value).__name__, INVALID))
        if not kinds or any(k != kinds[0] for k in kinds[1:]) or kinds[0] == INVALID:
            self._hard(f"{text}: unsupported Literal")
            return INVALID
        return kinds[0]

    def _union(self, members: list[Type], text: str) -> Type:
        """``T | None`` is a Pointer; any other union of two types is unsupported."""
        nullable = False
        rest: list[Type] = []
        for m in members:
            if m == NONE:
                nullable = True
                continue
            if isinstance(m, Pointer):
                nullable = True
                m = m.elem
            if m not in rest:
                rest.append(m)

        if not rest:
            return NONE
        if len(rest) > 1:
            if INVALID in rest:
                return INVALID
            self._hard(f"unsupported union {text}")
            return INVALID
        if nullable:
            return Pointer(rest[0])
        return rest[0]


def _flatten_union(expr: ast.expr) -> list[ast.expr]:
    """Members of ``A | B | C``, left to right."""
    members: list[ast.expr] = []
    stack = [expr]
    while stack:
        node = stack.pop()
        if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
            stack.extend((node.right, node.left))
        else:
            members.append(node)
    return members
