"""Default checker: annotation-level checking of a package's top-level definitions.

The checker runs in two passes over the package's files:

1. Declare every top-level class, NewType, alias, constant, variable and
   function, and bind each file's imports. Redeclaring a name is a hard
   error; the first declaration wins.
2. Resolve each declaration. Classes get their fields, methods and
   constructor; aliases, constants and variables get their types.

Names are resolved on demand, so declarations may refer to each other in
any order and across files. Imports go through the engine only when a name
from them is used. Function bodies are never looked at.
"""

from __future__ import annotations

import ast
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from typing import Any

from typescope.core.errors import ErrorCode, ResolveError
from typescope.names import TypeName
from typescope.resolve._internal.annotations import (
    BUILTIN_SYMBOLS,
    MODULE_FORMS,
    TYPING_MODULES,
    ModuleRef,
    Special,
    Symbol,
    TypeEvaluator,
    ValueRef,
)
from typescope.resolve._internal.loader import LoadedPackage, SourceFile
from typescope.resolve._internal.parsing import node_line, node_text, unwrap_decorated
from typescope.resolve.models import (
    CheckError,
    CheckResult,
    Definition,
    Importer,
    ObjectKind,
    Package,
)
from typescope.types import (
    ANY,
    BUILTIN_PRIMITIVES,
    INVALID,
    OBJECT,
    Field,
    Interface,
    Map,
    Named,
    Primitive,
    Sequence,
    Signature,
    Struct,
    Type,
)

_NEWTYPE_CALLS = frozenset({"NewType"})
_TYPEVAR_CALLS = frozenset({"TypeVar", "ParamSpec", "TypeVarTuple"})
_PROPERTY_DECORATORS = frozenset({"property", "cached_property"})
_STRUCT_BASES = frozenset({"NamedTuple", "TypedDict"})
_SPLATS = frozenset({"list_splat_pattern", "dictionary_splat_pattern"})
_PARAMS = frozenset({"identifier", "default_parameter", "typed_parameter", "typed_default_parameter"})

# Never part of a protocol's required members
_NON_MEMBERS = frozenset(
    {
        "__init__",
        "__new__",
        "__init_subclass__",
        "__class_getitem__",
        "__post_init__",
        "__subclasshook__",
    }
)

_SCALARS = (bool, int, float, complex, str, bytes)
_MISSING = object()

_PENDING, _RESOLVING, _DONE = 0, 1, 2


def _literal_value(text: str) -> Any:
    try:
        value = ast.literal_eval(text)
    except (ValueError, SyntaxError, TypeError, MemoryError, RecursionError):
        return _MISSING
    if isinstance(value, _SCALARS):
        return value
    return _MISSING


def _decorator_base(text: str) -> str:
    """``dataclasses.dataclass(frozen=True)`` -> ``dataclass``."""
    return text.split("(", 1)[0].strip().rsplit(".", 1)[-1]


def _call_parts(call: Any) -> tuple[Any, list[Any]]:
    args_node = call.child_by_field_name("arguments")
    args = [] if args_node is None else [a for a in args_node.named_children if a.type != "comment"]
    return call.child_by_field_name("function"), args


def _type_params(node: Any) -> frozenset[str]:
    params = node.child_by_field_name("type_parameters")
    if params is None:
        return frozenset()
    names = set()
    for child in params.named_children:
        text = node_text(child).split(":", 1)[0].split("=", 1)[0].strip().lstrip("*")
        if text.isidentifier():
            names.add(text)
    return frozenset(names)


def _head(node: Any) -> Any:
    """Base of a subscript or the leftmost operand of ``A | B``."""
    while True:
        if node.type == "subscript":
            node = node.child_by_field_name("value")
        elif node.type == "binary_operator":
            node = node.child_by_field_name("left")
        else:
            return node


def _is_union(node: Any) -> bool:
    op = node.child_by_field_name("operator")
    return op is not None and node_text(op) == "|"


@dataclass(frozen=True, slots=True)
class _Binding:
    """A name bound by an import: a module, or ``attr`` from a module."""

    module: str
    attr: str | None = None


@dataclass
class _FileScope:
    source: SourceFile
    bindings: dict[str, _Binding] = field(default_factory=dict)
    wildcards: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class _ClassFrame:
    owner: Named | None
    nested: dict[str, tuple[Any, list[str]]]


@dataclass(frozen=True)
class _Context:
    file: _FileScope
    classes: tuple[_ClassFrame, ...] = ()
    type_params: frozenset[str] = frozenset()


@dataclass(eq=False)
class _Decl:
    name: str
    kind: ObjectKind
    scope: _FileScope
    stmt: Any
    node: Any
    decorators: list[str] = field(default_factory=list)
    named: Named | None = None
    newtype: bool = False
    typevar: bool = False
    state: int = _PENDING
    type: Type = INVALID
    value: Any = None


@dataclass
class _Members:
    fields: dict[str, Field] = field(default_factory=dict)
    methods: dict[str, Signature] = field(default_factory=dict)
    properties: dict[str, Type] = field(default_factory=dict)
    class_methods: dict[str, Signature] = field(default_factory=dict)
    init: tuple[Type, ...] | None = None
    inherited_init: tuple[Type, ...] | None = None
    protocol: bool = False
    primitive: Primitive | None = None
    field_constructor: bool = False


class _Scope:
    """Name lookup for one evaluation context."""

    def __init__(self, check: _PackageCheck, ctx: _Context) -> None:
        self._check = check
        self._ctx = ctx

    def lookup(self, name: str) -> Symbol:
        return self._check.lookup(name, self._ctx)

    def attribute(self, module: ModuleRef, name: str) -> Symbol:
        return self._check.attribute(module, name)

    def owner(self) -> Named | None:
        for frame in reversed(self._ctx.classes):
            if frame.owner is not None:
                return frame.owner
        return None


class _PackageCheck:
    """State for checking one package."""

    def __init__(
        self,
        package: Package,
        loaded: LoadedPackage,
        files: list[str],
        importer: Importer,
    ) -> None:
        self.package = package
        self.loaded = loaded
        self.importer = importer
        self.sources = [loaded.files[name] for name in files]
        self.errors: list[CheckError] = []
        self.decls: dict[str, _Decl] = {}
        self.order: list[_Decl] = []
        self.by_type: dict[TypeName, _Decl] = {}
        self.imported: set[str] = set()
        self.imports: dict[str, Package | None] = {}
        self.import_failures: dict[str, str | None] = {}
        self.reported: set[str] = set()
        self.nested: dict[tuple[str, int], Type] = {}
        self.nested_active: set[tuple[str, int]] = set()
        self.ctor_params: dict[TypeName, tuple[Type, ...]] = {}
        self._where: list[tuple[str, int]] = []
        self._quiet = 0

    def run(self) -> CheckResult:
        for src in self.sources:
            self._declare_file(src)
        for decl in self.order:
            self._resolve(decl)

        for decl in self.order:
            typ: Type = decl.named if decl.named is not None else decl.type
            self.package.scope[decl.name] = Definition(
                name=TypeName(self.package.import_path, decl.name),
                kind=decl.kind,
                type=typ,
                value=decl.value if decl.kind is ObjectKind.CONST else None,
                file=decl.scope.source.name,
                start_byte=decl.stmt.start_byte,
                end_byte=decl.stmt.end_byte,
            )
        self.package.imports.update(self.imported - {self.package.import_path})
        return CheckResult(package=self.package, errors=self.errors)

    # Errors

    def error(self, message: str, soft: bool) -> None:
        if self._quiet:
            return
        file, line = self._where[-1] if self._where else (None, None)
        self.errors.append(
            CheckError(
                import_path=self.package.import_path,
                message=message,
                soft=soft,
                file=file,
                line=line,
            )
        )

    @contextmanager
    def _at(self, src: SourceFile, node: Any) -> Iterator[None]:
        self._where.append((src.name, node_line(node)))
        try:
            yield
        finally:
            self._where.pop()

    @contextmanager
    def _silenced(self) -> Iterator[None]:
        self._quiet += 1
        try:
            yield
        finally:
            self._quiet -= 1

    def _evaluator(self, ctx: _Context) -> TypeEvaluator:
        return TypeEvaluator(_Scope(self, ctx), self.error)

    # Pass 1: declarations

    def _declare_file(self, src: SourceFile) -> None:
        scope = _FileScope(src)
        for stmt in src.root_node.named_children:
            self._declare_statement(scope, stmt)

    def _declare_statement(self, scope: _FileScope, stmt: Any) -> None:
        if stmt.type in ("import_statement", "import_from_statement"):
            self._bind_imports(scope, stmt)
            return
        if stmt.type == "if_statement":
            # Imports guarded by TYPE_CHECKING are visible to annotations
            condition = stmt.child_by_field_name("condition")
            block = stmt.child_by_field_name("consequence")
            if block is not None and node_text(condition).endswith("TYPE_CHECKING"):
                for child in block.named_children:
                    if child.type in ("import_statement", "import_from_statement"):
                        self._bind_imports(scope, child)
            return

        node, decorators = unwrap_decorated(stmt)
        if node is None:
            return
        if node.type == "class_definition":
            self._declare(scope, stmt, node, ObjectKind.TYPE, decorators)
        elif node.type == "function_definition":
            if "overload" in {_decorator_base(d) for d in decorators}:
                return
            self._declare(scope, stmt, node, ObjectKind.FUNC, decorators)
        elif node.type == "type_alias_statement":
            self._declare(scope, stmt, node, ObjectKind.ALIAS)
        elif node.type == "expression_statement" and node.named_child_count:
            first = node.named_children[0]
            if first.type == "assignment":
                self._declare_assignment(scope, stmt, first)

    def _declare_assignment(self, scope: _FileScope, stmt: Any, assign: Any) -> None:
        left = assign.child_by_field_name("left")
        if left is None or left.type != "identifier":
            return
        ann = assign.child_by_field_name("type")
        right = assign.child_by_field_name("right")
        if right is not None and right.type == "assignment":
            return

        if ann is not None:
            if _decorator_base(node_text(ann)) == "TypeAlias":
                self._declare(scope, stmt, assign, ObjectKind.ALIAS, name=node_text(left))
                return
            has_value = right is not None and self._const_value(right) is not _MISSING
            kind = ObjectKind.CONST if has_value else ObjectKind.VAR
            self._declare(scope, stmt, assign, kind, name=node_text(left))
            return

        if right is None:
            return
        if right.type == "call":
            callee = _decorator_base(node_text(right.child_by_field_name("function")))
            if callee in _NEWTYPE_CALLS:
                decl = self._declare(scope, stmt, assign, ObjectKind.TYPE, name=node_text(left))
                if decl is not None:
                    decl.newtype = True
                return
            if callee in _TYPEVAR_CALLS:
                decl = self._declare(scope, stmt, assign, ObjectKind.ALIAS, name=node_text(left))
                if decl is not None:
                    decl.typevar = True
                return
        kind = ObjectKind.CONST if self._const_value(right) is not _MISSING else ObjectKind.VAR
        self._declare(scope, stmt, assign, kind, name=node_text(left))

    def _declare(
        self,
        scope: _FileScope,
        stmt: Any,
        node: Any,
        kind: ObjectKind,
        decorators: list[str] | None = None,
        *,
        name: str | None = None,
    ) -> _Decl | None:
        if name is None:
            if node.type == "type_alias_statement":
                name = node_text(node.named_children[0]).split("[", 1)[0].strip()
            else:
                name = node_text(node.child_by_field_name("name"))

        if name in self.decls:
            with self._at(scope.source, stmt):
                self.error(f"{name} redeclared in this package", soft=False)
            return None

        decl = _Decl(
            name=name,
            kind=kind,
            scope=scope,
            stmt=stmt,
            node=node,
            decorators=decorators or [],
        )
        if kind is ObjectKind.TYPE:
            decl.named = Named(TypeName(self.package.import_path, name))
            self.by_type[decl.named.name] = decl
        self.decls[name] = decl
        self.order.append(decl)
        return decl

    def _bind_imports(self, scope: _FileScope, stmt: Any) -> None:
        if stmt.type == "import_statement":
            for child in stmt.named_children:
                if child.type == "dotted_name":
                    path = node_text(child)
                    top = path.split(".", 1)[0]
                    scope.bindings[top] = _Binding(top)
                    self.imported.add(path)
                elif child.type == "aliased_import":
                    path = node_text(child.child_by_field_name("name"))
                    alias = node_text(child.child_by_field_name("alias"))
                    scope.bindings[alias] = _Binding(path)
                    self.imported.add(path)
            return

        module_node = stmt.child_by_field_name("module_name")
        module = self._absolute_module(module_node)
        if module is None:
            with self._at(scope.source, stmt):
                self.error(
                    f"could not import {node_text(module_node)}: "
                    "relative import beyond top-level package",
                    soft=True,
                )
            return
        self.imported.add(module)

        for child in stmt.named_children:
            if child.start_byte == module_node.start_byte:
                continue
            if child.type == "dotted_name":
                name = node_text(child)
                scope.bindings[name] = _Binding(module, name)
            elif child.type == "aliased_import":
                name = node_text(child.child_by_field_name("name"))
                alias = node_text(child.child_by_field_name("alias"))
                scope.bindings[alias] = _Binding(module, name)
            elif child.type == "wildcard_import":
                scope.wildcards.append(module)

    def _absolute_module(self, node: Any) -> str | None:
        if node.type != "relative_import":
            return node_text(node)
        level = 0
        rest = ""
        for child in node.children:
            if child.type == "import_prefix":
                level = node_text(child).count(".")
            elif child.type == "dotted_name":
                rest = node_text(child)
        parts = self.package.import_path.split(".")
        if level - 1 >= len(parts):
            return None
        base = parts[: len(parts) - (level - 1)]
        if rest:
            base.append(rest)
        return ".".join(base)

    # Name resolution

    def lookup(self, name: str, ctx: _Context) -> Symbol:
        for i in range(len(ctx.classes) - 1, -1, -1):
            entry = ctx.classes[i].nested.get(name)
            if entry is not None:
                return self._nested_struct(name, entry, replace(ctx, classes=ctx.classes[: i + 1]))
        if name in ctx.type_params:
            return ANY

        binding = ctx.file.bindings.get(name)
        if binding is not None:
            if binding.attr is None:
                return ModuleRef(binding.module)
            return self.attribute(ModuleRef(binding.module), binding.attr)

        sym = self._declared_symbol(name)
        if sym is not None:
            return sym

        for module in ctx.file.wildcards:
            sym = self._member(module, name)
            if sym is not None:
                return sym

        sym = BUILTIN_SYMBOLS.get(name)
        if sym is not None:
            return sym

        self.error(f"undefined: {name}", soft=True)
        return INVALID

    def attribute(self, module: ModuleRef, name: str) -> Symbol:
        path = module.import_path
        if path in TYPING_MODULES:
            return Special(name)
        forms = MODULE_FORMS.get(path)
        if forms is not None and name in forms:
            return Special(name)
        if path == "builtins" and name in BUILTIN_SYMBOLS:
            return BUILTIN_SYMBOLS[name]

        if self._import(path) is None:
            return INVALID
        sym = self._member(path, name)
        if sym is not None:
            return sym

        sub = f"{path}.{name}"
        if self._import(sub, report=False) is not None:
            return ModuleRef(sub)
        self.error(f"undefined: {path}.{name}", soft=True)
        return INVALID

    def _member(self, path: str, name: str) -> Symbol | None:
        pkg = self._import(path)
        if pkg is None:
            return None
        if pkg is self.package:
            return self._declared_symbol(name)
        definition = pkg.lookup(name)
        if definition is None:
            return None
        if definition.kind in (ObjectKind.TYPE, ObjectKind.ALIAS):
            return definition.type
        return ValueRef(definition.name.full)

    def _declared_symbol(self, name: str) -> Symbol | None:
        decl = self.decls.get(name)
        if decl is None:
            return None
        if decl.named is not None:
            return decl.named
        if decl.kind in (ObjectKind.ALIAS, ObjectKind.VAR):
            # An unannotated variable may turn out to be an alias
            self._resolve(decl)
            if decl.kind is ObjectKind.ALIAS:
                return decl.type
        return ValueRef(name)

    def _import(self, path: str, *, report: bool = True) -> Package | None:
        if path == self.package.import_path:
            return self.package
        if path not in self.imports:
            self.imports[path], self.import_failures[path] = self._import_uncached(path)
        pkg = self.imports[path]
        if pkg is None and report and not self._quiet and path not in self.reported:
            self.reported.add(path)
            reason = self.import_failures[path]
            self.error(f"could not import {path}" + (f": {reason}" if reason else ""), soft=True)
        return pkg

    def _import_uncached(self, path: str) -> tuple[Package | None, str | None]:
        src_dir = self.loaded.directory
        missing: ResolveError | None = None
        try:
            pkg = self.importer.import_from(path, src_dir)
        except ResolveError as e:
            if e.code is not ErrorCode.PACKAGE_NOT_FOUND:
                return None, e.message
            pkg, missing = None, e
        if pkg is not None or "." not in path:
            return pkg, missing.message if missing is not None else None

        # A module file resolves to the package directory holding it
        parent, _, last = path.rpartition(".")
        try:
            if parent == self.package.import_path:
                parent_pkg: Package | None = self.package
            else:
                parent_pkg = self.importer.import_from(parent, src_dir)
        except ResolveError as e:
            return None, e.message
        if (
            parent_pkg is not None
            and parent_pkg.directory is not None
            and (parent_pkg.directory / f"{last}.py").is_file()
        ):
            return parent_pkg, None
        return None, missing.message if missing is not None else None

    # Pass 2: resolution

    def _context(self, decl: _Decl) -> _Context:
        return _Context(file=decl.scope)

    def _resolve(self, decl: _Decl) -> None:
        if decl.state == _DONE:
            return
        if decl.state == _RESOLVING:
            if decl.kind in (ObjectKind.TYPE, ObjectKind.ALIAS):
                self.error(f"invalid recursive type {decl.name}", soft=False)
            else:
                self.error(f"initialization cycle for {decl.name}", soft=False)
            return

        decl.state = _RESOLVING
        try:
            with self._at(decl.scope.source, decl.stmt):
                if decl.kind is ObjectKind.TYPE and decl.newtype:
                    self._resolve_newtype(decl)
                elif decl.kind is ObjectKind.TYPE:
                    self._resolve_class(decl)
                elif decl.kind is ObjectKind.ALIAS:
                    self._resolve_alias(decl)
                elif decl.kind is ObjectKind.FUNC:
                    ctx = replace(self._context(decl), type_params=_type_params(decl.node))
                    decl.type = self._signature(decl.node, ctx, drop_first=False)
                else:
                    self._resolve_value(decl)
        finally:
            decl.state = _DONE

    def _resolve_class(self, decl: _Decl) -> None:
        named = decl.named
        assert named is not None
        src = decl.scope.source
        m = self._class_members(decl.node, named, self._context(decl), decl.decorators, src)

        fields = tuple(m.fields.values())
        named.methods = dict(m.methods)
        named.properties = dict(m.properties)
        if m.protocol:
            methods = tuple(sorted((n, s) for n, s in m.methods.items() if n not in _NON_MEMBERS))
            attributes = fields + tuple(Field(n, t) for n, t in sorted(m.properties.items()))
            named.set_underlying(Interface(methods, attributes))
        elif m.primitive is not None:
            named.set_underlying(m.primitive)
        else:
            named.set_underlying(Struct(fields))

        if m.init is not None:
            ctor = m.init
        elif m.field_constructor:
            ctor = tuple(f.type for f in fields)
        else:
            ctor = m.inherited_init or ()
        self.ctor_params[named.name] = ctor

        class_methods = dict(m.class_methods)
        if not m.protocol:
            class_methods["__call__"] = Signature(ctor, named)
        named.class_methods = class_methods

    def _class_members(
        self,
        node: Any,
        owner: Named | None,
        ctx: _Context,
        decorators: list[str],
        src: SourceFile,
    ) -> _Members:
        members = _Members()
        if "dataclass" in {_decorator_base(d) for d in decorators}:
            members.field_constructor = True

        supers = node.child_by_field_name("superclasses")
        if supers is not None:
            outer = self._evaluator(ctx)
            bases = [c for c in supers.named_children if c.type not in ("keyword_argument", "comment")]
            # Earlier bases win, as in the MRO
            for base in reversed(bases):
                text = node_text(base)
                self._inherit(members, outer.symbol_of(text), text)

        body = node.child_by_field_name("body")
        nested: dict[str, tuple[Any, list[str]]] = {}
        for child in body.named_children if body is not None else []:
            inner, inner_decorators = unwrap_decorated(child)
            if inner is not None and inner.type == "class_definition":
                nested[node_text(inner.child_by_field_name("name"))] = (inner, inner_decorators)

        ctx = replace(
            ctx,
            classes=ctx.classes + (_ClassFrame(owner, nested),),
            type_params=ctx.type_params | _type_params(node),
        )
        evaluator = self._evaluator(ctx)

        for child in body.named_children if body is not None else []:
            inner, inner_decorators = unwrap_decorated(child)
            if inner is None:
                continue
            if inner.type == "expression_statement" and inner.named_child_count:
                first = inner.named_children[0]
                if first.type == "assignment":
                    self._member_field(members, first, child, evaluator, src)
            elif inner.type == "function_definition":
                self._member_method(members, inner, inner_decorators, ctx, src)
        return members

    def _inherit(self, members: _Members, sym: Symbol, text: str) -> None:
        if isinstance(sym, Special):
            if sym.name == "Protocol":
                members.protocol = True
            elif sym.name in _STRUCT_BASES:
                members.field_constructor = True
            return

        if isinstance(sym, Named):
            base_decl = self.by_type.get(sym.name)
            if base_decl is not None:
                self._resolve(base_decl)
            base = sym.underlying
            if isinstance(base, Struct):
                members.fields.update((f.name, f) for f in base.fields)
            elif isinstance(base, Interface):
                members.fields.update((f.name, f) for f in base.attributes)
                members.methods.update(base.methods)
            elif isinstance(base, Primitive) and base not in (OBJECT, INVALID):
                members.primitive = base
            members.methods.update(sym.methods)
            members.properties.update(sym.properties)
            members.class_methods.update(
                (n, s) for n, s in sym.class_methods.items() if n != "__call__"
            )
            if sym.name in self.ctor_params:
                members.inherited_init = self.ctor_params[sym.name]
            elif "__call__" in sym.class_methods:
                members.inherited_init = sym.class_methods["__call__"].params
            return

        if isinstance(sym, Primitive):
            if sym not in (OBJECT, INVALID):
                members.primitive = sym
            return

        if isinstance(sym, ModuleRef | ValueRef):
            self.error(f"{text} is not a type", soft=False)

    def _member_field(
        self,
        members: _Members,
        assign: Any,
        stmt: Any,
        evaluator: TypeEvaluator,
        src: SourceFile,
    ) -> None:
        left = assign.child_by_field_name("left")
        ann_node = assign.child_by_field_name("type")
        if ann_node is None or left is None or left.type != "identifier":
            return
        with self._at(src, stmt):
            ann = evaluator.evaluate(node_text(ann_node))
        if ann.class_var:
            return
        name = node_text(left)
        members.fields[name] = Field(
            name=name,
            type=ann.type,
            tags=ann.tags,
            has_default=assign.child_by_field_name("right") is not None,
            package_path=self.package.import_path,
            file=src.name,
            start_byte=stmt.start_byte,
            end_byte=stmt.end_byte,
        )

    def _member_method(
        self,
        members: _Members,
        fn: Any,
        decorators: list[str],
        ctx: _Context,
        src: SourceFile,
    ) -> None:
        name = node_text(fn.child_by_field_name("name"))
        kinds = {_decorator_base(d) for d in decorators}
        if "overload" in kinds or kinds & {"setter", "deleter"}:
            return

        ctx = replace(ctx, type_params=ctx.type_params | _type_params(fn))
        with self._at(src, fn):
            if kinds & _PROPERTY_DECORATORS:
                result = self._signature(fn, ctx, drop_first=True).result
                members.properties[name] = result if result is not None else ANY
            elif "staticmethod" in kinds:
                sig = self._signature(fn, ctx, drop_first=False)
                members.methods[name] = sig
                members.class_methods[name] = sig
            elif "classmethod" in kinds:
                sig = self._signature(fn, ctx, drop_first=True)
                members.methods[name] = sig
                members.class_methods[name] = sig
            else:
                sig = self._signature(fn, ctx, drop_first=True)
                if name == "__init__":
                    members.init = sig.params
                members.methods[name] = sig

    def _signature(self, fn: Any, ctx: _Context, *, drop_first: bool) -> Signature:
        evaluator = self._evaluator(ctx)
        params: list[Type] = []
        skip = drop_first
        plist = fn.child_by_field_name("parameters")
        for p in plist.named_children if plist is not None else []:
            if p.type not in _PARAMS:
                continue
            if p.type in ("typed_parameter", "typed_default_parameter"):
                if p.named_children[0].type in _SPLATS:
                    continue
            if skip:
                skip = False
                continue
            ann = p.child_by_field_name("type")
            params.append(evaluator.type_of(node_text(ann)) if ann is not None else ANY)

        ret = fn.child_by_field_name("return_type")
        result = evaluator.type_of(node_text(ret)) if ret is not None else None
        return Signature(tuple(params), result)

    def _nested_struct(self, name: str, entry: tuple[Any, list[str]], ctx: _Context) -> Type:
        node, decorators = entry
        src = ctx.file.source
        key = (src.name, node.start_byte)
        if key in self.nested:
            return self.nested[key]
        if key in self.nested_active:
            self.error(f"invalid recursive type {name}", soft=False)
            return INVALID

        self.nested_active.add(key)
        try:
            members = self._class_members(node, None, ctx, decorators, src)
        finally:
            self.nested_active.discard(key)
        struct = Struct(tuple(members.fields.values()))
        self.nested[key] = struct
        return struct

    def _resolve_newtype(self, decl: _Decl) -> None:
        named = decl.named
        assert named is not None
        _, args = _call_parts(decl.node.child_by_field_name("right"))
        if len(args) != 2:
            self.error(f"NewType {decl.name} requires a name and a base type", soft=False)
            named.set_underlying(INVALID)
            return

        base = self._evaluator(self._context(decl)).type_of(node_text(args[1]))
        if isinstance(base, Named):
            base_decl = self.by_type.get(base.name)
            if base_decl is not None:
                self._resolve(base_decl)
        named.set_underlying(base)
        named.class_methods = {"__call__": Signature((base,), named)}
        self.ctor_params[named.name] = (base,)

    def _resolve_alias(self, decl: _Decl) -> None:
        if decl.typevar:
            decl.type = ANY
            return
        if decl.node.type == "type_alias_statement":
            value = decl.node.named_children[-1]
        else:
            value = decl.node.child_by_field_name("right")
        if value is None:
            self.error(f"type alias {decl.name} has no value", soft=False)
            return
        decl.type = self._evaluator(self._context(decl)).type_of(node_text(value))

    def _resolve_value(self, decl: _Decl) -> None:
        assign = decl.node
        ann_node = assign.child_by_field_name("type")
        right = assign.child_by_field_name("right")
        evaluator = self._evaluator(self._context(decl))

        value: Any = _MISSING
        if ann_node is not None:
            ann = evaluator.evaluate(node_text(ann_node))
            if ann.bare_final and right is not None:
                vtype, value = self._value_type(right, evaluator)
                decl.type = vtype if vtype is not None else ANY
            else:
                decl.type = ann.type
                if right is not None:
                    value = self._const_value(right)
        elif right is not None:
            vtype, value = self._value_type(right, evaluator)
            if vtype is not None:
                decl.type = vtype
            elif self._is_alias(right, evaluator):
                decl.kind = ObjectKind.ALIAS
                decl.type = evaluator.type_of(node_text(right))
                return
            else:
                decl.type = ANY

        if value is _MISSING:
            decl.kind = ObjectKind.VAR
            decl.value = None
        else:
            decl.kind = ObjectKind.CONST
            decl.value = value

    def _const_value(self, right: Any) -> Any:
        if right.type == "call":
            _, args = _call_parts(right)
            if len(args) == 1 and args[0].type != "keyword_argument":
                return _literal_value(node_text(args[0]))
            return _MISSING
        return _literal_value(node_text(right))

    def _value_type(self, right: Any, evaluator: TypeEvaluator) -> tuple[Type | None, Any]:
        """Type and value of ``<literal>`` or ``T(<literal>)``."""
        value = self._const_value(right)
        if value is _MISSING:
            return None, _MISSING
        if right.type != "call":
            return BUILTIN_PRIMITIVES[type(value).__name__], value

        callee, _ = _call_parts(right)
        with self._silenced():
            sym = evaluator.lookup(node_text(callee))
        if isinstance(sym, Type) and sym != INVALID and not isinstance(sym, Sequence | Map):
            return sym, value
        return None, _MISSING

    def _is_alias(self, right: Any, evaluator: TypeEvaluator) -> bool:
        """Whether an unannotated assignment's value is a type expression."""
        if right.type == "binary_operator" and not _is_union(right):
            return False
        if right.type not in ("identifier", "attribute", "subscript", "binary_operator"):
            return False
        with self._silenced():
            sym = evaluator.lookup(node_text(_head(right)))
        return sym == INVALID or isinstance(sym, Type | Special)


class AnnotationChecker:
    """Default Checker: types come from annotations, class bodies and NewType calls.

    See the module docstring for what is and is not checked.
    """

    def check(
        self,
        package: Package,
        loaded: LoadedPackage,
        files: list[str],
        importer: Importer,
    ) -> CheckResult:
        return _PackageCheck(package, loaded, files, importer).run()
