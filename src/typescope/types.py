"""Structural type model.

The model is a closed set of kinds:

- Primitive: builtin scalars (``int``, ``str``...), plus ``invalid`` for
  types the checker could not resolve
- Struct: ordered fields of a class body, or an anonymous nested class
- Sequence: ``list[T]``, ``Sequence[T]``, ``tuple[T, ...]``...
- FixedSequence: homogeneous ``tuple[T, T, T]``
- Pointer: ``T | None``, a nullable reference
- Map: ``dict[K, V]``, ``Mapping[K, V]``...
- Named: a declared type with its own identity (class or NewType)

Interface (the underlying type of a Protocol) and Signature (method types)
complete the model but are never walked.

Named types compare by TypeName, which is what keeps equality and hashing
finite on self-referential graphs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from typescope.names import TypeName, builtin


class Form(str, Enum):
    """How a type satisfies a protocol."""

    INSTANCE = "instance"
    CLASS_OBJECT = "class_object"


class Type:
    """Base of every type in the model."""

    __slots__ = ()


@dataclass(frozen=True, slots=True)
class Primitive(Type):
    name: str

    def __str__(self) -> str:
        return self.name


BOOL = Primitive("bool")
INT = Primitive("int")
FLOAT = Primitive("float")
COMPLEX = Primitive("complex")
STR = Primitive("str")
BYTES = Primitive("bytes")
NONE = Primitive("None")
OBJECT = Primitive("object")
ANY = Primitive("Any")
INVALID = Primitive("invalid")

BUILTIN_PRIMITIVES: dict[str, Primitive] = {
    p.name: p for p in (BOOL, INT, FLOAT, COMPLEX, STR, BYTES, NONE, OBJECT)
}


@dataclass(frozen=True, slots=True)
class Field:
    """A struct field. Positions are bookkeeping and do not affect identity."""

    name: str
    type: Type
    tags: tuple[str, ...] = ()
    has_default: bool = False
    package_path: str | None = field(default=None, compare=False)
    file: str | None = field(default=None, compare=False)
    start_byte: int = field(default=-1, compare=False)
    end_byte: int = field(default=-1, compare=False)

    @property
    def is_exported(self) -> bool:
        return not self.name.startswith("_")


@dataclass(frozen=True, slots=True)
class Struct(Type):
    fields: tuple[Field, ...] = ()

    def field(self, name: str) -> Field | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def __str__(self) -> str:
        return "struct{" + "; ".join(f"{f.name}: {f.type}" for f in self.fields) + "}"


@dataclass(frozen=True, slots=True)
class Sequence(Type):
    elem: Type

    def __str__(self) -> str:
        return f"list[{self.elem}]"


@dataclass(frozen=True, slots=True)
class FixedSequence(Type):
    elem: Type
    length: int

    def __str__(self) -> str:
        return "tuple[" + ", ".join([str(self.elem)] * self.length) + "]"


@dataclass(frozen=True, slots=True)
class Pointer(Type):
    elem: Type

    def __str__(self) -> str:
        return f"{self.elem} | None"


@dataclass(frozen=True, slots=True)
class Map(Type):
    key: Type
    elem: Type

    def __str__(self) -> str:
        return f"dict[{self.key}, {self.elem}]"


@dataclass(frozen=True, slots=True)
class Signature(Type):
    """Bound callable signature: the receiver is never part of ``params``.

    ``result`` is None when the return is unannotated.
    """

    params: tuple[Type, ...] = ()
    result: Type | None = None

    @property
    def has_result(self) -> bool:
        return self.result is not None and self.result != NONE

    def __str__(self) -> str:
        params = ", ".join(str(p) for p in self.params)
        if not self.has_result:
            return f"({params})"
        return f"({params}) -> {self.result}"


@dataclass(frozen=True, slots=True)
class Interface(Type):
    """Members a Protocol requires, sorted by name."""

    methods: tuple[tuple[str, Signature], ...] = ()
    attributes: tuple[Field, ...] = ()

    def method(self, name: str) -> Signature | None:
        for n, sig in self.methods:
            if n == name:
                return sig
        return None

    def __str__(self) -> str:
        members = [f"{n}{sig}" for n, sig in self.methods]
        members += [f"{f.name}: {f.type}" for f in self.attributes]
        return "interface{" + "; ".join(members) + "}"


class Named(Type):
    """A declared type.

    Instance-form members (``methods``, ``properties``) are what an instance
    exposes, including static and class methods. Class-object members
    (``class_methods``) are what ``type[T]`` exposes; the constructor appears
    there as ``__call__``.
    """

    __slots__ = ("name", "_underlying", "methods", "properties", "class_methods")

    def __init__(self, name: TypeName, underlying: Type | None = None) -> None:
        self.name = name
        self._underlying = underlying
        self.methods: dict[str, Signature] = {}
        self.properties: dict[str, Type] = {}
        self.class_methods: dict[str, Signature] = {}

    @property
    def underlying(self) -> Type:
        if self._underlying is None:
            return INVALID
        return self._underlying

    def set_underlying(self, typ: Type) -> None:
        if isinstance(typ, Named):
            typ = typ.underlying
        self._underlying = typ

    @property
    def is_protocol(self) -> bool:
        return isinstance(self._underlying, Interface)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Named):
            return NotImplemented
        return self.name == other.name

    def __hash__(self) -> int:
        return hash(self.name)

    def __repr__(self) -> str:
        return f"Named({self.name.full!r})"

    def __str__(self) -> str:
        return self.name.full


def underlying(typ: Type) -> Type:
    if isinstance(typ, Named):
        return typ.underlying
    return typ


def is_invalid(typ: Type | None) -> bool:
    return typ == INVALID


def type_name_of(typ: Type) -> TypeName:
    """TypeName for a type: its declared name, or a builtin name of its string form."""
    if isinstance(typ, Named):
        return typ.name
    return builtin(str(typ))


def identical(a: Type | None, b: Type | None) -> bool:
    if isinstance(a, Signature) and isinstance(b, Signature):
        if a.has_result != b.has_result:
            return False
        if a.has_result and not identical(a.result, b.result):
            return False
        return len(a.params) == len(b.params) and all(
            identical(x, y) for x, y in zip(a.params, b.params, strict=True)
        )
    return a == b


def instance_members(typ: Type) -> tuple[dict[str, Signature], dict[str, Type]]:
    """Methods and attributes an instance of ``typ`` exposes."""
    methods: dict[str, Signature] = {}
    attrs: dict[str, Type] = {}
    base = underlying(typ)
    if isinstance(base, Struct):
        attrs.update((f.name, f.type) for f in base.fields)
    elif isinstance(base, Interface):
        methods.update(base.methods)
        attrs.update((f.name, f.type) for f in base.attributes)
    if isinstance(typ, Named):
        methods.update(typ.methods)
        attrs.update(typ.properties)
    return methods, attrs


def _satisfies(methods: dict[str, Signature], attrs: dict[str, Type], iface: Interface) -> bool:
    for name, want in iface.methods:
        have = methods.get(name)
        if have is None or not identical(have, want):
            return False
    for want_attr in iface.attributes:
        have_attr = attrs.get(want_attr.name)
        if have_attr is None or not identical(have_attr, want_attr.type):
            return False
    return True


def satisfying_form(typ: Type, iface_typ: Type) -> Form | None:
    """Form in which ``typ`` satisfies the protocol ``iface_typ``, if any.

    ``iface_typ`` may be the named protocol or its underlying Interface. The
    instance form and the class-object form are checked independently:
    members that only exist on ``type[T]`` (a constructor, say) do not make
    instances conform, and instance methods do not make the class object
    conform.
    """
    if typ == iface_typ:
        return Form.INSTANCE

    iface = underlying(iface_typ)
    if not isinstance(iface, Interface):
        return None

    methods, attrs = instance_members(typ)
    if _satisfies(methods, attrs, iface):
        return Form.INSTANCE
    if isinstance(typ, Named) and _satisfies(typ.class_methods, {}, iface):
        return Form.CLASS_OBJECT
    return None


def implements(typ: Type, iface_typ: Type) -> bool:
    """Report whether ``typ`` satisfies ``iface_typ`` in either form."""
    return satisfying_form(typ, iface_typ) is not None
