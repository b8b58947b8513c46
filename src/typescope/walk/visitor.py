"""Visitor protocol and its adapters.

Every hook takes the WalkContext first and returns a HookResult: None or
CONTINUE to carry on, SKIP to step over the node, Fail(cause) to abort.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any, Protocol

from typescope.types import Field, FixedSequence, Map, Named, Pointer, Primitive, Sequence, Type
from typescope.walk.models import CONTINUE, HookResult, StructInfo, WalkContext

HOOK_NAMES = (
    "enter_struct",
    "leave_struct",
    "enter_field",
    "leave_field",
    "enter_map_key",
    "leave_map_key",
    "enter_map_elem",
    "leave_map_elem",
    "enter_pointer",
    "leave_pointer",
    "enter_sequence",
    "leave_sequence",
    "enter_fixed_sequence",
    "leave_fixed_sequence",
    "visit_primitive",
    "visit_named",
)


class TypeVisitor(Protocol):
    def enter_struct(self, ctx: WalkContext, info: StructInfo) -> HookResult: ...
    def leave_struct(self, ctx: WalkContext, info: StructInfo) -> HookResult: ...

    def enter_field(self, ctx: WalkContext, info: StructInfo, field: Field) -> HookResult: ...
    def leave_field(self, ctx: WalkContext, info: StructInfo, field: Field) -> HookResult: ...

    def enter_map_key(self, ctx: WalkContext, typ: Map, key: Type) -> HookResult: ...
    def leave_map_key(self, ctx: WalkContext, typ: Map, key: Type) -> HookResult: ...

    def enter_map_elem(self, ctx: WalkContext, typ: Map, elem: Type) -> HookResult: ...
    def leave_map_elem(self, ctx: WalkContext, typ: Map, elem: Type) -> HookResult: ...

    def enter_pointer(self, ctx: WalkContext, typ: Pointer) -> HookResult: ...
    def leave_pointer(self, ctx: WalkContext, typ: Pointer) -> HookResult: ...

    def enter_sequence(self, ctx: WalkContext, typ: Sequence) -> HookResult: ...
    def leave_sequence(self, ctx: WalkContext, typ: Sequence) -> HookResult: ...

    def enter_fixed_sequence(self, ctx: WalkContext, typ: FixedSequence) -> HookResult: ...
    def leave_fixed_sequence(self, ctx: WalkContext, typ: FixedSequence) -> HookResult: ...

    def visit_primitive(self, ctx: WalkContext, typ: Primitive) -> HookResult: ...
    def visit_named(self, ctx: WalkContext, typ: Named) -> HookResult: ...


class BaseTypeVisitor:
    """Visitor whose hooks all continue. Subclass and override what you need."""

    def enter_struct(self, ctx: WalkContext, info: StructInfo) -> HookResult:
        return CONTINUE

    def leave_struct(self, ctx: WalkContext, info: StructInfo) -> HookResult:
        return CONTINUE

    def enter_field(self, ctx: WalkContext, info: StructInfo, field: Field) -> HookResult:
        return CONTINUE

    def leave_field(self, ctx: WalkContext, info: StructInfo, field: Field) -> HookResult:
        return CONTINUE

    def enter_map_key(self, ctx: WalkContext, typ: Map, key: Type) -> HookResult:
        return CONTINUE

    def leave_map_key(self, ctx: WalkContext, typ: Map, key: Type) -> HookResult:
        return CONTINUE

    def enter_map_elem(self, ctx: WalkContext, typ: Map, elem: Type) -> HookResult:
        return CONTINUE

    def leave_map_elem(self, ctx: WalkContext, typ: Map, elem: Type) -> HookResult:
        return CONTINUE

    def enter_pointer(self, ctx: WalkContext, typ: Pointer) -> HookResult:
        return CONTINUE

    def leave_pointer(self, ctx: WalkContext, typ: Pointer) -> HookResult:
        return CONTINUE

    def enter_sequence(self, ctx: WalkContext, typ: Sequence) -> HookResult:
        return CONTINUE

    def leave_sequence(self, ctx: WalkContext, typ: Sequence) -> HookResult:
        return CONTINUE

    def enter_fixed_sequence(self, ctx: WalkContext, typ: FixedSequence) -> HookResult:
        return CONTINUE

    def leave_fixed_sequence(self, ctx: WalkContext, typ: FixedSequence) -> HookResult:
        return CONTINUE

    def visit_primitive(self, ctx: WalkContext, typ: Primitive) -> HookResult:
        return CONTINUE

    def visit_named(self, ctx: WalkContext, typ: Named) -> HookResult:
        return CONTINUE


class PartialTypeVisitor(BaseTypeVisitor):
    """Visitor built from callables keyed by hook name.

    Example:
        PartialTypeVisitor(visit_named=lambda ctx, t: seen.append(t))
    """

    def __init__(self, **hooks: Callable[..., HookResult]) -> None:
        unknown = sorted(set(hooks) - set(HOOK_NAMES))
        if unknown:
            raise TypeError(f"Unknown visitor hooks: {', '.join(unknown)}")
        for name, hook in hooks.items():
            setattr(self, name, hook)


def _dispatch(name: str) -> Callable[..., HookResult]:
    def hook(self: MultiVisitor, *args: Any) -> HookResult:
        for visitor in self.visitors:
            result = getattr(visitor, name)(*args)
            if result is not None and result is not CONTINUE:
                return result
        return CONTINUE

    hook.__name__ = name
    return hook


class MultiVisitor:
    """Calls each visitor in turn for every hook.

    The first result other than CONTINUE is returned and the remaining
    visitors are not called for that hook.
    """

    def __init__(self, visitors: Iterable[TypeVisitor]) -> None:
        self.visitors = list(visitors)

    enter_struct = _dispatch("enter_struct")
    leave_struct = _dispatch("leave_struct")
    enter_field = _dispatch("enter_field")
    leave_field = _dispatch("leave_field")
    enter_map_key = _dispatch("enter_map_key")
    leave_map_key = _dispatch("leave_map_key")
    enter_map_elem = _dispatch("enter_map_elem")
    leave_map_elem = _dispatch("leave_map_elem")
    enter_pointer = _dispatch("enter_pointer")
    leave_pointer = _dispatch("leave_pointer")
    enter_sequence = _dispatch("enter_sequence")
    leave_sequence = _dispatch("leave_sequence")
    enter_fixed_sequence = _dispatch("enter_fixed_sequence")
    leave_fixed_sequence = _dispatch("leave_fixed_sequence")
    visit_primitive = _dispatch("visit_primitive")
    visit_named = _dispatch("visit_named")
