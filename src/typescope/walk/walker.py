"""Depth-first walk of a structural type.

Descent goes through anonymous shapes only: structs, sequences, pointers
and maps. A Named type is visited once and never entered, which is what
makes walks of self-referential types terminate. To go further, walk the
named type's underlying type explicitly.
"""

from __future__ import annotations

from typescope.core.errors import InternalError
from typescope.names import TypeName
from typescope.types import FixedSequence, Map, Named, Pointer, Primitive, Sequence, Struct, Type
from typescope.walk.models import CONTINUE, SKIP, Fail, HookResult, StructInfo, WalkContext
from typescope.walk.visitor import TypeVisitor


def walk(root: TypeName, typ: Type, visitor: TypeVisitor) -> None:
    """Walk ``typ``, reached from the type named ``root``, calling ``visitor``.

    Raises:
        The ``cause`` of the first Fail a hook returns, or any exception a
        hook raises, unchanged. No leave hooks run for the enclosing nodes.
        InternalError: UNHANDLED_TYPE_KIND for a kind outside the model.
    """
    _Walker(visitor, WalkContext(root=root)).walk(root.package_name, root.name, typ)


def _skipped(result: HookResult) -> bool:
    """Interpret a hook result: True for SKIP, raise for Fail."""
    if result is None or result is CONTINUE:
        return False
    if result is SKIP:
        return True
    if isinstance(result, Fail):
        raise result.cause
    raise InternalError.unexpected("invalid visitor result", result=repr(result))


class _Walker:
    def __init__(self, visitor: TypeVisitor, ctx: WalkContext) -> None:
        self.visitor = visitor
        self.ctx = ctx

    def walk(self, package: str, name: str, typ: Type) -> None:
        if isinstance(typ, Named):
            _skipped(self.visitor.visit_named(self.ctx, typ))
        elif isinstance(typ, Primitive):
            _skipped(self.visitor.visit_primitive(self.ctx, typ))
        elif isinstance(typ, Struct):
            self._struct(package, name, typ)
        elif isinstance(typ, Sequence):
            self._sequence(package, typ)
        elif isinstance(typ, FixedSequence):
            self._fixed_sequence(package, typ)
        elif isinstance(typ, Pointer):
            self._pointer(package, typ)
        elif isinstance(typ, Map):
            self._map(package, typ)
        else:
            raise InternalError.unhandled_type_kind(type(typ).__name__)

    def _struct(self, package: str, name: str, typ: Struct) -> None:
        info = StructInfo(package=package, name=name, root=self.ctx.root, struct=typ)
        self.ctx.stack.append(typ)
        try:
            if _skipped(self.visitor.enter_struct(self.ctx, info)):
                return
            for field in typ.fields:
                # Skipping a field only skips that field
                if _skipped(self.visitor.enter_field(self.ctx, info, field)):
                    continue
                field_package = field.package_path.rsplit(".", 1)[-1] if field.package_path else package
                self.walk(field_package, field.name, field.type)
                _skipped(self.visitor.leave_field(self.ctx, info, field))
            _skipped(self.visitor.leave_struct(self.ctx, info))
        finally:
            self.ctx.stack.pop()

    def _sequence(self, package: str, typ: Sequence) -> None:
        self.ctx.stack.append(typ)
        try:
            if _skipped(self.visitor.enter_sequence(self.ctx, typ)):
                return
            self.walk(package, str(typ.elem), typ.elem)
            _skipped(self.visitor.leave_sequence(self.ctx, typ))
        finally:
            self.ctx.stack.pop()

    def _fixed_sequence(self, package: str, typ: FixedSequence) -> None:
        self.ctx.stack.append(typ)
        try:
            if _skipped(self.visitor.enter_fixed_sequence(self.ctx, typ)):
                return
            self.walk(package, str(typ.elem), typ.elem)
            _skipped(self.visitor.leave_fixed_sequence(self.ctx, typ))
        finally:
            self.ctx.stack.pop()

    def _pointer(self, package: str, typ: Pointer) -> None:
        self.ctx.stack.append(typ)
        try:
            if _skipped(self.visitor.enter_pointer(self.ctx, typ)):
                return
            self.walk(package, str(typ.elem), typ.elem)
            _skipped(self.visitor.leave_pointer(self.ctx, typ))
        finally:
            self.ctx.stack.pop()

    def _map(self, package: str, typ: Map) -> None:
        self.ctx.stack.append(typ)
        try:
            # Key and element are skipped independently
            if not _skipped(self.visitor.enter_map_key(self.ctx, typ, typ.key)):
                self.walk(package, str(typ.key), typ.key)
                _skipped(self.visitor.leave_map_key(self.ctx, typ, typ.key))
            if not _skipped(self.visitor.enter_map_elem(self.ctx, typ, typ.elem)):
                self.walk(package, str(typ.elem), typ.elem)
                _skipped(self.visitor.leave_map_elem(self.ctx, typ, typ.elem))
        finally:
            self.ctx.stack.pop()
