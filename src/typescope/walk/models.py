"""Walk results and the context handed to visitor hooks."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from typescope.names import TypeName
from typescope.types import Struct, Type


class Flow(str, Enum):
    """Control result of a hook.

    SKIP from an enter hook omits the descent and the matching leave. From a
    leave or visit hook it means the same as CONTINUE.
    """

    CONTINUE = "continue"
    SKIP = "skip"


CONTINUE = Flow.CONTINUE
SKIP = Flow.SKIP


@dataclass(frozen=True, slots=True)
class Fail:
    """Abort the walk; ``walk`` raises ``cause`` unchanged."""

    cause: BaseException


HookResult = Flow | Fail | None


@dataclass(frozen=True, slots=True)
class StructInfo:
    """A struct being walked.

    Nested structs have no TypeName of their own, so ``name`` is the field
    (or root type) they were reached through and ``package`` the name of the
    package that declares it. ``root`` is the type the walk started from.
    """

    package: str
    name: str
    root: TypeName
    struct: Struct


@dataclass
class WalkContext:
    """Enclosing composite types of the node being visited, outermost first."""

    root: TypeName
    stack: list[Type] = field(default_factory=list)

    @property
    def parent(self) -> Type | None:
        return self.stack[-1] if self.stack else None

    @property
    def depth(self) -> int:
        return len(self.stack)
