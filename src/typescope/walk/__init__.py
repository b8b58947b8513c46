"""Walk module - visitor-driven traversal of structural types.

Public API:
- walk: depth-first traversal that stops at named types
- TypeVisitor, BaseTypeVisitor, PartialTypeVisitor, MultiVisitor
- Flow, Fail, StructInfo, WalkContext
"""

from typescope.walk.models import CONTINUE, SKIP, Fail, Flow, HookResult, StructInfo, WalkContext
from typescope.walk.visitor import (
    HOOK_NAMES,
    BaseTypeVisitor,
    MultiVisitor,
    PartialTypeVisitor,
    TypeVisitor,
)
from typescope.walk.walker import walk

__all__ = [
    "walk",
    # Results
    "CONTINUE",
    "SKIP",
    "Fail",
    "Flow",
    "HookResult",
    # Context
    "StructInfo",
    "WalkContext",
    # Visitors
    "HOOK_NAMES",
    "BaseTypeVisitor",
    "MultiVisitor",
    "PartialTypeVisitor",
    "TypeVisitor",
]
