"""Documentation lookup on syntax nodes.

Classes are documented by their docstring. Anything else (constants,
fields, NewTypes) by the comment block directly above the statement, a
trailing comment on its last line, or a string literal on the line
directly below it (an attribute docstring).
"""

from __future__ import annotations

import ast
import inspect
from typing import Any

from typescope.resolve._internal.parsing import node_text, unwrap_decorated


def _string_value(stmt: Any) -> str | None:
    if stmt is None or stmt.type != "expression_statement" or stmt.named_child_count != 1:
        return None
    expr = stmt.named_children[0]
    if expr.type not in ("string", "concatenated_string"):
        return None
    try:
        value = ast.literal_eval(node_text(expr))
    except (ValueError, SyntaxError):
        return None
    if not isinstance(value, str):
        return None
    return inspect.cleandoc(value)


def _comment_text(node: Any) -> str:
    text = node_text(node)[1:]
    return text[1:] if text.startswith(" ") else text


def docstring(node: Any) -> str | None:
    """Docstring of a class or function definition (decorators allowed)."""
    definition, _ = unwrap_decorated(node)
    if definition is None or definition.type not in ("class_definition", "function_definition"):
        return None
    body = definition.child_by_field_name("body")
    if body is None or not body.named_children:
        return None
    return _string_value(body.named_children[0])


def comment_doc(stmt: Any) -> str | None:
    """Comment block above, trailing comment, or attribute docstring of ``stmt``."""
    lines: list[str] = []
    row = stmt.start_point[0]
    prev = stmt.prev_sibling
    if prev is None and stmt.parent is not None and stmt.parent.type == "block":
        # A comment before a block's first statement belongs to the enclosing node
        prev = stmt.parent.prev_sibling
    while prev is not None and prev.type == "comment" and prev.end_point[0] == row - 1:
        before = prev.prev_sibling
        if before is not None and before.end_point[0] == prev.start_point[0]:
            # Trailing comment of the statement above
            break
        lines.append(_comment_text(prev))
        row = prev.start_point[0]
        prev = before
    if lines:
        return "\n".join(reversed(lines))

    nxt = stmt.next_sibling
    if nxt is not None and nxt.type == "comment" and nxt.start_point[0] == stmt.end_point[0]:
        return _comment_text(nxt)

    below = stmt.next_named_sibling
    while below is not None and below.type == "comment":
        below = below.next_named_sibling
    if below is not None and below.start_point[0] == stmt.end_point[0] + 1:
        return _string_value(below)
    return None


def definition_doc(node: Any) -> str | None:
    """Docstring for a class, falling back to its comments."""
    doc = docstring(node)
    if doc is not None:
        return doc
    return comment_doc(node)
