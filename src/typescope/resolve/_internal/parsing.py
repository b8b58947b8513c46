"""Tree-sitter parsing of Python sources."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import tree_sitter
import tree_sitter_python


@dataclass
class ParseResult:
    """Result of parsing a file."""

    tree: Any  # Tree-sitter Tree
    error_count: int
    total_nodes: int
    first_error_line: int | None = None

    @property
    def root_node(self) -> Any:
        return self.tree.root_node

    @property
    def ok(self) -> bool:
        return self.error_count == 0


@dataclass
class PythonParser:
    """
    Tree-sitter parser for Python source.

    Usage::

        parser = PythonParser()
        result = parser.parse(content)
        if not result.ok:
            ...
    """

    _parser: Any = field(default=None, repr=False)

    def __post_init__(self) -> None:
        self._parser = tree_sitter.Parser()
        self._parser.language = tree_sitter.Language(tree_sitter_python.language())

    def parse(self, content: bytes) -> ParseResult:
        tree = self._parser.parse(content)

        error_count = 0
        total_nodes = 0
        first_error_line: int | None = None

        # Explicit stack: nesting depth in valid source is unbounded
        stack = [tree.root_node]
        while stack:
            node = stack.pop()
            total_nodes += 1
            if node.type == "ERROR" or node.is_missing:
                error_count += 1
                line = node.start_point[0] + 1
                if first_error_line is None or line < first_error_line:
                    first_error_line = line
            stack.extend(node.children)

        return ParseResult(
            tree=tree,
            error_count=error_count,
            total_nodes=total_nodes,
            first_error_line=first_error_line,
        )


def node_text(node: Any) -> str:
    if node is None or node.text is None:
        return ""
    return str(node.text.decode("utf-8"))


def node_line(node: Any) -> int:
    return int(node.start_point[0]) + 1


def find_node(root: Any, start_byte: int, end_byte: int) -> Any | None:
    """Outermost node below ``root`` spanning exactly ``[start_byte, end_byte)``."""
    node = root
    while True:
        if (
            node.start_byte == start_byte
            and node.end_byte == end_byte
            and node.type not in ("module", "block")
        ):
            return node
        for child in node.children:
            if child.start_byte <= start_byte and end_byte <= child.end_byte:
                node = child
                break
        else:
            return None


def unwrap_decorated(node: Any) -> tuple[Any, list[str]]:
    """Split a ``decorated_definition`` into its definition and decorator texts."""
    if node.type != "decorated_definition":
        return node, []
    decorators = [
        node_text(child).lstrip("@").strip() for child in node.children if child.type == "decorator"
    ]
    return node.child_by_field_name("definition"), decorators
