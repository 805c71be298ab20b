from __future__ import annotations

from ..visitor import PatternVisitor
from .ast import (
    Alternation,
    Anchor,
    Anonymous,
    Capture,
    Directive,
    Field,
    Group,
    Name,
    NegatedField,
    PatternNode,
    Quantifier,
    Wildcard,
)
from .parser import WILDCARD


class QueryRenderer(PatternVisitor[str]):
    """Renders a pattern back to query text.

    The output is normalized: children are separated by a single space and
    comments are gone, but parsing it yields a pattern equal to the rendered one.

    There are two exceptions, both only reachable with hand-built or partially
    parsed trees. `Name("_")` renders as `_`, which reads back as `Wildcard`
    everywhere except the NAME rule. A `StringArg` renders as a quoted literal,
    which directives in query text don't accept.

    """

    def generic_visit(self, node: PatternNode) -> str:
        raise TypeError(f"Don't know how to render <{node.__class__.__name__}>")

    def _render_all(self, nodes: tuple[PatternNode, ...]) -> str:
        return " ".join(self.visit(n) for n in nodes)

    def visit_Name(self, node: Name) -> str:
        return node.name

    def visit_Anonymous(self, node: Anonymous) -> str:
        return f'"{node.value}"'

    def visit_Wildcard(self, node: Wildcard) -> str:
        return WILDCARD

    def visit_Anchor(self, node: Anchor) -> str:
        return "."

    def visit_Field(self, node: Field) -> str:
        return f"{node.name}: {self.visit(node.child)}"

    def visit_NegatedField(self, node: NegatedField) -> str:
        return f"!{node.name}"

    def visit_Directive(self, node: Directive) -> str:
        args = "".join(f" {arg.to_query()}" for arg in node.args)
        return f"(#{node.name}!{args})"

    def visit_Capture(self, node: Capture) -> str:
        return f"{self.visit(node.child)} @{node.label}"

    def visit_Quantifier(self, node: Quantifier) -> str:
        return f"{self.visit(node.child)}{node.suffix}"

    def visit_Group(self, node: Group) -> str:
        return f"({self._render_all(node.children)})"

    def visit_Alternation(self, node: Alternation) -> str:
        return f"[{self._render_all(node.children)}]"
