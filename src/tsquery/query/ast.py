"""Pattern AST produced by the query parser.

Every syntactic unit of the query language is a frozen dataclass derived from
`PatternNode`. Composite nodes own their children (a single `child` or an
ordered `children` tuple), so a parsed pattern is always a strict tree.

Nodes built by the parser carry a `span` with the start/stop offsets of the
node in the source text. Spans do not take part in equality, so hand-built
nodes compare equal to parsed ones.

"""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, ClassVar, Iterator

from rich.markup import escape
from rich.tree import Tree

from ..serialize import DataClassSerializeMixin

Span = tuple[int, int]
"""Start (inclusive) and stop (exclusive) offsets of a node in the source text."""


# -----------------------------------------------------------------------------
# ---------------------------- Directive arguments ----------------------------


@dataclass(frozen=True)
class DirectiveComponent(DataClassSerializeMixin):
    """Base class for directive arguments."""

    def to_query(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class CaptureArg(DirectiveComponent):
    """Reference to a capture by its label, written as `@label`."""

    label: str

    def to_query(self) -> str:
        return f"@{self.label}"


@dataclass(frozen=True)
class StringArg(DirectiveComponent):
    """A literal string argument.

    Never produced by the parser, directives in query text only accept capture
    references. The rendered form `"value"` is therefore not valid query text and
    can't be parsed back.

    """

    value: str

    def to_query(self) -> str:
        return f'"{self.value}"'


# -----------------------------------------------------------------------------
# ------------------------------- Pattern nodes -------------------------------


@dataclass(frozen=True)
class PatternNode(DataClassSerializeMixin):
    """Base class for all pattern nodes."""

    span: Span | None = field(default=None, compare=False, repr=False, kw_only=True)

    def get_child_nodes(self) -> tuple[PatternNode, ...]:
        """Direct child nodes in source order."""
        return ()

    def walk(self) -> Iterator[PatternNode]:
        """Pre-order traversal of this node and all of its descendants."""
        stack: list[PatternNode] = [self]

        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.get_child_nodes()))

    def to_query(self) -> str:
        """Render this node back to query text."""
        # Import here to avoid circular imports
        from .render import QueryRenderer

        return QueryRenderer().visit(self)

    def __rich__(self, parent: Tree | None = None) -> Tree:
        """Returns a tree widget for the 'rich' library."""
        return self._rich(parent)

    def _rich(self, parent: Tree | None, field_name: str | None = None) -> Tree:
        name = f":deciduous_tree:[bold green]{self.__class__.__name__}[/bold green]"
        if field_name:
            name = f":deciduous_tree:[bold green]{field_name}({self.__class__.__name__})[/bold green]"

        if parent:
            tree = parent.add(name)
        else:
            tree = Tree(name)

        if self.span is not None:
            tree.add(f":round_pushpin: @{self.span[0]}:{self.span[1]}")

        for f in fields(self):
            if f.name == "span":
                continue

            value: Any = getattr(self, f.name)

            if isinstance(value, PatternNode):
                value._rich(tree, f.name)
            elif isinstance(value, tuple):
                if not value:
                    tree.add(f":file_folder:[yellow]{f.name}[/]={escape('()')}")
                    continue

                subtree = tree.add(f":file_folder:[yellow]{f.name}[/]")
                for item in value:
                    if isinstance(item, PatternNode):
                        item._rich(subtree)
                    else:
                        subtree.add(f":spiral_notepad: {escape(item.to_query())}")
            else:
                tree.add(f":spiral_notepad: [yellow]{f.name}[/]={escape(str(value))}")

        return tree


@dataclass(frozen=True)
class Name(PatternNode):
    """Reference to a named node type, e.g. `identifier`."""

    name: str


@dataclass(frozen=True)
class Anonymous(PatternNode):
    """Reference to an anonymous node, written as a quoted literal, e.g. `"return"`."""

    value: str


@dataclass(frozen=True)
class Wildcard(PatternNode):
    """`_`, matches any single node."""


@dataclass(frozen=True)
class Anchor(PatternNode):
    """`.`, constrains adjacency between siblings."""


@dataclass(frozen=True)
class Field(PatternNode):
    """`name: child`, the child must occupy the named field of its parent."""

    name: str
    child: PatternNode

    def get_child_nodes(self) -> tuple[PatternNode, ...]:
        return (self.child,)


@dataclass(frozen=True)
class NegatedField(PatternNode):
    """`!name`, the named field must be absent."""

    name: str


@dataclass(frozen=True)
class Directive(PatternNode):
    """`(#name! @a @b)`, a predicate/action annotation referencing captures.

    Only appears as a direct child of a `Group`.

    """

    name: str
    args: tuple[DirectiveComponent, ...] = ()


@dataclass(frozen=True)
class Capture(PatternNode):
    """`child @label`, binds the label to whatever the child matches."""

    label: str
    child: PatternNode

    def get_child_nodes(self) -> tuple[PatternNode, ...]:
        return (self.child,)


@dataclass(frozen=True)
class Quantifier(PatternNode):
    """Base class for postfix quantifiers. Always wraps a single basic node."""

    suffix: ClassVar[str]

    child: PatternNode

    def get_child_nodes(self) -> tuple[PatternNode, ...]:
        return (self.child,)


@dataclass(frozen=True)
class ZeroOrMore(Quantifier):
    suffix = "*"


@dataclass(frozen=True)
class OneOrMore(Quantifier):
    suffix = "+"


@dataclass(frozen=True)
class Optional(Quantifier):
    suffix = "?"


@dataclass(frozen=True)
class Group(PatternNode):
    """`(a b c)`, an ordered sequence of sibling nodes."""

    children: tuple[PatternNode, ...] = ()

    def get_child_nodes(self) -> tuple[PatternNode, ...]:
        return self.children


@dataclass(frozen=True)
class Alternation(PatternNode):
    """`[a b c]`, ordered alternatives, the first matching one wins."""

    children: tuple[PatternNode, ...] = ()

    def get_child_nodes(self) -> tuple[PatternNode, ...]:
        return self.children


QUANTIFIERS: dict[str, type[Quantifier]] = {
    q.suffix: q for q in (ZeroOrMore, OneOrMore, Optional)
}
"""Quantifier node type by its suffix character."""
