from __future__ import annotations

import logging
from typing import Iterable

from ..error import QueryValidationError
from ..grammar.model import Grammar
from ..visitor import PatternVisitor
from .ast import (
    Anonymous,
    Capture,
    CaptureArg,
    Directive,
    Field,
    Name,
    NegatedField,
    PatternNode,
)

logger = logging.getLogger(__name__)


class _PatternChecker(PatternVisitor[None]):
    """Collects problems of a single pattern.

    Directive arguments are checked against all captures of the pattern, so a
    directive may reference a capture defined after it.

    """

    def __init__(
        self, pattern: PatternNode, grammar: Grammar | None, extra_names: Iterable[str]
    ) -> None:
        super().__init__()

        self.problems: list[str] = []
        self._captures = {n.label for n in pattern.walk() if isinstance(n, Capture)}

        self._grammar = grammar
        if grammar is not None:
            self._node_names = grammar.node_names() | set(extra_names)
            self._literal_names = grammar.literal_names()
            self._field_names = grammar.field_names()

    def generic_visit(self, node: PatternNode) -> None:
        for child in node.get_child_nodes():
            self.visit(child)

    def visit_Name(self, node: Name) -> None:
        if self._grammar is not None and node.name not in self._node_names:
            self.problems.append(
                f"Unknown node type <{node.name}> in grammar <{self._grammar.name}>"
            )

    def visit_Anonymous(self, node: Anonymous) -> None:
        if self._grammar is not None and node.value not in self._literal_names:
            self.problems.append(
                f'Unknown anonymous node <"{node.value}"> in grammar <{self._grammar.name}>'
            )

    def _check_field_name(self, name: str) -> None:
        if self._grammar is not None and name not in self._field_names:
            self.problems.append(f"Unknown field <{name}> in grammar <{self._grammar.name}>")

    def visit_Field(self, node: Field) -> None:
        self._check_field_name(node.name)
        self.visit(node.child)

    def visit_NegatedField(self, node: NegatedField) -> None:
        self._check_field_name(node.name)

    def visit_Directive(self, node: Directive) -> None:
        for arg in node.args:
            if isinstance(arg, CaptureArg) and arg.label not in self._captures:
                self.problems.append(
                    f"Directive <#{node.name}!> references capture <@{arg.label}> "
                    "which is not defined in the pattern"
                )


def validate_pattern(
    pattern: PatternNode,
    grammar: Grammar | None = None,
    *,
    extra_names: Iterable[str] = (),
) -> list[str]:
    """Check a parsed pattern for references that can never be satisfied.

    Directives must only reference captures defined in the same pattern. If a grammar is
    given, node types, anonymous nodes and fields must be defined by it as well.

    Args:
        pattern (PatternNode): the pattern to check
        grammar (Grammar, optional): grammar to check names against. Defaults to None.
        extra_names (Iterable[str], optional): additional known node type names, e.g.
            external tokens which are not part of the grammar record.

    Returns:
        list[str]: human readable problem descriptions, empty if the pattern is valid

    """
    checker = _PatternChecker(pattern, grammar, extra_names)
    checker.visit(pattern)

    if checker.problems:
        logger.debug(f"Pattern validation found {len(checker.problems)} problem(s)")

    return checker.problems


def check_pattern(
    pattern: PatternNode,
    grammar: Grammar | None = None,
    *,
    extra_names: Iterable[str] = (),
) -> None:
    """Same as `validate_pattern` but raises a `QueryValidationError` if any problem is found."""
    problems = validate_pattern(pattern, grammar, extra_names=extra_names)

    if problems:
        raise QueryValidationError(problems)
