from __future__ import annotations

from typing import Sequence

from ..error import TSQueryError


class QueryDefinitionError(TSQueryError):
    """Base class for all query (pattern) definition errors."""


class QuerySyntaxError(QueryDefinitionError):
    """Raised when the text at some position doesn't match any of the alternatives the grammar
    allows there."""

    def __init__(
        self,
        message: str,
        *,
        position: int,
        line: int,
        column: int,
        expected: Sequence[str] = (),
        actual: str | None = None,
    ) -> None:
        self.position = position
        self.line = line
        self.column = column
        self.expected = tuple(expected)
        self.actual = actual

        super().__init__(message)


class UnexpectedEndOfInputError(QuerySyntaxError):
    """Raised when the text ended while the grammar still expected more."""


class QueryNestingError(QueryDefinitionError):
    """Raised when a pattern is nested deeper than `config.MAX_NESTING_DEPTH`."""

    def __init__(self, max_depth: int, position: int) -> None:
        self.max_depth = max_depth
        self.position = position
        super().__init__(
            f"Pattern is nested deeper than the allowed {max_depth} levels "
            f"(at position {position})"
        )
