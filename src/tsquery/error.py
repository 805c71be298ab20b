from typing import Sequence


class TSQueryError(Exception):
    """Base class for all tsquery errors."""

    def __init__(self, message: str, *args: object) -> None:
        super().__init__(message, *args)
        self.message = message

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message})"


class MalformedGrammarError(TSQueryError):
    """Raised when a grammar description document is not valid JSON or doesn't match the expected
    schema.

    The document is rejected as a whole, no partial grammar is produced.

    """

    def __init__(self, reason: str, field_path: str | None = None) -> None:
        self.reason = reason
        self.field_path = field_path

        message = "Malformed grammar document"
        if field_path:
            message += f", field <{field_path}>"
        message += f": {reason}"

        super().__init__(message, reason, field_path)


class QueryValidationError(TSQueryError):
    """Raised when a syntactically correct pattern references captures, node types or fields that
    are not defined."""

    def __init__(self, problems: Sequence[str]) -> None:
        self.problems = problems
        message = "The pattern is not valid:\n  - " + "\n  - ".join(problems)
        super().__init__(message, problems)
