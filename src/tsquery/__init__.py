from .error import MalformedGrammarError, QueryValidationError, TSQueryError
from .query.error import (
    QueryDefinitionError,
    QueryNestingError,
    QuerySyntaxError,
    UnexpectedEndOfInputError,
)
from .query.parser import load_query, parse, parse_pattern, parse_query

__version__ = "0.3.0"

__all__ = [
    "MalformedGrammarError",
    "QueryDefinitionError",
    "QueryNestingError",
    "QuerySyntaxError",
    "QueryValidationError",
    "TSQueryError",
    "UnexpectedEndOfInputError",
    "load_query",
    "parse",
    "parse_pattern",
    "parse_query",
]
