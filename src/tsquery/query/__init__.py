from .ast import (
    Alternation,
    Anchor,
    Anonymous,
    Capture,
    CaptureArg,
    Directive,
    DirectiveComponent,
    Field,
    Group,
    Name,
    NegatedField,
    OneOrMore,
    Optional,
    PatternNode,
    Quantifier,
    StringArg,
    Wildcard,
    ZeroOrMore,
)
from .lexer import NoMatchError, scan_identifier, scan_quoted_literal, skip_comments, skip_trivia
from .parser import ParseResult, Parser, Rule, load_query, parse, parse_pattern, parse_query

__all__ = [
    "Alternation",
    "Anchor",
    "Anonymous",
    "Capture",
    "CaptureArg",
    "Directive",
    "DirectiveComponent",
    "Field",
    "Group",
    "Name",
    "NegatedField",
    "NoMatchError",
    "OneOrMore",
    "Optional",
    "ParseResult",
    "Parser",
    "PatternNode",
    "Quantifier",
    "Rule",
    "StringArg",
    "Wildcard",
    "ZeroOrMore",
    "load_query",
    "parse",
    "parse_pattern",
    "parse_query",
    "scan_identifier",
    "scan_quoted_literal",
    "skip_comments",
    "skip_trivia",
]
