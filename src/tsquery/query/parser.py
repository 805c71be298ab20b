"""This module implements a recursive descent parser for tree query patterns.

Each grammar rule below is implemented by a `Parser` method of the same name.
Alternatives are chosen by looking at a single token ahead, in the order they
are listed. Fields and enclosed directives need two tokens. `ws` is any run of
whitespace and `;` comments, which the lexer skips everywhere. Places where
whitespace is not allowed are marked with `~` (the two tokens must be adjacent).

pattern: full_node

full_node: ws (captured | anchor | negated_field) ws

captured: (field | alternation | quantified) ("@" ~ IDENTIFIER)?

quantified: basic (~ ("*" | "+" | "?"))?

basic: wildcard | name | anonymous | group

group: "(" (enclosed_directive | full_node)* ")"

enclosed_directive: "(" directive

alternation: "[" full_node* "]"

field: IDENTIFIER ~ ":" full_node

negated_field: "!" ~ IDENTIFIER

directive: "#" ~ ALPHA+ ~ "!" ("@" ~ IDENTIFIER)* ")"

name: IDENTIFIER

anonymous: STRING

wildcard: "_"

anchor: "."

IDENTIFIER: /[A-Za-z_][A-Za-z0-9_-]*/

STRING: /"[A-Za-z0-9]+"/

COMMENT: /;[^\\n]*/

"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from enum import Enum, auto
from pathlib import Path
from typing import Callable, Generator, NamedTuple, Sequence

from .. import config
from ..file import read_text_unknown_encoding
from .ast import (
    QUANTIFIERS,
    Alternation,
    Anchor,
    Anonymous,
    Capture,
    CaptureArg,
    Directive,
    Field,
    Group,
    Name,
    NegatedField,
    PatternNode,
    Wildcard,
)
from .error import (
    QueryDefinitionError,
    QueryNestingError,
    QuerySyntaxError,
    UnexpectedEndOfInputError,
)
from .helpers import point_at_index
from .lexer import Lexer, NoMatchError, Token, TokenType, pretty_print_tok_type, skip_trivia

logger = logging.getLogger(__name__)

WILDCARD = "_"

# Tokens that can start a node with an optional capture
_CAPTURED_START_SET = (
    TokenType.IDENTIFIER,  # name, wildcard or field
    TokenType.STRING,  # anonymous node
    TokenType.LPAREN,  # group or directive
    TokenType.LBRACKET,  # alternation
)

# Tokens that can start any node
_NODE_START_SET = (
    *_CAPTURED_START_SET,
    TokenType.DOT,  # anchor
    TokenType.BANG,  # negated field
)

_BASIC_START_SET = (
    TokenType.IDENTIFIER,
    TokenType.STRING,
    TokenType.LPAREN,
)

_QUANTIFIER_SET = (TokenType.STAR, TokenType.PLUS, TokenType.QMARK)


class Rule(Enum):
    """Grammar rules that can be used as a parse entry point."""

    PATTERN = auto()
    NODE = auto()
    CAPTURE = auto()
    QUANTIFIED = auto()
    NAME = auto()
    ANONYMOUS = auto()
    WILDCARD = auto()
    ANCHOR = auto()
    GROUP = auto()
    ALTERNATION = auto()
    FIELD = auto()
    NEGATED_FIELD = auto()
    DIRECTIVE = auto()


class ParseResult(NamedTuple):
    node: PatternNode
    rest: str
    """Unconsumed remainder of the input."""


class Parser:
    def __init__(self, *, max_depth: int | None = None) -> None:
        self._max_depth = max_depth

        self._reset("")

    def _reset(self, text: str) -> None:
        self._lexer = Lexer(text)
        self._depth = 0

    # -------------------------------------------------------------------------
    # ------------------------------ Utilities --------------------------------

    def _get_grammar_error_exception(
        self,
        msg: str,
        expected: Sequence[TokenType],
        actual: Token | None,
    ) -> QuerySyntaxError:
        """Build a syntax error pointing at `actual` (or at the end of the text if it is None)."""
        text = self._lexer.text

        if actual is not None:
            position, line, column = actual.start, actual.line, actual.column
            err_point_index = actual.start
            err_point_length = actual.stop - actual.start
        else:
            position = len(text)
            line = text.count("\n") + 1
            column = position - (text.rfind("\n") + 1)

            # Point at the last thing we saw before the text ended
            last_token = self._lexer.last()
            if last_token is not None:
                err_point_index = last_token.start
                err_point_length = last_token.stop - last_token.start
            else:
                err_point_index = max(0, len(text) - 1)
                err_point_length = 1

        expected_strs = tuple(pretty_print_tok_type(tok_type) for tok_type in expected)
        actual_str = pretty_print_tok_type(actual.type if actual is not None else TokenType._EOF)

        if expected_strs:
            one_of = ""
            if len(expected_strs) > 1:
                one_of = " one of"

            msg += f"\nExpected{one_of}: {', '.join(expected_strs)}. Got: {actual_str}"

        # The index to point to is relative to the start of the text context
        ctx_start = max(0, err_point_index - 40)
        text_ctx = text[ctx_start : err_point_index + err_point_length + 40]

        if text_ctx:
            msg += "\n\nText context:\n" + point_at_index(
                text_ctx, err_point_index - ctx_start, err_point_length
            )

        prev_tokens = self._lexer.items[-5:]

        if prev_tokens:
            msg += "\n\nPrevious tokens:\n"
            msg += "\n".join(f"{token!r}" for token in prev_tokens)

        exc_type = QuerySyntaxError if actual is not None else UnexpectedEndOfInputError

        return exc_type(
            msg,
            position=position,
            line=line,
            column=column,
            expected=expected_strs,
            actual=actual_str,
        )

    def _match_or_raise(
        self, token_type: TokenType, msg: str, extra_expected: Sequence[TokenType] | None = None
    ) -> Token:
        """Match the next token or raise an error.

        Args:
            token_type (TokenType): the token type to match
            msg (str): the error message to use if the match fails
            extra_expected (Sequence[TokenType], optional): extra token types to include in the
                error message as expected. Defaults to None.

        Raises:
            QuerySyntaxError: if the next token does not match the given type

        Returns:
            Token: the matched token

        """
        try:
            token = self._lexer.match(token_type)
        except NoMatchError as e:
            expected = [token_type, *extra_expected] if extra_expected else [token_type]

            raise self._get_grammar_error_exception(msg, expected, e.actual) from None

        return token

    def _match_adjacent_or_raise(self, token_type: TokenType, msg: str) -> Token:
        """Match the next token, which must immediately follow the last consumed one."""
        previous = self._lexer.last()
        token = self._match_or_raise(token_type, msg)

        if not token.adjacent_to(previous):
            raise self._get_grammar_error_exception(
                f"{msg} No whitespace or comments are allowed before "
                f"{pretty_print_tok_type(token_type)}.",
                [],
                token,
            )

        return token

    def _last_stop(self) -> int:
        last = self._lexer.last()
        return last.stop if last is not None else 0

    @contextmanager
    def _nested(self) -> Generator[None, None, None]:
        """Track nesting of composite nodes and enforce the maximum depth."""
        max_depth = self._max_depth if self._max_depth is not None else config.MAX_NESTING_DEPTH

        self._depth += 1

        try:
            if self._depth > max_depth:
                raise QueryNestingError(max_depth, self._last_stop())

            yield
        finally:
            self._depth -= 1

    # -------------------------------------------------------------------------
    # -------------------------------- Rules ----------------------------------

    def _full_node(self) -> PatternNode:
        """full_node: ws (captured | anchor | negated_field) ws"""
        next_tok = self._lexer.peek()

        if config.TRACE_LOGGING:
            logger.debug(f"Parsing a node starting at {next_tok!r}")

        match next_tok:
            case TokenType.IDENTIFIER | TokenType.STRING | TokenType.LPAREN | TokenType.LBRACKET:
                return self._captured()
            case TokenType.DOT:
                return self._anchor()
            case TokenType.BANG:
                return self._negated_field()
            case TokenType.HASH:
                # Just for a nicer error message
                raise self._get_grammar_error_exception(
                    "Incorrect pattern definition. A directive must be enclosed in parentheses "
                    "inside a group, e.g. ((identifier) @name (#set! @name)).",
                    [TokenType.LPAREN],
                    next_tok,
                )
            case _:
                raise self._get_grammar_error_exception(
                    "Incorrect pattern definition.", _NODE_START_SET, next_tok
                )

    def _captured(self) -> PatternNode:
        """captured: (field | alternation | quantified) ("@" ~ IDENTIFIER)?"""
        next_tok = self._lexer.peek()

        match next_tok:
            case TokenType.IDENTIFIER if self._at_field():
                node = self._field()
            case TokenType.LBRACKET:
                node = self._alternation()
            case TokenType.IDENTIFIER | TokenType.STRING | TokenType.LPAREN:
                node = self._quantified()
            case _:
                raise self._get_grammar_error_exception(
                    "Incorrect pattern definition.", _CAPTURED_START_SET, next_tok
                )

        if self._lexer.peek() != TokenType.AT:
            return node

        self._lexer.consume()

        label = self._match_adjacent_or_raise(
            TokenType.IDENTIFIER, "Incorrect definition of a capture name."
        )

        return Capture(label.value, node, span=(next_tok.start, label.stop))

    def _at_field(self) -> bool:
        """Check if the next tokens are a field name immediately followed by a colon."""
        name_tok, colon_tok = self._lexer.peek(1), self._lexer.peek(2)

        return (
            name_tok == TokenType.IDENTIFIER
            and colon_tok == TokenType.COLON
            and colon_tok is not None
            and colon_tok.adjacent_to(name_tok)
        )

    def _quantified(self) -> PatternNode:
        """quantified: basic (~ ("*" | "+" | "?"))?

        Only a single quantifier is consumed, i.e. in `a**` the second `*` is left for the caller.

        """
        node = self._basic()
        basic_end = self._lexer.last()

        next_tok = self._lexer.peek()

        if (
            next_tok is None
            or next_tok.type not in _QUANTIFIER_SET
            or not next_tok.adjacent_to(basic_end)
        ):
            return node

        self._lexer.consume()

        start = node.span[0] if node.span is not None else next_tok.start
        return QUANTIFIERS[next_tok.value](node, span=(start, next_tok.stop))

    def _basic(self) -> PatternNode:
        """basic: wildcard | name | anonymous | group"""
        next_tok = self._lexer.peek()

        match next_tok:
            case TokenType.IDENTIFIER if next_tok is not None and next_tok.value == WILDCARD:
                return self._wildcard()
            case TokenType.IDENTIFIER:
                return self._name()
            case TokenType.STRING:
                return self._anonymous()
            case TokenType.LPAREN:
                return self._group()
            case _:
                raise self._get_grammar_error_exception(
                    "Incorrect definition of a node.", _BASIC_START_SET, next_tok
                )

    def _name(self) -> Name:
        """name: IDENTIFIER"""
        tok = self._match_or_raise(TokenType.IDENTIFIER, "Incorrect definition of a node name.")
        return Name(tok.value, span=(tok.start, tok.stop))

    def _anonymous(self) -> Anonymous:
        """anonymous: STRING"""
        tok = self._match_or_raise(
            TokenType.STRING,
            "Incorrect definition of an anonymous node. "
            "Only letters and digits are allowed between the quotes.",
        )
        return Anonymous(tok.value, span=(tok.start, tok.stop))

    def _wildcard(self) -> Wildcard:
        """wildcard: "_" """
        err_msg = "Incorrect definition of a wildcard."
        next_tok = self._lexer.peek()

        if next_tok != TokenType.IDENTIFIER or next_tok is None or next_tok.value != WILDCARD:
            raise self._get_grammar_error_exception(
                f"{err_msg} Expected '{WILDCARD}'.", [], next_tok
            )

        tok = self._match_or_raise(TokenType.IDENTIFIER, err_msg)
        return Wildcard(span=(tok.start, tok.stop))

    def _anchor(self) -> Anchor:
        """anchor: "." """
        tok = self._match_or_raise(TokenType.DOT, "Incorrect definition of an anchor.")
        return Anchor(span=(tok.start, tok.stop))

    def _group(self) -> Group:
        """group: "(" (enclosed_directive | full_node)* ")"

        Directives are only allowed as direct children of a group. Anywhere else `(#` is an error,
        so a directive is never quantified, captured or used as a field value.

        """
        err_msg = "Incorrect definition of a group."
        lparen = self._match_or_raise(TokenType.LPAREN, err_msg)

        if (next_tok := self._lexer.peek()) == TokenType.HASH:
            raise self._get_grammar_error_exception(
                f"{err_msg} A directive may only appear inside a group, next to the nodes it "
                "refers to, e.g. ((identifier) @name (#set! @name)).",
                [],
                next_tok,
            )

        with self._nested():
            children = self._nodes_until(TokenType.RPAREN)

        self._match_or_raise(TokenType.RPAREN, err_msg, _NODE_START_SET)

        return Group(children, span=(lparen.start, self._last_stop()))

    def _at_enclosed_directive(self) -> bool:
        return self._lexer.peek(1) == TokenType.LPAREN and self._lexer.peek(2) == TokenType.HASH

    def _enclosed_directive(self) -> Directive:
        """enclosed_directive: "(" directive"""
        lparen = self._match_or_raise(TokenType.LPAREN, "Incorrect definition of a directive.")
        directive = self._directive()

        return Directive(directive.name, directive.args, span=(lparen.start, self._last_stop()))

    def _alternation(self) -> Alternation:
        """alternation: "[" full_node* "]" """
        err_msg = "Incorrect definition of an alternation."
        lbracket = self._match_or_raise(TokenType.LBRACKET, err_msg)

        with self._nested():
            children = self._nodes_until(TokenType.RBRACKET)

        self._match_or_raise(TokenType.RBRACKET, err_msg, _NODE_START_SET)

        return Alternation(children, span=(lbracket.start, self._last_stop()))

    def _nodes_until(self, closing: TokenType) -> tuple[PatternNode, ...]:
        """Parse full nodes up to (but not including) the closing token or the end of text.

        Directives are accepted only among the children of a group.

        """
        nodes: list[PatternNode] = []

        while (next_tok := self._lexer.peek()) is not None and next_tok != closing:
            if closing == TokenType.RPAREN and self._at_enclosed_directive():
                nodes.append(self._enclosed_directive())
            else:
                nodes.append(self._full_node())

        return tuple(nodes)

    def _field(self) -> Field:
        """field: IDENTIFIER ~ ":" full_node"""
        err_msg = "Incorrect definition of a field."
        name_tok = self._match_or_raise(TokenType.IDENTIFIER, err_msg)
        self._match_adjacent_or_raise(TokenType.COLON, err_msg)

        with self._nested():
            child = self._full_node()

        return Field(name_tok.value, child, span=(name_tok.start, self._last_stop()))

    def _negated_field(self) -> NegatedField:
        """negated_field: "!" ~ IDENTIFIER"""
        err_msg = "Incorrect definition of a negated field."
        bang = self._match_or_raise(TokenType.BANG, err_msg)
        name_tok = self._match_adjacent_or_raise(TokenType.IDENTIFIER, err_msg)

        return NegatedField(name_tok.value, span=(bang.start, name_tok.stop))

    def _directive(self) -> Directive:
        """directive: "#" ~ ALPHA+ ~ "!" ("@" ~ IDENTIFIER)* ")"

        The opening parenthesis belongs to the enclosed_directive rule, the closing one is consumed
        here.

        """
        err_msg = "Incorrect definition of a directive."
        hash_tok = self._match_or_raise(TokenType.HASH, err_msg)
        name_tok = self._match_adjacent_or_raise(TokenType.IDENTIFIER, err_msg)

        if not (name_tok.value.isascii() and name_tok.value.isalpha()):
            raise self._get_grammar_error_exception(
                f"{err_msg} Directive name <{name_tok.value}> must consist of letters only.",
                [],
                name_tok,
            )

        self._match_adjacent_or_raise(TokenType.BANG, err_msg)

        args: list[CaptureArg] = []

        while self._lexer.peek() == TokenType.AT:
            self._lexer.consume()
            label = self._match_adjacent_or_raise(TokenType.IDENTIFIER, err_msg)
            args.append(CaptureArg(label.value))

        self._match_or_raise(TokenType.RPAREN, err_msg, [TokenType.AT])

        return Directive(name_tok.value, tuple(args), span=(hash_tok.start, self._last_stop()))

    # -------------------------------------------------------------------------
    # ------------------------------ Public API -------------------------------

    def _rule_method(self, rule: Rule) -> Callable[[], PatternNode]:
        match rule:
            case Rule.PATTERN | Rule.NODE:
                return self._full_node
            case Rule.CAPTURE:
                return self._captured
            case Rule.QUANTIFIED:
                return self._quantified
            case Rule.NAME:
                return self._name
            case Rule.ANONYMOUS:
                return self._anonymous
            case Rule.WILDCARD:
                return self._wildcard
            case Rule.ANCHOR:
                return self._anchor
            case Rule.GROUP:
                return self._group
            case Rule.ALTERNATION:
                return self._alternation
            case Rule.FIELD:
                return self._field
            case Rule.NEGATED_FIELD:
                return self._negated_field
            case Rule.DIRECTIVE:
                return self._directive

        raise AssertionError(f"Unhandled rule: {rule!r}")

    @contextmanager
    def _wrap_internal_errors(self, what: str) -> Generator[None, None, None]:
        try:
            yield
        except QueryDefinitionError:
            raise
        except Exception as e:
            if config.TRACE_LOGGING:
                logger.debug(f"Internal error parsing {what}", exc_info=True)
            raise QueryDefinitionError(
                f"Failed to parse {what} due to internal error. Please report it!"
            ) from e

    def parse(self, text: str, rule: Rule = Rule.PATTERN) -> ParseResult:
        """Parse a prefix of the text according to the given grammar rule.

        Args:
            text (str): the text
            rule (Rule, optional): the rule to parse. Defaults to Rule.PATTERN.

        Returns:
            ParseResult: the parsed node and the unconsumed remainder of the text. For
                `Rule.PATTERN` trailing whitespace and comments are consumed as well.

        Raises:
            QuerySyntaxError: if the text doesn't start with a valid `rule`

        """
        self._reset(text)

        with self._wrap_internal_errors("a tree pattern"):
            node = self._rule_method(rule)()

            rest_start = self._last_stop()
            if rule is Rule.PATTERN:
                rest_start = skip_trivia(text, rest_start)

            return ParseResult(node, text[rest_start:])

    def parse_pattern(self, text: str) -> PatternNode:
        """Parse a single complete pattern.

        Args:
            text (str): the pattern

        Returns:
            PatternNode: the parsed pattern

        Raises:
            QuerySyntaxError: if the text is not a single valid pattern

        """
        node, rest = self.parse(text)

        if rest:
            # This is the top-level node, so it must be the last thing in the text
            raise self._get_grammar_error_exception(
                "Incorrect pattern definition. Unexpected text after the end of the pattern.",
                [TokenType._EOF],
                self._lexer.peek(),
            )

        return node

    def parse_query(self, text: str) -> tuple[PatternNode, ...]:
        """Parse a query document, i.e. any number of consecutive patterns.

        Args:
            text (str): the query text (e.g. contents of a .scm file)

        Returns:
            tuple[PatternNode, ...]: the patterns in source order

        """
        self._reset(text)

        with self._wrap_internal_errors("a query"):
            patterns: list[PatternNode] = []

            while self._lexer.peek() is not None:
                patterns.append(self._full_node())

            if config.TRACE_LOGGING:
                logger.debug(f"Parsed {len(patterns)} pattern(s)")

            return tuple(patterns)


def parse(text: str, rule: Rule = Rule.PATTERN) -> ParseResult:
    """Parse a prefix of the text according to the given grammar rule. See `Parser.parse`."""
    return Parser().parse(text, rule)


def parse_pattern(text: str) -> PatternNode:
    """Parse a single complete pattern. See `Parser.parse_pattern`."""
    return Parser().parse_pattern(text)


def parse_query(text: str) -> tuple[PatternNode, ...]:
    """Parse all patterns of a query document. See `Parser.parse_query`."""
    return Parser().parse_query(text)


def load_query(path: Path | str) -> tuple[PatternNode, ...]:
    """Read a query file (usually with a .scm suffix) and parse all patterns in it.

    Raises:
        QueryDefinitionError: if the file can't be decoded
        QuerySyntaxError: if the query is not valid

    """
    path = Path(path)

    text = read_text_unknown_encoding(path)

    if text is None:
        raise QueryDefinitionError(f"Failed to read query file <{path}>")

    logger.debug(f"Parsing query file <{path}>")

    return parse_query(text)
