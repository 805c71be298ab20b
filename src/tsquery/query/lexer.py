"""Lexical layer of the query language.

The module provides two views over the same token definitions:

* pure scanning primitives (`scan_identifier`, `scan_quoted_literal`,
  `skip_comments`, `skip_trivia`) that take the remaining input and return the
  matched value together with the rest of the input;
* a lazy `Lexer` used by the parser, which yields `Token`s on demand and never
  emits whitespace or comments.

The scanning primitives are public API for callers working on raw query text,
e.g. editors checking whether a string is a valid node name. They are exported
from `tsquery.query`. The parser itself only needs `skip_trivia`, to compute the
remainder of a partial parse.

Whitespace is insignificant in most places of the grammar, but not everywhere
(e.g. no space is allowed between a field name and the colon). Since tokens
remember their offsets, the parser checks these places with
`Token.adjacent_to` instead of the lexer emitting whitespace tokens.

"""
from __future__ import annotations

import re
from enum import Enum
from typing import Any, Generic, Iterable, NamedTuple, Sequence, TypeVar, cast

_IT = TypeVar("_IT")


class NoMatchError(Exception, Generic[_IT]):
    def __init__(self, expected: Any, actual: _IT | None) -> None:
        self.expected = expected
        self.actual = actual

        super().__init__(f"Expected {expected}, got {actual}")


class LookaheadQueue(Generic[_IT]):
    """A buffer over a lazily produced sequence of items.

    Items are pulled from `_next_item` only when a lookahead needs them. Consumed
    items stay in the buffer, which lets the parser look behind (e.g. to check
    that two tokens are adjacent) and report the last items read in errors.

    """

    def __init__(self, init_items: Iterable[_IT]) -> None:
        self._items = list(init_items)
        self._pos = 0
        self._exhausted = False

    def _next_item(self) -> _IT | None:
        """Produce the next item, or None once there are no more. Subclasses override this."""
        return None

    @property
    def pos(self) -> int:
        """Number of consumed items."""
        return self._pos

    @property
    def len(self) -> int:
        """Number of buffered items, consumed or not."""
        return len(self._items)

    @property
    def items(self) -> tuple[_IT, ...]:
        return tuple(self._items)

    @property
    def hit_eoq(self) -> bool:
        """True if the source is exhausted and every buffered item was consumed."""
        return self._exhausted and self._pos >= len(self._items)

    def feed(self) -> bool:
        """Pull one more item from the source. Returns False if the source is exhausted."""
        if self._exhausted:
            return False

        item = self._next_item()
        if item is None:
            self._exhausted = True
            return False

        self._items.append(item)
        return True

    def fill(self, count: int) -> bool:
        """Make sure at least `count` unconsumed items are buffered. Returns False if the source
        ran out before that."""
        while len(self._items) - self._pos < count:
            if not self.feed():
                return False

        return True

    def peek(self, la: int = 1) -> _IT | None:
        """Return the `la`-th unconsumed item without consuming it, or None past the end."""
        return self._items[self._pos + la - 1] if self.fill(la) else None

    la = peek

    def lb(self, lb: int = 1) -> _IT | None:
        """Return the `lb`-th consumed item counting back from the last one, or None."""
        return self._items[self._pos - lb] if 0 < lb <= self._pos else None

    def last(self) -> _IT | None:
        """The last consumed item."""
        return self.lb(1)

    def consume(self) -> _IT | None:
        if not self.fill(1):
            return None

        self._pos += 1
        return self._items[self._pos - 1]

    def match(self, value: Any) -> _IT:
        """Consume the next item if it equals `value`.

        Raises:
            NoMatchError: if it doesn't (nothing is consumed then)

        """
        item = self.peek()
        if item is None or item != value:
            raise NoMatchError(value, item)

        return cast(_IT, self.consume())


class TokenType(Enum):
    """Token types. Member values are the regular expressions matching the token.

    Order matters, the lexer tries them top to bottom.

    """

    @property
    def re_str(self) -> str:
        return cast(str, self.value)

    _EOF = r"$"
    WS = r"\s+"
    COMMENT = r";[^\r\n]*"
    IDENTIFIER = r"[A-Za-z_][A-Za-z0-9_-]*"
    STRING = r'"[A-Za-z0-9]+"'
    LPAREN = r"\("
    RPAREN = r"\)"
    LBRACKET = r"\["
    RBRACKET = r"\]"
    COLON = r":"
    BANG = r"!"
    AT = r"@"
    HASH = r"#"
    DOT = r"\."
    STAR = r"\*"
    PLUS = r"\+"
    QMARK = r"\?"
    # Must be the last one, catches everything the query language doesn't know
    UNKNOWN = r"."


def pretty_print_tok_type(tok_type: TokenType) -> str:
    """Outputs a human readable version of the token type."""
    match tok_type:
        case TokenType._EOF:
            return "end of text"
        case TokenType.WS:
            return "whitespace"
        case TokenType.COMMENT:
            return "a comment"
        case TokenType.IDENTIFIER:
            return "a name (identifier)"
        case TokenType.STRING:
            return "a quoted literal"
        case TokenType.LPAREN:
            return "'(' (group start)"
        case TokenType.RPAREN:
            return "')' (group end)"
        case TokenType.LBRACKET:
            return "'[' (alternation start)"
        case TokenType.RBRACKET:
            return "']' (alternation end)"
        case TokenType.COLON:
            return "':' (field separator)"
        case TokenType.BANG:
            return "'!' (negated field / directive end)"
        case TokenType.AT:
            return "'@' (capture indicator)"
        case TokenType.HASH:
            return "'#' (directive start)"
        case TokenType.DOT:
            return "'.' (anchor)"
        case TokenType.STAR:
            return "'*' (zero or more)"
        case TokenType.PLUS:
            return "'+' (one or more)"
        case TokenType.QMARK:
            return "'?' (optional)"
        case TokenType.UNKNOWN:
            return "an unrecognized character"

    raise AssertionError(f"Unhandled token type: {tok_type!r}")


# _EOF is only used in error messages, it never matches
_LEXER_RE = re.compile(
    "|".join(f"(?P<{t.name}>{t.re_str})" for t in TokenType if t is not TokenType._EOF)
)
_IDENTIFIER_RE = re.compile(TokenType.IDENTIFIER.re_str)
_QUOTED_LITERAL_RE = re.compile(TokenType.STRING.re_str)
_COMMENT_RUN_RE = re.compile(rf"(?:{TokenType.COMMENT.re_str}\s*)*")
_TRIVIA_RE = re.compile(rf"(?:{TokenType.WS.re_str}|{TokenType.COMMENT.re_str})*")

_SKIPPED_TOK_TYPES = (TokenType.WS, TokenType.COMMENT)


# -----------------------------------------------------------------------------
# ---------------------------- Scanning primitives ----------------------------


def scan_identifier(text: str) -> tuple[str, str]:
    """Scan an identifier at the start of `text`.

    An identifier starts with a letter or an underscore and continues with
    letters, digits, underscores or hyphens.

    Returns:
        tuple[str, str]: the identifier and the rest of the text

    Raises:
        NoMatchError: if `text` doesn't start with an identifier

    """
    m = _IDENTIFIER_RE.match(text)
    if m is None:
        raise NoMatchError("an identifier", text[:1] or None)

    return m.group(), text[m.end() :]


def scan_quoted_literal(text: str) -> tuple[str, str]:
    """Scan a double quoted run of letters and digits at the start of `text`.

    There is no escaping, the literal may not contain anything but letters and digits.

    Returns:
        tuple[str, str]: the literal without quotes and the rest of the text

    Raises:
        NoMatchError: if `text` doesn't start with a quoted literal

    """
    m = _QUOTED_LITERAL_RE.match(text)
    if m is None:
        raise NoMatchError("a quoted literal", text[:1] or None)

    return m.group()[1:-1], text[m.end() :]


def skip_comments(text: str) -> str:
    """Skip a run of `;` comment lines, each with its trailing whitespace.

    Never fails, returns `text` unchanged if it doesn't start with a comment.

    """
    return text[_COMMENT_RUN_RE.match(text).end() :]  # type: ignore[union-attr]


def skip_trivia(text: str, pos: int = 0) -> int:
    """Return the position of the first character at or after `pos` that is neither whitespace
    nor part of a comment."""
    return _TRIVIA_RE.match(text, pos).end()  # type: ignore[union-attr]


# -----------------------------------------------------------------------------
# ---------------------------------- Lexer ------------------------------------


class Token(NamedTuple):
    type: TokenType
    value: str
    start: int
    stop: int
    line: int
    column: int
    source: str

    def __repr__(self) -> str:
        return (
            f"Token({self.type.name}, {self.value!r}, {self.start}:{self.stop}, "
            f"line {self.line}, column {self.column})"
        )

    def __eq__(self, value: object) -> bool:
        # A token equals its own type, so the parser can match and peek by type
        if isinstance(value, TokenType):
            return self.type is value

        if isinstance(value, Token):
            return tuple.__eq__(self, value)

        return NotImplemented

    def __ne__(self, value: object) -> bool:
        eq = self.__eq__(value)
        return eq if eq is NotImplemented else not eq

    def adjacent_to(self, previous: Token | None) -> bool:
        """Check that this token immediately follows `previous`, without any whitespace or
        comments in between."""
        return previous is not None and previous.stop == self.start


class Lexer(LookaheadQueue[Token]):
    def __init__(self, text: str) -> None:
        self._text = text
        self._text_pos = 0
        self._cur_line = 1
        self._cur_column = 0

        super().__init__([])

    @property
    def text(self) -> str:
        """Get the text being lexed."""
        return self._text

    @property
    def text_pos(self) -> int:
        """Get the current text position, i.e. the end of the last lexed token."""
        return self._text_pos

    def _advance_pos(self, token: Token) -> None:
        """Move the text position past `token`, keeping track of the line and column."""
        newlines = token.value.count("\n")

        if newlines:
            self._cur_line += newlines
            self._cur_column = len(token.value) - token.value.rfind("\n") - 1
        else:
            self._cur_column += len(token.value)

        self._text_pos = token.stop

    def _next_item(self) -> Token | None:
        while self._text_pos < len(self._text):
            m = _LEXER_RE.match(self._text, self._text_pos)

            # UNKNOWN matches any character but a newline, and newlines are WS
            if m is None or m.lastgroup is None:
                raise RuntimeError("Internal error: no token matched")

            type_ = TokenType[m.lastgroup]

            token = Token(
                type=type_,
                value=m.group(),
                start=m.start(),
                stop=m.end(),
                line=self._cur_line,
                column=self._cur_column,
                source=self._text,
            )

            self._advance_pos(token)

            if type_ in _SKIPPED_TOK_TYPES:
                continue

            if type_ == TokenType.STRING:
                # Strip quotes, start & stop still cover them
                token = token._replace(value=token.value[1:-1])

            return token

        # Reached end of text
        return None


def tokenize(text: str) -> Sequence[Token]:
    """Lex the whole text at once. Mostly useful for debugging."""
    lexer = Lexer(text)

    while lexer.feed():
        pass

    return lexer.items
