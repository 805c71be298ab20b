from typing import Iterable

import pytest
from tsquery.query.lexer import (
    Lexer,
    LookaheadQueue,
    NoMatchError,
    Token,
    TokenType,
    pretty_print_tok_type,
    scan_identifier,
    scan_quoted_literal,
    skip_comments,
    skip_trivia,
    tokenize,
)


class IntLAQueue(LookaheadQueue[int]):
    def __init__(self, init_items: Iterable[int], feed_n: int) -> None:
        super().__init__(init_items)

        self._feed_n = feed_n

    def _next_item(self) -> int | None:
        if self._feed_n == 0:
            return None

        self._feed_n -= 1
        return self.len + 1


def test_lookahead_queue_initialization():
    queue = IntLAQueue([1, 2, 3], 0)
    assert queue.items == (1, 2, 3)
    assert queue.pos == 0
    assert queue.len == 3
    assert not queue.hit_eoq
    assert not queue.feed()


def test_lookahead_queue_fill():
    queue = IntLAQueue([1, 2, 3], 5)

    assert queue.fill(6)
    assert queue.items == (1, 2, 3, 4, 5, 6)
    assert queue.len == 6

    # Asking for more than is available fills everything but reports failure
    assert not queue.fill(10)
    assert queue.items == (1, 2, 3, 4, 5, 6, 7, 8)
    assert not queue.feed()


def test_lookahead_queue_peek_consume():
    queue = IntLAQueue([1, 2, 3], 0)

    assert queue.peek() == queue.la() == 1
    assert queue.peek(3) == 3
    assert queue.peek(4) is None

    assert queue.last() is None
    assert queue.consume() == 1
    assert queue.consume() == 2
    assert queue.last() == 2
    assert queue.lb(2) == 1
    assert queue.lb(3) is None
    assert queue.consume() == 3
    assert queue.consume() is None
    assert queue.hit_eoq


def test_lookahead_queue_match():
    queue = IntLAQueue([1, 2, 3], 0)

    assert queue.match(1) == 1

    with pytest.raises(NoMatchError) as exc_info:
        queue.match(3)

    assert exc_info.value.expected == 3
    assert exc_info.value.actual == 2

    # Nothing is consumed on failure
    assert queue.match(2) == 2


def test_token_equality():
    token1 = Token(TokenType.IDENTIFIER, "test", 0, 4, 1, 0, "test text")
    token2 = Token(TokenType.IDENTIFIER, "test", 5, 9, 1, 5, "test text")
    token3 = Token(TokenType.IDENTIFIER, "test", 0, 4, 1, 0, "test text")
    token4 = Token(TokenType.STRING, "test", 0, 4, 1, 0, "test text")

    assert token1 != token2
    assert token1 == token3
    assert token1 == TokenType.IDENTIFIER
    assert token1 != TokenType.STRING
    assert token1 != token4
    assert token1 != "not a token"


def test_token_adjacency():
    text = "a: b"
    a, colon, b = tokenize(text)

    assert colon.adjacent_to(a)
    assert not b.adjacent_to(colon)
    assert not a.adjacent_to(None)


def test_advance_pos():
    text = "test\n\t\n text"
    lexer = Lexer(text)
    token = Token(TokenType.WS, "\n\t\n ", 4, 8, 1, 4, text)
    lexer._advance_pos(token)
    assert lexer.text_pos == 8
    assert lexer._cur_line == 3
    assert lexer._cur_column == 1


@pytest.mark.parametrize(
    "text,expected",
    [
        ("name", [Token(TokenType.IDENTIFIER, "name", 0, 4, 1, 0, "name")]),
        (
            '"return"',
            # Quotes are stripped from the value but are part of the token extent
            [Token(TokenType.STRING, "return", 0, 8, 1, 0, '"return"')],
        ),
        (
            "(a ; comment\n b)",
            [
                Token(TokenType.LPAREN, "(", 0, 1, 1, 0, "(a ; comment\n b)"),
                Token(TokenType.IDENTIFIER, "a", 1, 2, 1, 1, "(a ; comment\n b)"),
                Token(TokenType.IDENTIFIER, "b", 14, 15, 2, 1, "(a ; comment\n b)"),
                Token(TokenType.RPAREN, ")", 15, 16, 2, 2, "(a ; comment\n b)"),
            ],
        ),
        (
            "foo-bar_1",
            [Token(TokenType.IDENTIFIER, "foo-bar_1", 0, 9, 1, 0, "foo-bar_1")],
        ),
    ],
)
def test_tokenize(text: str, expected: list[Token]) -> None:
    assert list(tokenize(text)) == expected


def test_tokenize_all_token_types() -> None:
    text = '()[]:!@#.*+?_ "x" %'
    assert [t.type for t in tokenize(text)] == [
        TokenType.LPAREN,
        TokenType.RPAREN,
        TokenType.LBRACKET,
        TokenType.RBRACKET,
        TokenType.COLON,
        TokenType.BANG,
        TokenType.AT,
        TokenType.HASH,
        TokenType.DOT,
        TokenType.STAR,
        TokenType.PLUS,
        TokenType.QMARK,
        TokenType.IDENTIFIER,
        TokenType.STRING,
        TokenType.UNKNOWN,
    ]


def test_tokenize_bad_literal() -> None:
    # Only letters and digits are allowed inside quotes
    types = [t.type for t in tokenize('"a-b"')]
    assert types[0] == TokenType.UNKNOWN


def test_pretty_print_covers_all_token_types() -> None:
    for tok_type in TokenType:
        assert pretty_print_tok_type(tok_type)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("abc", ("abc", "")),
        ("abc def", ("abc", " def")),
        ("_a-b_1(", ("_a-b_1", "(")),
        ("A", ("A", "")),
    ],
)
def test_scan_identifier(text: str, expected: tuple[str, str]) -> None:
    assert scan_identifier(text) == expected


@pytest.mark.parametrize("text", ["", "1abc", "-a", " abc", '"a"'])
def test_scan_identifier_no_match(text: str) -> None:
    with pytest.raises(NoMatchError) as exc_info:
        scan_identifier(text)

    assert exc_info.value.actual == (text[:1] or None)


@pytest.mark.parametrize(
    "text,expected",
    [
        ('"abc"', ("abc", "")),
        ('"A1"rest', ("A1", "rest")),
    ],
)
def test_scan_quoted_literal(text: str, expected: tuple[str, str]) -> None:
    assert scan_quoted_literal(text) == expected


@pytest.mark.parametrize("text", ["", '""', '"a b"', '"abc', "abc", '"a_b"'])
def test_scan_quoted_literal_no_match(text: str) -> None:
    with pytest.raises(NoMatchError):
        scan_quoted_literal(text)


@pytest.mark.parametrize(
    "text,expected",
    [
        (";abcdef\n", ""),
        (";\n", ""),
        (";a\n;b\n;c\n", ""),
        (";a\n  (rest)", "(rest)"),
        ("(no comment)", "(no comment)"),
        ("", ""),
    ],
)
def test_skip_comments(text: str, expected: str) -> None:
    assert skip_comments(text) == expected


def test_skip_trivia() -> None:
    text = "a  ; x\n\t; y\n b"
    assert skip_trivia(text, 1) == text.index("b")
    assert skip_trivia(text, 0) == 0
    assert skip_trivia(text, len(text)) == len(text)


def test_scanning_primitives_public_api() -> None:
    import tsquery.query as query

    assert query.scan_identifier is scan_identifier
    assert query.scan_quoted_literal is scan_quoted_literal
    assert query.skip_comments is skip_comments
    assert query.skip_trivia is skip_trivia

    # Scanning a whole query line by hand
    rest = query.skip_comments('; header\n"lit" name')
    literal, rest = query.scan_quoted_literal(rest)
    name, rest = query.scan_identifier(rest[query.skip_trivia(rest) :])

    assert (literal, name, rest) == ("lit", "name", "")
