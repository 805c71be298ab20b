from dataclasses import dataclass

import pytest
from tsquery.query.ast import CaptureArg, Directive, Name, PatternNode, StringArg, Wildcard
from tsquery.query.error import QuerySyntaxError
from tsquery.query.parser import Rule, parse, parse_pattern, parse_query
from tsquery.query.render import QueryRenderer


@pytest.mark.parametrize(
    "text,expected",
    [
        ("a", "a"),
        ("_", "_"),
        ('"x"', '"x"'),
        (".", "."),
        ("!f", "!f"),
        ("()", "()"),
        ("[]", "[]"),
        ("(a  ; comment\n  b)", "(a b)"),
        ("left:a", "left: a"),
        ("a@x", "a @x"),
        ("(a ( #set! ))", "(a (#set!))"),
        ("(a (#eq!   @a\n @b))", "(a (#eq! @a @b))"),
        ("[ a b ]@x", "[a b] @x"),
        ("(a)+ @x", "(a)+ @x"),
        ("f: a @x @y", "f: a @x @y"),
        (
            "(binary_expression (number_literal) (number_literal))",
            "(binary_expression (number_literal) (number_literal))",
        ),
    ],
)
def test_render(text: str, expected: str) -> None:
    assert parse_pattern(text).to_query() == expected


def test_render_roundtrip(resources) -> None:
    text = (resources / "node_with_children.scm").read_text()

    for pattern in parse_query(text):
        assert parse_pattern(pattern.to_query()) == pattern


def test_render_hand_built() -> None:
    directive = Directive("eq", (CaptureArg("a"), StringArg("b")))
    assert directive.to_query() == '(#eq! @a "b")'
    assert QueryRenderer().visit(Name("n")) == "n"


def test_render_string_arg_is_not_parseable() -> None:
    # Directive arguments can only be captures in query text
    directive = Directive("eq", (CaptureArg("a"), StringArg("b")))

    with pytest.raises(QuerySyntaxError) as exc_info:
        parse_pattern(f"(a {directive.to_query()})")

    assert exc_info.value.actual == "a quoted literal"


def test_render_underscore_name() -> None:
    # `_` is only read as a name by the NAME rule, everywhere else it is the wildcard
    name = parse("_", Rule.NAME).node
    assert name == Name("_")

    text = name.to_query()
    assert text == "_"
    assert parse_pattern(text) == Wildcard()
    assert parse(text, Rule.NAME).node == name


@dataclass(frozen=True)
class RenderTestUnknownNode(PatternNode):
    pass


def test_render_unknown_node() -> None:
    with pytest.raises(TypeError, match="RenderTestUnknownNode"):
        RenderTestUnknownNode().to_query()
