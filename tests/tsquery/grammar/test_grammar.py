from pathlib import Path

import pytest
from tsquery.error import MalformedGrammarError
from tsquery.grammar import (
    Grammar,
    PatternElement,
    StringElement,
    SymbolElement,
    load_grammar,
    parse_grammar,
)

BASIC = """{
    "name": "abc",
    %s
    "extras": [],
    "conflicts": [],
    "precedences": [],
    "externals": [],
    "inline": [],
    "supertypes": []
}"""


def _doc(extra: str = "") -> str:
    return BASIC % extra


def test_read_basic_structure() -> None:
    grammar = parse_grammar(_doc())

    assert grammar.name == "abc"
    assert grammar.word is None
    assert grammar.extras == []
    assert grammar.conflicts == []
    assert grammar.precedences == []
    assert grammar.inline == []
    assert grammar.supertypes == []
    assert grammar.rules == {}


def test_read_bytes() -> None:
    assert parse_grammar(_doc().encode("utf-8")).name == "abc"


def test_read_word_field() -> None:
    assert parse_grammar(_doc('"word": "def",')).word == "def"


def test_read_inlines() -> None:
    text = _doc().replace('"inline": []', '"inline": ["a", "b", "c"]')
    assert parse_grammar(text).inline == ["a", "b", "c"]


def test_read_supertypes() -> None:
    text = _doc().replace('"supertypes": []', '"supertypes": ["a", "b", "c"]')
    assert parse_grammar(text).supertypes == ["a", "b", "c"]


def test_read_conflicts() -> None:
    text = _doc().replace('"conflicts": []', '"conflicts": [["a", "b"], ["a", "b", "c"]]')
    assert parse_grammar(text).conflicts == [["a", "b"], ["a", "b", "c"]]


def test_read_precedences() -> None:
    text = _doc().replace(
        '"precedences": []',
        """"precedences": [
            [{"type": "STRING", "value": "a"}],
            [{"type": "STRING", "value": "b"}, {"type": "SYMBOL", "name": "c"}]
        ]""",
    )

    assert parse_grammar(text).precedences == [
        [StringElement("a")],
        [StringElement("b"), SymbolElement("c")],
    ]


def test_read_extras() -> None:
    text = _doc().replace(
        '"extras": []',
        '"extras": [{"type": "PATTERN", "value": "\\\\s"}, {"type": "SYMBOL", "name": "comment"}]',
    )

    assert parse_grammar(text).extras == [PatternElement("\\s"), SymbolElement("comment")]


def test_unknown_keys_are_ignored() -> None:
    grammar = parse_grammar(_doc('"something_new": {"a": 1},'))
    assert grammar.name == "abc"


@pytest.mark.parametrize(
    "text,reason_part",
    [
        ("", "not a valid JSON document"),
        ("{", "not a valid JSON document"),
        ("[]", "expected an object, got list"),
        ('"abc"', "expected an object, got str"),
        (_doc().replace('"name": "abc",', ""), 'required field "name" is missing'),
        (_doc().replace('"extras": [],', ""), 'required field "extras" is missing'),
        (_doc().replace('"supertypes": []', '"foo": []'), 'required field "supertypes" is missing'),
    ],
)
def test_malformed_grammar(text: str, reason_part: str) -> None:
    with pytest.raises(MalformedGrammarError) as exc_info:
        parse_grammar(text)

    assert reason_part in exc_info.value.reason
    assert exc_info.value.message.startswith("Malformed grammar document")


def test_malformed_grammar_field_path() -> None:
    with pytest.raises(MalformedGrammarError) as exc_info:
        parse_grammar(_doc().replace('"inline": []', '"inline": 5'))

    assert exc_info.value.field_path == "inline"
    assert exc_info.value.message.startswith("Malformed grammar document, field <inline>: ")


def test_malformed_grammar_unknown_element_type() -> None:
    text = _doc().replace('"extras": []', '"extras": [{"type": "NOPE", "value": "x"}]')

    with pytest.raises(MalformedGrammarError):
        parse_grammar(text)


@pytest.fixture
def calc_grammar(resources: Path) -> Grammar:
    return load_grammar(resources / "grammar.json")


def test_load_grammar(calc_grammar: Grammar) -> None:
    assert calc_grammar.name == "calc"
    assert calc_grammar.word == "identifier"
    assert calc_grammar.inline == ["_statement"]
    assert calc_grammar.supertypes == ["_expression"]
    assert calc_grammar.conflicts == [["binary_expression", "_expression"]]
    assert calc_grammar.extras == [PatternElement("\\s"), SymbolElement("comment")]
    assert calc_grammar.precedences == [
        [StringElement("plus"), SymbolElement("binary_expression")],
    ]


def test_load_grammar_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_grammar(tmp_path / "grammar.json")


def test_grammar_metadata(calc_grammar: Grammar) -> None:
    assert calc_grammar.rule_names() == {
        "program",
        "_statement",
        "return_statement",
        "expression_statement",
        "_expression",
        "binary_expression",
        "number_literal",
        "identifier",
    }
    assert calc_grammar.node_names() == {
        "program",
        "return_statement",
        "expression_statement",
        "_expression",
        "binary_expression",
        "number_literal",
        "identifier",
        "constant",
    }
    assert calc_grammar.literal_names() == {"return", "semi", "plus", "add"}
    assert calc_grammar.field_names() == {"value", "left", "operator", "right"}
