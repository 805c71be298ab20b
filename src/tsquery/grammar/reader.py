from __future__ import annotations

import logging
from pathlib import Path

import orjson
from mashumaro.exceptions import InvalidFieldValue, MissingField

from ..error import MalformedGrammarError
from ..file import read_text_unknown_encoding
from ..serialize import unwrap_invalid_field_exception
from .model import Grammar

logger = logging.getLogger(__name__)


def parse_grammar(text: str | bytes) -> Grammar:
    """Deserialize a grammar description document.

    Args:
        text (str | bytes): JSON text of the document

    Returns:
        Grammar: the grammar record

    Raises:
        MalformedGrammarError: if the text is not valid JSON or doesn't match the schema

    """
    try:
        data = orjson.loads(text)
    except orjson.JSONDecodeError as e:
        raise MalformedGrammarError(f"not a valid JSON document ({e})") from e

    if not isinstance(data, dict):
        raise MalformedGrammarError(f"expected an object, got {type(data).__name__}")

    try:
        return Grammar.from_dict(data)
    except MissingField as e:
        raise MalformedGrammarError(f'required field "{e.field_name}" is missing') from e
    except InvalidFieldValue as e:
        path, exc = unwrap_invalid_field_exception(e)
        raise MalformedGrammarError(f"invalid value ({exc!s})", path) from e
    except (ValueError, TypeError) as e:
        raise MalformedGrammarError(str(e)) from e


def load_grammar(path: Path | str) -> Grammar:
    """Read and deserialize a grammar description file (usually `grammar.json`).

    Raises:
        MalformedGrammarError: if the file can't be decoded or is not a valid grammar document

    """
    path = Path(path)

    logger.debug(f"Loading grammar from <{path}>")

    text = read_text_unknown_encoding(path)

    if text is None:
        raise MalformedGrammarError(f"failed to decode file <{path}>")

    grammar = parse_grammar(text)

    logger.debug(
        f"Loaded grammar <{grammar.name}> with {len(grammar.rules)} rules "
        f"and {len(grammar.supertypes)} supertypes"
    )

    return grammar
