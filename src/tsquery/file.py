import logging
from pathlib import Path

import chardet

logger = logging.getLogger(__name__)


def read_text_unknown_encoding(file: Path) -> str | None:
    """Read a query or grammar file as text.

    UTF-8 is tried first. Anything else is decoded with the encoding guessed by chardet.

    Returns:
        str | None: the text, or None if the encoding couldn't be guessed or the guess was wrong

    """
    raw = file.read_bytes()

    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        pass

    guess = chardet.detect(raw)
    encoding = guess["encoding"]

    if encoding is None:
        logger.error(f"<{file}> is not UTF-8 and its encoding couldn't be detected")
        return None

    logger.debug(
        f"<{file}> is not UTF-8, decoding as {encoding} (confidence {guess['confidence']:.2f})"
    )

    try:
        return raw.decode(encoding)
    except (UnicodeDecodeError, LookupError):
        logger.exception(f"Failed to decode <{file}> as {encoding}")
        return None
