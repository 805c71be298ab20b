def point_at_index(input_string: str, index: int, length: int = 1) -> str:
    """Underline a part of a (possibly multiline) string.

    A marker line is inserted right after the line holding `index`. Up to three dashes lead to
    the first marked character, then `length` carets follow (clipped at the end of the line).
    The marker line is padded with spaces to the width of the marked line.

    >>> print(point_at_index("(foo bar)", 5, 3))
    (foo bar)
      ---^^^

    Raises:
        ValueError: if the index is out of range

    """
    if not input_string:
        return input_string

    if index >= len(input_string):
        raise ValueError("Index is out of range")

    line_start = input_string.rfind("\n", 0, index) + 1

    line_end = input_string.find("\n", index)
    if line_end == -1:
        line_end = len(input_string)

    line = input_string[line_start:line_end]
    col = index - line_start

    lead = min(3, col)
    carets = min(length, max(0, len(line) - col))
    marker = (" " * (col - lead) + "-" * lead + "^" * carets).ljust(len(line))

    return f"{input_string[:line_end]}\n{marker}{input_string[line_end:]}"
