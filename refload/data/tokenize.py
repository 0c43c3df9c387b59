"""
Line Tokenizer shared by both loaders.
"""

from refload.data.errors import ArgumentShapeError


def split_line(line: str, separator: str) -> list[str]:
    """
    Split a trimmed line into whitespace-trimmed tokens.

    Empty tokens are kept, so ``"a||c"`` gives three tokens and an empty line
    gives one empty token.

    Raises:
        ArgumentShapeError: If ``separator`` is empty.
    """
    if not separator:
        raise ArgumentShapeError("separator must be a non-empty string")
    return [segment.strip() for segment in line.split(separator)]
