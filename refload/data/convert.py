"""
Field Converter: one text token in, one typed value out.

**Conceptual**: This is the single place where text from a reference file
turns into typed values. Both loaders call ``convert_token`` for every field,
leading or tail, so the conversion rules below hold everywhere.

**Rules**:
  - Signed integers: empty token → 0. Otherwise a strict base-10 literal
    (optional sign, ASCII digits only) parsed in the signed 64-bit range.
  - Unsigned integers: empty token → 0. Otherwise ASCII digits only, parsed
    in the unsigned 64-bit range.
  - Integers are parsed at 64 bits and then narrowed to the declared width
    by two's-complement truncation (numpy ``astype``). There is no
    narrowing-overflow check: ``"300"`` as int8 silently becomes 44.
  - Char: empty token → ``b"\\x00"``; otherwise the first byte of the
    encoded token. Remaining bytes are ignored.
  - String: the token, verbatim.
  - Anything else: ConversionError.

The function is pure; it has no state and no I/O.
"""

import re
from typing import Any

import numpy as np

from refload.data.errors import ConversionError
from refload.data.schemas import FieldType, coerce_field_type


INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1
UINT64_MAX = 2 ** 64 - 1

_SIGNED_LITERAL = re.compile(r"[+-]?[0-9]+")
_UNSIGNED_LITERAL = re.compile(r"[0-9]+")

NULL_CHAR = b"\x00"


def convert_token(token: str, field_type: Any, encoding: str = "utf-8") -> Any:
    """
    Convert one (already trimmed) token into a value of ``field_type``.

    Args:
        token: Field text as it appeared between separators, trimmed.
        field_type: A FieldType, or its string tag (e.g. "uint16").
        encoding: Encoding used to get the raw first byte for CHAR fields.

    Returns:
        numpy integer scalar of the declared width, ``bytes`` of length 1,
        or ``str``, depending on ``field_type``.

    Raises:
        ConversionError: If the token does not parse, is outside the 64-bit
                         parse range, or ``field_type`` is not supported.

    Example:
        >>> convert_token("100", FieldType.INT8)
        np.int8(100)
        >>> convert_token("", FieldType.UINT32)
        np.uint32(0)
        >>> convert_token("Yes", "char")
        b'Y'
    """
    field_type = coerce_field_type(field_type)
    if not isinstance(field_type, FieldType):
        raise ConversionError(token, field_type, reason="unsupported field type")

    if field_type.is_signed:
        value = _parse_int(token, field_type, _SIGNED_LITERAL, INT64_MIN, INT64_MAX)
        return np.int64(value).astype(field_type.numpy_dtype)

    if field_type.is_unsigned:
        value = _parse_int(token, field_type, _UNSIGNED_LITERAL, 0, UINT64_MAX)
        return np.uint64(value).astype(field_type.numpy_dtype)

    if field_type is FieldType.CHAR:
        if not token:
            return NULL_CHAR
        return token.encode(encoding)[:1]

    # FieldType.STRING
    return token


def _parse_int(token: str, field_type: FieldType, pattern, lo: int, hi: int) -> int:
    if not token:
        return 0
    if not pattern.fullmatch(token):
        raise ConversionError(token, field_type, reason="invalid syntax")
    value = int(token, 10)
    if value < lo or value > hi:
        raise ConversionError(token, field_type, reason="value out of range")
    return value
