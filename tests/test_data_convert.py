"""
Tests for refload/data/convert.py

Covers the Field Converter rules: empty tokens, strict base-10 parsing, the
64-bit parse range, silent narrowing to the declared width, the single-byte
char rule, and unsupported target types.
"""

import numpy as np
import pytest

from refload.data.convert import convert_token, NULL_CHAR
from refload.data.errors import ConversionError
from refload.data.schemas import FieldType


SIGNED = [FieldType.INT, FieldType.INT8, FieldType.INT16, FieldType.INT32, FieldType.INT64]
UNSIGNED = [FieldType.UINT, FieldType.UINT8, FieldType.UINT16, FieldType.UINT32, FieldType.UINT64]


# ============================================================================
# Integer targets
# ============================================================================

@pytest.mark.parametrize("field_type", SIGNED + UNSIGNED)
def test_in_range_value_converts_exactly(field_type):
    """A small value fits every width and comes back unchanged."""
    value = convert_token("100", field_type)
    assert value == 100
    assert value.dtype == field_type.numpy_dtype


@pytest.mark.parametrize("field_type", SIGNED + UNSIGNED)
def test_empty_token_is_zero(field_type):
    value = convert_token("", field_type)
    assert value == 0
    assert value.dtype == field_type.numpy_dtype


@pytest.mark.parametrize("field_type", SIGNED + UNSIGNED)
def test_non_numeric_token_is_rejected(field_type):
    with pytest.raises(ConversionError) as exc_info:
        convert_token("0123T", field_type)

    assert "0123T" in str(exc_info.value)
    assert field_type.value in str(exc_info.value)
    assert exc_info.value.token == "0123T"
    assert exc_info.value.field_type is field_type


def test_signed_accepts_sign_and_negative_values():
    assert convert_token("-42", FieldType.INT32) == -42
    assert convert_token("+42", FieldType.INT16) == 42


def test_unsigned_rejects_any_sign():
    with pytest.raises(ConversionError):
        convert_token("-1", FieldType.UINT32)
    with pytest.raises(ConversionError):
        convert_token("+1", FieldType.UINT32)


@pytest.mark.parametrize("token", ["1_000", " 12", "1.5", "0x10", "１２"])
def test_only_plain_ascii_base10_is_accepted(token):
    with pytest.raises(ConversionError):
        convert_token(token, FieldType.INT64)


def test_64_bit_limits():
    assert int(convert_token("9223372036854775807", FieldType.INT64)) == 2 ** 63 - 1
    assert int(convert_token("-9223372036854775808", FieldType.INT)) == -(2 ** 63)
    assert int(convert_token("18446744073709551615", FieldType.UINT64)) == 2 ** 64 - 1


@pytest.mark.parametrize("field_type", SIGNED + UNSIGNED)
def test_width_limits_convert_exactly(field_type):
    """The smallest and largest value of every width come back unchanged."""
    info = np.iinfo(field_type.numpy_dtype)
    for limit in (info.min, info.max):
        value = convert_token(str(limit), field_type)
        assert int(value) == limit
        assert value.dtype == field_type.numpy_dtype


@pytest.mark.parametrize("token, field_type, expected", [
    ("-128", FieldType.INT8, -128),
    ("127", FieldType.INT8, 127),
    ("-32768", FieldType.INT16, -32768),
    ("-2147483648", FieldType.INT32, -2147483648),
    ("2147483647", FieldType.INT32, 2147483647),
    ("255", FieldType.UINT8, 255),
    ("65535", FieldType.UINT16, 65535),
    ("4294967295", FieldType.UINT32, 4294967295),
])
def test_named_width_limits(token, field_type, expected):
    assert int(convert_token(token, field_type)) == expected


def test_beyond_64_bit_parse_range_is_rejected():
    with pytest.raises(ConversionError) as exc_info:
        convert_token("9223372036854775808", FieldType.INT64)
    assert "out of range" in str(exc_info.value)

    with pytest.raises(ConversionError):
        convert_token("18446744073709551616", FieldType.UINT)


def test_narrowing_truncates_silently():
    """Values are parsed at 64 bits then cut down to the declared width."""
    assert convert_token("300", FieldType.INT8) == 44
    assert convert_token("65537", FieldType.UINT16) == 1
    assert convert_token("100000000000000000", FieldType.INT32) == np.int64(100000000000000000).astype(np.int32)
    assert convert_token("128", FieldType.INT8) == -128


# ============================================================================
# Char and string targets
# ============================================================================

def test_char_takes_first_byte_only():
    assert convert_token("Yes", FieldType.CHAR) == b"Y"


def test_char_empty_token_is_null_character():
    assert convert_token("", FieldType.CHAR) == NULL_CHAR == b"\x00"


def test_char_uses_raw_encoded_byte():
    # 'é' is two bytes in UTF-8; only the first one is kept
    assert convert_token("é", FieldType.CHAR) == b"\xc3"
    assert convert_token("é", FieldType.CHAR, encoding="latin-1") == b"\xe9"


def test_string_is_verbatim():
    assert convert_token("heng", FieldType.STRING) == "heng"
    assert convert_token("", FieldType.STRING) == ""


def test_string_tags_are_accepted():
    assert convert_token("7", "uint8") == 7
    assert convert_token("Z", "CHAR") == b"Z"


# ============================================================================
# Unsupported targets
# ============================================================================

def test_float_target_is_unsupported():
    with pytest.raises(ConversionError) as exc_info:
        convert_token("3.56", float)

    message = str(exc_info.value)
    assert "3.56" in message
    assert "float" in message


def test_unknown_tag_is_unsupported():
    with pytest.raises(ConversionError) as exc_info:
        convert_token("3.56", "float32")
    assert "float32" in str(exc_info.value)


def test_at_line_adds_line_and_field():
    err = ConversionError("abc", FieldType.UINT32)
    tagged = err.at_line(7, "qty")

    assert tagged.line == 7
    assert tagged.field == "qty"
    assert str(tagged).startswith("[line:7]")
    assert "qty" in str(tagged)
    assert err.line is None
