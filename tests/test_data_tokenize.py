"""
Tests for refload/data/tokenize.py
"""

import pytest

from refload.data.errors import ArgumentShapeError
from refload.data.tokenize import split_line


def test_split_keeps_empty_tokens():
    assert split_line("a||c", "|") == ["a", "", "c"]
    assert split_line("a|b|", "|") == ["a", "b", ""]


def test_split_trims_each_token():
    assert split_line("a |  b\t| c", "|") == ["a", "b", "c"]


def test_empty_line_is_one_empty_token():
    assert split_line("", "|") == [""]


def test_multi_character_separator():
    assert split_line("1::2::3", "::") == ["1", "2", "3"]


def test_empty_separator_rejected():
    with pytest.raises(ArgumentShapeError):
        split_line("a|b", "")
