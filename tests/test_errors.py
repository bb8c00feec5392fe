from __future__ import annotations

import pytest

from nutty.errors import ChecksumMismatchError, CodecError, InvalidCharacterError, NuttyError, unwrap
from nutty.fractional_index import FractionalIndex


def test_unwrap_passes_values_through():
    index = unwrap(FractionalIndex.from_string("O"))
    assert index.value == "O"


def test_unwrap_raises_error_values():
    with pytest.raises(InvalidCharacterError, match="Invalid character"):
        unwrap(FractionalIndex.from_string("a b"))


def test_errors_compare_by_type_and_message():
    assert CodecError("x") == CodecError("x")
    assert CodecError("x") != NuttyError("x")
    assert len({ChecksumMismatchError("a", "b"), ChecksumMismatchError("a", "b")}) == 1
