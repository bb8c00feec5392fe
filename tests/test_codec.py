"""Tests for the base-58 codec."""

from __future__ import annotations

import pytest

from nutty import codec
from nutty.errors import CodecError


def test_encode_known_value():
    # last 41 bits of 01962329-ad5a-7ffd-8313-7faf55d291f6
    assert codec.encode(1852570767862, 1) == "qfWLRgy"


def test_decode_known_value():
    assert codec.decode("qfWLRgy") == 1852570767862


def test_encode_zero_is_all_zero_digits():
    assert codec.encode(0, 1) == "1"
    assert codec.encode(0, 7) == "1111111"


def test_encode_pads_to_min_width():
    assert codec.encode(57, 3) == "11z"
    assert codec.encode(58, 1) == "21"


def test_min_width_never_truncates():
    assert codec.encode(1852570767862, 3) == "qfWLRgy"


def test_encode_negative_is_error():
    result = codec.encode(-1, 1)
    assert isinstance(result, CodecError)
    assert "positive" in result.message


def test_decode_empty_is_error():
    result = codec.decode("")
    assert isinstance(result, CodecError)
    assert "empty" in result.message


@pytest.mark.parametrize("char", ["0", "O", "I", "l", "!", " "])
def test_decode_names_invalid_character(char: str):
    result = codec.decode(f"abc{char}def")
    assert isinstance(result, CodecError)
    assert repr(char) in result.message


def test_leading_zero_digits_decode_to_same_value():
    assert codec.decode("111qfWLRgy") == codec.decode("qfWLRgy")


def test_roundtrip(rng):
    values = [0, 1, 57, 58, 2**41 - 1, 2**64, 2**128 - 1]
    values += [rng.getrandbits(rng.randint(1, 200)) for _ in range(300)]
    for v in values:
        for width in (1, 7, 22, 40):
            encoded = codec.encode(v, width)
            assert isinstance(encoded, str)
            assert len(encoded) >= width
            assert codec.decode(encoded) == v


def test_encoding_preserves_order_at_fixed_width(rng):
    values = sorted(rng.getrandbits(41) for _ in range(200))
    encoded = [codec.encode(v, 7) for v in values]
    assert encoded == sorted(encoded)
