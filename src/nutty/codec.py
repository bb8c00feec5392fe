"""Base-58 codec for arbitrary-precision non-negative integers.

Alphabet is the Bitcoin one: digits and letters minus 0, O, I and l, which are
too easy to confuse when read aloud or copied by hand. Its characters are in
ASCII order, so for strings of equal width lexicographic order is numeric order.
"""

from __future__ import annotations

from nutty.errors import CodecError

ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
BASE = len(ALPHABET)  # 58
ZERO_DIGIT = ALPHABET[0]

_DIGIT_VALUES = {c: i for i, c in enumerate(ALPHABET)}


def encode(value: int, min_width: int = 1) -> str | CodecError:
    """Encode value as big-endian base-58, left-padded with "1" to min_width."""
    if value < 0:
        return CodecError("Invalid input: value must be positive")

    if value == 0:
        return ZERO_DIGIT * min_width

    digits: list[str] = []
    remaining = value
    while remaining > 0:
        remaining, digit = divmod(remaining, BASE)
        digits.append(ALPHABET[digit])

    padding = ZERO_DIGIT * max(0, min_width - len(digits))
    return padding + "".join(reversed(digits))


def decode(text: str) -> int | CodecError:
    """Decode a base-58 string back to its integer value."""
    if not text:
        return CodecError("Invalid input: empty string")

    result = 0
    for char in text:
        digit = _DIGIT_VALUES.get(char)
        if digit is None:
            return CodecError(f"Invalid character {char!r} in base58 string")
        result = result * BASE + digit
    return result


def is_base58(text: str) -> bool:
    return all(c in _DIGIT_VALUES for c in text)
