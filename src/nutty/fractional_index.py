"""Fractional indices for ordering sibling content blocks.

An index is a string of visible ASCII characters, code points [33, 126], read
as the digits of a base-94 fraction: "!" is 0, "~" is 93. Shorter indices
compare as if right-padded with "!", so "a" and "a!" are the same position.

A new index between any two others is their average, which always exists
because the result may grow one digit longer than its inputs. Only the
moved block gets a new index; its siblings are never renumbered.
"""

from __future__ import annotations

from dataclasses import dataclass

from nutty.errors import DegenerateIntervalError, InvalidCharacterError

MIN_CHAR = 33   # "!"
MAX_CHAR = 126  # "~"
BASE = MAX_CHAR - MIN_CHAR + 1  # 94

_PAD = chr(MIN_CHAR)


def _first_invalid(text: str) -> tuple[int, str] | None:
    for pos, c in enumerate(text):
        if not MIN_CHAR <= ord(c) <= MAX_CHAR:
            return pos, c
    return None


def _padded(a: str, b: str) -> tuple[str, str]:
    width = max(len(a), len(b))
    return a.ljust(width, _PAD), b.ljust(width, _PAD)


@dataclass(frozen=True, eq=False)
class FractionalIndex:
    """A validated base-94 order key.

    Construct through from_string(), start(), end() or between().
    """

    value: str

    def __post_init__(self) -> None:
        # direct construction skips from_string; keep the invariant anyway
        if not self.value or _first_invalid(self.value) is not None:
            msg = f"Invalid fractional index {self.value!r}: use FractionalIndex.from_string"
            raise ValueError(msg)

    @classmethod
    def from_string(cls, text: str) -> FractionalIndex | InvalidCharacterError:
        if not text:
            return InvalidCharacterError(None)
        bad = _first_invalid(text)
        if bad is not None:
            pos, char = bad
            return InvalidCharacterError(char, pos)
        return cls(text)

    @classmethod
    def start(cls) -> FractionalIndex:
        return cls(chr(MIN_CHAR))

    @classmethod
    def end(cls) -> FractionalIndex:
        return cls(chr(MAX_CHAR))

    @classmethod
    def between(cls, before: FractionalIndex, after: FractionalIndex) -> FractionalIndex | DegenerateIntervalError:
        """Return the index halfway between before and after.

        Argument order does not matter. Both are padded to the same width,
        summed digit by digit, then halved from the most significant digit
        down; an odd remainder is worth BASE in the next digit, and one left
        over at the end becomes an extra trailing digit.
        """
        if before.equals(after):
            return DegenerateIntervalError(before.value)

        lhs, rhs = _padded(before.value, after.value)

        # Sum, least significant digit first.
        sums: list[int] = []
        carry = 0
        for b, a in zip(reversed(lhs), reversed(rhs)):
            total = (ord(b) - MIN_CHAR) + (ord(a) - MIN_CHAR) + carry
            carry, digit = divmod(total, BASE)
            sums.append(digit)
        sums.reverse()

        # Halve, most significant digit first. The leading carry is at most 1
        # and every partial quotient stays within [0, BASE).
        remainder = carry
        digits: list[str] = []
        for digit in sums:
            current = remainder * BASE + digit
            half, remainder = divmod(current, 2)
            digits.append(chr(half + MIN_CHAR))

        if remainder:
            digits.append(chr(BASE // 2 + MIN_CHAR))

        return cls("".join(digits))

    def compare(self, other: FractionalIndex) -> int:
        lhs, rhs = _padded(self.value, other.value)
        if lhs < rhs:
            return -1
        if lhs > rhs:
            return 1
        return 0

    def less_than(self, other: FractionalIndex) -> bool:
        return self.compare(other) < 0

    def greater_than(self, other: FractionalIndex) -> bool:
        return self.compare(other) > 0

    def equals(self, other: FractionalIndex) -> bool:
        return self.compare(other) == 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FractionalIndex):
            return NotImplemented
        return self.equals(other)

    def __hash__(self) -> int:
        # trailing padding does not change the position
        return hash(self.value.rstrip(_PAD))

    def __lt__(self, other: FractionalIndex) -> bool:
        return self.compare(other) < 0

    def __le__(self, other: FractionalIndex) -> bool:
        return self.compare(other) <= 0

    def __gt__(self, other: FractionalIndex) -> bool:
        return self.compare(other) > 0

    def __ge__(self, other: FractionalIndex) -> bool:
        return self.compare(other) >= 0

    def __str__(self) -> str:
        return self.value
