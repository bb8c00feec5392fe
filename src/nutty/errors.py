"""Typed failure values.

Pure operations never raise on bad input; they return one of these instead:

    result = FractionalIndex.from_string(text)
    if isinstance(result, NuttyError):
        ...

Each error is still an Exception subclass, so edges that prefer exceptions
(the CLI, the store) can ``raise`` it directly or go through unwrap().
"""

from __future__ import annotations

from typing import TypeVar

T = TypeVar("T")


class NuttyError(Exception):
    """Base class for every failure value in the package."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __eq__(self, other: object) -> bool:
        return type(self) is type(other) and self.message == other.message  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash((type(self), self.message))


class CodecError(NuttyError):
    """Base-58 conversion failed: invalid character, empty input, negative or oversized value."""


class MalformedIdentifierError(CodecError):
    """A wire string or short code does not have the expected shape."""


class ChecksumMismatchError(NuttyError):
    """The short code recomputed from the decoded uuid disagrees with the transmitted one."""

    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(f"NID mismatch: expected {expected}, got {actual}")
        self.expected = expected
        self.actual = actual


class InvalidCharacterError(NuttyError):
    """A fractional index contains a character outside [33, 126] (or is empty)."""

    def __init__(self, character: str | None, position: int | None = None) -> None:
        if character is None:
            message = "Invalid index: empty string"
        else:
            message = f"Invalid character: {character!r}"
        super().__init__(message)
        self.character = character
        self.position = position


class DegenerateIntervalError(NuttyError):
    """between() was asked for a point between two equal indices."""

    def __init__(self, index: str) -> None:
        super().__init__(f"Identical indices: {index} === {index}")
        self.index = index


class TagFormatError(NuttyError):
    """A [[...]] wiki-link tag could not be parsed."""


def unwrap(result: T | NuttyError) -> T:
    """Return result unchanged, or raise it if it is a NuttyError."""
    if isinstance(result, NuttyError):
        raise result
    return result
