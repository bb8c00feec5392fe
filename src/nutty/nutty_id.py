"""Nutty IDs: a UUIDv7 plus a 7-character base-58 short code.

The short code (nid) is the base-58 encoding of the last 41 bits of the uuid.
Why 41 bits? Because 2^42 > 58^7 > 2^41, so every 41-bit value fits in seven
characters and the largest one, "zmM9z4E", bounds the valid codes.

Wire form, used by the JSON transport and the store:

    <base58(uuid as 128-bit int, width 22)>:<nid>

Decoding recomputes the nid from the uuid half and rejects the string when the
two disagree, which catches hand-edited or truncated identifiers.

A bare nid can be validated but not turned back into a uuid; that takes a
lookup in the block tree (see BlockStore.resolve).
"""

from __future__ import annotations

import re
import secrets
import time
import uuid as _uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta, tzinfo
from typing import TYPE_CHECKING

from nutty import codec
from nutty.errors import ChecksumMismatchError, CodecError, MalformedIdentifierError, NuttyError

if TYPE_CHECKING:
    from collections.abc import Callable

NID_LENGTH = 7
UUID_WIDTH = 22
NID_BITS = 41
MAX_NID = "zmM9z4E"  # base58(2**41 - 1, width 7)

_NID_MASK = (1 << NID_BITS) - 1
_TIMESTAMP_BITS = 48
_UUID_BITS = 128
_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

WIRE_PATTERN = re.compile(r"[1-9A-HJ-NP-Za-km-z]{22}:[1-9A-HJ-NP-Za-km-z]{7}")


def _system_clock_ms() -> int:
    return time.time_ns() // 1_000_000


def uuid7(clock: Callable[[], int] | None = None) -> _uuid.UUID:
    """Generate a UUIDv7 for the current time.

    clock returns unix epoch milliseconds; pass one in for deterministic tests.
    """
    ms = (clock or _system_clock_ms)() & ((1 << _TIMESTAMP_BITS) - 1)
    rand_a = secrets.randbits(12)
    rand_b = secrets.randbits(62)
    value = (ms << 80) | (0x7 << 76) | (rand_a << 64) | (0b10 << 62) | rand_b
    return _uuid.UUID(int=value)


def last_41_bits(uuid: _uuid.UUID) -> int:
    return uuid.int & _NID_MASK


def timestamp_ms(uuid: _uuid.UUID) -> int:
    """Leading 48 bits of the uuid: unix epoch milliseconds for a UUIDv7."""
    return uuid.int >> (_UUID_BITS - _TIMESTAMP_BITS)


def derive_nid(uuid: _uuid.UUID) -> str | CodecError:
    return codec.encode(last_41_bits(uuid), NID_LENGTH)


def is_valid_nid(text: str) -> bool:
    """Exactly seven base-58 characters, no larger than the max 41-bit value."""
    if len(text) != NID_LENGTH:
        return False
    if not codec.is_base58(text):
        return False
    return text <= MAX_NID


@dataclass(frozen=True)
class NuttyId:
    """A uuid together with the short code and timestamp derived from it.

    Build with now(), from_uuid() or from_wire(); equality and hashing only
    look at the uuid. The nid is always recomputed from the uuid.
    """

    uuid: _uuid.UUID
    tz: tzinfo | None = field(default=None, compare=False, repr=False, kw_only=True)

    @property
    def nid(self) -> str:
        nid = derive_nid(self.uuid)
        # last_41_bits is never negative
        assert isinstance(nid, str)
        return nid

    @classmethod
    def now(cls, clock: Callable[[], int] | None = None, tz: tzinfo | None = None) -> NuttyId:
        """Create a NuttyId from a freshly generated UUIDv7."""
        result = cls.from_uuid(uuid7(clock), tz=tz)
        if isinstance(result, NuttyError):
            raise AssertionError(f"NuttyId.from_uuid failed with a valid uuid: {result.message}")
        return result

    @classmethod
    def from_uuid(cls, uuid: _uuid.UUID, tz: tzinfo | None = None) -> NuttyId | CodecError:
        """Derive the nid from an existing uuid.

        tz is the zone the timestamp is shown in; None means the local zone of
        whoever reads it.
        """
        nid = derive_nid(uuid)
        if isinstance(nid, CodecError):
            return nid
        return cls(uuid=uuid, tz=tz)

    @classmethod
    def from_wire(cls, text: str, tz: tzinfo | None = None) -> NuttyId | CodecError | ChecksumMismatchError:
        """Parse "<base58 uuid>:<nid>" and verify the nid against the uuid."""
        if not WIRE_PATTERN.fullmatch(text):
            return MalformedIdentifierError(f"Invalid Nutty ID format: {text!r}")

        uuid_part, nid = text.split(":")
        value = codec.decode(uuid_part)
        if isinstance(value, CodecError):
            return value
        if value >> _UUID_BITS:
            return CodecError(f"Invalid UUID encoding: {uuid_part!r} exceeds 128 bits")

        uuid = _uuid.UUID(int=value)
        expected = derive_nid(uuid)
        if isinstance(expected, CodecError):
            return expected
        if expected != nid:
            return ChecksumMismatchError(expected, nid)
        return cls(uuid=uuid, tz=tz)

    def to_wire(self) -> str:
        encoded = codec.encode(self.uuid.int, UUID_WIDTH)
        # uuid.int is never negative
        assert isinstance(encoded, str)
        return f"{encoded}:{self.nid}"

    @property
    def timestamp_ms(self) -> int:
        return timestamp_ms(self.uuid)

    @property
    def timestamp(self) -> datetime:
        """Creation time as an aware datetime in self.tz (local zone if unset).

        Raises OverflowError for uuids whose leading bits fall past year 9999,
        which no real UUIDv7 does.
        """
        instant = _EPOCH + timedelta(milliseconds=self.timestamp_ms)
        return instant.astimezone(self.tz)

    def dissociate(self) -> DissociatedNuttyId:
        return DissociatedNuttyId(self.nid)

    def __str__(self) -> str:
        return self.to_wire()


@dataclass(frozen=True, order=True)
class DissociatedNuttyId:
    """A short code with no uuid to call its own.

    Any nid can be derived from a uuid, but not the other way round; finding
    the ancestral uuid takes a query against the content block tree.
    """

    nid: str

    def __post_init__(self) -> None:
        if not is_valid_nid(self.nid):
            msg = f"Invalid Nutty ID format: {self.nid!r}"
            raise ValueError(msg)

    @classmethod
    def parse(cls, text: str) -> DissociatedNuttyId | MalformedIdentifierError:
        if not is_valid_nid(text):
            return MalformedIdentifierError(f"Invalid Nutty ID format: {text!r}")
        return cls(text)

    def __str__(self) -> str:
        return self.nid


AnyNuttyId = NuttyId | DissociatedNuttyId


def parse_any(text: str, tz: tzinfo | None = None) -> AnyNuttyId | CodecError | ChecksumMismatchError:
    """Parse either a bare nid or a full wire string."""
    if len(text) == NID_LENGTH:
        return DissociatedNuttyId.parse(text)
    return NuttyId.from_wire(text, tz=tz)
