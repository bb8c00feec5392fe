"""Short checksum-verified ids and fractional order keys for a content-block tree.

    NuttyId            UUIDv7 + 7-char base-58 short code (nid) + timestamp
    DissociatedNuttyId a bare nid; valid, but no way back to its uuid
    FractionalIndex    base-94 key; between() always finds room for one more

Wire form of an id:   <base58(uuid), 22 chars>:<nid>      e.g. 1CNjZEV7a6mVR14vf8UtLA:jzBBXYW

Pure operations return failures as values (subclasses of NuttyError) rather
than raising them.
"""

from nutty.config import NuttyConfig, init_config, load_config
from nutty.errors import (
    ChecksumMismatchError,
    CodecError,
    DegenerateIntervalError,
    InvalidCharacterError,
    MalformedIdentifierError,
    NuttyError,
    TagFormatError,
    unwrap,
)
from nutty.fractional_index import FractionalIndex
from nutty.models import BlockContent, ContentBlock, ContentLink, index_between_neighbours, sort_siblings
from nutty.nutty_id import AnyNuttyId, DissociatedNuttyId, NuttyId, is_valid_nid, parse_any, uuid7
from nutty.store import BlockNotFoundError, BlockStore
from nutty.tags import NuttyTag

__all__ = [
    "AnyNuttyId",
    "BlockContent",
    "BlockNotFoundError",
    "BlockStore",
    "ChecksumMismatchError",
    "CodecError",
    "ContentBlock",
    "ContentLink",
    "DegenerateIntervalError",
    "DissociatedNuttyId",
    "FractionalIndex",
    "InvalidCharacterError",
    "MalformedIdentifierError",
    "NuttyConfig",
    "NuttyError",
    "NuttyId",
    "NuttyTag",
    "TagFormatError",
    "index_between_neighbours",
    "init_config",
    "is_valid_nid",
    "load_config",
    "parse_any",
    "sort_siblings",
    "unwrap",
    "uuid7",
]
