"""Content blocks: the unit of the hierarchical store.

A block has a NuttyId, an optional parent, a fractional index that orders it
among its siblings, and typed content. [[nid]] tags in heading and paragraph
markdown become ContentLinks. The API / JSONL form is:

    {"nutty_id": "<wire id>", "parent_id": "<wire id>" | null, "f_index": "O",
     "content": {"kind": "paragraph", "markdown": "..."},
     "created_at": "2025-05-01T12:00:00+00:00", "updated_at": "..."}
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

from nutty.errors import NuttyError
from nutty.fractional_index import FractionalIndex
from nutty.nutty_id import NuttyId
from nutty.tags import NuttyTag

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

CONTENT_KINDS = ("page", "heading", "paragraph")


@dataclass(frozen=True)
class BlockContent:
    """Not to be confused with ContentBlock: this is what a block holds."""

    kind: str                  # page | heading | paragraph
    text: str = ""             # page title, or markdown for heading / paragraph

    def __post_init__(self) -> None:
        if self.kind not in CONTENT_KINDS:
            msg = f"Unknown block content kind: {self.kind!r}"
            raise ValueError(msg)

    @classmethod
    def page(cls, title: str) -> BlockContent:
        return cls("page", title)

    @classmethod
    def heading(cls, markdown: str) -> BlockContent:
        return cls("heading", markdown)

    @classmethod
    def paragraph(cls, markdown: str) -> BlockContent:
        return cls("paragraph", markdown)

    def target_tags(self) -> list[NuttyTag]:
        """Tags this content links to. Page titles never link."""
        if self.kind == "page":
            return []
        return NuttyTag.parse_all(self.text)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> BlockContent | NuttyError:
        kind = d.get("kind")
        if kind == "page":
            return cls.page(d.get("title", ""))
        if kind in ("heading", "paragraph"):
            return cls(kind, d.get("markdown", ""))
        return NuttyError(f"Unknown block content kind: {kind!r}")

    def to_dict(self) -> dict[str, Any]:
        if self.kind == "page":
            return {"kind": "page", "title": self.text}
        return {"kind": self.kind, "markdown": self.text}


@dataclass
class ContentBlock:
    """A block of content in the tree."""

    nutty_id: NuttyId
    f_index: FractionalIndex
    content: BlockContent
    parent_id: NuttyId | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def now(
        cls,
        content: BlockContent,
        f_index: FractionalIndex,
        parent_id: NuttyId | None = None,
        clock: Callable[[], int] | None = None,
    ) -> ContentBlock:
        """Create a block with a fresh id, stamped with a single clock reading."""
        nutty_id = NuttyId.now(clock=clock)
        stamp = datetime(1970, 1, 1, tzinfo=UTC) + timedelta(milliseconds=nutty_id.timestamp_ms)
        return cls(
            nutty_id=nutty_id,
            f_index=f_index,
            content=content,
            parent_id=parent_id,
            created_at=stamp,
            updated_at=stamp,
        )

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> ContentBlock | NuttyError:
        """Decode the API form. Bad ids, indices or content come back as errors."""
        nutty_id = NuttyId.from_wire(d.get("nutty_id") or "")
        if isinstance(nutty_id, NuttyError):
            return nutty_id

        parent_id: NuttyId | None = None
        if d.get("parent_id") is not None:
            parent = NuttyId.from_wire(d["parent_id"])
            if isinstance(parent, NuttyError):
                return parent
            parent_id = parent

        f_index = FractionalIndex.from_string(d.get("f_index") or "")
        if isinstance(f_index, NuttyError):
            return f_index

        content = BlockContent.from_dict(d.get("content") or {})
        if isinstance(content, NuttyError):
            return content

        try:
            created_at = datetime.fromisoformat(d["created_at"])
            updated_at = datetime.fromisoformat(d.get("updated_at") or d["created_at"])
        except (KeyError, TypeError, ValueError) as exc:
            return NuttyError(f"Invalid block timestamps: {exc}")

        if created_at.tzinfo is None or updated_at.tzinfo is None:
            return NuttyError("Block timestamps must carry a UTC offset")
        if updated_at < created_at:
            return NuttyError("updated_at is earlier than created_at")

        return cls(
            nutty_id=nutty_id,
            f_index=f_index,
            content=content,
            parent_id=parent_id,
            created_at=created_at,
            updated_at=updated_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "nutty_id": self.nutty_id.to_wire(),
            "parent_id": self.parent_id.to_wire() if self.parent_id else None,
            "f_index": self.f_index.value,
            "content": self.content.to_dict(),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    def to_tombstone(self) -> dict[str, Any]:
        return {"nutty_id": self.nutty_id.to_wire(), "deleted": True}

    @property
    def nid(self) -> str:
        return self.nutty_id.nid


@dataclass(frozen=True)
class ContentLink:
    """source_id's content carries a [[nid]] tag that resolves to target_id.

    Links are derived from block text on read, never written to the store.
    """

    source_id: NuttyId
    target_id: NuttyId


def _sort_key(block: ContentBlock) -> tuple[str, uuid.UUID]:
    # strip the padding so the key agrees with FractionalIndex.compare
    return block.f_index.value.rstrip("!"), block.nutty_id.uuid


def sort_siblings(blocks: Iterable[ContentBlock]) -> list[ContentBlock]:
    """Sibling order: fractional index first, uuid (creation order) to break ties."""
    return sorted(blocks, key=_sort_key)


def index_between_neighbours(
    before: FractionalIndex | None,
    after: FractionalIndex | None,
) -> FractionalIndex | NuttyError:
    """Pick an index for a block placed between two neighbours.

    None stands for the start or end of the sibling list. With no neighbours
    at all the block lands midway between start() and end().
    """
    lo = before if before is not None else FractionalIndex.start()
    if after is not None:
        hi = after
    elif lo < FractionalIndex.end():
        hi = FractionalIndex.end()
    else:
        # imported keys can sit at or past "~"; extend instead of inverting
        hi = FractionalIndex(lo.value + chr(126))
    return FractionalIndex.between(lo, hi)
