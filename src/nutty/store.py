"""Read and write blocks.jsonl, the reference block store.

BlockStore is the public API:
    store = BlockStore("/path/to/.nutty/blocks.jsonl")
    page = store.add(BlockContent.page("Inbox"))
    para = store.add(BlockContent.paragraph("hello"), parent_id=page.nutty_id)
    store.move(para.nutty_id, after=other.nutty_id)
    store.backlinks(page.nutty_id)   # blocks whose text carries [[<page nid>]]

blocks.jsonl line types:
    {"nutty_id": "<wire>", "parent_id": ..., "f_index": ..., "content": {...}, ...}  # block
    {"nutty_id": "<wire>", "deleted": true}                                          # tombstone

The last line for an id wins. Every mutation reads the current sibling list,
picks a fractional index and appends one line while holding flock(LOCK_EX),
so two concurrent moves never compute against a stale neighbour set. A move
only ever writes the moved block; siblings keep their indices.
"""

from __future__ import annotations

import contextlib
import fcntl
import json
import logging
import os
from dataclasses import replace
from datetime import UTC, datetime
from pathlib import Path
from typing import IO, TYPE_CHECKING, Any

from nutty.errors import NuttyError, unwrap
from nutty.fractional_index import FractionalIndex
from nutty.models import BlockContent, ContentBlock, ContentLink, index_between_neighbours, sort_siblings
from nutty.nutty_id import DissociatedNuttyId, NuttyId

if TYPE_CHECKING:
    import uuid
    from collections.abc import Callable, Iterator

logger = logging.getLogger("nutty.store")


class BlockNotFoundError(LookupError):
    """No live block with the requested id."""


class BlockStore:
    """JSONL-backed content block store."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def load(self) -> dict[uuid.UUID, ContentBlock]:
        """All live blocks keyed by uuid."""
        if not self.path.exists():
            return {}
        with self.path.open() as f:
            fcntl.flock(f, fcntl.LOCK_SH)
            return self._parse(f)

    def _parse(self, f: IO[str]) -> dict[uuid.UUID, ContentBlock]:
        blocks: dict[uuid.UUID, ContentBlock] = {}
        for lineno, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                obj = json.loads(line)
            except json.JSONDecodeError:
                logger.warning("%s:%d: skipping unparseable line", self.path, lineno)
                continue

            if obj.get("deleted"):
                nutty_id = NuttyId.from_wire(obj.get("nutty_id") or "")
                if isinstance(nutty_id, NuttyError):
                    logger.warning("%s:%d: bad tombstone: %s", self.path, lineno, nutty_id.message)
                    continue
                blocks.pop(nutty_id.uuid, None)
                continue

            block = ContentBlock.from_dict(obj)
            if isinstance(block, NuttyError):
                logger.warning("%s:%d: skipping invalid block: %s", self.path, lineno, block.message)
                continue
            blocks[block.nutty_id.uuid] = block
        return blocks

    def get(self, nutty_id: NuttyId) -> ContentBlock | None:
        return self.load().get(nutty_id.uuid)

    def children(self, parent_id: NuttyId | None = None) -> list[ContentBlock]:
        """Blocks under parent_id (top level when None), in sibling order."""
        return _children_of(self.load(), parent_id)

    def iter_tree(self, parent_id: NuttyId | None = None, depth: int = 0) -> Iterator[tuple[int, ContentBlock]]:
        """Depth-first walk yielding (depth, block)."""
        blocks = self.load()
        yield from _walk(blocks, parent_id, depth)

    def resolve(self, nid: str | DissociatedNuttyId) -> NuttyId | None:
        """Find the full NuttyId behind a bare short code.

        Several uuids can share one nid; the earliest-created block wins.
        """
        code = nid.nid if isinstance(nid, DissociatedNuttyId) else nid
        matches = [b.nutty_id for b in self.load().values() if b.nid == code]
        if not matches:
            return None
        if len(matches) > 1:
            logger.info("nid %s is shared by %d blocks; using the oldest", code, len(matches))
        return min(matches, key=lambda n: n.uuid)

    # ------------------------------------------------------------------
    # Links
    # ------------------------------------------------------------------

    def links(self) -> list[ContentLink]:
        """Every resolvable [[nid]] tag in the store as a ContentLink.

        Tags naming the block they sit in, and repeats of a tag within one
        block, produce no extra link. Tags whose nid matches no live block
        are dropped.
        """
        return _links(self.load())

    def references(self, nutty_id: NuttyId) -> list[ContentBlock]:
        """Blocks this block links to, in the order its tags appear."""
        blocks = self.load()
        _require(blocks, nutty_id)
        return [blocks[link.target_id.uuid] for link in _links(blocks) if link.source_id == nutty_id]

    def backlinks(self, nutty_id: NuttyId) -> list[ContentBlock]:
        """Blocks that link to this block, oldest first."""
        blocks = self.load()
        _require(blocks, nutty_id)
        sources = [blocks[link.source_id.uuid] for link in _links(blocks) if link.target_id == nutty_id]
        return sorted(sources, key=lambda b: b.nutty_id.uuid)

    def is_linked(self, source_id: NuttyId, target_id: NuttyId) -> bool:
        return ContentLink(source_id, target_id) in _links(self.load())

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def add(
        self,
        content: BlockContent,
        *,
        parent_id: NuttyId | None = None,
        after: NuttyId | None = None,
        clock: Callable[[], int] | None = None,
    ) -> ContentBlock:
        """Create a block at the end of its siblings, or right after `after`."""
        with self._locked() as (f, blocks):
            if after is not None:
                anchor = _require(blocks, after)
                parent_id = anchor.parent_id
                f_index = _index_after(blocks, anchor)
            else:
                if parent_id is not None:
                    _require(blocks, parent_id)
                siblings = _children_of(blocks, parent_id)
                last = siblings[-1].f_index if siblings else None
                f_index = unwrap(index_between_neighbours(last, None))

            block = ContentBlock.now(content, f_index, parent_id=parent_id, clock=clock)
            _append(f, block.to_dict())

        logger.info("added block %s at %s", block.nid, block.f_index)
        return block

    def move(
        self,
        nutty_id: NuttyId,
        *,
        after: NuttyId | None = None,
        before: NuttyId | None = None,
        parent_id: NuttyId | None = None,
    ) -> ContentBlock:
        """Reposition a block; only the moved block gets a new index.

        after / before name the new neighbours (either or both; given together
        they must be adjacent siblings in that order). Without neighbours the
        block goes to the end of parent_id's children.
        """
        with self._locked() as (f, blocks):
            block = _require(blocks, nutty_id)
            others = {k: v for k, v in blocks.items() if k != nutty_id.uuid}

            if after is not None and before is not None:
                lo, hi = _require(others, after), _require(others, before)
                if lo.parent_id != hi.parent_id:
                    msg = f"{after.nid} and {before.nid} are not siblings"
                    raise ValueError(msg)
                siblings = _children_of(others, lo.parent_id)
                pos = siblings.index(lo)
                adjacent = pos + 1 < len(siblings) and siblings[pos + 1] is hi
                if not adjacent or not lo.f_index < hi.f_index:
                    msg = f"{after.nid} is not directly before {before.nid}"
                    raise ValueError(msg)
                new_parent = lo.parent_id
                f_index = unwrap(index_between_neighbours(lo.f_index, hi.f_index))
            elif after is not None:
                anchor = _require(others, after)
                new_parent = anchor.parent_id
                f_index = _index_after(others, anchor)
            elif before is not None:
                anchor = _require(others, before)
                new_parent = anchor.parent_id
                f_index = _index_before(others, anchor)
            else:
                if parent_id is not None and parent_id != nutty_id:
                    _require(others, parent_id)
                new_parent = parent_id
                siblings = _children_of(others, parent_id)
                last = siblings[-1].f_index if siblings else None
                f_index = unwrap(index_between_neighbours(last, None))

            if new_parent is not None and _is_descendant(others, new_parent, block.nutty_id):
                msg = f"cannot move {block.nid} under its own descendant"
                raise ValueError(msg)

            moved = replace(
                block,
                parent_id=new_parent,
                f_index=f_index,
                updated_at=max(datetime.now(UTC), block.created_at),
            )
            _append(f, moved.to_dict())

        logger.info("moved block %s to %s", moved.nid, moved.f_index)
        return moved

    def delete(self, nutty_id: NuttyId) -> None:
        """Append tombstone lines for the block and everything below it."""
        with self._locked() as (f, blocks):
            block = _require(blocks, nutty_id)
            doomed = [block] + [b for _, b in _walk(blocks, nutty_id, 0)]
            for b in doomed:
                _append(f, b.to_tombstone())
        logger.info("deleted block %s (%d total)", nutty_id.nid, len(doomed))

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @contextlib.contextmanager
    def _locked(self) -> Iterator[tuple[IO[str], dict[uuid.UUID, ContentBlock]]]:
        """Hold LOCK_EX on blocks.jsonl and hand out (file, current blocks)."""
        with self.path.open("a+") as f:
            fcntl.flock(f, fcntl.LOCK_EX)
            f.seek(0)
            yield f, self._parse(f)
            f.flush()


def _append(f: IO[str], obj: dict[str, Any]) -> None:
    f.seek(0, os.SEEK_END)
    f.write(json.dumps(obj) + "\n")


def _require(blocks: dict[uuid.UUID, ContentBlock], nutty_id: NuttyId) -> ContentBlock:
    block = blocks.get(nutty_id.uuid)
    if block is None:
        msg = f"Block not found: {nutty_id.nid}"
        raise BlockNotFoundError(msg)
    return block


def _children_of(blocks: dict[uuid.UUID, ContentBlock], parent_id: NuttyId | None) -> list[ContentBlock]:
    return sort_siblings(b for b in blocks.values() if b.parent_id == parent_id)


def _index_after(blocks: dict[uuid.UUID, ContentBlock], anchor: ContentBlock) -> FractionalIndex:
    siblings = _children_of(blocks, anchor.parent_id)
    pos = siblings.index(anchor)
    nxt = siblings[pos + 1].f_index if pos + 1 < len(siblings) else None
    return unwrap(index_between_neighbours(anchor.f_index, nxt))


def _index_before(blocks: dict[uuid.UUID, ContentBlock], anchor: ContentBlock) -> FractionalIndex:
    siblings = _children_of(blocks, anchor.parent_id)
    pos = siblings.index(anchor)
    prev = siblings[pos - 1].f_index if pos > 0 else None
    return unwrap(index_between_neighbours(prev, anchor.f_index))


def _links(blocks: dict[uuid.UUID, ContentBlock]) -> list[ContentLink]:
    # a shared nid resolves to the earliest-created block, as in resolve()
    by_nid: dict[str, NuttyId] = {}
    for nutty_id in sorted((b.nutty_id for b in blocks.values()), key=lambda n: n.uuid):
        by_nid.setdefault(nutty_id.nid, nutty_id)

    links: list[ContentLink] = []
    for block in blocks.values():
        seen: set[uuid.UUID] = set()
        for tag in block.content.target_tags():
            target = by_nid.get(tag.nutty_id.nid)
            if target is None:
                logger.debug("%s: dangling tag %s", block.nid, tag)
                continue
            if target == block.nutty_id or target.uuid in seen:
                continue
            seen.add(target.uuid)
            links.append(ContentLink(block.nutty_id, target))
    return links


def _is_descendant(blocks: dict[uuid.UUID, ContentBlock], candidate: NuttyId, ancestor: NuttyId) -> bool:
    """True when candidate is ancestor itself or sits somewhere below it."""
    current: NuttyId | None = candidate
    seen: set[uuid.UUID] = set()
    while current is not None and current.uuid not in seen:
        if current == ancestor:
            return True
        seen.add(current.uuid)
        parent = blocks.get(current.uuid)
        current = parent.parent_id if parent else None
    return False


def _walk(
    blocks: dict[uuid.UUID, ContentBlock],
    parent_id: NuttyId | None,
    depth: int,
) -> Iterator[tuple[int, ContentBlock]]:
    for block in _children_of(blocks, parent_id):
        yield depth, block
        yield from _walk(blocks, block.nutty_id, depth + 1)
