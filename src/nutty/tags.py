"""Wiki-link tags that point at content blocks by short code.

    [[abcdefg]]                 link, rendered as the nid
    [[abcdefg|Display Text]]    link, rendered as "Display Text"
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from nutty.errors import MalformedIdentifierError, TagFormatError
from nutty.nutty_id import DissociatedNuttyId

# [[...]] where ... is anything except "]"
_TAG_RE = re.compile(r"\[\[([^]]+)\]\]")


@dataclass(frozen=True)
class NuttyTag:
    nutty_id: DissociatedNuttyId
    display_text: str | None = None

    @classmethod
    def parse(cls, value: str) -> NuttyTag | TagFormatError:
        """Parse a single tag string like [[abcdefg]] or [[abcdefg|Display Text]]."""
        if not value.startswith("[[") or not value.endswith("]]"):
            return TagFormatError(f"Invalid NuttyTag format: {value!r}")

        parts = value[2:-2].split("|")
        if len(parts) > 2:
            return TagFormatError(f"Invalid NuttyTag format: {value!r}")

        nutty_id = DissociatedNuttyId.parse(parts[0].strip())
        if isinstance(nutty_id, MalformedIdentifierError):
            return TagFormatError(f"Invalid NuttyTag target in {value!r}: {nutty_id.message}")

        display = parts[1].strip() if len(parts) == 2 else None
        return cls(nutty_id=nutty_id, display_text=display)

    @classmethod
    def parse_all(cls, text: str) -> list[NuttyTag]:
        """Every well-formed tag in text, in order of appearance. Malformed ones are skipped."""
        tags: list[NuttyTag] = []
        for match in _TAG_RE.finditer(text):
            tag = cls.parse(match.group(0))
            if isinstance(tag, NuttyTag):
                tags.append(tag)
        return tags

    def __str__(self) -> str:
        if self.display_text is not None:
            return f"[[{self.nutty_id.nid}|{self.display_text}]]"
        return f"[[{self.nutty_id.nid}]]"
