from __future__ import annotations

import json
import random
import string
from dataclasses import asdict, dataclass, field
from typing import Dict, Iterable, List, Optional

from pagewriter.errors import HistoryCorruption

_ID_ALPHABET = string.digits + string.ascii_lowercase

PAGE_ROOT_STYLE = "font-size:18px; font-family:Inter, sans-serif; line-height:1.25"

INITIAL_PAGE_MARKUP = (
    f'<div class="page-content" contenteditable="true" style="{PAGE_ROOT_STYLE}">'
    '<h1 style="margin-top:0">Untitled</h1><p>Start typing...</p></div>'
)

NEW_PAGE_MARKUP = (
    f'<div class="page-content" contenteditable="true" style="{PAGE_ROOT_STYLE}">'
    '<h1 style="margin-top:0">New page</h1><p></p></div>'
)


def new_page_id(taken: Iterable[str] = ()) -> str:
    """Return an opaque page token that does not collide with ``taken``."""
    taken = set(taken)
    while True:
        candidate = "p" + "".join(random.choices(_ID_ALPHABET, k=7))
        if candidate not in taken:
            return candidate


@dataclass
class Page:
    id: str
    content: str
    width: int = 800

    def copy(self, new_id: Optional[str] = None) -> "Page":
        return Page(id=new_id or self.id, content=self.content, width=self.width)


@dataclass
class StyleRun:
    text: str
    style: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class HistorySnapshot:
    """Immutable JSON copy of a document's page sequence."""

    payload: str

    @classmethod
    def capture(cls, pages: Iterable[Page]) -> "HistorySnapshot":
        return cls(json.dumps([asdict(p) for p in pages], ensure_ascii=False))

    def decode(self) -> List[Page]:
        """Rebuild independent Page objects.

        Raises HistoryCorruption if the payload is not a non-empty list of
        page records.
        """
        try:
            records = json.loads(self.payload)
        except (TypeError, ValueError) as exc:
            raise HistoryCorruption(f"Snapshot is not valid JSON: {exc}") from exc
        if not isinstance(records, list) or not records:
            raise HistoryCorruption("Snapshot must hold a non-empty list of pages.")
        pages: List[Page] = []
        try:
            for rec in records:
                pages.append(Page(id=str(rec["id"]), content=str(rec["content"]), width=int(rec["width"])))
        except (KeyError, TypeError, ValueError) as exc:
            raise HistoryCorruption(f"Snapshot page record is malformed: {exc}") from exc
        return pages


@dataclass
class Document:
    pages: List[Page] = field(default_factory=list)
    current_index: int = 0

    @classmethod
    def new(cls, width: int = 800) -> "Document":
        return cls(pages=[Page(id=new_page_id(), content=INITIAL_PAGE_MARKUP, width=width)])

    def __len__(self) -> int:
        return len(self.pages)

    @property
    def current(self) -> Page:
        return self.pages[self.current_index]

    def page_ids(self) -> List[str]:
        return [p.id for p in self.pages]

    def index_of(self, page_id: str) -> int:
        for idx, page in enumerate(self.pages):
            if page.id == page_id:
                return idx
        raise KeyError(page_id)

    def snapshot(self) -> HistorySnapshot:
        return HistorySnapshot.capture(self.pages)
