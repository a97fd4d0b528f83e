"""Ordered page store with history-tracked structural edits.

The store owns the live ``Document``. Every structural operation and every
content edit commits exactly one snapshot of the state it replaced, after
the change has been applied; a rejected operation commits nothing. All
mutations hold one re-entrant lock so cursor tracking and snapshot order
stay consistent.
"""

from __future__ import annotations

import threading
from typing import List, Optional

from pagewriter.config import Settings
from pagewriter.errors import CannotDeleteLastPage, HistoryCorruption, PageIndexError
from pagewriter.logger import get_logger

from .history import HistoryManager
from .model import NEW_PAGE_MARKUP, Document, HistorySnapshot, Page, new_page_id
from .paper import CUSTOM_PAPER, lookup_paper
from .styles import parse_fragment, parse_style, serialize_style, to_markup
from .surface import EditingSurface

LOGGER = get_logger(__name__)


def _px(value) -> str:
    if isinstance(value, (int, float)):
        return f"{value:g}px"
    return str(value)


class PageStore:
    def __init__(
        self,
        document: Document,
        history: HistoryManager,
        surface: EditingSurface,
        settings: Optional[Settings] = None,
    ) -> None:
        self.document = document
        self.history = history
        self.surface = surface
        self.settings = settings or Settings()
        self._lock = threading.RLock()
        for page in self.document.pages:
            self.surface.set_serialized_content(page.id, page.content)
        self.surface.subscribe(self.on_content_edited)

    # -- read access -------------------------------------------------------

    def __len__(self) -> int:
        return len(self.document)

    @property
    def pages(self) -> List[Page]:
        return self.document.pages

    @property
    def current_index(self) -> int:
        return self.document.current_index

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def page(self, index: int) -> Page:
        self._check(index)
        return self.document.pages[index]

    # -- helpers -----------------------------------------------------------

    def _clamp(self, index: int) -> int:
        return max(0, min(int(index), len(self.document) - 1))

    def _check(self, index: int) -> int:
        if not 0 <= index < len(self.document):
            raise PageIndexError(index, len(self.document))
        return index

    def _publish(self, page: Page) -> None:
        self.surface.set_serialized_content(page.id, page.content)

    def _focus_current(self) -> None:
        self.surface.focus(self.document.current.id)

    def _begin(self) -> HistorySnapshot:
        """Pull live content and capture the state about to be replaced."""
        self.sync_from_editing_surface()
        return self.document.snapshot()

    # -- content sync ------------------------------------------------------

    def sync_from_editing_surface(self) -> None:
        """Overwrite every page's content with the editing surface's live content."""
        with self._lock:
            for page in self.document.pages:
                try:
                    page.content = self.surface.get_serialized_content(page.id)
                except KeyError:
                    self._publish(page)

    def copy_pages(self) -> List[Page]:
        """Sync, then return independent copies of all pages."""
        with self._lock:
            self.sync_from_editing_surface()
            return [p.copy() for p in self.document.pages]

    def on_content_edited(self, page_id: str) -> None:
        """Editing-surface notification: a page's live content changed."""
        with self._lock:
            try:
                idx = self.document.index_of(page_id)
            except KeyError:
                LOGGER.warning("Ignoring edit notification for unknown page %s", page_id)
                return
            before = self.document.snapshot()
            self.document.pages[idx].content = self.surface.get_serialized_content(page_id)
            self.history.commit(before)

    # -- structural operations ---------------------------------------------

    def add_page(self, after_index: Optional[int] = None) -> Page:
        with self._lock:
            after = self._clamp(self.document.current_index if after_index is None else after_index)
            before = self._begin()
            page = Page(
                id=new_page_id(self.document.page_ids()),
                content=NEW_PAGE_MARKUP,
                width=self.settings.default_page_width,
            )
            self.document.pages.insert(after + 1, page)
            self.document.current_index = after + 1
            self._publish(page)
            self.history.commit(before)
            self._focus_current()
            return page

    def duplicate_page(self, index: Optional[int] = None) -> Page:
        with self._lock:
            idx = self._clamp(self.document.current_index if index is None else index)
            before = self._begin()
            source = self.document.pages[idx]
            page = source.copy(new_id=new_page_id(self.document.page_ids()))
            self.document.pages.insert(idx + 1, page)
            self.document.current_index = idx + 1
            self._publish(page)
            self.history.commit(before)
            self._focus_current()
            return page

    def delete_page(self, index: Optional[int] = None) -> Page:
        with self._lock:
            if len(self.document) <= 1:
                raise CannotDeleteLastPage()
            idx = self._check(self.document.current_index if index is None else index)
            before = self._begin()
            removed = self.document.pages.pop(idx)
            self.surface.remove(removed.id)
            self.document.current_index = max(0, idx - 1)
            self.history.commit(before)
            self._focus_current()
            return removed

    def reorder_page(self, from_index: int, to_index: int) -> None:
        with self._lock:
            self._check(from_index)
            self._check(to_index)
            if from_index == to_index:
                return
            before = self._begin()
            moved = self.document.pages.pop(from_index)
            self.document.pages.insert(to_index, moved)
            self.document.current_index = self.document.index_of(moved.id)
            self.history.commit(before)
            self._focus_current()

    def set_current(self, index: int) -> int:
        with self._lock:
            self.document.current_index = self._clamp(index)
            self._focus_current()
            return self.document.current_index

    # -- geometry ----------------------------------------------------------

    def resize_page(self, index: int, width: int) -> int:
        """Set a page's width, never below the configured minimum."""
        with self._lock:
            page = self.page(index)
            page.width = max(self.settings.min_page_width, int(round(width)))
            return page.width

    def apply_page_size(self, index: int, preset: str, custom_width: Optional[int] = None) -> int:
        """Apply a page-setup preset; only the width of the page changes."""
        with self._lock:
            page = self.page(index)
            if preset and preset.strip().lower() == CUSTOM_PAPER:
                width = custom_width or page.width
            else:
                size = lookup_paper(preset)
                width = size[0] if size else self.settings.default_page_width
            return self.resize_page(index, width)

    # -- content transforms ------------------------------------------------

    def apply_page_style(
        self,
        index: Optional[int] = None,
        font_family: Optional[str] = None,
        font_size=None,
        line_height=None,
        letter_spacing=None,
    ) -> Page:
        """Set root-level style properties of a page's content."""
        updates = {
            "font-family": font_family,
            "font-size": _px(font_size) if font_size is not None else None,
            "line-height": f"{line_height:g}" if isinstance(line_height, (int, float)) else line_height,
            "letter-spacing": _px(letter_spacing) if letter_spacing is not None else None,
        }
        with self._lock:
            idx = self._check(self.document.current_index if index is None else index)
            before = self._begin()
            page = self.document.pages[idx]
            root = parse_fragment(page.content)
            style = parse_style(root.get("style"))
            style.update({k: v for k, v in updates.items() if v is not None})
            root.set("style", serialize_style(style))
            page.content = to_markup(root)
            self._publish(page)
            self.history.commit(before)
            return page

    def flatten_page(self, index: Optional[int] = None) -> Page:
        """Normalize one page to explicitly styled runs; one history commit."""
        from pagewriter.render.flatten import flatten_markup

        with self._lock:
            idx = self._check(self.document.current_index if index is None else index)
            before = self._begin()
            page = self.document.pages[idx]
            page.content = flatten_markup(page.content, self.surface.resolve_effective_style)
            self._publish(page)
            self.history.commit(before)
            return page

    # -- history -----------------------------------------------------------

    def _restore(self, pages: List[Page]) -> None:
        keep = {p.id for p in pages}
        for page in self.document.pages:
            if page.id not in keep:
                self.surface.remove(page.id)
        self.document.pages = pages
        for page in pages:
            self._publish(page)
        self.document.current_index = self._clamp(self.document.current_index)
        self._focus_current()

    def undo(self) -> bool:
        """Step back one snapshot. Returns False when nothing was restored."""
        with self._lock:
            self.sync_from_editing_surface()
            target = self.history.undo(self.document.snapshot())
            if target is None:
                return False
            try:
                pages = target.decode()
            except HistoryCorruption as exc:
                LOGGER.warning("Undo skipped a corrupt snapshot: %s", exc)
                self.history.discard_redo_top()
                return False
            self._restore(pages)
            return True

    def redo(self) -> bool:
        with self._lock:
            self.sync_from_editing_surface()
            target = self.history.redo(self.document.snapshot())
            if target is None:
                return False
            try:
                pages = target.decode()
            except HistoryCorruption as exc:
                LOGGER.warning("Redo skipped a corrupt snapshot: %s", exc)
                self.history.discard_undo_top()
                return False
            self._restore(pages)
            return True
