"""Editing-surface boundary.

The editing surface is the live source of truth for in-progress edits; the
page store only sees its content through an explicit sync. This module
defines the contract and an in-memory implementation that keeps one live
markup string per page.
"""

from __future__ import annotations

from typing import Callable, Dict, Optional, Protocol

from lxml import etree

from .styles import resolve_effective_style

EditListener = Callable[[str], None]


class EditingSurface(Protocol):
    def get_serialized_content(self, page_id: str) -> str: ...
    def set_serialized_content(self, page_id: str, markup: str) -> None: ...
    def resolve_effective_style(self, element: etree._Element) -> Dict[str, str]: ...
    def focus(self, page_id: str) -> None: ...
    def remove(self, page_id: str) -> None: ...
    def subscribe(self, listener: EditListener) -> None: ...


class MarkupEditingSurface:
    """Holds live markup per page and resolves styles by CSS inheritance."""

    def __init__(self) -> None:
        self._live: Dict[str, str] = {}
        self._listener: Optional[EditListener] = None
        self.focused: Optional[str] = None

    def __contains__(self, page_id: str) -> bool:
        return page_id in self._live

    def subscribe(self, listener: EditListener) -> None:
        self._listener = listener

    def get_serialized_content(self, page_id: str) -> str:
        return self._live[page_id]

    def set_serialized_content(self, page_id: str, markup: str) -> None:
        self._live[page_id] = markup

    def remove(self, page_id: str) -> None:
        self._live.pop(page_id, None)
        if self.focused == page_id:
            self.focused = None

    def resolve_effective_style(self, element: etree._Element) -> Dict[str, str]:
        return resolve_effective_style(element)

    def focus(self, page_id: str) -> None:
        self.focused = page_id

    def edit(self, page_id: str, markup: str) -> None:
        """Apply a user edit to the live content and notify the listener."""
        if page_id not in self._live:
            raise KeyError(page_id)
        self._live[page_id] = markup
        if self._listener is not None:
            self._listener(page_id)
