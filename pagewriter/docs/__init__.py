"""Document layer: page model, page store, history and the editing-surface boundary.

Exposes:
- Data model: Document, Page, StyleRun, HistorySnapshot
- PageStore: ordered pages, cursor, structural edits
- HistoryManager: bounded undo/redo snapshot stacks
- MarkupEditingSurface: in-memory live content with CSS style resolution
"""

from .history import HistoryManager
from .model import Document, HistorySnapshot, Page, StyleRun, new_page_id
from .paper import PAPER_SIZES, lookup_paper
from .store import PageStore
from .surface import EditingSurface, MarkupEditingSurface

__all__ = [
    "Document",
    "EditingSurface",
    "HistoryManager",
    "HistorySnapshot",
    "MarkupEditingSurface",
    "PAPER_SIZES",
    "Page",
    "PageStore",
    "StyleRun",
    "lookup_paper",
    "new_page_id",
]
