"""Editing session: one document with its history, fonts and exporters.

All mutable state lives on a ``Session`` instance, so several independent
sessions can coexist (for example one per test).
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from pagewriter.config import Settings, load_settings
from pagewriter.docs.history import HistoryManager
from pagewriter.docs.model import Document, Page, new_page_id
from pagewriter.docs.store import PageStore
from pagewriter.docs.surface import EditingSurface, MarkupEditingSurface
from pagewriter.fonts.registry import FontAsset, Fetcher, FontRegistry, font_family_value
from pagewriter.fonts.remote import GithubFontSource
from pagewriter.logger import get_logger
from pagewriter.pipeline.export import ExportPipeline
from pagewriter.pipeline.writers import ZipPackager
from pagewriter.render.raster import PillowRasterizer, Rasterizer

LOGGER = get_logger(__name__)


class Session:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        pages: Optional[Iterable[str]] = None,
        surface: Optional[EditingSurface] = None,
        rasterizer: Optional[Rasterizer] = None,
        fetcher: Optional[Fetcher] = None,
        pdf_writer=None,
        docx_writer=None,
        packager_factory=ZipPackager,
    ) -> None:
        self.settings = settings or load_settings()
        self.document = self._initial_document(pages)
        self.history = HistoryManager(self.settings.history_capacity)
        self.surface = surface if surface is not None else MarkupEditingSurface()
        self.fonts = FontRegistry(fetcher=fetcher, timeout=self.settings.request_timeout)
        self.store = PageStore(self.document, self.history, self.surface, self.settings)
        self.exports = ExportPipeline(
            self.store,
            rasterizer=rasterizer if rasterizer is not None else PillowRasterizer(self.fonts),
            packager_factory=packager_factory,
            pdf_writer=pdf_writer,
            docx_writer=docx_writer,
            settings=self.settings,
        )

    def _initial_document(self, pages: Optional[Iterable[str]]) -> Document:
        contents = list(pages or [])
        if not contents:
            return Document.new(width=self.settings.default_page_width)
        doc = Document()
        for content in contents:
            doc.pages.append(Page(id=new_page_id(doc.page_ids()), content=content,
                                  width=self.settings.default_page_width))
        return doc

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        self.exports.shutdown()

    def undo(self) -> bool:
        return self.store.undo()

    def redo(self) -> bool:
        return self.store.redo()

    def apply_font(self, name: str, index: Optional[int] = None) -> Page:
        """Switch a page's base font family to a registered font."""
        if name not in self.fonts:
            LOGGER.warning("Font %s is not loaded; falling back to default families", name)
        return self.store.apply_page_style(index, font_family=font_family_value(name))

    def load_remote_fonts(self, apply_first: bool = False) -> List[FontAsset]:
        """Discover and load fonts from the configured repository.

        Failures never abort the session; with ``apply_first`` the first
        loaded font becomes the current page's font.
        """
        src = self.settings.font_source
        source = GithubFontSource(
            owner=src.get("owner", ""),
            repo=src.get("repo", ""),
            path=src.get("path", ""),
            branch=src.get("branch", "main"),
            timeout=self.settings.request_timeout,
        )
        loaded = self.fonts.load_from_source(source, self.settings.font_extensions)
        if loaded and apply_first:
            self.apply_font(loaded[0].name)
        return loaded
