"""Export pipeline: page rasterization and artifact assembly.

Every export first syncs content from the editing surface and copies the
page list; that copy is what the export renders, so edits made while an
export runs do not leak into it. Each export allocates its own images and
its own packager/writer handle.

A page that fails to rasterize is logged and left out of multi-page
artifacts. An export that ends up with no page at all raises
``EmptyExportError`` and writes nothing.
"""

from __future__ import annotations

import io
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from PIL import Image

from pagewriter.config import Settings
from pagewriter.docs.docx_io import DocxWriter, RichDocumentWriter, compose_document_markup
from pagewriter.docs.model import Page
from pagewriter.docs.store import PageStore
from pagewriter.errors import CollaboratorUnavailable, EmptyExportError, PageIndexError, RasterizationError
from pagewriter.logger import get_logger
from pagewriter.render.raster import Rasterizer

from .layout import PORTRAIT, fit_to_page, resolve_page_size
from .writers import ArchivePackager, PaginatedDocumentWriter, ReportlabPdfWriter, ZipPackager

LOGGER = get_logger(__name__)

PackagerFactory = Callable[[], ArchivePackager]


@dataclass
class ExportResult:
    path: str
    pages: List[int] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        return bool(self.skipped)


def encode_image(image: Image.Image, fmt: str = "png", quality: int = 95) -> bytes:
    fmt = fmt.lower()
    out = io.BytesIO()
    if fmt in ("jpg", "jpeg"):
        image.convert("RGB").save(out, format="JPEG", quality=quality)
    elif fmt == "png":
        image.save(out, format="PNG")
    else:
        raise ValueError(f"Unsupported image format: {fmt}")
    return out.getvalue()


def stitch_vertically(images: List[Image.Image], background: str = "white") -> Image.Image:
    """Stack images top to bottom at their natural size.

    The canvas is as wide as the first image and as tall as all images
    together; wider images are clipped, narrower ones leave background.
    """
    if not images:
        raise ValueError("Nothing to stitch")
    width = images[0].width
    height = sum(img.height for img in images)
    canvas = Image.new("RGB", (width, height), background)
    y = 0
    for img in images:
        canvas.paste(img, (0, y))
        y += img.height
    return canvas


class ExportPipeline:
    def __init__(
        self,
        store: PageStore,
        rasterizer: Optional[Rasterizer] = None,
        packager_factory: Optional[PackagerFactory] = ZipPackager,
        pdf_writer: Optional[PaginatedDocumentWriter] = None,
        docx_writer: Optional[RichDocumentWriter] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.store = store
        self.rasterizer = rasterizer
        self.packager_factory = packager_factory
        self.pdf_writer = pdf_writer if pdf_writer is not None else ReportlabPdfWriter()
        self.docx_writer = docx_writer if docx_writer is not None else DocxWriter()
        self.settings = settings or store.settings
        self._executor: Optional[ThreadPoolExecutor] = None
        self._executor_lock = threading.Lock()

    # -- shared steps ------------------------------------------------------

    def _require(self, name: str, collaborator) -> None:
        if collaborator is None:
            raise CollaboratorUnavailable(name)

    def _snapshot(self) -> Tuple[List[Page], int]:
        with self.store.lock:
            return self.store.copy_pages(), self.store.current_index

    def rasterize(self, page: Page, scale: Optional[float] = None) -> Image.Image:
        """Render one page; any rasterizer failure surfaces as RasterizationError."""
        self._require("rasterizer", self.rasterizer)
        scale = self.settings.export_scale if scale is None else scale
        try:
            return self.rasterizer.render(page.content, page.width, scale, self.settings.padding)
        except RasterizationError:
            raise
        except Exception as exc:
            raise RasterizationError(f"Failed to rasterize page {page.id}: {exc}", page_id=page.id) from exc

    def _rasterize_all(self, pages: List[Page], scale: Optional[float] = None) -> Tuple[List[Tuple[int, Image.Image]], List[int]]:
        rendered: List[Tuple[int, Image.Image]] = []
        skipped: List[int] = []
        for ordinal, page in enumerate(pages, start=1):
            try:
                rendered.append((ordinal, self.rasterize(page, scale)))
            except RasterizationError as exc:
                LOGGER.warning("Skipping page %d (%s): %s", ordinal, page.id, exc)
                skipped.append(ordinal)
        return rendered, skipped

    def thumbnails(self) -> List[Optional[Image.Image]]:
        """Low-scale previews of every page; ``None`` where rendering failed."""
        self._require("rasterizer", self.rasterizer)
        pages, _ = self._snapshot()
        thumbs: List[Optional[Image.Image]] = []
        for page in pages:
            try:
                thumbs.append(self.rasterize(page, self.settings.thumbnail_scale))
            except RasterizationError as exc:
                LOGGER.warning("Thumbnail failed for page %s: %s", page.id, exc)
                thumbs.append(None)
        return thumbs

    # -- assembly strategies -----------------------------------------------

    def render_page(self, index: Optional[int] = None, scale: Optional[float] = None) -> Image.Image:
        self._require("rasterizer", self.rasterizer)
        pages, current = self._snapshot()
        idx = current if index is None else index
        if not 0 <= idx < len(pages):
            raise PageIndexError(idx, len(pages))
        return self.rasterize(pages[idx], scale)

    def export_single(self, out_path: str, index: Optional[int] = None, fmt: str = "png") -> ExportResult:
        """Save one page (the current page by default) as a PNG or JPEG image."""
        self._require("rasterizer", self.rasterizer)
        pages, current = self._snapshot()
        idx = current if index is None else index
        if not 0 <= idx < len(pages):
            raise PageIndexError(idx, len(pages))
        image = self.rasterize(pages[idx])
        data = encode_image(image, fmt, self.settings.jpeg_quality)
        with open(out_path, "wb") as f:
            f.write(data)
        LOGGER.info("Exported page %d to %s", idx + 1, out_path)
        return ExportResult(path=out_path, pages=[idx + 1])

    def export_archive(self, out_path: str) -> ExportResult:
        """Save every page as ``page-N.png`` inside one zip archive."""
        self._require("rasterizer", self.rasterizer)
        self._require("archive packager", self.packager_factory)
        pages, _ = self._snapshot()
        rendered, skipped = self._rasterize_all(pages)
        if not rendered:
            raise EmptyExportError("No page could be rendered for the archive")
        packager = self.packager_factory()
        for ordinal, image in rendered:
            packager.add_entry(f"page-{ordinal}.png", encode_image(image, "png"))
        data = packager.finalize()
        with open(out_path, "wb") as f:
            f.write(data)
        LOGGER.info("Exported %d page(s) to %s", len(rendered), out_path)
        return ExportResult(path=out_path, pages=[o for o, _ in rendered], skipped=skipped)

    def export_stitched(self, out_path: str, fmt: str = "png") -> ExportResult:
        """Save all pages stacked into one tall image."""
        self._require("rasterizer", self.rasterizer)
        pages, _ = self._snapshot()
        rendered, skipped = self._rasterize_all(pages)
        if not rendered:
            raise EmptyExportError("No page could be rendered for the stitched image")
        stitched = stitch_vertically([image for _, image in rendered])
        with open(out_path, "wb") as f:
            f.write(encode_image(stitched, fmt, self.settings.jpeg_quality))
        LOGGER.info("Exported stitched image %dx%d to %s", stitched.width, stitched.height, out_path)
        return ExportResult(path=out_path, pages=[o for o, _ in rendered], skipped=skipped)

    def export_pdf(
        self,
        out_path: str,
        paper: Optional[str] = "a4",
        orientation: str = PORTRAIT,
        custom_width: Optional[int] = None,
        custom_height: Optional[int] = None,
    ) -> ExportResult:
        """Save a paginated document, one target page per rendered source page.

        Each raster is scaled uniformly to fit the target page and centred.
        """
        self._require("rasterizer", self.rasterizer)
        self._require("paginated-document writer", self.pdf_writer)
        page_w, page_h = resolve_page_size(paper, orientation, custom_width, custom_height)
        pages, _ = self._snapshot()
        rendered, skipped = self._rasterize_all(pages)
        if not rendered:
            raise EmptyExportError("No page could be rendered for the PDF")

        handle = None
        for ordinal, image in rendered:
            placement = fit_to_page(image.width, image.height, page_w, page_h)
            if handle is None:
                handle = self.pdf_writer.new_document(page_w, page_h)
            else:
                self.pdf_writer.add_page(handle, page_w, page_h)
            data = encode_image(image, "jpeg", self.settings.jpeg_quality)
            self.pdf_writer.place_image(handle, data, placement.x, placement.y, placement.width, placement.height)
        self.pdf_writer.save(handle, out_path)
        LOGGER.info("Exported %d page(s) at %dx%d to %s", len(rendered), page_w, page_h, out_path)
        return ExportResult(path=out_path, pages=[o for o, _ in rendered], skipped=skipped)

    def export_docx(self, out_path: str, orientation: str = PORTRAIT) -> ExportResult:
        """Save all pages as one rich document, a page break after each page."""
        self._require("rich-document writer", self.docx_writer)
        pages, _ = self._snapshot()
        markup = compose_document_markup(p.content for p in pages)
        data = self.docx_writer.convert(markup, {"orientation": orientation})
        with open(out_path, "wb") as f:
            f.write(data)
        LOGGER.info("Exported %d page(s) to %s", len(pages), out_path)
        return ExportResult(path=out_path, pages=list(range(1, len(pages) + 1)))

    # -- background exports ------------------------------------------------

    def _kinds(self) -> Dict[str, Callable[..., ExportResult]]:
        return {
            "png": self.export_single,
            "zip": self.export_archive,
            "stitched": self.export_stitched,
            "pdf": self.export_pdf,
            "docx": self.export_docx,
        }

    def submit(self, kind: str, *args, **kwargs) -> "Future[ExportResult]":
        """Run an export on the worker pool. Started exports always run to completion."""
        try:
            func = self._kinds()[kind]
        except KeyError:
            raise ValueError(f"Unknown export kind: {kind}") from None
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=max(1, self.settings.export_workers))
            return self._executor.submit(func, *args, **kwargs)

    def shutdown(self, wait: bool = True) -> None:
        with self._executor_lock:
            if self._executor is not None:
                self._executor.shutdown(wait=wait)
                self._executor = None
