"""Artifact writers consumed by the export pipeline.

- ZipPackager: archive of named binary entries (zipfile).
- ReportlabPdfWriter: paginated document with one placed image per page
  (reportlab). Coordinates use a top-left origin; one pixel maps to one
  PDF point.
"""

from __future__ import annotations

import io
import zipfile
from dataclasses import dataclass, field
from typing import Protocol

from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas as rl_canvas


class ArchivePackager(Protocol):
    def add_entry(self, name: str, data: bytes) -> None: ...
    def finalize(self) -> bytes: ...


class PaginatedDocumentWriter(Protocol):
    def new_document(self, page_w: float, page_h: float): ...
    def add_page(self, handle, page_w: float, page_h: float) -> None: ...
    def place_image(self, handle, data: bytes, x: float, y: float, w: float, h: float) -> None: ...
    def save(self, handle, filename: str) -> str: ...


class ZipPackager:
    def __init__(self) -> None:
        self._buffer = io.BytesIO()
        self._zip = zipfile.ZipFile(self._buffer, "w", compression=zipfile.ZIP_DEFLATED)
        self.names = []

    def add_entry(self, name: str, data: bytes) -> None:
        self._zip.writestr(name, data)
        self.names.append(name)

    def finalize(self) -> bytes:
        self._zip.close()
        return self._buffer.getvalue()


@dataclass
class PdfHandle:
    canvas: rl_canvas.Canvas
    buffer: io.BytesIO
    page_w: float
    page_h: float
    pages: int = 1
    images: list = field(default_factory=list)


class ReportlabPdfWriter:
    def new_document(self, page_w: float, page_h: float) -> PdfHandle:
        buffer = io.BytesIO()
        c = rl_canvas.Canvas(buffer, pagesize=(page_w, page_h))
        return PdfHandle(canvas=c, buffer=buffer, page_w=page_w, page_h=page_h)

    def add_page(self, handle: PdfHandle, page_w: float, page_h: float) -> None:
        handle.canvas.showPage()
        handle.canvas.setPageSize((page_w, page_h))
        handle.page_w = page_w
        handle.page_h = page_h
        handle.pages += 1

    def place_image(self, handle: PdfHandle, data: bytes, x: float, y: float, w: float, h: float) -> None:
        # reportlab measures y from the bottom edge
        handle.canvas.drawImage(ImageReader(io.BytesIO(data)), x, handle.page_h - y - h, width=w, height=h)
        handle.images.append((x, y, w, h))

    def to_bytes(self, handle: PdfHandle) -> bytes:
        handle.canvas.save()
        return handle.buffer.getvalue()

    def save(self, handle: PdfHandle, filename: str) -> str:
        data = self.to_bytes(handle)
        with open(filename, "wb") as f:
            f.write(data)
        return filename
