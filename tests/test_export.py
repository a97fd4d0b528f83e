import io
import zipfile

import pytest
from PIL import Image

from pagewriter.config import Settings
from pagewriter.docs import Document, HistoryManager, MarkupEditingSurface, Page, PageStore
from pagewriter.errors import (
    CollaboratorUnavailable,
    EmptyExportError,
    PageIndexError,
    RasterizationError,
)
from pagewriter.pipeline import ExportPipeline, ReportlabPdfWriter, stitch_vertically
from pagewriter.session import Session


class FakeRasterizer:
    """Solid-colour page images; markup containing FAIL cannot be rendered."""

    def __init__(self, height=50, hook=None):
        self.height = height
        self.hook = hook
        self.rendered = []

    def render(self, markup, width, scale=1.0, padding=0):
        if self.hook is not None:
            self.hook(markup)
        if "FAIL" in markup:
            raise RasterizationError("cannot render")
        self.rendered.append(markup)
        return Image.new("RGB", (int((width + 2 * padding) * scale), int(self.height * scale)), "gray")


class FakePdfWriter:
    def __init__(self):
        self.calls = []

    def new_document(self, page_w, page_h):
        self.calls.append(("new", page_w, page_h))
        return {"pages": 1}

    def add_page(self, handle, page_w, page_h):
        self.calls.append(("add", page_w, page_h))
        handle["pages"] += 1

    def place_image(self, handle, data, x, y, w, h):
        self.calls.append(("image", round(x, 3), round(y, 3), round(w, 3), round(h, 3)))

    def save(self, handle, filename):
        self.calls.append(("save", filename))
        return filename


def _session(contents, **kwargs):
    settings = Settings(padding=0, export_scale=1.0)
    kwargs.setdefault("rasterizer", FakeRasterizer())
    return Session(settings=settings, pages=contents, **kwargs)


def test_archive_skips_failed_page(tmp_path):
    out = tmp_path / "pages.zip"
    with _session(["<div>one</div>", "<div>FAIL</div>", "<div>three</div>"]) as s:
        result = s.exports.export_archive(str(out))
    assert result.pages == [1, 3]
    assert result.skipped == [2]
    assert result.partial
    with zipfile.ZipFile(out) as zf:
        assert zf.namelist() == ["page-1.png", "page-3.png"]
        img = Image.open(io.BytesIO(zf.read("page-1.png")))
        assert img.size == (800, 50)


def test_all_pages_failing_raises_and_writes_nothing(tmp_path):
    out = tmp_path / "pages.zip"
    with _session(["<div>FAIL</div>", "<div>FAIL too</div>"]) as s:
        with pytest.raises(EmptyExportError):
            s.exports.export_archive(str(out))
    assert not out.exists()


def test_single_page_export_failure_propagates(tmp_path):
    with _session(["<div>ok</div>", "<div>FAIL</div>"]) as s:
        with pytest.raises(RasterizationError):
            s.exports.export_single(str(tmp_path / "p.png"), index=1)
        with pytest.raises(PageIndexError):
            s.exports.export_single(str(tmp_path / "p.png"), index=5)


def test_single_page_export_defaults_to_current_page(tmp_path):
    raster = FakeRasterizer()
    with _session(["<div>one</div>", "<div>two</div>"], rasterizer=raster) as s:
        s.store.set_current(1)
        result = s.exports.export_single(str(tmp_path / "p.jpg"), fmt="jpg")
    assert result.pages == [2]
    assert raster.rendered == ["<div>two</div>"]
    with Image.open(tmp_path / "p.jpg") as img:
        assert img.format == "JPEG"


def test_stitched_stacks_pages_vertically(tmp_path):
    out = tmp_path / "stitched.png"
    with _session(["<div>a</div>", "<div>FAIL</div>", "<div>c</div>", "<div>d</div>"]) as s:
        result = s.exports.export_stitched(str(out))
    assert result.skipped == [2]
    with Image.open(out) as img:
        assert img.size == (800, 150)


def test_stitch_uses_first_width():
    images = [Image.new("RGB", (100, 10)), Image.new("RGB", (60, 20))]
    assert stitch_vertically(images).size == (100, 30)
    with pytest.raises(ValueError):
        stitch_vertically([])


def test_pdf_pages_are_fitted_and_centred(tmp_path):
    writer = FakePdfWriter()
    with _session(["<div>a</div>", "<div>b</div>"], pdf_writer=writer) as s:
        s.store.resize_page(0, 1000)
        result = s.exports.export_pdf(str(tmp_path / "doc.pdf"), paper="A4")
    assert result.pages == [1, 2]
    kinds = [c[0] for c in writer.calls]
    assert kinds == ["new", "image", "add", "image", "save"]
    assert writer.calls[0] == ("new", 794, 1123)
    _, x, y, w, h = writer.calls[1]
    assert w == pytest.approx(794)
    assert x == pytest.approx(0)
    assert y == pytest.approx((1123 - h) / 2, abs=1e-3)


def test_pdf_landscape_target(tmp_path):
    writer = FakePdfWriter()
    with _session(["<div>a</div>"], pdf_writer=writer) as s:
        s.exports.export_pdf(str(tmp_path / "doc.pdf"), paper="letter", orientation="landscape")
    assert writer.calls[0] == ("new", 1056, 816)


def test_pdf_written_with_reportlab(tmp_path):
    out = tmp_path / "doc.pdf"
    with _session(["<div>a</div>", "<div>b</div>"], pdf_writer=ReportlabPdfWriter()) as s:
        s.exports.export_pdf(str(out))
    data = out.read_bytes()
    assert data.startswith(b"%PDF")
    assert data.rstrip().endswith(b"%%EOF")


def test_docx_has_break_between_pages(tmp_path):
    out = tmp_path / "doc.docx"
    pages = [
        '<div class="page-content"><h1>Title</h1><p>first <b>page</b></p></div>',
        '<div class="page-content"><p>second</p></div>',
        '<div class="page-content"><p style="color:#ff0000">third</p></div>',
    ]
    with _session(pages) as s:
        result = s.exports.export_docx(str(out))
    assert result.pages == [1, 2, 3]
    with zipfile.ZipFile(out) as zf:
        xml = zf.read("word/document.xml").decode("utf-8")
    assert xml.count('w:type="page"') == 2
    for text in ("Title", "first", "page", "second", "third"):
        assert text in xml
    assert "FF0000" in xml


def test_missing_collaborator_is_reported(tmp_path):
    doc = Document(pages=[Page(id="p1", content="<div>a</div>")])
    store = PageStore(doc, HistoryManager(), MarkupEditingSurface(), Settings())
    exporter = ExportPipeline(store, rasterizer=None)
    with pytest.raises(CollaboratorUnavailable):
        exporter.export_archive(str(tmp_path / "a.zip"))
    exporter = ExportPipeline(store, rasterizer=FakeRasterizer(), packager_factory=None)
    with pytest.raises(CollaboratorUnavailable) as info:
        exporter.export_archive(str(tmp_path / "a.zip"))
    assert info.value.collaborator == "archive packager"


def test_export_renders_a_snapshot(tmp_path):
    state = {}

    def edit_during_render(markup):
        if not state:
            state["done"] = True
            s.surface.edit(s.store.pages[1].id, "<div>edited mid-export</div>")

    raster = FakeRasterizer(hook=edit_during_render)
    s = _session(["<div>one</div>", "<div>two</div>"], rasterizer=raster)
    with s:
        s.exports.export_archive(str(tmp_path / "a.zip"))
        assert raster.rendered == ["<div>one</div>", "<div>two</div>"]
        assert s.store.pages[1].content == "<div>edited mid-export</div>"


def test_submit_runs_in_background(tmp_path):
    out = tmp_path / "pages.zip"
    with _session(["<div>a</div>", "<div>b</div>"]) as s:
        future = s.exports.submit("zip", str(out))
        result = future.result(timeout=30)
        with pytest.raises(ValueError):
            s.exports.submit("tiff", str(out))
    assert result.pages == [1, 2]
    assert out.exists()


def test_thumbnails_mark_failed_pages():
    with _session(["<div>a</div>", "<div>FAIL</div>"]) as s:
        thumbs = s.exports.thumbnails()
    assert thumbs[1] is None
    assert thumbs[0].size == (int(800 * 0.18), int(50 * 0.18))


class CrashingRasterizer(FakeRasterizer):
    def render(self, markup, width, scale=1.0, padding=0):
        if "FAIL" in markup:
            raise RuntimeError("renderer crashed")
        return super().render(markup, width, scale, padding)


def test_unexpected_renderer_error_only_skips_that_page(tmp_path):
    out = tmp_path / "pages.zip"
    with _session(["<div>one</div>", "<div>FAIL</div>", "<div>three</div>"], rasterizer=CrashingRasterizer()) as s:
        result = s.exports.export_archive(str(out))
        with pytest.raises(RasterizationError) as info:
            s.exports.export_single(str(tmp_path / "p.png"), index=1)
    assert info.value.page_id == s.store.pages[1].id
    assert result.skipped == [2]
    with zipfile.ZipFile(out) as zf:
        assert zf.namelist() == ["page-1.png", "page-3.png"]
