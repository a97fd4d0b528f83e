"""
Entry point and compatibility facade for the pagewriter document core.

This module exposes a stable API and a CLI that loads page markup, optionally
normalizes and restyles it, and exports it to one of the supported formats.

Packages:
- pagewriter.docs: Page store, history, editing surface, DOCX writer
- pagewriter.render: Style flattening and rasterization
- pagewriter.pipeline: Export assembly (PNG, zip, stitched PNG, PDF, DOCX)
- pagewriter.fonts: Font registry and remote font discovery
"""

from __future__ import annotations

import os
from typing import List

from pagewriter.config import load_settings
from pagewriter.docs import Document, HistoryManager, MarkupEditingSurface, Page, PageStore
from pagewriter.errors import PageWriterError
from pagewriter.fonts import FontRegistry, GithubFontSource, friendly_name
from pagewriter.pipeline import ExportPipeline, ExportResult, fit_to_page, resolve_page_size
from pagewriter.render import PillowRasterizer, flatten_markup, flatten_runs
from pagewriter.session import Session

__all__ = [
    "Document",
    "ExportPipeline",
    "ExportResult",
    "FontRegistry",
    "GithubFontSource",
    "HistoryManager",
    "MarkupEditingSurface",
    "Page",
    "PageStore",
    "PillowRasterizer",
    "Session",
    "fit_to_page",
    "flatten_markup",
    "flatten_runs",
    "friendly_name",
    "load_settings",
    "resolve_page_size",
]

EXPORT_KINDS = ["png", "jpg", "zip", "stitched", "pdf", "docx"]
DEFAULT_NAMES = {
    "png": "page-{n}.png",
    "jpg": "page-{n}.jpg",
    "zip": "pages.zip",
    "stitched": "stitched.png",
    "pdf": "document.pdf",
    "docx": "document.docx",
}


def _read_pages(paths: List[str]) -> List[str]:
    pages: List[str] = []
    for path in paths:
        if not os.path.exists(path):
            raise FileNotFoundError(f"Page file not found: {path}")
        with open(path, "r", encoding="utf-8") as f:
            pages.append(f.read())
    return pages


def _run_export(session: Session, args) -> ExportResult:
    kind = args.export
    out = args.out
    if not out:
        n = (args.index if args.index is not None else session.store.current_index) + 1
        out = DEFAULT_NAMES[kind].format(n=n)
    if kind in ("png", "jpg"):
        return session.exports.export_single(out, index=args.index, fmt=kind)
    if kind == "zip":
        return session.exports.export_archive(out)
    if kind == "stitched":
        return session.exports.export_stitched(out)
    if kind == "pdf":
        return session.exports.export_pdf(
            out,
            paper=args.paper,
            orientation=args.orientation,
            custom_width=args.custom_width,
            custom_height=args.custom_height,
        )
    return session.exports.export_docx(out, orientation=args.orientation)


def _cli() -> None:
    """CLI for page export.

    --page / -p: Path to a page markup file (repeatable, in page order)
    --width: Page width in pixels for every loaded page (default from settings)
    --flatten: Flatten every page's styling into explicit runs before export
    --font NAME=LOCATION: Register a font from a path or URL (repeatable)
    --load-fonts: Discover and load fonts from the configured repository
    --apply-font NAME: Use a registered font as every page's base font
    --export / -e: png|jpg|zip|stitched|pdf|docx
    --index / -i: Page (0-based) for png/jpg export (default: current page)
    --paper: a4|letter|legal|a3|a5|custom (default: a4)
    --orientation: portrait|landscape (default: portrait)
    --custom-width / --custom-height: Target size for --paper custom
    --out / -o: Output file path
    """
    import argparse

    parser = argparse.ArgumentParser(description="Export multi-page markup documents to images, PDF or DOCX.")
    parser.add_argument("--page", "-p", action="append", default=[], help="Path to a page markup file (repeatable)")
    parser.add_argument("--width", type=int, default=None, help="Page width in pixels for every loaded page")
    parser.add_argument("--flatten", action="store_true", help="Flatten inherited styling into explicit runs first")
    parser.add_argument("--font", action="append", default=[], help="Register a font as NAME=PATH_OR_URL (repeatable)")
    parser.add_argument("--load-fonts", action="store_true", help="Load fonts from the configured font repository")
    parser.add_argument("--apply-font", type=str, default=None, help="Registered font to use as every page's base font")
    parser.add_argument("--export", "-e", type=str, default="pdf", choices=EXPORT_KINDS, help="Export format (default: pdf)")
    parser.add_argument("--index", "-i", type=int, default=None, help="Page index for png/jpg export (0-based)")
    parser.add_argument("--paper", type=str, default="a4", help="Paper preset for PDF export (default: a4)")
    parser.add_argument("--orientation", type=str, default="portrait", choices=["portrait", "landscape"], help="Page orientation (default: portrait)")
    parser.add_argument("--custom-width", type=int, default=None, help="Custom paper width in pixels")
    parser.add_argument("--custom-height", type=int, default=None, help="Custom paper height in pixels")
    parser.add_argument("--out", "-o", type=str, default=None, help="Output file path")

    args = parser.parse_args()

    try:
        pages = _read_pages(args.page)
    except FileNotFoundError as e:
        print(str(e))
        raise SystemExit(2)

    with Session(load_settings(), pages=pages) as session:
        if args.width:
            for idx in range(len(session.store)):
                session.store.resize_page(idx, args.width)

        for spec in args.font:
            name, sep, location = spec.partition("=")
            if not sep or not name or not location:
                print(f"Invalid --font value (expected NAME=LOCATION): {spec}")
                raise SystemExit(2)
            session.fonts.load_all([(name.strip(), location.strip())])
        if args.load_fonts:
            session.load_remote_fonts()
        if session.fonts.list_loaded():
            print("Fonts: " + ", ".join(friendly_name(n) for n in session.fonts.list_loaded()))

        if args.apply_font:
            for idx in range(len(session.store)):
                session.apply_font(args.apply_font, index=idx)

        if args.flatten:
            for idx in range(len(session.store)):
                session.store.flatten_page(idx)

        try:
            result = _run_export(session, args)
        except PageWriterError as e:
            print(f"Export failed: {e}")
            raise SystemExit(1)

    print(f"Saved {args.export} export to: {result.path}")
    if result.skipped:
        print("Pages skipped after render failures: " + ", ".join(str(n) for n in result.skipped))


if __name__ == "__main__":
    _cli()
