from __future__ import annotations

import io
import re
from typing import Any, Dict, Iterable, List, Optional, Protocol

from docx import Document as DocxDocument
from docx.enum.section import WD_ORIENT
from docx.enum.text import WD_BREAK
from docx.shared import Pt, RGBColor
from lxml import etree, html
from PIL import ImageColor

from pagewriter.fonts.registry import parse_family_list
from pagewriter.render.flatten import iter_blocks

from .styles import font_size_px, parse_style, resolve_effective_style

PAGE_BREAK_STYLE = "page-break-after:always"
_WS_RE = re.compile(r"\s+")
_HEADING_RE = re.compile(r"^h([1-6])$")


class RichDocumentWriter(Protocol):
    def convert(self, markup: str, options: Optional[Dict[str, Any]] = None) -> bytes: ...


def compose_document_markup(contents: Iterable[str]) -> str:
    """Join page contents into one HTML document, each page wrapped in a page-break marker."""
    body = "".join(f'<div style="{PAGE_BREAK_STYLE}">{content}</div>' for content in contents)
    return f"<!DOCTYPE html><html><head><meta charset='utf-8'></head><body>{body}</body></html>"


def _is_page_marker(el: etree._Element) -> bool:
    if not isinstance(el.tag, str) or el.tag.lower() != "div":
        return False
    return parse_style(el.get("style")).get("page-break-after", "").lower() == "always"


def _apply_run_style(run, style: Dict[str, str]) -> None:
    weight = style.get("font-weight", "").lower()
    if weight in ("bold", "bolder") or (weight.isdigit() and int(weight) >= 600):
        run.bold = True
    if style.get("font-style", "").lower() in ("italic", "oblique"):
        run.italic = True
    decoration = style.get("text-decoration", "").lower()
    if "underline" in decoration:
        run.underline = True
    if "line-through" in decoration:
        run.font.strike = True
    families = parse_family_list(style.get("font-family"))
    if families:
        run.font.name = families[0]
    if style.get("font-size"):
        run.font.size = Pt(round(font_size_px(style) * 0.75, 1))
    if style.get("color"):
        try:
            rgb = ImageColor.getrgb(style["color"])
            run.font.color.rgb = RGBColor(*rgb[:3])
        except ValueError:
            pass


class DocxWriter:
    """Converts composed page markup into a .docx package with python-docx."""

    def convert(self, markup: str, options: Optional[Dict[str, Any]] = None) -> bytes:
        options = options or {}
        tree = html.document_fromstring(markup)
        body = tree.find("body")
        if body is None:
            body = tree

        d = DocxDocument()
        section = d.sections[0]
        if str(options.get("orientation", "portrait")).lower() == "landscape":
            section.orientation = WD_ORIENT.LANDSCAPE
            section.page_width, section.page_height = section.page_height, section.page_width

        pages: List[etree._Element] = [el for el in body if _is_page_marker(el)] or [body]
        for pi, page_el in enumerate(pages):
            for block in iter_blocks(page_el):
                heading = _HEADING_RE.match(block.tag)
                p = d.add_heading("", level=int(heading.group(1))) if heading else d.add_paragraph()
                first = True
                for leaf in block.leaves:
                    text = _WS_RE.sub(" ", leaf.text)
                    if first:
                        text = text.lstrip()
                    if not text:
                        continue
                    first = False
                    run = p.add_run(text)
                    _apply_run_style(run, resolve_effective_style(leaf.parent))
            if pi < len(pages) - 1:
                d.add_paragraph().add_run().add_break(WD_BREAK.PAGE)

        out = io.BytesIO()
        d.save(out)
        return out.getvalue()


def write_docx(contents: Iterable[str], out_path: str, writer: Optional[RichDocumentWriter] = None,
               orientation: str = "portrait") -> str:
    data = (writer or DocxWriter()).convert(compose_document_markup(contents), {"orientation": orientation})
    with open(out_path, "wb") as f:
        f.write(data)
    return out_path
