"""Rasterization of page markup into Pillow images.

``PillowRasterizer`` lays text out block by block with a greedy word wrap
and draws it with Pillow. It is not a typesetter: there is no kerning,
hyphenation or bidi support, only enough layout to produce a faithful
preview of styled text at a given scale.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Tuple

from lxml import etree
from PIL import Image, ImageColor, ImageDraw, ImageFont

from pagewriter.docs.styles import font_size_px, length_px, parse_fragment, resolve_effective_style
from pagewriter.errors import RasterizationError
from pagewriter.fonts.registry import FontRegistry

from .flatten import Block, iter_blocks

FontLike = ImageFont.ImageFont
_TOKEN_RE = re.compile(r"\S+|\s+")
_DEFAULT_LINE_HEIGHT = 1.2
_BLOCK_GAP_EM = 0.5


class Rasterizer(Protocol):
    def render(self, markup: str, width: int, scale: float, padding: int) -> Image.Image: ...


@dataclass
class _Segment:
    text: str
    font: FontLike
    style: Dict[str, str]
    size: float
    width: float


@dataclass
class _Line:
    segments: List[_Segment] = field(default_factory=list)
    width: float = 0.0
    height: float = 0.0


def _is_bold(style: Dict[str, str]) -> bool:
    weight = style.get("font-weight", "").lower()
    if weight in ("bold", "bolder"):
        return True
    return weight.isdigit() and int(weight) >= 600


def _line_height(style: Dict[str, str], size: float, scale: float) -> float:
    value = style.get("line-height", "").strip().lower()
    if not value or value == "normal":
        return size * _DEFAULT_LINE_HEIGHT
    try:
        return size * float(value)
    except ValueError:
        pass
    px = length_px(value, font_size_px(style))
    return px * scale if px and px > 0 else size * _DEFAULT_LINE_HEIGHT


def _letter_spacing(style: Dict[str, str], scale: float) -> float:
    value = style.get("letter-spacing", "").strip().lower()
    if not value or value == "normal":
        return 0.0
    px = length_px(value, font_size_px(style))
    return px * scale if px else 0.0


def _color(style: Dict[str, str]) -> Tuple[int, ...]:
    try:
        return ImageColor.getrgb(style.get("color") or "black")
    except ValueError:
        return (0, 0, 0)


def _default_font(size: int) -> FontLike:
    try:
        pil_fonts_dir = os.path.join(os.path.dirname(ImageFont.__file__), "fonts")
        dv_path = os.path.join(pil_fonts_dir, "DejaVuSans.ttf")
        if os.path.exists(dv_path):
            return ImageFont.truetype(dv_path, size)
    except OSError:
        pass
    try:
        return ImageFont.truetype("DejaVuSans.ttf", size)
    except OSError:
        pass
    try:
        return ImageFont.load_default(size=size)
    except TypeError:
        return ImageFont.load_default()


class PillowRasterizer:
    def __init__(self, fonts: Optional[FontRegistry] = None, background: str = "white") -> None:
        self.fonts = fonts
        self.background = background

    def _font(self, cache: Dict[Tuple[str, int], FontLike], style: Dict[str, str], size: int) -> FontLike:
        key = (style.get("font-family", ""), size)
        font = cache.get(key)
        if font is None:
            font = self.fonts.truetype(key[0], size) if self.fonts is not None else None
            if font is None:
                font = _default_font(size)
            cache[key] = font
        return font

    def _measure(self, text: str, font: FontLike, spacing: float) -> float:
        return font.getlength(text) + spacing * len(text)

    def _layout_block(self, block: Block, max_width: float, scale: float,
                      cache: Dict[Tuple[str, int], FontLike]) -> List[_Line]:
        lines: List[_Line] = [_Line()]
        pending_space: Optional[_Segment] = None
        for leaf in block.leaves:
            style = resolve_effective_style(leaf.parent)
            size = max(1.0, font_size_px(style) * scale)
            font = self._font(cache, style, int(round(size)))
            spacing = _letter_spacing(style, scale)
            height = _line_height(style, size, scale)
            for token in _TOKEN_RE.findall(leaf.text):
                if token.isspace():
                    if lines[-1].segments:
                        pending_space = _Segment(" ", font, style, size, self._measure(" ", font, spacing))
                    continue
                seg = _Segment(token, font, style, size, self._measure(token, font, spacing))
                line = lines[-1]
                extra = pending_space.width if pending_space is not None else 0.0
                if line.segments and line.width + extra + seg.width > max_width:
                    line = _Line()
                    lines.append(line)
                elif pending_space is not None:
                    line.segments.append(pending_space)
                    line.width += pending_space.width
                pending_space = None
                line.segments.append(seg)
                line.width += seg.width
                line.height = max(line.height, height)
        return [ln for ln in lines if ln.segments]

    def _draw_segment(self, draw: ImageDraw.ImageDraw, x: float, y: float, seg: _Segment, scale: float) -> None:
        fill = _color(seg.style)
        spacing = _letter_spacing(seg.style, scale)
        stroke = max(1, int(seg.size // 24)) if _is_bold(seg.style) else 0
        if spacing:
            cx = x
            for ch in seg.text:
                draw.text((cx, y), ch, font=seg.font, fill=fill, stroke_width=stroke, stroke_fill=fill)
                cx += seg.font.getlength(ch) + spacing
        else:
            draw.text((x, y), seg.text, font=seg.font, fill=fill, stroke_width=stroke, stroke_fill=fill)
        decoration = seg.style.get("text-decoration", "").lower()
        thickness = max(1, int(seg.size / 14))
        if "underline" in decoration:
            uy = y + seg.size * 1.05
            draw.line([(x, uy), (x + seg.width, uy)], fill=fill, width=thickness)
        if "line-through" in decoration:
            ly = y + seg.size * 0.6
            draw.line([(x, ly), (x + seg.width, ly)], fill=fill, width=thickness)

    def render(self, markup: str, width: int, scale: float = 1.0, padding: int = 28) -> Image.Image:
        """Render ``markup`` laid out at ``width`` CSS pixels plus ``padding`` on every side.

        The image measures ``(width + 2 * padding) * scale`` pixels across.

        Raises:
            RasterizationError: the geometry is invalid or the markup cannot be parsed.
        """
        if width <= 0 or scale <= 0:
            raise RasterizationError(f"Invalid raster geometry: width={width}, scale={scale}")
        try:
            root = parse_fragment(markup)
        except (etree.ParserError, ValueError) as exc:
            raise RasterizationError(f"Could not parse page markup: {exc}") from exc

        pad = padding * scale
        content_w = width * scale
        cache: Dict[Tuple[str, int], FontLike] = {}
        laid_out: List[Tuple[List[_Line], float]] = []
        content_h = 0.0
        for block in iter_blocks(root):
            lines = self._layout_block(block, content_w, scale, cache)
            if not lines:
                continue
            gap = font_size_px(resolve_effective_style(block.owner)) * scale * _BLOCK_GAP_EM
            if laid_out:
                content_h += gap
            laid_out.append((lines, gap))
            content_h += sum(ln.height for ln in lines)

        img_w = max(1, int(round(content_w + 2 * pad)))
        img_h = max(1, int(round(content_h + 2 * pad)))
        image = Image.new("RGB", (img_w, img_h), self.background)
        draw = ImageDraw.Draw(image)

        y = pad
        for bi, (lines, gap) in enumerate(laid_out):
            if bi:
                y += gap
            for line in lines:
                x = pad
                for seg in line.segments:
                    if not seg.text.isspace():
                        self._draw_segment(draw, x, y, seg, scale)
                    x += seg.width
                y += line.height
        return image
