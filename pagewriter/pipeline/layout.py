"""Page-fitting arithmetic for paginated export."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from pagewriter.docs.paper import CUSTOM_PAPER, DEFAULT_PAPER, PAPER_SIZES, lookup_paper
from pagewriter.errors import InvalidPageSize
from pagewriter.logger import get_logger

LOGGER = get_logger(__name__)

LANDSCAPE = "landscape"
PORTRAIT = "portrait"


@dataclass(frozen=True)
class Placement:
    scale: float
    x: float
    y: float
    width: float
    height: float


def resolve_page_size(
    paper: Optional[str] = DEFAULT_PAPER,
    orientation: str = PORTRAIT,
    custom_width: Optional[int] = None,
    custom_height: Optional[int] = None,
) -> Tuple[int, int]:
    """Target page geometry for a preset name or explicit custom dimensions.

    Lookup is case-insensitive. ``custom`` needs both dimensions; an unknown
    preset or incomplete custom size falls back to A4. Landscape swaps
    width and height.
    """
    name = (paper or DEFAULT_PAPER).strip().lower()
    if name == CUSTOM_PAPER and custom_width and custom_height:
        w, h = int(custom_width), int(custom_height)
        if w <= 0 or h <= 0:
            raise InvalidPageSize(f"Custom page size must be positive, got {w}x{h}")
    else:
        size = lookup_paper(name)
        if size is None:
            LOGGER.warning("Unknown paper size %r, using %s", paper, DEFAULT_PAPER.upper())
            size = PAPER_SIZES[DEFAULT_PAPER]
        w, h = size
    if (orientation or PORTRAIT).strip().lower() == LANDSCAPE:
        w, h = h, w
    return w, h


def fit_to_page(image_w: float, image_h: float, page_w: float, page_h: float) -> Placement:
    """Scale an image uniformly to fit inside a page and centre it."""
    if image_w <= 0 or image_h <= 0:
        raise ValueError(f"Image size must be positive, got {image_w}x{image_h}")
    scale = min(page_w / image_w, page_h / image_h)
    w = image_w * scale
    h = image_h * scale
    return Placement(scale=scale, x=(page_w - w) / 2, y=(page_h - h) / 2, width=w, height=h)
