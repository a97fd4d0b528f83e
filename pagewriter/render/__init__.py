"""Rendering helpers: style flattening and page rasterization."""

from .flatten import (
    Block,
    TextLeaf,
    flatten_markup,
    flatten_runs,
    iter_blocks,
    iter_text_leaves,
    runs_to_markup,
)
from .raster import PillowRasterizer, Rasterizer

__all__ = [
    "Block",
    "PillowRasterizer",
    "Rasterizer",
    "TextLeaf",
    "flatten_markup",
    "flatten_runs",
    "iter_blocks",
    "iter_text_leaves",
    "runs_to_markup",
]
