"""Export orchestration: rasterize pages and assemble artifacts."""

from .export import ExportPipeline, ExportResult, encode_image, stitch_vertically
from .layout import Placement, fit_to_page, resolve_page_size
from .writers import ReportlabPdfWriter, ZipPackager

__all__ = [
    "ExportPipeline",
    "ExportResult",
    "Placement",
    "ReportlabPdfWriter",
    "ZipPackager",
    "encode_image",
    "fit_to_page",
    "resolve_page_size",
    "stitch_vertically",
]
