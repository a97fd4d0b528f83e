"""pagewriter: multi-page rich-content document core with multi-format export.

Packages:
- pagewriter.docs: page model, page store, undo/redo history, editing surface, DOCX writer
- pagewriter.render: style flattening and Pillow rasterization
- pagewriter.pipeline: export assembly (PNG, zip, stitched PNG, PDF, DOCX)
- pagewriter.fonts: font registry and remote font discovery
"""

from .session import Session

__version__ = "0.1.0"

__all__ = ["Session", "__version__"]
