"""Exception hierarchy for pagewriter.

Every failure raised by the editor core derives from ``PageWriterError`` so
callers can degrade an operation to "did not complete" without crashing
the session.
"""

from __future__ import annotations

from typing import Optional


class PageWriterError(Exception):
    """Base exception for all pagewriter errors."""


class StructuralError(PageWriterError):
    """A page-structure operation was rejected; the document is unchanged."""


class CannotDeleteLastPage(StructuralError):
    def __init__(self) -> None:
        super().__init__("Cannot delete the only page")


class PageIndexError(StructuralError, IndexError):
    def __init__(self, index: int, length: int) -> None:
        self.index = index
        self.length = length
        super().__init__(f"Page index {index} is out of range for a document of {length} page(s)")


class HistoryCorruption(PageWriterError):
    """A history snapshot could not be decoded."""


class AssetLoadError(PageWriterError):
    """An external asset could not be fetched or decoded."""


class FontLoadError(AssetLoadError):
    def __init__(self, name: str, source_location: str, reason: str) -> None:
        self.name = name
        self.source_location = source_location
        self.reason = reason
        super().__init__(f"Failed to load font '{name}' from {source_location}: {reason}")


class ExportError(PageWriterError):
    """Base class for export failures."""


class RasterizationError(ExportError):
    def __init__(self, message: str, page_id: Optional[str] = None) -> None:
        self.page_id = page_id
        super().__init__(message)


class EmptyExportError(ExportError):
    """No page could be rendered, so no artifact was written."""


class InvalidPageSize(ExportError, ValueError):
    """A target page size has non-positive dimensions."""


class CollaboratorUnavailable(ExportError):
    def __init__(self, collaborator: str) -> None:
        self.collaborator = collaborator
        super().__init__(f"Required collaborator is not available: {collaborator}")
