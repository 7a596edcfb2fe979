"""Error types raised by table layout and drawing."""

from typing import Any, Optional


class TableError(Exception):
    """Base class for all table errors."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        return f"{self.__class__.__name__}: {self.message}"


class InvalidTableError(TableError):
    """Table structure does not hold together (row coverage, width specs, ...)."""


class LayoutError(TableError):
    """Layout could not be computed."""


class StyleError(TableError):
    """Invalid styling configuration."""


class TextRenderingError(TableError):
    """Text could not be measured or encoded."""


class DimensionError(TableError):
    """A width, height or size is out of range."""


class PageNotFoundError(TableError):
    """The requested page does not exist in the document."""

    def __init__(self, page_id: Any):
        super().__init__(f"Page with ID {page_id!r} not found")
        self.page_id = page_id


class DocumentError(TableError):
    """Failure surfaced by the underlying PDF document model."""
