"""Custom exceptions used across visualdiff."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

__all__ = [
    "DiffEngineError",
    "FileNotFound",
    "DocumentLoadError",
    "ImageConversionError",
    "ImageReadError",
    "FontExtractionError",
    "ComparisonError",
]


class DiffEngineError(Exception):
    """Base class for every failure raised by the comparison engine."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class FileNotFound(DiffEngineError):
    """Raised when one of the input files does not exist."""

    def __init__(self, path: str | Path) -> None:
        super().__init__(f"File not found: {path}")
        self.path = Path(path)


class DocumentLoadError(DiffEngineError):
    """Raised when an input document cannot be opened or parsed."""

    def __init__(self, path: str | Path, cause: BaseException) -> None:
        super().__init__(f"Failed to load document: {path}", cause)
        self.path = Path(path)


class ImageConversionError(DiffEngineError):
    """Raised when an image input cannot be converted to a PDF page."""

    def __init__(self, path: str | Path, cause: BaseException) -> None:
        super().__init__(f"Failed to convert image to PDF: {path}", cause)
        self.path = Path(path)


class ImageReadError(DiffEngineError):
    """Raised when an image input cannot be read at all."""

    def __init__(self, path: str | Path, cause: BaseException) -> None:
        super().__init__(f"Failed to read image: {path}", cause)
        self.path = Path(path)


class FontExtractionError(DiffEngineError):
    """Raised when a single font resource on a page is malformed."""

    def __init__(self, font_name: str, page_number: int, cause: BaseException) -> None:
        super().__init__(f"Failed to extract font '{font_name}' on page {page_number}", cause)
        self.font_name = font_name
        self.page_number = page_number


class ComparisonError(DiffEngineError):
    """Wraps any unexpected failure during a comparison pass."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"Comparison failed: {cause}", cause)
