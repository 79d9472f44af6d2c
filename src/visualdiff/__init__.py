"""Multi-dimensional comparison of rendered PDF pages and images."""

from __future__ import annotations

from .compare import compare_documents
from .core.types import (
    BoundingBox,
    ColorDiff,
    DiffType,
    DocumentDiffResult,
    DocumentSummary,
    FontDiff,
    FontInfo,
    LayoutDiff,
    PageDiff,
    TextDiff,
    TextElement,
    VisualDiff,
)
from .errors import (
    ComparisonError,
    DiffEngineError,
    DocumentLoadError,
    FileNotFound,
    FontExtractionError,
    ImageConversionError,
    ImageReadError,
)
from .presets import CompareParams, get_preset, iter_presets

__all__ = [
    "compare_documents",
    "BoundingBox",
    "ColorDiff",
    "DiffType",
    "DocumentDiffResult",
    "DocumentSummary",
    "FontDiff",
    "FontInfo",
    "LayoutDiff",
    "PageDiff",
    "TextDiff",
    "TextElement",
    "VisualDiff",
    "CompareParams",
    "get_preset",
    "iter_presets",
    "DiffEngineError",
    "FileNotFound",
    "DocumentLoadError",
    "ImageConversionError",
    "ImageReadError",
    "FontExtractionError",
    "ComparisonError",
]

__version__ = "0.3.0"
