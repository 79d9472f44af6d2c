from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

import numpy as np


class DiffType(str, Enum):
    ADDED = "added"
    REMOVED = "removed"
    CHANGED = "changed"


@dataclass(frozen=True)
class BoundingBox:
    """Axis aligned box in page units; ``(x, y)`` is the reference corner."""

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def top(self) -> float:
        return self.y + self.height

    def union(self, other: "BoundingBox") -> "BoundingBox":
        x0 = min(self.x, other.x)
        y0 = min(self.y, other.y)
        x1 = max(self.right, other.right)
        y1 = max(self.top, other.top)
        return BoundingBox(x0, y0, x1 - x0, y1 - y0)

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class Glyph:
    """One rendered character as reported by the text extractor."""

    text: str
    bbox: BoundingBox
    font_name: str
    font_size_pt: float

    @property
    def x(self) -> float:
        return self.bbox.x

    @property
    def y(self) -> float:
        return self.bbox.y

    @property
    def right(self) -> float:
        return self.bbox.right

    @property
    def height(self) -> float:
        return self.bbox.height

    def reading_order_key(self) -> Tuple[float, float]:
        # y grows upward, so the highest line sorts first
        return (-self.y, self.x)


@dataclass(frozen=True)
class TextElement:
    """Word level token built from one or more glyphs."""

    text: str
    bbox: BoundingBox
    page_number: int
    font_name: str

    def to_dict(self) -> Dict[str, object]:
        return {
            "text": self.text,
            "bbox": self.bbox.to_dict(),
            "page_number": self.page_number,
            "font_name": self.font_name,
        }


@dataclass(frozen=True)
class RenderedPage:
    """Packed ``0xRRGGBB`` pixels, row-major, shape ``(height, width)``."""

    width: int
    height: int
    pixels: np.ndarray = field(repr=False, compare=False)

    @property
    def area(self) -> int:
        return self.width * self.height


@dataclass(frozen=True)
class RgbColor:
    r: int
    g: int
    b: int

    def to_dict(self) -> Dict[str, int]:
        return {"r": self.r, "g": self.g, "b": self.b}


@dataclass(frozen=True)
class VisualDiff:
    pixel_difference_ratio: float
    difference_count: int

    def to_dict(self) -> Dict[str, object]:
        return {
            "pixel_difference_ratio": self.pixel_difference_ratio,
            "difference_count": self.difference_count,
        }


@dataclass(frozen=True)
class ColorDiff:
    x: int
    y: int
    old_rgb: RgbColor
    new_rgb: RgbColor
    distance: float

    def to_dict(self) -> Dict[str, object]:
        return {
            "x": self.x,
            "y": self.y,
            "old_rgb": self.old_rgb.to_dict(),
            "new_rgb": self.new_rgb.to_dict(),
            "distance": self.distance,
        }


@dataclass(frozen=True)
class TextDiff:
    diff_type: DiffType
    old_text: Optional[str]
    new_text: Optional[str]
    bbox: BoundingBox

    def to_dict(self) -> Dict[str, object]:
        return {
            "diff_type": self.diff_type.value,
            "old_text": self.old_text,
            "new_text": self.new_text,
            "bbox": self.bbox.to_dict(),
        }


@dataclass(frozen=True)
class LayoutDiff:
    text: str
    old_bbox: BoundingBox
    new_bbox: BoundingBox
    displacement: float

    def to_dict(self) -> Dict[str, object]:
        return {
            "text": self.text,
            "old_bbox": self.old_bbox.to_dict(),
            "new_bbox": self.new_bbox.to_dict(),
            "displacement": self.displacement,
        }


@dataclass(frozen=True)
class FontInfo:
    font_name: str
    is_embedded: bool
    is_outlined: bool

    def to_dict(self) -> Dict[str, object]:
        return {
            "font_name": self.font_name,
            "is_embedded": self.is_embedded,
            "is_outlined": self.is_outlined,
        }


@dataclass(frozen=True)
class FontDiff:
    diff_type: DiffType
    old_font: Optional[FontInfo]
    new_font: Optional[FontInfo]
    affected_text: Optional[str]

    def to_dict(self) -> Dict[str, object]:
        return {
            "diff_type": self.diff_type.value,
            "old_font": self.old_font.to_dict() if self.old_font else None,
            "new_font": self.new_font.to_dict() if self.new_font else None,
            "affected_text": self.affected_text,
        }


@dataclass(frozen=True)
class InfoNotice:
    """Advisory note attached to a page; never hides any difference."""

    reason: str

    def to_dict(self) -> Dict[str, object]:
        return {"reason": self.reason}


@dataclass(frozen=True)
class PageDiff:
    page_number: int
    visual_diff: Optional[VisualDiff]
    color_diffs: Tuple[ColorDiff, ...] = ()
    text_diffs: Tuple[TextDiff, ...] = ()
    layout_diffs: Tuple[LayoutDiff, ...] = ()
    font_diffs: Tuple[FontDiff, ...] = ()
    old_image_path: Optional[str] = None
    new_image_path: Optional[str] = None
    diff_image_path: Optional[str] = None
    color_image_path: Optional[str] = None
    notice: Optional[InfoNotice] = None
    exists_in_old: bool = True
    exists_in_new: bool = True

    @property
    def has_differences(self) -> bool:
        if not (self.exists_in_old and self.exists_in_new):
            return True
        return (
            (self.visual_diff is not None and self.visual_diff.difference_count > 0)
            or bool(self.color_diffs)
            or bool(self.text_diffs)
            or bool(self.layout_diffs)
            or bool(self.font_diffs)
        )

    def to_dict(self) -> Dict[str, object]:
        return {
            "page_number": self.page_number,
            "visual_diff": self.visual_diff.to_dict() if self.visual_diff else None,
            "color_diffs": [diff.to_dict() for diff in self.color_diffs],
            "text_diffs": [diff.to_dict() for diff in self.text_diffs],
            "layout_diffs": [diff.to_dict() for diff in self.layout_diffs],
            "font_diffs": [diff.to_dict() for diff in self.font_diffs],
            "old_image_path": self.old_image_path,
            "new_image_path": self.new_image_path,
            "diff_image_path": self.diff_image_path,
            "color_image_path": self.color_image_path,
            "notice": self.notice.to_dict() if self.notice else None,
            "exists_in_old": self.exists_in_old,
            "exists_in_new": self.exists_in_new,
            "has_differences": self.has_differences,
        }


@dataclass(frozen=True)
class DocumentSummary:
    total_pages: int
    pages_with_diff: int
    visual_diff_count: int
    color_diff_count: int
    text_diff_count: int
    layout_diff_count: int
    font_diff_count: int
    has_differences: bool

    def to_dict(self) -> Dict[str, object]:
        return {
            "total_pages": self.total_pages,
            "pages_with_diff": self.pages_with_diff,
            "visual_diff_count": self.visual_diff_count,
            "color_diff_count": self.color_diff_count,
            "text_diff_count": self.text_diff_count,
            "layout_diff_count": self.layout_diff_count,
            "font_diff_count": self.font_diff_count,
            "has_differences": self.has_differences,
        }


@dataclass(frozen=True)
class DocumentDiffResult:
    pages: Tuple[PageDiff, ...]
    summary: DocumentSummary
    is_image_comparison: bool = False

    @property
    def has_differences(self) -> bool:
        return self.summary.has_differences

    def to_dict(self) -> Dict[str, object]:
        return {
            "summary": self.summary.to_dict(),
            "is_image_comparison": self.is_image_comparison,
            "pages": [page.to_dict() for page in self.pages],
        }
