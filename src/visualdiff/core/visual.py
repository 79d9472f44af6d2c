"""Pixel level comparison of two rendered pages."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Tuple

import numpy as np

from ..utils.image_ops import RED, WHITE, blank_canvas, save_packed_png
from .types import RenderedPage, VisualDiff

logger = logging.getLogger(__name__)

MAX_DIFF_COUNT = 2**31 - 1

# Reported for a page that exists in only one document.
MISSING_PAGE_DIFF = VisualDiff(pixel_difference_ratio=1.0, difference_count=MAX_DIFF_COUNT)


def overlap_size(old: RenderedPage, new: RenderedPage) -> Tuple[int, int]:
    """Return ``(width, height)`` of the region both pages cover."""

    return min(old.width, new.width), min(old.height, new.height)


def union_area(old: RenderedPage, new: RenderedPage) -> int:
    width, height = overlap_size(old, new)
    return old.area + new.area - width * height


def compare_visual(old: RenderedPage, new: RenderedPage) -> VisualDiff:
    """Count differing pixels and relate them to the union of both pages.

    Pixels outside the overlap exist in only one page and always count as
    different.  The corner that neither page covers is not part of the union.
    """

    width, height = overlap_size(old, new)
    overlap = width * height
    mismatches = int(
        np.count_nonzero(old.pixels[:height, :width] != new.pixels[:height, :width])
    )
    one_sided = (old.area - overlap) + (new.area - overlap)
    total = mismatches + one_sided
    union = old.area + new.area - overlap

    ratio = 0.0 if union == 0 else total / union
    return VisualDiff(pixel_difference_ratio=ratio, difference_count=min(total, MAX_DIFF_COUNT))


def build_diff_image(old: RenderedPage, new: RenderedPage) -> np.ndarray:
    """Return packed pixels covering both pages.

    Differing and one-sided pixels are red, pixels covered by neither page
    are white and every other pixel keeps the new page's value.
    """

    width, height = overlap_size(old, new)
    canvas = blank_canvas(max(old.height, new.height), max(old.width, new.width), WHITE)
    canvas[: old.height, : old.width] = RED
    canvas[: new.height, : new.width] = RED

    old_overlap = old.pixels[:height, :width]
    new_overlap = new.pixels[:height, :width]
    canvas[:height, :width] = np.where(old_overlap != new_overlap, np.uint32(RED), new_overlap)
    return canvas


def write_visual_diff_images(
    old: RenderedPage,
    new: RenderedPage,
    output_dir: Path,
    page_number: int,
) -> Tuple[str, str, str]:
    """Write old, new and diff PNGs for a page and return their file names."""

    output_dir.mkdir(parents=True, exist_ok=True)
    old_name = f"old_p{page_number}.png"
    new_name = f"new_p{page_number}.png"
    diff_name = f"diff_p{page_number}.png"

    save_packed_png(old.pixels, output_dir / old_name)
    save_packed_png(new.pixels, output_dir / new_name)
    save_packed_png(build_diff_image(old, new), output_dir / diff_name)
    logger.debug("Page %d: visual diff images written to %s", page_number, output_dir)
    return old_name, new_name, diff_name
