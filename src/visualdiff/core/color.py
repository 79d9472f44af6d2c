"""Colour change detection using Euclidean RGB distance.

Pages are sampled every ``SAMPLING_STRIDE`` pixels in both axes and only the
``MAX_COLOR_DIFFS`` largest changes are kept, which bounds the size of the
report whatever the page looks like.  Distances range from 0 (identical) to
about 441.67 (black versus white).
"""
from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import List

import numpy as np

from ..utils.image_ops import MAGENTA, WHITE, blank_canvas, save_packed_png, unpack_rgb
from .types import ColorDiff, RenderedPage, RgbColor
from .visual import overlap_size

logger = logging.getLogger(__name__)

SAMPLING_STRIDE = 10
MAX_COLOR_DIFFS = 200


def extract_rgb(packed: int) -> RgbColor:
    """Split a ``0xRRGGBB`` integer into its channels (alpha is ignored)."""

    return RgbColor((packed >> 16) & 0xFF, (packed >> 8) & 0xFF, packed & 0xFF)


def color_distance(c1: RgbColor, c2: RgbColor) -> float:
    dr = c2.r - c1.r
    dg = c2.g - c1.g
    db = c2.b - c1.b
    return math.sqrt(dr * dr + dg * dg + db * db)


def _distance_map(old_pixels: np.ndarray, new_pixels: np.ndarray) -> np.ndarray:
    r1, g1, b1 = unpack_rgb(old_pixels)
    r2, g2, b2 = unpack_rgb(new_pixels)
    dr = r2 - r1
    dg = g2 - g1
    db = b2 - b1
    return np.sqrt((dr * dr + dg * dg + db * db).astype(np.float64))


def compare_colors(
    old: RenderedPage,
    new: RenderedPage,
    threshold: float,
    *,
    stride: int = SAMPLING_STRIDE,
    limit: int = MAX_COLOR_DIFFS,
) -> List[ColorDiff]:
    """Return the most significant sampled colour changes, largest first."""

    width, height = overlap_size(old, new)
    if width == 0 or height == 0:
        return []

    old_samples = old.pixels[:height:stride, :width:stride]
    new_samples = new.pixels[:height:stride, :width:stride]
    distances = _distance_map(old_samples, new_samples)
    keep = (old_samples != new_samples) & (distances > threshold)

    rows, cols = np.nonzero(keep)
    if rows.size == 0:
        return []
    kept = distances[rows, cols]
    # stable so equal distances stay in scan order
    order = np.argsort(-kept, kind="stable")[:limit]

    diffs: List[ColorDiff] = []
    for idx in order:
        row = int(rows[idx])
        col = int(cols[idx])
        diffs.append(
            ColorDiff(
                x=col * stride,
                y=row * stride,
                old_rgb=extract_rgb(int(old_samples[row, col])),
                new_rgb=extract_rgb(int(new_samples[row, col])),
                distance=float(kept[idx]),
            )
        )
    return diffs


def build_color_diff_image(old: RenderedPage, new: RenderedPage, threshold: float) -> np.ndarray:
    """Return packed pixels marking above-threshold and one-sided pixels in magenta."""

    width, height = overlap_size(old, new)
    canvas = blank_canvas(max(old.height, new.height), max(old.width, new.width), WHITE)
    canvas[: old.height, : old.width] = MAGENTA
    canvas[: new.height, : new.width] = MAGENTA

    old_overlap = old.pixels[:height, :width]
    new_overlap = new.pixels[:height, :width]
    exceeds = (old_overlap != new_overlap) & (_distance_map(old_overlap, new_overlap) > threshold)
    canvas[:height, :width] = np.where(exceeds, np.uint32(MAGENTA), new_overlap)
    return canvas


def write_color_diff_image(
    old: RenderedPage,
    new: RenderedPage,
    threshold: float,
    output_dir: Path,
    page_number: int,
) -> str:
    output_dir.mkdir(parents=True, exist_ok=True)
    name = f"color_diff_p{page_number}.png"
    save_packed_png(build_color_diff_image(old, new, threshold), output_dir / name)
    logger.debug("Page %d: colour diff image written to %s", page_number, output_dir)
    return name
