import math

import numpy as np
import pytest

from visualdiff.core.color import (
    MAX_COLOR_DIFFS,
    build_color_diff_image,
    color_distance,
    compare_colors,
    extract_rgb,
)
from visualdiff.core.types import RenderedPage, RgbColor
from visualdiff.utils.image_ops import MAGENTA, WHITE, pack_rgb


def page(width, height, color=WHITE):
    return RenderedPage(width, height, np.full((height, width), color, dtype=np.uint32))


def test_color_distance_bounds():
    black = RgbColor(0, 0, 0)
    white = RgbColor(255, 255, 255)
    assert color_distance(black, white) == pytest.approx(math.sqrt(3 * 255**2))
    assert color_distance(black, white) == pytest.approx(441.67, abs=0.01)
    assert color_distance(RgbColor(12, 34, 56), RgbColor(12, 34, 56)) == 0.0


def test_extract_rgb_ignores_alpha():
    assert extract_rgb(0x123456) == RgbColor(0x12, 0x34, 0x56)
    assert extract_rgb(0xFF123456) == RgbColor(0x12, 0x34, 0x56)


def test_identical_pages_have_no_color_diffs():
    assert compare_colors(page(50, 50), page(50, 50), 0.0) == []


def test_only_sampled_coordinates_are_reported():
    old = page(50, 50)
    new = page(50, 50)
    new.pixels[5, 5] = 0x000000  # between samples
    assert compare_colors(old, new, 0.0) == []

    new.pixels[20, 10] = 0x000000
    diffs = compare_colors(old, new, 0.0)
    assert len(diffs) == 1
    assert (diffs[0].x, diffs[0].y) == (10, 20)
    assert diffs[0].old_rgb == RgbColor(255, 255, 255)
    assert diffs[0].new_rgb == RgbColor(0, 0, 0)


def test_threshold_filters_small_changes():
    old = page(20, 20)
    new = page(20, 20)
    new.pixels[0, 0] = 0xFEFEFE  # distance ~1.73
    new.pixels[10, 10] = 0x808080
    diffs = compare_colors(old, new, 2.0)
    assert [(diff.x, diff.y) for diff in diffs] == [(10, 10)]


def test_results_are_capped_and_sorted():
    old = page(300, 300)
    values = (np.arange(300 * 300).reshape(300, 300) % 250).astype(np.uint8)
    rgb = np.stack([values, values, values], axis=-1)
    new = RenderedPage(300, 300, pack_rgb(rgb))

    diffs = compare_colors(old, new, 0.0)

    assert len(diffs) == MAX_COLOR_DIFFS
    distances = [diff.distance for diff in diffs]
    assert all(a >= b for a, b in zip(distances, distances[1:]))
    assert distances[0] == pytest.approx(math.sqrt(3) * 255)


def test_only_overlap_is_sampled():
    diffs = compare_colors(page(30, 30, 0x000000), page(20, 40), 0.0)
    assert len(diffs) == 6
    assert max(diff.x for diff in diffs) == 10
    assert max(diff.y for diff in diffs) == 20


def test_color_diff_image_marks_changes_above_threshold():
    old = page(3, 2)
    new = page(2, 3)
    new.pixels[0, 0] = 0x000000  # far from white
    new.pixels[1, 1] = 0xFEFEFE  # below threshold

    image = build_color_diff_image(old, new, 10.0)

    assert image.shape == (3, 3)
    assert image[0, 0] == MAGENTA
    assert image[1, 1] == 0xFEFEFE
    assert image[0, 1] == WHITE
    assert image[0, 2] == MAGENTA
    assert image[2, 0] == MAGENTA
    assert image[2, 2] == WHITE
