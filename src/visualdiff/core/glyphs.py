"""Aggregate character placements into word level text elements.

Extractors report one glyph per character, which makes text diffs noisy.
Glyphs are grouped into lines by vertical proximity and each line is then
split into words on whitespace, horizontal gaps and font changes.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import fitz

from .extraction import extract_character_placements
from .types import BoundingBox, Glyph, TextElement

logger = logging.getLogger(__name__)

LINE_TOLERANCE_FACTOR = 0.6
WORD_GAP_FACTOR = 0.35


def extract_word_elements(doc: fitz.Document, page_index: int) -> List[TextElement]:
    """Return the words of ``page_index`` in reading order.

    Extraction errors are logged and yield an empty list so the rest of the
    comparison can continue.
    """

    page_number = page_index + 1
    try:
        glyphs = extract_character_placements(doc, page_index)
        return glyphs_to_word_elements(glyphs, page_number)
    except Exception:
        logger.exception("Failed to extract glyphs/tokens from page %d", page_number)
        return []


def glyphs_to_word_elements(glyphs: Sequence[Glyph], page_number: int) -> List[TextElement]:
    if not glyphs:
        return []
    ordered = sorted(glyphs, key=Glyph.reading_order_key)
    words: List[TextElement] = []
    for line in cluster_into_lines(ordered):
        for text, bbox, font_name in split_line_into_words(line):
            words.append(TextElement(text=text, bbox=bbox, page_number=page_number, font_name=font_name))
    return words


def _line_tolerance(glyph: Glyph) -> float:
    return max(1.0, max(glyph.height, glyph.font_size_pt) * LINE_TOLERANCE_FACTOR)


def _word_gap_tolerance(glyph: Glyph) -> float:
    return max(1.0, glyph.font_size_pt) * WORD_GAP_FACTOR


def cluster_into_lines(sorted_glyphs: Sequence[Glyph]) -> List[List[Glyph]]:
    """Group glyphs already in reading order into lines.

    A new line starts when a glyph's ``y`` is further than the tolerance of
    the glyph that opened the current line.
    """

    lines: List[List[Glyph]] = []
    current: List[Glyph] = []
    current_y = 0.0
    current_tol = 0.0

    for glyph in sorted_glyphs:
        if current and abs(glyph.y - current_y) <= current_tol:
            current.append(glyph)
            continue
        if current:
            lines.append(current)
        current = [glyph]
        current_y = glyph.y
        current_tol = _line_tolerance(glyph)

    if current:
        lines.append(current)
    return lines


class _WordBuilder:
    """Accumulates glyphs of the word currently being built."""

    def __init__(self) -> None:
        self.parts: List[str] = []
        self.bbox: Optional[BoundingBox] = None
        self.font_name = "Unknown"
        self.prev_right = 0.0

    @property
    def active(self) -> bool:
        return self.bbox is not None

    def add(self, glyph: Glyph) -> None:
        if self.bbox is None:
            self.bbox = glyph.bbox
            self.font_name = glyph.font_name
        else:
            self.bbox = self.bbox.union(glyph.bbox)
        self.parts.append(glyph.text)
        self.prev_right = glyph.right

    def finish(self, out: List[tuple]) -> None:
        if self.bbox is not None:
            text = "".join(self.parts).strip()
            if text:
                out.append((text, self.bbox, self.font_name))
        self.parts = []
        self.bbox = None


def split_line_into_words(line: Sequence[Glyph]) -> List[tuple]:
    """Split one line into ``(text, bbox, font_name)`` word tuples."""

    words: List[tuple] = []
    builder = _WordBuilder()

    for glyph in sorted(line, key=lambda g: g.x):
        if not glyph.text.strip():
            # whitespace is a hard boundary and is dropped
            builder.finish(words)
        else:
            if builder.active:
                gap = glyph.x - builder.prev_right
                font_changed = glyph.font_name != builder.font_name
                if font_changed or gap > _word_gap_tolerance(glyph):
                    builder.finish(words)
            builder.add(glyph)

    builder.finish(words)
    return words
