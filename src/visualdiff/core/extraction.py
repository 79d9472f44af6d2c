"""Character and font extraction using PyMuPDF.

Glyph coordinates are converted to PDF user space (origin at the bottom-left
corner, y growing upwards) so that a larger ``y`` always means "higher on the
page".  Word aggregation relies on that convention for its reading order.
"""
from __future__ import annotations

import logging
import re
from typing import Dict, List, Sequence

import fitz  # PyMuPDF

from ..errors import FontExtractionError
from .types import BoundingBox, FontInfo, Glyph

logger = logging.getLogger(__name__)

_SUBSET_PREFIX = re.compile(r"^[A-Z]{6}\+")
_NAME_SEPARATORS = re.compile(r"[\s_-]+")


def strip_subset_prefix(font_name: str) -> str:
    """Drop the ``ABCDEF+`` tag PDF producers add to subset fonts."""

    return _SUBSET_PREFIX.sub("", font_name)


def font_key(font_name: str) -> str:
    """Lookup key shared by text-layer and resource font names.

    The text layer reports e.g. ``Lato-LightItalic`` where the page resources
    list ``Lato Light Italic``; both map to ``latolightitalic``.
    """

    return _NAME_SEPARATORS.sub("", strip_subset_prefix(font_name)).lower()


def extract_character_placements(doc: fitz.Document, page_index: int) -> List[Glyph]:
    """Return one :class:`Glyph` per character drawn on the page."""

    page = doc[page_index]
    page_top = page.rect.y1
    glyphs: List[Glyph] = []

    raw = page.get_text("rawdict")
    for block in raw.get("blocks", []):
        if block.get("type", 0) != 0:
            continue
        for line in block.get("lines", []):
            for span in line.get("spans", []):
                font_name = strip_subset_prefix(span.get("font") or "") or "Unknown"
                font_size = float(span.get("size") or 0.0)
                for char in span.get("chars", []):
                    text = char.get("c", "")
                    if not text:
                        continue
                    x0, y0, x1, y1 = char["bbox"]
                    bbox = BoundingBox(
                        x=float(x0),
                        y=float(page_top - y1),
                        width=float(max(0.0, x1 - x0)),
                        height=float(max(0.0, y1 - y0)),
                    )
                    glyphs.append(Glyph(text, bbox, font_name, font_size))
    return glyphs


def font_info_from_entry(entry: Sequence[object], page_number: int) -> FontInfo:
    """Build a :class:`FontInfo` from one :meth:`fitz.Page.get_fonts` entry.

    Entries are ``(xref, ext, type, basefont, name, encoding, ...)``.  ``ext``
    is ``"n/a"`` when the font program is not embedded.
    """

    ref_name = str(entry[4]) if len(entry) > 4 else "?"
    try:
        _xref, ext, font_type, basefont, name = entry[:5]
        font_name = strip_subset_prefix(str(basefont or name or ""))
        if not font_name:
            raise ValueError("font resource has no name")
        is_embedded = bool(ext) and ext != "n/a"
        is_outlined = font_type == "Type3" or "outline" in font_name.lower()
    except (TypeError, ValueError) as exc:
        raise FontExtractionError(ref_name, page_number, exc) from exc
    return FontInfo(font_name=font_name, is_embedded=is_embedded, is_outlined=is_outlined)


def extract_font_resources(doc: fitz.Document, page_index: int) -> Dict[str, FontInfo]:
    """Map font name to :class:`FontInfo` for every font the page references.

    A malformed font entry is logged and skipped; it never fails the page.
    """

    if page_index >= len(doc):
        return {}
    page_number = page_index + 1
    try:
        entries = doc[page_index].get_fonts(full=True)
    except Exception:
        logger.exception("Failed to read font resources of page %d", page_number)
        return {}

    fonts: Dict[str, FontInfo] = {}
    for entry in entries:
        try:
            info = font_info_from_entry(entry, page_number)
        except FontExtractionError as exc:
            logger.debug("Skipping font: %s (%s)", exc.message, exc.cause)
            continue
        fonts[info.font_name] = info
    return fonts
