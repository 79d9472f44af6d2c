"""Text, layout and font comparison of word level elements."""
from __future__ import annotations

import math
from typing import Dict, List, Mapping, Optional, Sequence, Set, Tuple

from .extraction import font_key
from .types import BoundingBox, DiffType, FontDiff, FontInfo, LayoutDiff, TextDiff, TextElement

Match = Tuple[int, int]


def compute_text_matches(
    old_elements: Sequence[TextElement],
    new_elements: Sequence[TextElement],
) -> List[Match]:
    """Pair elements with identical text, greedily and in order.

    Each old element claims the first unclaimed new element with exactly the
    same text.  This is not an optimal alignment; ties always go to the
    earliest new position.
    """

    matches: List[Match] = []
    used: Set[int] = set()
    for old_idx, old_elem in enumerate(old_elements):
        for new_idx, new_elem in enumerate(new_elements):
            if new_idx not in used and new_elem.text == old_elem.text:
                matches.append((old_idx, new_idx))
                used.add(new_idx)
                break
    return matches


def displacement(a: BoundingBox, b: BoundingBox) -> float:
    """Euclidean distance between the top-left corners of two boxes.

    Boxes are in user space, so the top-left corner is ``(x, top)``.
    """

    return math.hypot(b.x - a.x, b.top - a.top)


def compare_text_and_layout(
    old_elements: Sequence[TextElement],
    new_elements: Sequence[TextElement],
    threshold_layout: float,
) -> Tuple[List[TextDiff], List[LayoutDiff]]:
    """Return added/removed text and the shifts of matched elements."""

    matches = compute_text_matches(old_elements, new_elements)
    matched_old = {old_idx for old_idx, _ in matches}
    matched_new = {new_idx for _, new_idx in matches}

    text_diffs: List[TextDiff] = [
        TextDiff(DiffType.ADDED, None, elem.text, elem.bbox)
        for idx, elem in enumerate(new_elements)
        if idx not in matched_new
    ]
    text_diffs.extend(
        TextDiff(DiffType.REMOVED, elem.text, None, elem.bbox)
        for idx, elem in enumerate(old_elements)
        if idx not in matched_old
    )

    layout_diffs: List[LayoutDiff] = []
    for old_idx, new_idx in matches:
        old_elem = old_elements[old_idx]
        new_elem = new_elements[new_idx]
        if not old_elem.text.strip() or not new_elem.text.strip():
            continue
        shift = displacement(old_elem.bbox, new_elem.bbox)
        if shift > threshold_layout:
            layout_diffs.append(LayoutDiff(old_elem.text, old_elem.bbox, new_elem.bbox, shift))

    return text_diffs, layout_diffs


def _index_by_key(fonts: Mapping[str, FontInfo]) -> Dict[str, FontInfo]:
    by_key: Dict[str, FontInfo] = {}
    for name, info in fonts.items():
        by_key.setdefault(font_key(name), info)
    return by_key


def _lookup_font(by_key: Mapping[str, FontInfo], font_name: str) -> Optional[FontInfo]:
    key = font_key(font_name)
    if key in by_key:
        return by_key[key]
    # resource names may drop the style suffix the text layer keeps, or vice versa
    candidates = [k for k in by_key if k and (key.startswith(k) or k.startswith(key))]
    if not candidates:
        return None
    return by_key[max(candidates, key=len)]


def compare_fonts(
    old_fonts: Mapping[str, FontInfo],
    new_fonts: Mapping[str, FontInfo],
    old_elements: Sequence[TextElement],
    new_elements: Sequence[TextElement],
) -> List[FontDiff]:
    """Detect substituted, added and removed fonts on a page.

    Substitutions look up the first new element with the same text for every
    old element.  This lookup is independent of the one-to-one matching used
    for layout, so one new element may back several substitutions.
    Token font names come from the text layer while the maps are keyed by
    resource names, so both sides are looked up through :func:`font_key`.
    """

    old_by_key = _index_by_key(old_fonts)
    new_by_key = _index_by_key(new_fonts)

    first_by_text: Dict[str, TextElement] = {}
    for elem in new_elements:
        first_by_text.setdefault(elem.text, elem)

    diffs: List[FontDiff] = []
    for old_elem in old_elements:
        new_elem = first_by_text.get(old_elem.text)
        if new_elem is not None and new_elem.font_name != old_elem.font_name:
            diffs.append(
                FontDiff(
                    DiffType.CHANGED,
                    _lookup_font(old_by_key, old_elem.font_name),
                    _lookup_font(new_by_key, new_elem.font_name),
                    old_elem.text,
                )
            )

    for name in sorted(set(new_fonts) - set(old_fonts)):
        diffs.append(FontDiff(DiffType.ADDED, None, new_fonts[name], None))
    for name in sorted(set(old_fonts) - set(new_fonts)):
        diffs.append(FontDiff(DiffType.REMOVED, old_fonts[name], None, None))
    return diffs
