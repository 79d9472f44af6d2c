"""Page by page comparison of two documents across five dimensions.

Every page index up to the larger page count is visited.  Pages present in
both documents are rendered once per side and run through the visual,
colour, text/layout and font comparators; a page present in only one
document is reported as fully different.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Sequence

import fitz

from .core.color import compare_colors, write_color_diff_image
from .core.diff import compare_fonts, compare_text_and_layout
from .core.extraction import extract_font_resources
from .core.glyphs import extract_word_elements
from .core.types import (
    ColorDiff,
    DocumentDiffResult,
    DocumentSummary,
    FontDiff,
    InfoNotice,
    LayoutDiff,
    PageDiff,
    VisualDiff,
)
from .core.visual import MISSING_PAGE_DIFF, compare_visual, write_visual_diff_images
from .errors import ComparisonError, DiffEngineError
from .presets import CompareParams
from .utils.pdf_ops import is_supported_image, open_document, render_page

logger = logging.getLogger(__name__)

FONT_NOTICE_REASON = "Font differences detected"


def compare_documents(
    old_path: str | Path,
    new_path: str | Path,
    *,
    params: Optional[CompareParams] = None,
    output_dir: str | Path | None = None,
) -> DocumentDiffResult:
    """Compare two documents (PDF or image) and return the per-page diffs.

    Diff images are written to ``output_dir`` when one is given.  Load
    failures raise the matching :mod:`visualdiff.errors` type; anything
    unexpected during the comparison is wrapped in :class:`ComparisonError`.
    Both documents are closed on every exit path.
    """

    params = (params or CompareParams()).validate()
    out_dir = Path(output_dir) if output_dir is not None else None
    image_input = is_supported_image(old_path) or is_supported_image(new_path)

    logger.info("Comparing %s vs %s", old_path, new_path)
    with open_document(old_path) as doc_old, open_document(new_path) as doc_new:
        try:
            pages = compare_open_documents(doc_old, doc_new, params, out_dir)
        except DiffEngineError:
            raise
        except Exception as exc:
            logger.exception("Comparison of %s vs %s failed", old_path, new_path)
            raise ComparisonError(exc) from exc

    summary = create_summary(pages, params)
    logger.info(
        "Compared %d page(s): %d with differences",
        summary.total_pages,
        summary.pages_with_diff,
    )
    return DocumentDiffResult(pages=tuple(pages), summary=summary, is_image_comparison=image_input)


def compare_open_documents(
    doc_old: fitz.Document,
    doc_new: fitz.Document,
    params: CompareParams,
    output_dir: Optional[Path] = None,
) -> List[PageDiff]:
    page_count = max(len(doc_old), len(doc_new))
    return [compare_page(doc_old, doc_new, index, params, output_dir) for index in range(page_count)]


def compare_page(
    doc_old: fitz.Document,
    doc_new: fitz.Document,
    page_index: int,
    params: CompareParams,
    output_dir: Optional[Path] = None,
) -> PageDiff:
    has_old = page_index < len(doc_old)
    has_new = page_index < len(doc_new)
    page_number = page_index + 1

    if has_old != has_new:
        logger.debug("Page %d exists only in the %s document", page_number, "old" if has_old else "new")
        return PageDiff(
            page_number=page_number,
            visual_diff=MISSING_PAGE_DIFF,
            exists_in_old=has_old,
            exists_in_new=has_new,
        )
    if not has_old:
        return PageDiff(page_number=page_number, visual_diff=None, exists_in_old=False, exists_in_new=False)

    old_raster = render_page(doc_old, page_index, params.dpi)
    new_raster = render_page(doc_new, page_index, params.dpi)

    visual_diff = compare_visual(old_raster, new_raster)
    color_diffs = compare_colors(old_raster, new_raster, params.threshold_color)

    old_words = extract_word_elements(doc_old, page_index)
    new_words = extract_word_elements(doc_new, page_index)
    text_diffs, layout_diffs = compare_text_and_layout(old_words, new_words, params.threshold_layout)
    font_diffs = compare_fonts(
        extract_font_resources(doc_old, page_index),
        extract_font_resources(doc_new, page_index),
        old_words,
        new_words,
    )

    old_image = new_image = diff_image = color_image = None
    if output_dir is not None:
        if visual_diff.pixel_difference_ratio > params.threshold_pixel:
            old_image, new_image, diff_image = write_visual_diff_images(
                old_raster, new_raster, output_dir, page_number
            )
        if color_diffs:
            color_image = write_color_diff_image(
                old_raster, new_raster, params.threshold_color, output_dir, page_number
            )

    logger.debug(
        "Page %d: ratio=%.5f colors=%d text=%d layout=%d fonts=%d",
        page_number,
        visual_diff.pixel_difference_ratio,
        len(color_diffs),
        len(text_diffs),
        len(layout_diffs),
        len(font_diffs),
    )

    return PageDiff(
        page_number=page_number,
        visual_diff=visual_diff,
        color_diffs=tuple(color_diffs),
        text_diffs=tuple(text_diffs),
        layout_diffs=tuple(layout_diffs),
        font_diffs=tuple(font_diffs),
        old_image_path=old_image,
        new_image_path=new_image,
        diff_image_path=diff_image,
        color_image_path=color_image,
        notice=create_info_notice(font_diffs, visual_diff, color_diffs, layout_diffs),
        exists_in_old=True,
        exists_in_new=True,
    )


def create_info_notice(
    font_diffs: Sequence[FontDiff],
    visual_diff: Optional[VisualDiff],
    color_diffs: Sequence[ColorDiff],
    layout_diffs: Sequence[LayoutDiff],
) -> Optional[InfoNotice]:
    """Flag pages where a font change probably caused the other differences.

    The notice is advisory; all differences stay in the page diff.
    """

    if not font_diffs:
        return None
    visual_changed = visual_diff is not None and visual_diff.difference_count > 0
    if visual_changed or color_diffs or layout_diffs:
        return InfoNotice(reason=FONT_NOTICE_REASON)
    return None


def create_summary(pages: Sequence[PageDiff], params: CompareParams) -> DocumentSummary:
    def visual_above_threshold(page: PageDiff) -> bool:
        return (
            page.visual_diff is not None
            and page.visual_diff.pixel_difference_ratio > params.threshold_pixel
        )

    pages_with_diff = sum(
        1
        for page in pages
        if visual_above_threshold(page)
        or page.color_diffs
        or page.text_diffs
        or page.layout_diffs
        or page.font_diffs
    )
    return DocumentSummary(
        total_pages=len(pages),
        pages_with_diff=pages_with_diff,
        visual_diff_count=sum(1 for page in pages if visual_above_threshold(page)),
        color_diff_count=sum(1 for page in pages if page.color_diffs),
        text_diff_count=sum(len(page.text_diffs) for page in pages),
        layout_diff_count=sum(len(page.layout_diffs) for page in pages),
        font_diff_count=sum(len(page.font_diffs) for page in pages),
        has_differences=any(page.has_differences for page in pages),
    )
