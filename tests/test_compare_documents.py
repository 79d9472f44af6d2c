from pathlib import Path

import pytest

fitz = pytest.importorskip("fitz")

from visualdiff import compare as compare_module
from visualdiff.compare import FONT_NOTICE_REASON, compare_documents
from visualdiff.core import glyphs as glyphs_module
from visualdiff.core.types import DiffType
from visualdiff.errors import (
    ComparisonError,
    DocumentLoadError,
    FileNotFound,
    ImageReadError,
)
from visualdiff.presets import CompareParams


def _make_pdf(path: Path, pages, width=300, height=200, fontname="helv") -> None:
    doc = fitz.open()
    for text in pages:
        page = doc.new_page(width=width, height=height)
        if text:
            page.insert_text((40, 80), text, fontname=fontname, fontsize=14)
    doc.save(str(path))
    doc.close()


def _make_png(path: Path, width, height, color) -> None:
    pix = fitz.Pixmap(fitz.csRGB, fitz.IRect(0, 0, width, height), 0)
    pix.set_rect(pix.irect, color)
    pix.save(str(path))


def test_identical_documents_have_no_differences(tmp_path):
    old_pdf = tmp_path / "old.pdf"
    new_pdf = tmp_path / "new.pdf"
    _make_pdf(old_pdf, ["Hello world", "Page two"])
    _make_pdf(new_pdf, ["Hello world", "Page two"])

    result = compare_documents(old_pdf, new_pdf, output_dir=tmp_path / "out")

    assert len(result.pages) == 2
    for page in result.pages:
        assert page.visual_diff.pixel_difference_ratio == 0.0
        assert page.color_diffs == ()
        assert page.text_diffs == ()
        assert page.layout_diffs == ()
        assert page.font_diffs == ()
        assert page.notice is None
        assert page.diff_image_path is None
        assert not page.has_differences
    assert not result.has_differences
    assert result.summary.pages_with_diff == 0
    assert not result.is_image_comparison
    assert not (tmp_path / "out" / "diff_p1.png").exists()


def test_extra_page_in_new_document(tmp_path):
    old_pdf = tmp_path / "old.pdf"
    new_pdf = tmp_path / "new.pdf"
    _make_pdf(old_pdf, ["one", "two"])
    _make_pdf(new_pdf, ["one", "two", "three"])

    result = compare_documents(old_pdf, new_pdf)

    assert [page.page_number for page in result.pages] == [1, 2, 3]
    third = result.pages[2]
    assert not third.exists_in_old
    assert third.exists_in_new
    assert third.visual_diff.pixel_difference_ratio == 1.0
    assert third.text_diffs == () and third.font_diffs == ()
    assert third.has_differences
    assert result.summary.total_pages == 3
    assert result.summary.pages_with_diff == 1
    assert result.has_differences


def test_page_missing_from_new_document(tmp_path):
    old_pdf = tmp_path / "old.pdf"
    new_pdf = tmp_path / "new.pdf"
    _make_pdf(old_pdf, ["one", "two"])
    _make_pdf(new_pdf, ["one"])

    result = compare_documents(old_pdf, new_pdf)

    assert result.pages[1].exists_in_old
    assert not result.pages[1].exists_in_new
    assert result.pages[1].visual_diff.pixel_difference_ratio == 1.0


def test_crossed_page_sizes_use_union_area(tmp_path):
    old_pdf = tmp_path / "old.pdf"
    new_pdf = tmp_path / "new.pdf"
    _make_pdf(old_pdf, [""], width=300, height=200)
    _make_pdf(new_pdf, [""], width=200, height=300)

    result = compare_documents(old_pdf, new_pdf, params=CompareParams(dpi=72))

    visual = result.pages[0].visual_diff
    assert visual.pixel_difference_ratio == pytest.approx(0.5)
    assert visual.difference_count == 40000


def test_text_change_is_reported_with_images(tmp_path):
    old_pdf = tmp_path / "old.pdf"
    new_pdf = tmp_path / "new.pdf"
    out_dir = tmp_path / "out"
    _make_pdf(old_pdf, ["Hello world"])
    _make_pdf(new_pdf, ["Hello there"])

    result = compare_documents(old_pdf, new_pdf, output_dir=out_dir)

    page = result.pages[0]
    changes = {(d.diff_type, d.old_text or d.new_text) for d in page.text_diffs}
    assert changes == {(DiffType.ADDED, "there"), (DiffType.REMOVED, "world")}
    assert page.layout_diffs == ()
    assert page.visual_diff.pixel_difference_ratio > 0.0
    assert page.diff_image_path == "diff_p1.png"
    for name in (page.old_image_path, page.new_image_path, page.diff_image_path):
        assert (out_dir / name).exists()
    assert page.color_image_path == "color_diff_p1.png" or not page.color_diffs
    assert result.summary.text_diff_count == 2


def test_pixel_threshold_suppresses_images(tmp_path):
    old_pdf = tmp_path / "old.pdf"
    new_pdf = tmp_path / "new.pdf"
    _make_pdf(old_pdf, ["Hello world"])
    _make_pdf(new_pdf, ["Hello there"])

    result = compare_documents(
        old_pdf, new_pdf, params=CompareParams(threshold_pixel=0.9), output_dir=tmp_path / "out"
    )

    assert result.pages[0].diff_image_path is None
    assert result.summary.visual_diff_count == 0


def test_moved_text_is_a_layout_shift(tmp_path):
    old_pdf = tmp_path / "old.pdf"
    new_pdf = tmp_path / "new.pdf"
    for path, y in ((old_pdf, 80), (new_pdf, 120)):
        doc = fitz.open()
        page = doc.new_page(width=300, height=200)
        page.insert_text((40, y), "Anchor", fontname="helv", fontsize=14)
        doc.save(str(path))
        doc.close()

    result = compare_documents(old_pdf, new_pdf, params=CompareParams(threshold_layout=5.0))

    page = result.pages[0]
    assert page.text_diffs == ()
    assert len(page.layout_diffs) == 1
    assert page.layout_diffs[0].text == "Anchor"
    assert page.layout_diffs[0].displacement == pytest.approx(40.0, abs=0.5)


def test_font_change_adds_advisory_notice(tmp_path):
    old_pdf = tmp_path / "old.pdf"
    new_pdf = tmp_path / "new.pdf"
    _make_pdf(old_pdf, ["Hello"], fontname="helv")
    _make_pdf(new_pdf, ["Hello"], fontname="cour")

    result = compare_documents(old_pdf, new_pdf)

    page = result.pages[0]
    kinds = [d.diff_type for d in page.font_diffs]
    assert kinds.count(DiffType.CHANGED) == 1
    assert kinds.count(DiffType.ADDED) == 1
    assert kinds.count(DiffType.REMOVED) == 1
    assert page.notice is not None
    assert page.notice.reason == FONT_NOTICE_REASON
    assert page.visual_diff.difference_count > 0


def test_image_inputs_are_compared(tmp_path):
    old_png = tmp_path / "old.png"
    new_png = tmp_path / "new.png"
    _make_png(old_png, 60, 40, (255, 255, 255))
    _make_png(new_png, 60, 40, (0, 0, 0))

    result = compare_documents(old_png, new_png, params=CompareParams(dpi=72))

    assert result.is_image_comparison
    assert len(result.pages) == 1
    assert result.pages[0].visual_diff.pixel_difference_ratio > 0.9
    assert result.pages[0].color_diffs


def test_missing_file_raises(tmp_path):
    existing = tmp_path / "old.pdf"
    _make_pdf(existing, ["x"])
    with pytest.raises(FileNotFound) as info:
        compare_documents(existing, tmp_path / "missing.pdf")
    assert info.value.path == tmp_path / "missing.pdf"


def test_unreadable_pdf_raises_load_error(tmp_path):
    good = tmp_path / "good.pdf"
    bad = tmp_path / "bad.pdf"
    _make_pdf(good, ["x"])
    bad.write_bytes(b"")
    with pytest.raises(DocumentLoadError) as info:
        compare_documents(bad, good)
    assert info.value.cause is not None


def test_unreadable_image_raises_read_error(tmp_path):
    good = tmp_path / "good.pdf"
    bad = tmp_path / "bad.png"
    _make_pdf(good, ["x"])
    bad.write_bytes(b"")
    with pytest.raises(ImageReadError):
        compare_documents(good, bad)


def test_unexpected_failure_is_wrapped(tmp_path, monkeypatch):
    old_pdf = tmp_path / "old.pdf"
    new_pdf = tmp_path / "new.pdf"
    _make_pdf(old_pdf, ["x"])
    _make_pdf(new_pdf, ["x"])

    def boom(*args, **kwargs):
        raise RuntimeError("renderer exploded")

    monkeypatch.setattr(compare_module, "render_page", boom)

    with pytest.raises(ComparisonError) as info:
        compare_documents(old_pdf, new_pdf)
    assert isinstance(info.value.cause, RuntimeError)


def test_glyph_failure_keeps_rest_of_comparison(tmp_path, monkeypatch):
    old_pdf = tmp_path / "old.pdf"
    new_pdf = tmp_path / "new.pdf"
    _make_pdf(old_pdf, ["Hello"])
    _make_pdf(new_pdf, ["Bye"])

    def broken(doc, page_index):
        raise ValueError("bad text layer")

    monkeypatch.setattr(glyphs_module, "extract_character_placements", broken)

    result = compare_documents(old_pdf, new_pdf)

    page = result.pages[0]
    assert page.text_diffs == ()
    assert page.visual_diff.difference_count > 0


def test_invalid_params_are_rejected(tmp_path):
    with pytest.raises(ValueError):
        compare_documents(tmp_path / "a.pdf", tmp_path / "b.pdf", params=CompareParams(threshold_pixel=2.0))
