import json

from visualdiff.compare import create_summary
from visualdiff.core.types import (
    BoundingBox,
    DiffType,
    DocumentDiffResult,
    PageDiff,
    TextDiff,
    VisualDiff,
)
from visualdiff.presets import CompareParams
from visualdiff.report import diff_result_to_json, write_json_report
from visualdiff.utils.file_io import sanitize_filename


def _result():
    pages = (
        PageDiff(page_number=1, visual_diff=VisualDiff(0.0, 0)),
        PageDiff(
            page_number=2,
            visual_diff=VisualDiff(0.25, 10),
            text_diffs=(TextDiff(DiffType.ADDED, None, "new", BoundingBox(1, 2, 3, 4)),),
        ),
    )
    return DocumentDiffResult(pages=pages, summary=create_summary(pages, CompareParams()))


def test_report_round_trips_through_json(tmp_path):
    path = write_json_report(_result(), tmp_path / "nested" / "diff.json")

    data = json.loads(path.read_text(encoding="utf-8"))

    assert [page["page_number"] for page in data["pages"]] == [1, 2]
    assert data["pages"][1]["text_diffs"][0]["diff_type"] == "added"
    assert data["summary"]["total_pages"] == 2
    assert data["summary"]["pages_with_diff"] == 1
    assert data["summary"]["has_differences"] is True


def test_report_file_matches_json_text(tmp_path):
    result = _result()
    path = write_json_report(result, tmp_path / "diff.json")
    assert path.read_text(encoding="utf-8") == diff_result_to_json(result)
    assert '"page_number": 2' in diff_result_to_json(result)


def test_sanitize_filename():
    assert sanitize_filename("my report (v2).pdf") == "my_report__v2_.pdf"
    assert sanitize_filename("a" * 80) == "a" * 50
    assert sanitize_filename("résumé.pdf") == "r_sum_.pdf"
