"""JSON report helpers."""
from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

from .core.types import DocumentDiffResult

if TYPE_CHECKING:  # pragma: no cover
    from .batch import BatchResult

REPORT_FILENAME = "diff.json"
BATCH_SUMMARY_FILENAME = "batch_summary.json"


def write_json_report(result: DocumentDiffResult, path: str | Path) -> Path:
    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(diff_result_to_json(result), encoding="utf-8")
    return out_path


def diff_result_to_json(result: DocumentDiffResult) -> str:
    return json.dumps(result.to_dict(), ensure_ascii=False, indent=2)


def write_batch_summary(result: "BatchResult", path: str | Path) -> Path:
    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with out_path.open("w", encoding="utf-8") as handle:
        json.dump(result.to_dict(), handle, ensure_ascii=False, indent=2)
    return out_path
