"""Batch comparison of every matching file in two directories.

Files are paired by name.  Each pair is compared independently and writes
its report and images into its own ``pair_NNN_<name>`` directory, so pairs
can run concurrently in worker processes without sharing state.
"""
from __future__ import annotations

import logging
import time
from concurrent.futures import ProcessPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from .compare import compare_documents
from .core.types import DocumentDiffResult
from .presets import BatchParams, CompareParams
from .report import REPORT_FILENAME, write_json_report
from .utils.file_io import sanitize_filename
from .utils.pdf_ops import is_supported_file

logger = logging.getLogger(__name__)

TIMEOUT_PER_PAIR_S = 90.0
MIN_TIMEOUT_S = 30.0
MAX_TIMEOUT_S = 2 * 60 * 60.0


@dataclass(frozen=True)
class BatchPair:
    old_file: Path
    new_file: Path
    relative_path: str


@dataclass(frozen=True)
class PairResult:
    pair: BatchPair
    result: Optional[DocumentDiffResult]
    error: Optional[str]
    duration_s: float
    output_dir: Optional[Path]

    @property
    def is_success(self) -> bool:
        return self.error is None and self.result is not None

    @property
    def has_differences(self) -> bool:
        return self.result is not None and self.result.has_differences

    def to_dict(self) -> Dict[str, object]:
        return {
            "old_file": str(self.pair.old_file),
            "new_file": str(self.pair.new_file),
            "relative_path": self.pair.relative_path,
            "success": self.is_success,
            "has_differences": self.has_differences,
            "error": self.error,
            "duration_s": self.duration_s,
            "output_dir": str(self.output_dir) if self.output_dir else None,
            "summary": self.result.summary.to_dict() if self.result else None,
        }


@dataclass(frozen=True)
class BatchSummary:
    total_pairs: int
    successful: int
    successful_with_diff: int
    failed: int
    total_pages: int
    duration_s: float
    unmatched_old_count: int
    unmatched_new_count: int

    def to_dict(self) -> Dict[str, object]:
        return {
            "total_pairs": self.total_pairs,
            "successful": self.successful,
            "successful_with_diff": self.successful_with_diff,
            "failed": self.failed,
            "total_pages": self.total_pages,
            "duration_s": self.duration_s,
            "unmatched_old_count": self.unmatched_old_count,
            "unmatched_new_count": self.unmatched_new_count,
        }


@dataclass(frozen=True)
class BatchResult:
    results: Tuple[PairResult, ...]
    summary: BatchSummary
    started_at: datetime
    finished_at: datetime
    unmatched_old: Tuple[Path, ...] = field(default_factory=tuple)
    unmatched_new: Tuple[Path, ...] = field(default_factory=tuple)

    @property
    def has_differences(self) -> bool:
        return any(result.has_differences for result in self.results)

    @property
    def has_failures(self) -> bool:
        return self.summary.failed > 0

    def to_dict(self) -> Dict[str, object]:
        return {
            "summary": self.summary.to_dict(),
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat(),
            "results": [result.to_dict() for result in self.results],
            "unmatched_old": [str(path) for path in self.unmatched_old],
            "unmatched_new": [str(path) for path in self.unmatched_new],
        }


def scan_directory(directory: Path, recursive: bool) -> List[Path]:
    """Return supported files (PDF and images) below ``directory``, sorted."""

    if not directory.exists():
        logger.warning("Directory does not exist: %s", directory)
        return []
    candidates = directory.rglob("*") if recursive else directory.iterdir()
    return sorted(path for path in candidates if path.is_file() and is_supported_file(path))


def discover_pairs(params: BatchParams) -> Tuple[List[BatchPair], List[Path], List[Path]]:
    """Match files of both directories by file name.

    Returns the pairs and the files left unmatched on each side.
    """

    old_files = scan_directory(params.dir_old, params.recursive)
    new_files = scan_directory(params.dir_new, params.recursive)
    logger.debug("Scanned %d old file(s), %d new file(s)", len(old_files), len(new_files))

    new_by_name: Dict[str, Path] = {}
    for path in new_files:
        new_by_name.setdefault(path.name, path)

    pairs: List[BatchPair] = []
    for old_file in old_files:
        new_file = new_by_name.get(old_file.name)
        if new_file is not None:
            relative = old_file.relative_to(params.dir_old).as_posix()
            pairs.append(BatchPair(old_file, new_file, relative))

    matched_old = {pair.old_file for pair in pairs}
    matched_new = {pair.new_file for pair in pairs}
    unmatched_old = [path for path in old_files if path not in matched_old]
    unmatched_new = [path for path in new_files if path not in matched_new]
    return pairs, unmatched_old, unmatched_new


def calculate_timeout(pair_count: int) -> float:
    """Overall timeout in seconds, scaled by the number of pairs."""

    return max(MIN_TIMEOUT_S, min(TIMEOUT_PER_PAIR_S * pair_count, MAX_TIMEOUT_S))


def pair_output_dir(base: Path, index: int, pair: BatchPair) -> Path:
    return base / f"pair_{index:03d}_{sanitize_filename(pair.old_file.name)}"


def compare_pair(
    pair: BatchPair,
    index: int,
    total: int,
    output_base: Path,
    params: CompareParams,
    *,
    raise_errors: bool = False,
) -> PairResult:
    """Compare one pair and write its JSON report into its own directory."""

    started = time.perf_counter()
    logger.info("[%d/%d] Comparing: %s", index, total, pair.old_file.name)
    try:
        out_dir = pair_output_dir(output_base, index, pair)
        out_dir.mkdir(parents=True, exist_ok=True)
        result = compare_documents(pair.old_file, pair.new_file, params=params, output_dir=out_dir)
        write_json_report(result, out_dir / REPORT_FILENAME)
    except Exception as exc:
        duration = time.perf_counter() - started
        message = f"{type(exc).__name__}: {exc}"
        logger.error("Failed: %s (%s)", pair.old_file.name, message)
        if raise_errors:
            raise
        return PairResult(pair, None, message, duration, None)

    duration = time.perf_counter() - started
    logger.info(
        "Completed %s in %.0fms%s",
        pair.old_file.name,
        duration * 1000,
        " (differences found)" if result.has_differences else "",
    )
    return PairResult(pair, result, None, duration, out_dir)


class BatchEngine:
    """Runs :func:`compare_documents` over every discovered file pair."""

    def __init__(self, params: BatchParams, compare_params: Optional[CompareParams] = None) -> None:
        self.params = params
        self.compare_params = (compare_params or CompareParams()).validate()

    def compare_all(self) -> BatchResult:
        started_at = datetime.now()
        started = time.perf_counter()
        logger.info("Starting batch comparison: %s vs %s", self.params.dir_old, self.params.dir_new)

        pairs, unmatched_old, unmatched_new = discover_pairs(self.params)
        logger.info("Found %d file pair(s) to compare", len(pairs))
        if unmatched_old:
            logger.warning("%d file(s) only in OLD directory", len(unmatched_old))
        if unmatched_new:
            logger.warning("%d file(s) only in NEW directory", len(unmatched_new))

        if not pairs:
            logger.warning("No matching files found")
            results: List[PairResult] = []
        elif self.params.enable_parallel and self.params.parallelism > 1 and len(pairs) > 1:
            logger.info("Parallel mode enabled with %d worker(s)", self.params.parallelism)
            results = self._compare_parallel(pairs)
        else:
            logger.info("Sequential mode enabled")
            results = self._compare_sequential(pairs)

        summary = create_batch_summary(
            results, time.perf_counter() - started, len(unmatched_old), len(unmatched_new)
        )
        log_summary(summary)
        return BatchResult(
            results=tuple(results),
            summary=summary,
            started_at=started_at,
            finished_at=datetime.now(),
            unmatched_old=tuple(unmatched_old),
            unmatched_new=tuple(unmatched_new),
        )

    def _compare_sequential(self, pairs: Sequence[BatchPair]) -> List[PairResult]:
        total = len(pairs)
        return [
            compare_pair(
                pair,
                index,
                total,
                self.params.output_dir,
                self.compare_params,
                raise_errors=not self.params.continue_on_error,
            )
            for index, pair in enumerate(pairs, start=1)
        ]

    def _compare_parallel(self, pairs: Sequence[BatchPair]) -> List[PairResult]:
        total = len(pairs)
        timeout = calculate_timeout(total)
        executor = ProcessPoolExecutor(max_workers=self.params.parallelism)
        try:
            futures = [
                executor.submit(
                    compare_pair, pair, index, total, self.params.output_dir, self.compare_params
                )
                for index, pair in enumerate(pairs, start=1)
            ]
            _done, not_done = wait(futures, timeout=timeout)
            if not_done:
                logger.error("Batch comparison timed out after %.0fs", timeout)
                raise RuntimeError(f"Batch comparison exceeded timeout of {timeout:.0f}s")
            results = [future.result() for future in futures]
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        if not self.params.continue_on_error:
            failed = next((result for result in results if not result.is_success), None)
            if failed is not None:
                raise RuntimeError(f"Batch comparison failed on {failed.pair.relative_path}: {failed.error}")
        return results


def create_batch_summary(
    results: Sequence[PairResult],
    duration_s: float,
    unmatched_old_count: int,
    unmatched_new_count: int,
) -> BatchSummary:
    successful = [result for result in results if result.is_success]
    return BatchSummary(
        total_pairs=len(results),
        successful=len(successful),
        successful_with_diff=sum(1 for result in successful if result.has_differences),
        failed=len(results) - len(successful),
        total_pages=sum(result.result.summary.total_pages for result in successful if result.result),
        duration_s=duration_s,
        unmatched_old_count=unmatched_old_count,
        unmatched_new_count=unmatched_new_count,
    )


def log_summary(summary: BatchSummary) -> None:
    logger.info(
        "Batch summary: pairs=%d ok=%d (with diff=%d) failed=%d pages=%d "
        "unmatched old=%d new=%d duration=%.1fs",
        summary.total_pairs,
        summary.successful,
        summary.successful_with_diff,
        summary.failed,
        summary.total_pages,
        summary.unmatched_old_count,
        summary.unmatched_new_count,
        summary.duration_s,
    )
