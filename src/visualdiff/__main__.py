"""Command line interface for visualdiff."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Iterable, Optional

from dotenv import load_dotenv

from .batch import BatchEngine
from .compare import compare_documents
from .errors import DiffEngineError
from .presets import DEFAULT_OUTPUT_DIR, BatchParams, CompareParams, get_preset, params_from_env
from .report import BATCH_SUMMARY_FILENAME, REPORT_FILENAME, write_batch_summary, write_json_report

logger = logging.getLogger("visualdiff")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="visualdiff",
        description="Compare two PDFs or images for visual, colour, text, layout and font changes.",
    )
    parser.add_argument("old", nargs="?", help="Path to the old PDF/image (or directory with --batch)")
    parser.add_argument("new", nargs="?", help="Path to the new PDF/image (or directory with --batch)")
    parser.add_argument("-o", "--out", default=DEFAULT_OUTPUT_DIR, help="Output directory")
    parser.add_argument("--preset", default="balanced", help="Preset name (strict|balanced|loose)")
    parser.add_argument("--threshold-pixel", type=float, help="Pixel diff ratio threshold (0.0-1.0)")
    parser.add_argument("--threshold-layout", type=float, help="Layout shift threshold in points")
    parser.add_argument("--threshold-color", type=float, help="RGB distance threshold (0-441.67)")
    parser.add_argument("--dpi", type=int, help="Rendering DPI")
    parser.add_argument("--ignore-annotation", action="store_true", help="Ignore annotations (future use)")
    parser.add_argument("--fail-on-diff", action="store_true", help="Exit with code 1 if any diff is detected")
    parser.add_argument("--batch", action="store_true", help="Compare every matching file of two directories")
    parser.add_argument("--recursive", action="store_true", help="Scan batch directories recursively")
    parser.add_argument(
        "--continue-on-error",
        action="store_true",
        help="Record failed pairs and keep going instead of aborting the batch",
    )
    parser.add_argument("--parallelism", type=int, help="Number of batch worker processes")
    parser.add_argument("--sequential", action="store_true", help="Run batch pairs one at a time")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="store_true", help="Print version and exit")
    return parser


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        from . import __version__

        print(__version__)
        return 0

    if not args.old or not args.new:
        parser.error("the following arguments are required: old, new")

    load_dotenv()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        preset = get_preset(args.preset)
    except KeyError as exc:
        parser.error(str(exc))

    try:
        params = _override_params(params_from_env(preset.params), args).validate()
    except ValueError as exc:
        parser.error(str(exc))

    if args.batch:
        return _run_batch(args, params)
    return _run_single(args, params)


def _override_params(base: CompareParams, args: argparse.Namespace) -> CompareParams:
    overrides = {}
    for field_name in ("dpi", "threshold_pixel", "threshold_layout", "threshold_color"):
        value = getattr(args, field_name)
        if value is not None:
            overrides[field_name] = value
    if args.ignore_annotation:
        overrides["ignore_annotation"] = True
    return base.copy(**overrides)


def _run_single(args: argparse.Namespace, params: CompareParams) -> int:
    out_dir = Path(args.out)
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        result = compare_documents(args.old, args.new, params=params, output_dir=out_dir)
        write_json_report(result, out_dir / REPORT_FILENAME)
    except DiffEngineError as exc:
        logger.error("Error: %s", exc.message, exc_info=exc.cause is not None)
        return 1
    except OSError as exc:
        logger.error("Error: %s", exc)
        return 1

    if args.fail_on_diff and result.has_differences:
        logger.error("Differences detected. Exiting with code 1.")
        return 1
    logger.info("Done.")
    return 0


def _run_batch(args: argparse.Namespace, params: CompareParams) -> int:
    defaults = BatchParams(dir_old=Path(args.old), dir_new=Path(args.new))
    batch_params = BatchParams(
        dir_old=Path(args.old),
        dir_new=Path(args.new),
        output_dir=Path(args.out),
        recursive=args.recursive,
        continue_on_error=args.continue_on_error,
        parallelism=args.parallelism or defaults.parallelism,
        enable_parallel=not args.sequential,
    )
    try:
        result = BatchEngine(batch_params, params).compare_all()
        write_batch_summary(result, batch_params.output_dir / BATCH_SUMMARY_FILENAME)
    except (DiffEngineError, RuntimeError, OSError) as exc:
        logger.error("Batch aborted: %s", exc)
        return 1

    if args.fail_on_diff and result.has_differences:
        logger.error("Differences detected. Exiting with code 1.")
        return 1
    logger.info("Done.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
