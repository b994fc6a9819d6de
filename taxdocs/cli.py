"""
Command-line front end.

    taxdocs classify FILE...
    taxdocs parse FILE... [--csv PATH] [--summary] [--json]

PDF files are read through the pdfplumber extractor; any other file is
read as UTF-8 text.
"""
import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import structlog

from taxdocs.core.logging import configure_logging
from taxdocs.models import ClassificationResult, ParseResult, RegistryProvider
from taxdocs.schemas.dividend import BatchParseResultSchema
from taxdocs.services.batch_processor import DividendBatchProcessor, aggregate_results
from taxdocs.services.classifiers.document_classifier import DocumentClassifier
from taxdocs.services.reporting import (
    calculate_tax_summary,
    export_detection_results,
    export_to_csv,
    format_dividend,
)

logger = structlog.get_logger(__name__)


def _is_pdf(path: Path) -> bool:
    return path.suffix.lower() == ".pdf"


async def _read_text(path: Path, processor: DividendBatchProcessor) -> Tuple[str, Optional[int]]:
    if _is_pdf(path):
        extracted = await processor.extract_pdf_text(path.read_bytes())
        return extracted.text, extracted.page_count
    return path.read_text(encoding="utf-8", errors="replace"), None


async def _classify_files(paths: Sequence[Path]) -> List[Tuple[str, ClassificationResult]]:
    classifier = DocumentClassifier()
    processor = DividendBatchProcessor()
    results = []
    for path in paths:
        try:
            text, page_count = await _read_text(path, processor)
        except Exception as e:
            logger.warning("file_unreadable", path=str(path), error=str(e))
            text, page_count = "", None
        results.append((str(path), classifier.classify(text, str(path), page_count)))
    return results


async def _parse_files(paths: Sequence[Path]) -> List[ParseResult]:
    processor = DividendBatchProcessor()
    results = []
    for path in paths:
        try:
            if _is_pdf(path):
                results.append(await processor.parse_pdf(path.read_bytes(), path.name))
            else:
                results.append(processor.parse_text(path.read_text(encoding="utf-8", errors="replace")))
        except OSError as e:
            logger.warning("file_unreadable", path=str(path), error=str(e))
            results.append(ParseResult(
                success=False,
                provider=RegistryProvider.UNKNOWN,
                errors=[f"Could not read file: {e}"],
            ))
    return results


def cmd_classify(args: argparse.Namespace) -> int:
    results = asyncio.run(_classify_files(args.files))
    print(export_detection_results(results))
    return 0


def cmd_parse(args: argparse.Namespace) -> int:
    results = asyncio.run(_parse_files(args.files))
    batch = aggregate_results(results)

    if args.json:
        print(BatchParseResultSchema.model_validate(batch).model_dump_json(indent=2))
    else:
        for path, result in zip(args.files, results):
            print(f"== {path}")
            if result.success and result.dividend:
                print(format_dividend(result.dividend))
            for error in result.errors:
                print(f"ERROR: {error}")
            for warning in result.warnings:
                print(f"WARNING: {warning}")
            print()
        print(f"Parsed {batch.successful}/{batch.total} statement(s), {batch.failed} failed")

    if args.summary:
        for summary in calculate_tax_summary(batch.dividends):
            print(
                f"{summary.financial_year}: {summary.count} dividend(s), "
                f"total ${summary.total_dividend:.2f}, "
                f"franking credits ${summary.total_franking_credits:.2f}, "
                f"gross income ${summary.gross_income:.2f}"
            )

    if args.csv:
        Path(args.csv).write_text(export_to_csv(batch.dividends), encoding="utf-8")
        logger.info("csv_written", path=args.csv, rows=len(batch.dividends))

    return 0 if batch.failed == 0 else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="taxdocs",
        description="Classify financial documents and parse dividend statements",
    )
    parser.add_argument("--log-level", help="Log level (default from TAXDOCS_LOG_LEVEL)")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON log lines")

    subparsers = parser.add_subparsers(dest="command", required=True)

    classify = subparsers.add_parser("classify", help="Classify documents by type")
    classify.add_argument("files", nargs="+", type=Path, help="PDF or text files")
    classify.set_defaults(func=cmd_classify)

    parse = subparsers.add_parser("parse", help="Parse dividend statements")
    parse.add_argument("files", nargs="+", type=Path, help="PDF or text files")
    parse.add_argument("--csv", help="Write parsed dividends to this CSV file")
    parse.add_argument("--summary", action="store_true", help="Print a tax summary per financial year")
    parse.add_argument("--json", action="store_true", help="Print results as JSON")
    parse.set_defaults(func=cmd_parse)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(level=args.log_level, json_logs=True if args.json_logs else None)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
