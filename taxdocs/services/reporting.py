"""
Reporting over parsed dividends and classifications.

Provides CSV export, financial-year grouping, tax summaries, a display
formatter and a JSON export of classification results.
"""
import csv
import io
import json
from collections import defaultdict
from decimal import Decimal
from typing import Dict, Iterable, List, Tuple

import structlog

from taxdocs.models import ClassificationResult, ParsedDividend, TaxYearSummary
from taxdocs.schemas.dividend import DetectionExportSchema
from taxdocs.services.classifiers.document_classifier import recommended_action

logger = structlog.get_logger(__name__)

CSV_COLUMNS = [
    "Company Name",
    "ASX Code",
    "Payment Date",
    "Dividend Amount",
    "Franked Amount",
    "Unfranked Amount",
    "Franking Credits",
    "Franking Percentage",
    "Shares Held",
    "Dividend Per Share",
    "Financial Year",
    "Provider",
    "Confidence",
]


def _two_places(value) -> str:
    return f"{Decimal(str(value)):.2f}"


def export_to_csv(dividends: Iterable[ParsedDividend]) -> str:
    """
    Render dividends as CSV text.

    Amounts, dividend per share and confidence use two decimal places;
    franking percentage and shares held are whole numbers. Fields are only
    quoted when they contain a comma, quote or newline.

    Args:
        dividends: Parsed dividends, exported in order.

    Returns:
        CSV text with a header row, rows separated by ``\\n``.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)

    count = 0
    for d in dividends:
        writer.writerow([
            d.company_name,
            d.asx_code or "",
            d.payment_date,
            _two_places(d.dividend_amount),
            _two_places(d.franked_amount),
            _two_places(d.unfranked_amount),
            _two_places(d.franking_credits),
            str(d.franking_percentage),
            str(d.shares_held),
            _two_places(d.dividend_per_share),
            d.financial_year,
            d.provider.value,
            _two_places(d.confidence),
        ])
        count += 1

    logger.debug("dividends_exported_csv", rows=count)
    return buffer.getvalue()


def group_by_financial_year(dividends: Iterable[ParsedDividend]) -> Dict[str, List[ParsedDividend]]:
    """Group dividends by financial year, keeping input order within each year."""
    groups: Dict[str, List[ParsedDividend]] = defaultdict(list)
    for dividend in dividends:
        groups[dividend.financial_year].append(dividend)
    return dict(groups)


def calculate_tax_summary(dividends: Iterable[ParsedDividend]) -> List[TaxYearSummary]:
    """
    Roll dividends up into one summary per financial year.

    Args:
        dividends: Parsed dividends.

    Returns:
        Summaries sorted by financial year, where gross income is the
        total dividend plus franking credits.
    """
    summaries = []
    for year, items in sorted(group_by_financial_year(dividends).items()):
        total_dividend = sum((d.dividend_amount for d in items), Decimal("0.00"))
        total_credits = sum((d.franking_credits for d in items), Decimal("0.00"))
        summaries.append(TaxYearSummary(
            financial_year=year,
            total_dividend=total_dividend,
            total_franked=sum((d.franked_amount for d in items), Decimal("0.00")),
            total_unfranked=sum((d.unfranked_amount for d in items), Decimal("0.00")),
            total_franking_credits=total_credits,
            gross_income=total_dividend + total_credits,
            count=len(items),
        ))
    return summaries


def format_dividend(dividend: ParsedDividend) -> str:
    """Multi-line, human-readable summary of a dividend."""
    lines = [f"Company: {dividend.company_name}"]
    if dividend.asx_code:
        lines.append(f"ASX: {dividend.asx_code}")
    lines.append(f"Amount: ${_two_places(dividend.dividend_amount)}")
    lines.append(
        f"Franking: {dividend.franking_percentage}% (${_two_places(dividend.franking_credits)} credits)"
    )
    lines.append(f"Payment Date: {dividend.payment_date}")
    lines.append(f"Financial Year: {dividend.financial_year}")
    if dividend.shares_held > 0:
        lines.append(f"Shares Held: {dividend.shares_held:,}")
    lines.append(f"Confidence: {round(dividend.confidence * 100)}%")
    return "\n".join(lines)


def export_detection_results(results: Iterable[Tuple[str, ClassificationResult]]) -> str:
    """
    Render classification results as a JSON array.

    Args:
        results: ``(file path, classification)`` pairs.

    Returns:
        Indented JSON with file, type, confidence, method and
        recommended action per document.
    """
    rows = [
        DetectionExportSchema(
            file=file_path,
            type=result.type,
            confidence=result.confidence,
            method=result.method,
            recommended_action=recommended_action(result),
        ).model_dump(mode="json")
        for file_path, result in results
    ]
    return json.dumps(rows, indent=2)
