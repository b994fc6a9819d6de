"""
Tests for the dividend statement parser.
"""
from decimal import Decimal

import pytest

from taxdocs.config import Settings
from taxdocs.models import Provenance, RegistryProvider
from taxdocs.services.dividend_parser import (
    UNKNOWN_COMPANY,
    DividendStatementParser,
    calculate_franking_credits,
    calculate_franking_percentage,
    get_dividend_parser,
)

from samples import (
    BOARDROOM_SAMPLE,
    COMPUTERSHARE_SAMPLE,
    DIRECT_SAMPLE,
    FIXED_TODAY,
    INCOMPLETE_SAMPLE,
    LINK_SAMPLE,
    PARTIALLY_FRANKED_SAMPLE,
    UNFRANKED_SAMPLE,
)

ALL_SAMPLES = [
    COMPUTERSHARE_SAMPLE,
    LINK_SAMPLE,
    BOARDROOM_SAMPLE,
    DIRECT_SAMPLE,
    PARTIALLY_FRANKED_SAMPLE,
    UNFRANKED_SAMPLE,
    INCOMPLETE_SAMPLE,
]


class TestSampleStatements:
    """Tests parsing complete registry statements."""

    def test_computershare(self, dividend_parser: DividendStatementParser):
        """Test a complete Computershare advice."""
        result = dividend_parser.parse(COMPUTERSHARE_SAMPLE)
        assert result.success is True
        assert result.provider == RegistryProvider.COMPUTERSHARE
        assert result.warnings == []
        assert result.errors == []

        dividend = result.dividend
        assert dividend.company_name == "COMMONWEALTH BANK OF AUSTRALIA"
        assert dividend.asx_code == "CBA"
        assert dividend.company_abn == "48123123124"
        assert dividend.dividend_amount == Decimal("1075.00")
        assert dividend.franked_amount == Decimal("1075.00")
        assert dividend.unfranked_amount == Decimal("0.00")
        assert dividend.franking_credits == Decimal("461.36")
        assert dividend.franking_percentage == 100
        assert dividend.shares_held == 500
        assert dividend.dividend_per_share == Decimal("2.15")
        assert dividend.payment_date == "2024-03-15"
        assert dividend.record_date == "2024-02-21"
        assert dividend.financial_year == "2023-2024"
        assert dividend.confidence == 1.0

    def test_link(self, dividend_parser: DividendStatementParser):
        """Test a Link statement paid in the next financial year."""
        result = dividend_parser.parse(LINK_SAMPLE)
        assert result.provider == RegistryProvider.LINK
        dividend = result.dividend
        assert dividend.company_name == "BHP Group Limited"
        assert dividend.dividend_amount == Decimal("2875.00")
        assert dividend.franking_credits == Decimal("1232.14")
        assert dividend.shares_held == 1250
        assert dividend.dividend_per_share == Decimal("0.00")
        assert dividend.payment_date == "2024-09-28"
        assert dividend.financial_year == "2024-2025"

    def test_boardroom(self, dividend_parser: DividendStatementParser):
        result = dividend_parser.parse(BOARDROOM_SAMPLE)
        assert result.provider == RegistryProvider.BOARDROOM
        dividend = result.dividend
        assert dividend.company_name == "Telstra Corporation Limited"
        assert dividend.company_acn == "051775556"
        assert dividend.dividend_amount == Decimal("340.00")
        assert dividend.franking_credits == Decimal("145.71")
        assert dividend.record_date == "2024-08-24"
        assert result.warnings == []

    def test_direct_company_statement(self, dividend_parser: DividendStatementParser):
        """Test a company-issued statement that only says "fully franked"."""
        result = dividend_parser.parse(DIRECT_SAMPLE)
        assert result.provider == RegistryProvider.DIRECT
        dividend = result.dividend
        assert dividend.company_name == "Wesfarmers Limited"
        assert dividend.dividend_amount == Decimal("824.00")
        assert dividend.franked_amount == Decimal("824.00")
        assert dividend.unfranked_amount == Decimal("0.00")
        assert dividend.franking_credits == Decimal("353.14")
        assert dividend.dividend_per_share == Decimal("1.03")
        assert dividend.confidence == 0.8
        assert result.warnings == ["Franked and unfranked amounts calculated from franking percentage"]

    def test_partially_franked(self, dividend_parser: DividendStatementParser):
        dividend = dividend_parser.parse(PARTIALLY_FRANKED_SAMPLE).dividend
        assert dividend.franked_amount == Decimal("250.00")
        assert dividend.unfranked_amount == Decimal("250.00")
        assert dividend.franking_percentage == 50

    def test_unfranked(self, dividend_parser: DividendStatementParser):
        """Test an unfranked distribution with no record date."""
        result = dividend_parser.parse(UNFRANKED_SAMPLE)
        dividend = result.dividend
        assert dividend.dividend_amount == Decimal("750.00")
        assert dividend.franked_amount == Decimal("0.00")
        assert dividend.unfranked_amount == Decimal("750.00")
        assert dividend.franking_credits == Decimal("0.00")
        assert dividend.franking_percentage == 0
        assert dividend.record_date == "2024-07-20"
        assert result.warnings == ["Record date not found, using payment date"]

    def test_incomplete_statement(self, dividend_parser: DividendStatementParser):
        """Test fallbacks on a statement with only the essentials."""
        result = dividend_parser.parse(INCOMPLETE_SAMPLE)
        assert result.success is True
        assert result.provider == RegistryProvider.DIRECT
        dividend = result.dividend
        assert dividend.company_name == "Some Company Limited"
        assert dividend.franked_amount == Decimal("100.00")
        assert dividend.franking_credits == Decimal("42.86")
        assert dividend.confidence == 0.7
        assert result.warnings == [
            "Franking percentage not stated, assuming fully franked",
            "Franking credits calculated from franked amount",
            "Record date not found, using payment date",
        ]
        assert dividend.field_provenance["franked_amount"] == Provenance.DERIVED
        assert dividend.field_provenance["gross_amount"] == Provenance.EXPLICIT

    @pytest.mark.parametrize("text", ALL_SAMPLES)
    def test_split_always_adds_up(self, dividend_parser: DividendStatementParser, text):
        """Test franked + unfranked equals the gross dividend."""
        dividend = dividend_parser.parse(text).dividend
        assert dividend.franked_amount + dividend.unfranked_amount == dividend.dividend_amount
        assert 0 <= dividend.franking_percentage <= 100
        assert 0.0 <= dividend.confidence <= 1.0

    @pytest.mark.parametrize("text", ALL_SAMPLES)
    def test_parsing_is_deterministic(self, dividend_parser: DividendStatementParser, text):
        first = dividend_parser.parse(text)
        second = dividend_parser.parse(text)
        assert first.dividend == second.dividend
        assert first.warnings == second.warnings


class TestAmountFallbacks:
    """Tests for gross, split and franking credit reconciliation."""

    def test_franking_credits_from_franked_amount(self, dividend_parser: DividendStatementParser):
        sample = """
        Computershare
        Company: Test Ltd
        Dividend: $700.00
        Fully Franked: $700.00
        Payment Date: 15/03/2024
        """
        result = dividend_parser.parse(sample)
        assert result.dividend.franking_credits == Decimal("300.00")
        assert "Franking credits calculated from franked amount" in result.warnings

    def test_gross_from_dps_and_shares(self, dividend_parser: DividendStatementParser):
        sample = """
        Computershare
        Company: Test Co
        Dividend per Share: $1.50
        Shares Held: 1000
        Payment Date: 15/03/2024
        """
        result = dividend_parser.parse(sample)
        assert result.dividend.dividend_amount == Decimal("1500.00")
        assert result.dividend.dividend_per_share == Decimal("1.50")
        assert "Gross dividend calculated from DPS and shares held" in result.warnings
        assert result.dividend.field_provenance["gross_amount"] == Provenance.DERIVED

    def test_gross_from_franked_and_unfranked(self, dividend_parser: DividendStatementParser):
        sample = """
        Company: Test Ltd
        Franked Amount: $60.00
        Unfranked Amount: $40.00
        Payment Date: 15/03/2024
        """
        result = dividend_parser.parse(sample)
        assert result.dividend.dividend_amount == Decimal("100.00")
        assert "Gross dividend calculated from franked and unfranked amounts" in result.warnings
        assert result.dividend.franking_percentage == 60

    def test_franked_only_uses_dps_and_shares_for_gross(self, dividend_parser: DividendStatementParser):
        """Test a single stated part does not become the gross dividend."""
        sample = """
        Company: Test Ltd
        Shares Held: 1000
        Dividend per Share: $2.00
        Franked Amount: $500.00
        Payment Date: 15/03/2024
        """
        result = dividend_parser.parse(sample)
        dividend = result.dividend
        assert dividend.dividend_amount == Decimal("2000.00")
        assert dividend.franked_amount == Decimal("500.00")
        assert dividend.unfranked_amount == Decimal("1500.00")
        assert dividend.franking_percentage == 25
        assert "Gross dividend calculated from DPS and shares held" in result.warnings
        assert "Unfranked amount calculated from gross dividend and franked amount" in result.warnings

    def test_franked_only_without_dps(self, dividend_parser: DividendStatementParser):
        sample = """
        Company: Test Ltd
        Franked Amount: $500.00
        Payment Date: 15/03/2024
        """
        result = dividend_parser.parse(sample)
        assert result.dividend.dividend_amount == Decimal("500.00")
        assert result.dividend.unfranked_amount == Decimal("0.00")
        assert "Gross dividend taken from franked amount" in result.warnings

    def test_part_labels_ending_in_dividend_amount(self, dividend_parser: DividendStatementParser):
        """Test "Unfranked Dividend Amount" is a part, not the gross."""
        sample = """
        Company: Test Ltd
        Franked Amount: $700.00
        Unfranked Dividend Amount: $300.00
        Payment Date: 15/03/2024
        """
        result = dividend_parser.parse(sample)
        dividend = result.dividend
        assert dividend.dividend_amount == Decimal("1000.00")
        assert dividend.franked_amount == Decimal("700.00")
        assert dividend.unfranked_amount == Decimal("300.00")
        assert "Gross dividend calculated from franked and unfranked amounts" in result.warnings

    def test_dps_in_cents(self, dividend_parser: DividendStatementParser):
        """Test a per-share value printed in cents."""
        sample = """
        Company: Test Ltd
        Dividend per share: 215 cents
        Shares held: 1,000
        Payment Date: 15/03/2024
        """
        result = dividend_parser.parse(sample)
        assert result.dividend.dividend_per_share == Decimal("2.15")
        assert result.dividend.dividend_amount == Decimal("2150.00")
        assert "Dividend per share converted from cents to dollars" in result.warnings

    def test_dps_cents_heuristic(self, dividend_parser: DividendStatementParser):
        """Test an implausibly large per-share value is read as cents."""
        sample = """
        Company: Test Ltd
        Dividend per share: 25.00
        Shares held: 1,000
        Total dividend: $250.00
        Payment Date: 15/03/2024
        """
        result = dividend_parser.parse(sample)
        assert result.dividend.dividend_per_share == Decimal("0.25")
        assert result.dividend.dividend_amount == Decimal("250.00")
        assert "Dividend per share converted from cents to dollars" in result.warnings
        assert result.dividend.field_provenance["dividend_per_share"] == Provenance.DERIVED

    def test_mismatched_split_keeps_gross(self, dividend_parser: DividendStatementParser):
        sample = """
        Company: Test Ltd
        Gross Dividend: $100.00
        Franked Amount: $80.00
        Unfranked Amount: $30.00
        Payment Date: 15/03/2024
        """
        result = dividend_parser.parse(sample)
        dividend = result.dividend
        assert dividend.dividend_amount == Decimal("100.00")
        assert dividend.franked_amount == Decimal("80.00")
        assert dividend.unfranked_amount == Decimal("20.00")
        assert any("do not add up" in w for w in result.warnings)

    def test_franked_exceeding_gross_is_capped(self, dividend_parser: DividendStatementParser):
        sample = """
        Company: Test Ltd
        Gross Dividend: $100.00
        Franked Amount: $150.00
        Payment Date: 15/03/2024
        """
        result = dividend_parser.parse(sample)
        assert result.dividend.franked_amount == Decimal("100.00")
        assert result.dividend.unfranked_amount == Decimal("0.00")
        assert any("exceeds the gross dividend" in w for w in result.warnings)

    def test_franked_from_unfranked(self, dividend_parser: DividendStatementParser):
        sample = """
        Company: Test Ltd
        Gross Dividend: $100.00
        Unfranked Amount: $40.00
        Payment Date: 15/03/2024
        """
        result = dividend_parser.parse(sample)
        assert result.dividend.franked_amount == Decimal("60.00")
        assert result.dividend.franking_credits == Decimal("25.71")
        assert "Franked amount calculated from gross dividend and unfranked amount" in result.warnings

    def test_split_from_franking_percentage(self, dividend_parser: DividendStatementParser):
        sample = """
        Company: Test Ltd
        Gross Dividend: $200.00
        Franking Percentage: 50%
        Payment Date: 15/03/2024
        """
        result = dividend_parser.parse(sample)
        assert result.dividend.franked_amount == Decimal("100.00")
        assert result.dividend.unfranked_amount == Decimal("100.00")
        assert result.dividend.franking_percentage == 50
        assert "Franked and unfranked amounts calculated from franking percentage" in result.warnings

    def test_custom_tax_rate(self):
        parser = DividendStatementParser(settings=Settings(company_tax_rate=Decimal("0.25")))
        result = parser.parse("Company: Test Ltd\nFranked Amount: $700.00\nPayment Date: 15/03/2024")
        assert result.dividend.franking_credits == Decimal("233.33")


class TestDateFallbacks:
    """Tests for payment and record date fallbacks."""

    def test_record_date_from_payment_date(self, dividend_parser: DividendStatementParser):
        sample = """
        Computershare
        Company: Test Co
        Dividend: $100.00
        Payment Date: 15/09/2024
        """
        dividend = dividend_parser.parse(sample).dividend
        assert dividend.record_date == "2024-09-15"
        assert dividend.financial_year == "2024-2025"

    def test_payment_date_from_record_date(self, dividend_parser: DividendStatementParser):
        result = dividend_parser.parse("Company: Test Co\nDividend: $100.00\nRecord Date: 01/03/2024")
        assert result.dividend.payment_date == "2024-03-01"
        assert "Could not extract payment date, using record date" in result.warnings

    def test_payment_date_from_statement_date(self, dividend_parser: DividendStatementParser):
        result = dividend_parser.parse("Company: Test Co\nDividend: $100.00\nStatement Date: 10/03/2024")
        assert result.dividend.payment_date == "2024-03-10"
        assert "Could not extract payment date, using statement date" in result.warnings

    def test_payment_date_from_clock(self, dividend_parser: DividendStatementParser):
        """Test the injected clock is the last resort."""
        sample = """
        Computershare
        Company: Test Co
        Dividend: $100.00
        """
        result = dividend_parser.parse(sample)
        assert result.success is True
        assert result.dividend.payment_date == FIXED_TODAY.isoformat()
        assert result.dividend.financial_year == "2023-2024"
        assert "Could not extract payment date, using current date" in result.warnings


class TestParserErrors:
    """Tests for failures and identity warnings."""

    def test_missing_amount_fails(self, dividend_parser: DividendStatementParser):
        sample = """
        Computershare
        Company: Test Co
        Payment Date: 15/03/2024
        """
        result = dividend_parser.parse(sample)
        assert result.success is False
        assert result.dividend is None
        assert result.errors == ["Could not extract dividend amount"]
        assert result.provider == RegistryProvider.COMPUTERSHARE

    def test_empty_text_fails(self, dividend_parser: DividendStatementParser):
        result = dividend_parser.parse("")
        assert result.success is False
        assert result.provider == RegistryProvider.UNKNOWN

    def test_invalid_abn_warns(self, dividend_parser: DividendStatementParser):
        sample = """
        Computershare
        Company: Test Co
        ABN: 12345678901
        Dividend: $100.00
        Payment Date: 15/03/2024
        """
        result = dividend_parser.parse(sample)
        assert result.success is True
        assert "ABN 12345678901 failed validation check" in result.warnings
        assert result.dividend.company_abn == "12345678901"

    def test_invalid_acn_warns(self, dividend_parser: DividendStatementParser):
        result = dividend_parser.parse("Company: Test Co\nACN: 123 456 789\nDividend: $100.00")
        assert "ACN 123456789 failed validation check" in result.warnings

    def test_unknown_company(self, dividend_parser: DividendStatementParser):
        result = dividend_parser.parse("Dividend: $50.00\nPayment Date: 15/03/2024")
        assert result.dividend.company_name == UNKNOWN_COMPANY
        assert "Could not extract company name, using 'Unknown Company'" in result.warnings

    def test_raw_text_is_truncated(self):
        parser = DividendStatementParser(settings=Settings(raw_text_limit=10))
        result = parser.parse(COMPUTERSHARE_SAMPLE)
        assert result.dividend.raw_text == COMPUTERSHARE_SAMPLE[:10]

    def test_detect_provider(self):
        parser = get_dividend_parser()
        assert parser.detect_provider(LINK_SAMPLE) == RegistryProvider.LINK


class TestFrankingCalculations:
    """Tests for franking helpers."""

    @pytest.mark.parametrize(
        "franked,expected",
        [("700.00", "300.00"), ("1075.00", "460.71"), ("0.00", "0.00"), ("100.00", "42.86")],
    )
    def test_franking_credits(self, franked, expected):
        assert calculate_franking_credits(Decimal(franked)) == Decimal(expected)

    def test_franking_percentage(self):
        assert calculate_franking_percentage(Decimal("250.00"), Decimal("500.00")) == 50
        assert calculate_franking_percentage(Decimal("1.00"), Decimal("3.00")) == 33
        assert calculate_franking_percentage(Decimal("2.00"), Decimal("3.00")) == 67
        assert calculate_franking_percentage(Decimal("0.00"), Decimal("0.00")) == 0
