"""Tests for statement and receipt parsing."""

from datetime import datetime
from decimal import Decimal

import pytest

from ledger_scan.config import ParserConfig
from ledger_scan.extractors import TransactionCandidateParser
from ledger_scan.extractors.statement_parser import (
    detect_currency,
    filename_stem,
    find_date,
    parse_date_text,
    parse_money,
    resolve_sign,
)
from ledger_scan.schemas.documents import Line
from ledger_scan.schemas.transactions import CandidateSource

NOW = datetime(2024, 3, 15, 10, 30)


@pytest.fixture
def parser() -> TransactionCandidateParser:
    return TransactionCandidateParser()


class TestDateParsing:
    """Tests for date-shaped substrings."""

    def test_day_first_by_default(self):
        assert parse_date_text("01/02/2024") == datetime(2024, 2, 1)

    def test_month_first_when_configured(self):
        assert parse_date_text("01/02/2024", day_first=False) == datetime(2024, 1, 2)

    def test_other_order_when_first_is_impossible(self):
        assert parse_date_text("12/25/2024") == datetime(2024, 12, 25)

    def test_year_first(self):
        assert parse_date_text("2024-02-01") == datetime(2024, 2, 1)
        assert parse_date_text("2024.11.18") == datetime(2024, 11, 18)

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("18.11.24", datetime(2024, 11, 18)),
            ("05-03-70", datetime(1970, 3, 5)),
            ("01 01 68", datetime(2068, 1, 1)),
        ],
    )
    def test_two_digit_years(self, text, expected):
        assert parse_date_text(text) == expected

    def test_invalid_calendar_date(self):
        assert parse_date_text("31/31/2024") is None
        assert parse_date_text("30/02/2024") is None

    def test_find_date_skips_invalid_matches(self):
        found = find_date("Ref 99/99/2024 booked 03/02/2024")
        assert found is not None
        assert found[0] == datetime(2024, 2, 3)
        assert found[1].group(0) == "03/02/2024"

    def test_amounts_are_not_dates(self):
        assert find_date("STARBUCKS 5.40 1200.00") is None

    def test_no_date(self):
        assert find_date("no date here") is None


class TestHelpers:
    """Tests for money, currency and sign helpers."""

    def test_parse_money_thousands(self):
        assert parse_money("1,234.56") == Decimal("1234.56")
        assert parse_money("5.40") == Decimal("5.40")

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Total €12.50", "EUR"),
            ("Total 12.50 EUR", "EUR"),
            ("£3.20", "GBP"),
            ("₹250.00", "INR"),
            ("CHF 9.90", "CHF"),
            ("$4.00", "USD"),
            ("12.50", "USD"),
        ],
    )
    def test_detect_currency(self, text, expected):
        assert detect_currency(text) == expected

    def test_detect_currency_default(self):
        assert detect_currency("12.50", default="EUR") == "EUR"

    def test_filename_stem(self):
        assert filename_stem("/tmp/uploads/scan_001.jpeg") == "scan_001"
        assert filename_stem("statement.pdf") == "statement"
        assert filename_stem("") == "Scanned Receipt"

    def test_resolve_sign(self):
        assert resolve_sign("ATM WITHDRAWAL 100.00", Decimal("100.00")) == Decimal("-100.00")
        assert resolve_sign("SALARY CR 2500.00", Decimal("2500.00")) == Decimal("2500.00")
        assert resolve_sign("Interest credit 1.20", Decimal("1.20")) == Decimal("1.20")
        assert resolve_sign("STARBUCKS 5.40", Decimal("5.40")) == Decimal("-5.40")

    def test_sign_tokens_match_whole_words(self):
        """'CR' inside a merchant name is not a credit marker."""
        assert resolve_sign("CRATE AND BARREL 80.00", Decimal("80.00")) == Decimal("-80.00")
        assert resolve_sign("DRUGSTORE 12.00", Decimal("12.00")) == Decimal("-12.00")

    def test_resolve_sign_attached_marker_and_literal_sign(self):
        assert resolve_sign("PAYROLL", Decimal("2500.00"), marker="CR") == Decimal("2500.00")
        assert resolve_sign("FEE", Decimal("45.00"), marker="dr") == Decimal("-45.00")
        assert resolve_sign("PAYROLL", Decimal("2500.00"), sign="+") == Decimal("2500.00")
        assert resolve_sign("SHOP", Decimal("9.99"), sign="-") == Decimal("-9.99")
        # Words in the row outrank a literal sign
        assert resolve_sign("ATM WITHDRAWAL", Decimal("20.00"), sign="+") == Decimal("-20.00")


class TestTabularParsing:
    """Tests for multi-row statement parsing."""

    def test_two_statement_rows(self, parser):
        rows = ["01/02/2024 STARBUCKS 5.40 1200.00", "02/02/2024 UBER TRIP 24.50 1175.50"]

        candidates = parser.parse_candidates(rows, "statement.pdf", NOW)

        assert [c.amount for c in candidates] == [Decimal("-5.40"), Decimal("-24.50")]
        assert [c.date for c in candidates] == [datetime(2024, 2, 1), datetime(2024, 2, 2)]
        assert [c.merchant_name for c in candidates] == ["STARBUCKS", "UBER TRIP"]
        assert [c.balance for c in candidates] == [Decimal("1200.00"), Decimal("1175.50")]
        assert all(c.source == CandidateSource.TABLE for c in candidates)

    def test_full_statement(self, parser, statement_lines):
        candidates = parser.parse_candidates(statement_lines, "statement.pdf", NOW)

        assert len(candidates) == 3
        payroll = candidates[2]
        assert payroll.merchant_name == "ACME PAYROLL"
        assert payroll.amount == Decimal("2500.00")
        assert payroll.balance == Decimal("3675.50")
        assert payroll.raw_line == "03/02/2024 ACME PAYROLL CR 2,500.00 3,675.50"

    def test_lines_before_header_skipped(self, parser):
        lines = [
            "Account 12/03/2024 summary 99.99",
            "Date Particulars Amount",
            "05/03/2024 BOOKSHOP 12.00",
        ]

        candidates = parser.parse_candidates(lines, "", NOW)

        assert len(candidates) == 1
        assert candidates[0].merchant_name == "BOOKSHOP"

    def test_line_with_amount_is_not_header(self, parser):
        texts = ["Opening balance 1,000.00", "Date Description Amount", "row"]
        assert parser.find_table_start(texts) == 2

    def test_no_header_uses_all_lines(self, parser):
        assert parser.find_table_start(["01/02/2024 A 1.00", "02/02/2024 B 2.00"]) == 0

    def test_footer_rows_skipped(self, parser):
        lines = [
            "01/02/2024 STARBUCKS 5.40 1200.00",
            "Total 5.40",
            "Ending balance 1200.00",
            "Page 1 of 2",
        ]

        candidates = parser.parse_candidates(lines, "", NOW)

        assert len(candidates) == 1

    def test_debit_and_credit_tokens(self, parser):
        lines = [
            "04/02/2024 ATM WITHDRAWAL 100.00 1075.50",
            "05/02/2024 REFUND CR 12.00 1087.50",
            "06/02/2024 TRANSFER DR 50.00 1037.50",
        ]

        candidates = parser.parse_candidates(lines, "", NOW)

        assert [c.amount for c in candidates] == [
            Decimal("-100.00"),
            Decimal("12.00"),
            Decimal("-50.00"),
        ]
        assert candidates[1].merchant_name == "REFUND"
        assert candidates[2].merchant_name == "TRANSFER"

    def test_attached_credit_and_debit_markers(self, parser):
        lines = [
            "Date Description Amount Balance",
            "03/02/2024 ACME PAYROLL 2,500.00CR 3,675.50CR",
            "04/02/2024 SERVICE FEE 45.00DR 3,630.50CR",
        ]

        candidates = parser.parse_candidates(lines, "", NOW)

        assert [c.amount for c in candidates] == [Decimal("2500.00"), Decimal("-45.00")]
        assert [c.balance for c in candidates] == [Decimal("3675.50"), Decimal("3630.50")]
        assert [c.merchant_name for c in candidates] == ["ACME PAYROLL", "SERVICE FEE"]

    def test_literal_sign_is_kept(self, parser):
        lines = [
            "03/02/2024 ACME PAYROLL +2,500.00 3,675.50",
            "04/02/2024 BOOKSHOP -12.00 3,663.50",
        ]

        candidates = parser.parse_candidates(lines, "", NOW)

        assert [c.amount for c in candidates] == [Decimal("2500.00"), Decimal("-12.00")]
        assert [c.merchant_name for c in candidates] == ["ACME PAYROLL", "BOOKSHOP"]

    def test_hyphen_inside_word_is_not_a_sign(self, parser):
        candidate = parser.parse_row("05/02/2024 7-ELEVEN+3.50")
        assert candidate.amount == Decimal("-3.50")

    def test_single_amount_has_no_balance(self, parser):
        candidate = parser.parse_row("07/02/2024 NETFLIX 15.99")
        assert candidate.amount == Decimal("-15.99")
        assert candidate.balance is None

    def test_row_with_date_only(self, parser):
        candidate = parser.parse_row("07/02/2024 CARD REISSUED")
        assert candidate.amount == 0
        assert candidate.merchant_name == "CARD REISSUED"

    def test_row_without_date_uses_reference_time(self, parser):
        candidate = parser.parse_row("STARBUCKS 5.40 1200.00", reference_time=NOW)
        assert candidate.date == NOW
        assert candidate.amount == Decimal("-5.40")

    def test_row_without_date_or_amount(self, parser):
        assert parser.parse_row("Thank you for banking with us") is None

    def test_description_falls_back_to_filename(self, parser):
        candidate = parser.parse_row("07/02/2024 12.00", filename="march.pdf")
        assert candidate.merchant_name == "march"

    def test_currency_from_document(self, parser):
        lines = ["Date Description Amount", "01/02/2024 CAFE €3.50"]

        candidates = parser.parse_candidates(lines, "", NOW)

        assert candidates[0].currency == "EUR"
        assert candidates[0].merchant_name == "CAFE"

    def test_accepts_line_objects(self, parser):
        lines = [Line(y=700, text="01/02/2024 STARBUCKS 5.40 1200.00")]

        candidates = parser.parse_candidates(lines, "", NOW)

        assert candidates[0].merchant_name == "STARBUCKS"


class TestFallbackParsing:
    """Tests for the non-tabular receipt fallback."""

    def test_receipt_total_and_merchant(self, parser, receipt_text):
        candidates = parser.parse_candidates(receipt_text.splitlines(), "fuel.jpg", NOW)

        assert len(candidates) == 1
        candidate = candidates[0]
        assert candidate.source == CandidateSource.FALLBACK
        assert candidate.merchant_name == "SHELL STATION"
        assert candidate.amount == Decimal("-45.20")
        assert candidate.date == NOW
        assert candidate.currency == "USD"
        assert candidate.needs_review is False

    def test_dated_rows_without_amounts_use_fallback(self, parser):
        lines = ["STARBUCKS", "01/02/2024 09:00", "TOTAL 5.40"]

        candidates = parser.parse_candidates(lines, "coffee.pdf", NOW)

        assert len(candidates) == 1
        assert candidates[0].source == CandidateSource.FALLBACK
        assert candidates[0].amount == Decimal("-5.40")
        assert candidates[0].date == datetime(2024, 2, 1)
        assert candidates[0].merchant_name == "STARBUCKS"

    def test_largest_value_under_ceiling(self):
        parser = TransactionCandidateParser(ParserConfig(amount_ceiling=1000.0))
        text = "CORNER DELI\nSubtotal 18.00\nTax 1.50\nTotal 19.50\nCard 4444333322221111.00"

        candidate = parser.parse_simple_receipt(text, "", NOW)

        assert candidate.amount == Decimal("-19.50")

    def test_date_anywhere_in_text(self, parser):
        candidate = parser.parse_simple_receipt("CORNER DELI\n18.11.2024 14:02\nTotal 19.50", "", NOW)
        assert candidate.date == datetime(2024, 11, 18)

    def test_merchant_defaults_to_filename(self, parser):
        candidate = parser.parse_simple_receipt("123\nA1\nTotal 9.99", "IMG_2041.png", NOW)
        assert candidate.merchant_name == "IMG_2041"

    def test_merchant_length_bounds(self, parser):
        text = "ABC\nTHIS MERCHANT LINE IS FAR TOO LONG\nBURGER BARN\nTotal 9.99"

        candidate = parser.parse_simple_receipt(text, "", NOW)

        assert candidate.merchant_name == "BURGER BARN"

    def test_no_total_needs_review(self, parser):
        candidate = parser.parse_simple_receipt("CORNER DELI\nThank you", "", NOW)
        assert candidate.amount == 0
        assert candidate.needs_review is True


class TestPlaceholderAndBestCandidate:
    """Tests for placeholder and single-candidate contracts."""

    def test_no_lines_gives_placeholder(self, parser):
        candidates = parser.parse_candidates([], "scan_001.jpg", NOW)

        assert len(candidates) == 1
        placeholder = candidates[0]
        assert placeholder.merchant_name == "scan_001"
        assert placeholder.amount == Decimal("0.00")
        assert placeholder.date == NOW
        assert placeholder.source == CandidateSource.PLACEHOLDER
        assert placeholder.needs_review is True

    def test_blank_lines_give_placeholder(self, parser):
        candidates = parser.parse_candidates(["", "   "], "", NOW)
        assert candidates[0].merchant_name == "Scanned Receipt"

    def test_best_candidate_is_largest_amount(self, parser, statement_lines):
        best = parser.parse_best_candidate(statement_lines, "statement.pdf", NOW)
        assert best.merchant_name == "ACME PAYROLL"
        assert best.amount == Decimal("2500.00")

    def test_best_candidate_tie_keeps_first(self, parser):
        lines = ["01/02/2024 FIRST CAFE 5.40", "02/02/2024 SECOND CAFE 5.40"]
        assert parser.parse_best_candidate(lines, "", NOW).merchant_name == "FIRST CAFE"

    def test_best_candidate_name_truncated(self, parser):
        lines = ["01/02/2024 THE EXTREMELY LONG MERCHANT NAME OF A RESTAURANT 42.00"]

        best = parser.parse_best_candidate(lines, "", NOW)

        assert len(best.merchant_name) <= 30
        assert best.merchant_name.startswith("THE EXTREMELY LONG")

    def test_best_candidate_without_amounts_falls_back(self, parser):
        best = parser.parse_best_candidate(["01/02/2024 CARD REISSUED"], "notice.pdf", NOW)
        assert best.source == CandidateSource.FALLBACK
        assert best.merchant_name == "notice"
        assert best.date == datetime(2024, 2, 1)
        assert best.needs_review is True

    def test_best_candidate_falls_back(self, parser, receipt_text):
        best = parser.parse_best_candidate(receipt_text.splitlines(), "", NOW)
        assert best.source == CandidateSource.FALLBACK
        assert best.amount == Decimal("-45.20")
