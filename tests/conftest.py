"""Test fixtures and utilities."""

from datetime import datetime
from decimal import Decimal

import pytest

from ledger_scan.config import Config
from ledger_scan.schemas.documents import TextFragment
from ledger_scan.schemas.transactions import Candidate, LedgerTransaction, TransactionStatus

# Sample statement text (already reconstructed into lines)
SAMPLE_STATEMENT_LINES = [
    "FIRST NATIONAL BANK",
    "Statement period 01/02/2024 - 29/02/2024",
    "Date Description Debit Credit Balance",
    "01/02/2024 STARBUCKS 5.40 1200.00",
    "02/02/2024 UBER TRIP 24.50 1175.50",
    "03/02/2024 ACME PAYROLL CR 2,500.00 3,675.50",
    "Page 1 of 1",
]

SAMPLE_RECEIPT_TEXT = """
SHELL STATION
Pump 4 unleaded
TOTAL $45.20
Thank you
"""


def make_fragment(text: str, x: float, y: float) -> TextFragment:
    """Build a fragment with a nominal box."""
    return TextFragment(text=text, x=x, y=y, width=len(text) * 5.0, height=10.0)


@pytest.fixture
def config() -> Config:
    """Default configuration."""
    return Config()


@pytest.fixture
def statement_lines() -> list[str]:
    """Multi-row bank statement lines."""
    return list(SAMPLE_STATEMENT_LINES)


@pytest.fixture
def receipt_text() -> str:
    """Non-tabular fuel receipt."""
    return SAMPLE_RECEIPT_TEXT


@pytest.fixture
def statement_fragments() -> list[list[TextFragment]]:
    """One page of positioned fragments for a two-row statement."""
    return [
        [
            make_fragment("Balance", 400, 700),
            make_fragment("Date", 50, 700),
            make_fragment("Description", 120, 701),
            make_fragment("Amount", 300, 699),
            make_fragment("01/02/2024", 50, 680),
            make_fragment("5.40", 300, 681),
            make_fragment("STARBUCKS", 120, 679),
            make_fragment("1200.00", 400, 680),
            make_fragment("02/02/2024", 50, 660),
            make_fragment("UBER", 120, 660),
            make_fragment("TRIP", 160, 660),
            make_fragment("24.50", 300, 660),
            make_fragment("1175.50", 400, 660),
        ]
    ]


@pytest.fixture
def starbucks_candidate() -> Candidate:
    """Candidate as scanned from a coffee receipt."""
    return Candidate(
        merchant_name="STARBUCKS",
        date=datetime(2024, 2, 1, 9, 0),
        amount=Decimal("-5.40"),
    )


@pytest.fixture
def ledger() -> list[LedgerTransaction]:
    """Small ledger snapshot."""
    return [
        LedgerTransaction(
            id="tx_1",
            date=datetime(2024, 1, 20, 12, 0),
            amount=Decimal("-120.00"),
            description_raw="WHOLE FOODS MARKET",
            category_id="cat_3",
        ),
        LedgerTransaction(
            id="tx_2",
            date=datetime(2024, 2, 1, 8, 30),
            amount=Decimal("-5.40"),
            description_raw="STARBUCKS STORE 1234",
            category_id="cat_1",
            status=TransactionStatus.PENDING,
        ),
        LedgerTransaction(
            id="tx_3",
            date=datetime(2024, 2, 2, 18, 0),
            amount=Decimal("-24.50"),
            description_raw="UBER *TRIP",
            category_id="cat_2",
        ),
    ]
