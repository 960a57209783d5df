"""
SSOT (Single Source of Truth) schemas for the scan pipeline.

These canonical schemas are the ONLY models used across all modules.
"""

from .categories import Category, CategoryRule
from .decisions import (
    DecisionAction,
    LedgerDecision,
    ReviewState,
    TransactionType,
    build_create_decision,
    build_link_decision,
    build_receipt,
)
from .documents import Line, TextFragment
from .transactions import (
    Candidate,
    CandidateSource,
    LedgerTransaction,
    Receipt,
    TransactionStatus,
)

__all__ = [
    # Document layout (canonical input schema)
    "TextFragment",
    "Line",
    # Transactions
    "Candidate",
    "CandidateSource",
    "LedgerTransaction",
    "Receipt",
    "TransactionStatus",
    # Categories
    "Category",
    "CategoryRule",
    # Decisions (canonical output schema)
    "DecisionAction",
    "LedgerDecision",
    "ReviewState",
    "TransactionType",
    "build_create_decision",
    "build_link_decision",
    "build_receipt",
]
