"""
Category suggestion for scanned transactions.

Provides:
- Categorizer: rule table, then ledger history
- CategoryDirectory: explicit category name → id lookup with synonyms
"""

from .categories import CATEGORY_SYNONYMS, DEFAULT_CATEGORIES, DEFAULT_RULES, CategoryDirectory
from .categorizer import CategorizationMethod, CategorizationResult, Categorizer

__all__ = [
    "CATEGORY_SYNONYMS",
    "DEFAULT_CATEGORIES",
    "DEFAULT_RULES",
    "CategorizationMethod",
    "CategorizationResult",
    "Categorizer",
    "CategoryDirectory",
]
