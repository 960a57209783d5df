"""
Category table, synonyms and built-in rules (SSOT).

Category names in rules are human-readable ("Dining"); the ledger stores
category ids ("cat_1"). CategoryDirectory is the ONLY place that maps one to
the other.
"""

from collections.abc import Iterable
from typing import Optional

from ..schemas.categories import Category, CategoryRule

DEFAULT_CATEGORIES: tuple[Category, ...] = (
    Category(id="cat_1", name="Food & Drink"),
    Category(id="cat_2", name="Transport"),
    Category(id="cat_3", name="Shopping"),
    Category(id="cat_4", name="Salary"),
    Category(id="cat_5", name="Utilities"),
    Category(id="cat_6", name="Entertainment"),
    Category(id="cat_7", name="Health"),
    Category(id="cat_8", name="Housing"),
)

# Alternative names (casefolded) → canonical category name
CATEGORY_SYNONYMS: dict[str, str] = {
    "dining": "Food & Drink",
    "restaurants": "Food & Drink",
    "food": "Food & Drink",
    "coffee": "Food & Drink",
    "groceries": "Shopping",
    "grocery": "Shopping",
    "retail": "Shopping",
    "ride hailing": "Transport",
    "rideshare": "Transport",
    "taxi": "Transport",
    "fuel": "Transport",
    "travel": "Transport",
    "income": "Salary",
    "payroll": "Salary",
    "wages": "Salary",
    "bills": "Utilities",
    "telecom": "Utilities",
    "internet": "Utilities",
    "streaming": "Entertainment",
    "movies": "Entertainment",
    "medical": "Health",
    "pharmacy": "Health",
    "fitness": "Health",
    "rent": "Housing",
    "mortgage": "Housing",
}

# Used when the caller supplies no rule table. Order is priority.
DEFAULT_RULES: tuple[CategoryRule, ...] = (
    CategoryRule(pattern="PAYROLL", category="Salary"),
    CategoryRule(pattern="SALARY", category="Salary"),
    CategoryRule(pattern="DIRECT DEP", category="Salary"),
    CategoryRule(pattern="STARBUCKS", category="Food & Drink"),
    CategoryRule(pattern="DUNKIN", category="Food & Drink"),
    CategoryRule(pattern="COFFEE", category="Food & Drink"),
    CategoryRule(pattern="CAFE", category="Food & Drink"),
    CategoryRule(pattern="BAKERY", category="Food & Drink"),
    CategoryRule(pattern="UBER", category="Transport"),
    CategoryRule(pattern="LYFT", category="Transport"),
    CategoryRule(pattern="TAXI", category="Transport"),
    CategoryRule(pattern="SHELL", category="Transport"),
    CategoryRule(pattern="FUEL", category="Transport"),
    CategoryRule(pattern="WHOLE FOODS", category="Shopping"),
    CategoryRule(pattern="WHOLEFDS", category="Shopping"),
    CategoryRule(pattern="TRADER JOES", category="Shopping"),
    CategoryRule(pattern="GROCERY", category="Shopping"),
    CategoryRule(pattern="ELECTRIC", category="Utilities"),
    CategoryRule(pattern="WATER", category="Utilities"),
    CategoryRule(pattern="INTERNET", category="Utilities"),
    CategoryRule(pattern="VERIZON", category="Utilities"),
)


class CategoryDirectory:
    """
    Resolve human category names to category ids.

    Resolution order:
    1. Exact name
    2. Case-insensitive name
    3. Synonym table (case-insensitive), then the resolved canonical name
    """

    def __init__(
        self,
        categories: Optional[Iterable[Category]] = None,
        synonyms: Optional[dict[str, str]] = None,
    ):
        self.categories: tuple[Category, ...] = tuple(
            DEFAULT_CATEGORIES if categories is None else categories
        )
        self.synonyms = {
            k.casefold(): v for k, v in (CATEGORY_SYNONYMS if synonyms is None else synonyms).items()
        }
        self._by_name = {c.name: c for c in self.categories}
        self._by_folded = {}
        for category in self.categories:
            self._by_folded.setdefault(category.name.casefold(), category)
        self._by_id = {c.id: c for c in self.categories}

    def resolve(self, name: Optional[str]) -> Optional[str]:
        """Return the category id for a human-readable name, or None."""
        category = self.lookup(name)
        return category.id if category else None

    def lookup(self, name: Optional[str]) -> Optional[Category]:
        if not name:
            return None
        if name in self._by_name:
            return self._by_name[name]

        folded = name.strip().casefold()
        if folded in self._by_folded:
            return self._by_folded[folded]

        canonical = self.synonyms.get(folded)
        if canonical:
            return self._by_name.get(canonical) or self._by_folded.get(canonical.casefold())
        return None

    def name_for(self, category_id: Optional[str]) -> Optional[str]:
        """Return the display name for a category id, or None."""
        category = self._by_id.get(category_id) if category_id else None
        return category.name if category else None
