"""
Layered category suggestion.

Resolution order, first hit wins:
1. Rule table (caller-supplied, or built-in defaults)
2. History: most frequent category among ledger transactions whose
   description overlaps the input
3. No match: left for manual review

The categorizer is pure: rules, category table and history are passed in
and never modified.
"""

import logging
from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..config import CategorizationConfig
from ..schemas.categories import CategoryRule
from ..schemas.transactions import LedgerTransaction
from ..similarity import normalize
from .categories import DEFAULT_RULES, CategoryDirectory

logger = logging.getLogger(__name__)


class CategorizationMethod(str, Enum):
    """Which layer produced the suggestion."""

    RULE = "RULE"
    HISTORY = "HISTORY"
    NONE = "NONE"


@dataclass
class CategorizationResult:
    """Category suggestion. category_id None means manual review."""

    category_id: Optional[str]
    confidence: float
    method: CategorizationMethod
    category_name: Optional[str] = None
    matched_rule: Optional[CategoryRule] = None
    history_matches: int = 0

    def to_dict(self) -> dict:
        return {
            "category_id": self.category_id,
            "category_name": self.category_name,
            "confidence": self.confidence,
            "method": self.method.value,
            "matched_rule": (
                {"pattern": self.matched_rule.pattern, "category": self.matched_rule.category}
                if self.matched_rule
                else None
            ),
            "history_matches": self.history_matches,
        }


def _overlaps(first: str, second: str) -> bool:
    """Either normalized string contains the other (equality included)."""
    return first in second or second in first


class Categorizer:
    """Suggest a category id for a transaction description."""

    def __init__(
        self,
        config: Optional[CategorizationConfig] = None,
        directory: Optional[CategoryDirectory] = None,
    ):
        self.config = config or CategorizationConfig()
        self.directory = directory or CategoryDirectory()

    def categorize(
        self,
        text: str,
        rules: Optional[Sequence[CategoryRule]] = None,
        history: Iterable[LedgerTransaction] = (),
    ) -> CategorizationResult:
        """
        Suggest a category for `text`.

        Args:
            text: Merchant name or description
            rules: Rule table in priority order. None uses the built-in
                defaults; an empty sequence disables rules.
            history: Prior ledger transactions

        Returns:
            CategorizationResult (confidence 0 and no id when nothing matched)
        """
        normalized = normalize(text)
        if not normalized:
            return CategorizationResult(
                category_id=None, confidence=0.0, method=CategorizationMethod.NONE
            )

        rule_result = self._match_rules(normalized, DEFAULT_RULES if rules is None else rules)
        if rule_result:
            return rule_result

        history_result = self._match_history(normalized, history)
        if history_result:
            return history_result

        logger.debug("No category for '%s'", text)
        return CategorizationResult(category_id=None, confidence=0.0, method=CategorizationMethod.NONE)

    def _match_rules(
        self,
        normalized: str,
        rules: Sequence[CategoryRule],
    ) -> Optional[CategorizationResult]:
        for rule in rules:
            pattern = normalize(rule.pattern)
            # A pattern made only of stop terms would match everything
            if not pattern or not _overlaps(normalized, pattern):
                continue

            category = self.directory.lookup(rule.category)
            if category is None:
                logger.warning(
                    "Rule '%s' names unknown category '%s', skipping",
                    rule.pattern,
                    rule.category,
                )
                continue

            return CategorizationResult(
                category_id=category.id,
                confidence=self.config.rule_confidence,
                method=CategorizationMethod.RULE,
                category_name=category.name,
                matched_rule=rule,
            )
        return None

    def _match_history(
        self,
        normalized: str,
        history: Iterable[LedgerTransaction],
    ) -> Optional[CategorizationResult]:
        tally: Counter[str] = Counter()
        for tx in history:
            if not tx.category_id:
                continue
            description = normalize(tx.description)
            if description and _overlaps(normalized, description):
                tally[tx.category_id] += 1

        if not tally:
            return None

        # most_common keeps first-seen order among equal counts
        category_id, _ = tally.most_common(1)[0]
        return CategorizationResult(
            category_id=category_id,
            confidence=self.config.history_confidence,
            method=CategorizationMethod.HISTORY,
            category_name=self.directory.name_for(category_id),
            history_matches=sum(tally.values()),
        )
