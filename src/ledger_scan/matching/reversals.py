"""Reversal (voided purchase) detection within one parsed document.

Statements often list a purchase and its exact reversal as two rows.
Importing both would double-count, so such pairs are removed before
categorization and matching.

Scaling: the pairwise scan is O(n²) in the number of candidates of a single
document. Batches are statement-sized (tens to a few hundred rows), so no
indexing is done.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal

from ledger_scan.config import ReversalConfig
from ledger_scan.schemas.transactions import Candidate
from ledger_scan.similarity import jaro_winkler, normalize

logger = logging.getLogger(__name__)


@dataclass
class ReversalResult:
    """Survivors of reversal filtering, in original order."""

    survivors: list[Candidate]
    removed_count: int = 0
    pairs: list[tuple[Candidate, Candidate]] = field(default_factory=list)


class ReversalDetector:
    """Remove candidate pairs whose amounts cancel and whose names agree."""

    def __init__(self, config: ReversalConfig | None = None) -> None:
        self.config = config or ReversalConfig()

    def detect(self, candidates: Sequence[Candidate]) -> ReversalResult:
        """Filter one document's candidates.

        For each candidate i, the first later unremoved candidate j with
        |amount_i + amount_j| < amount_epsilon and a normalized-name
        similarity above the threshold is paired with it; both are removed.
        Zero-amount candidates carry nothing to void and are never paired.
        """
        epsilon = Decimal(str(self.config.amount_epsilon))
        names = [normalize(c.merchant_name) for c in candidates]
        removed = [False] * len(candidates)
        pairs: list[tuple[Candidate, Candidate]] = []

        for i, first in enumerate(candidates):
            if removed[i] or first.amount == 0:
                continue
            for j in range(i + 1, len(candidates)):
                second = candidates[j]
                if removed[j] or second.amount == 0:
                    continue
                if abs(first.amount + second.amount) >= epsilon:
                    continue
                similarity = jaro_winkler(names[i], names[j])
                if similarity <= self.config.name_similarity_threshold:
                    continue

                removed[i] = removed[j] = True
                pairs.append((first, second))
                logger.debug(
                    "Reversal pair: '%s' %s / '%s' %s (similarity %.2f)",
                    first.merchant_name,
                    first.amount,
                    second.merchant_name,
                    second.amount,
                    similarity,
                )
                break

        survivors = [c for c, gone in zip(candidates, removed) if not gone]
        removed_count = len(candidates) - len(survivors)
        if removed_count:
            logger.info("Removed %d candidates as reversal pairs", removed_count)

        return ReversalResult(survivors=survivors, removed_count=removed_count, pairs=pairs)
