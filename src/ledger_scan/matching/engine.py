"""Match scorer for correlating scanned candidates with ledger transactions.

Performs multi-signal matching between one extracted candidate and every
transaction of a ledger snapshot. The ledger is passed in explicitly; the
scorer reads no other state and never modifies the ledger.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING

from ledger_scan.config import MatchingConfig
from ledger_scan.similarity import jaro_winkler, normalize

if TYPE_CHECKING:
    from ledger_scan.schemas.transactions import Candidate, LedgerTransaction

logger = logging.getLogger(__name__)


@dataclass
class MatchScore:
    """Individual signal contribution to a match score."""

    signal: str
    score: float
    weight: float
    detail: str

    @property
    def weighted_score(self) -> float:
        """Get the weighted score for this signal."""
        return self.score * self.weight


@dataclass
class MatchResult:
    """Result of matching a candidate against the ledger.

    `transaction` is None when no ledger transaction reached the match
    threshold; the caller should then offer to create a new transaction.
    """

    transaction: LedgerTransaction | None
    score: float
    details: str
    signals: list[MatchScore] = field(default_factory=list)
    hours_apart: float | None = None
    auto_link: bool = False  # True if score reached the auto-link threshold

    @property
    def is_match(self) -> bool:
        return self.transaction is not None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "transaction_id": self.transaction.id if self.transaction else None,
            "score": self.score,
            "details": self.details,
            "hours_apart": self.hours_apart,
            "auto_link": self.auto_link,
            "signals": [
                {
                    "signal": s.signal,
                    "score": s.score,
                    "weight": s.weight,
                    "weighted_score": s.weighted_score,
                    "detail": s.detail,
                }
                for s in self.signals
            ],
        }


def _as_utc_naive(value: datetime) -> datetime:
    """Aware datetimes are compared in UTC; naive ones are taken as-is."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class MatchScorer:
    """Find the ledger transaction that best explains a scanned candidate.

    Signals:
    - Amount: exact within a cent, else linear decay to 0 at 20% deviation
    - Time: Gaussian decay over the hour difference (sigma 12h)
    - Merchant: Jaro-Winkler similarity of normalized descriptions
    - Substring: bonus when one normalized name contains the other

    Every ledger transaction is scored (linear scan). The highest total wins
    and ties keep the first transaction encountered.
    """

    def __init__(self, config: MatchingConfig | None = None) -> None:
        """Initialize the match scorer.

        Args:
            config: Matching weights and thresholds.
        """
        self.config = config or MatchingConfig()

    def find_best_match(
        self,
        candidate: Candidate,
        ledger: Iterable[LedgerTransaction],
    ) -> MatchResult:
        """Find the best matching ledger transaction for a candidate.

        Args:
            candidate: Candidate extracted from a document.
            ledger: Full ledger snapshot (unbounded).

        Returns:
            MatchResult whose transaction is None when the best score is
            below match_threshold. Score and details always describe the
            best-scoring transaction.
        """
        best: MatchResult | None = None

        for tx in ledger:
            result = self.score_transaction(candidate, tx)
            if best is None or result.score > best.score:
                best = result

        if best is None:
            logger.debug("No ledger transactions to match against")
            return MatchResult(transaction=None, score=0.0, details="No ledger transactions")

        if best.score < self.config.match_threshold:
            logger.debug(
                "Best match %s below threshold (%.2f < %.2f)",
                best.transaction.id if best.transaction else None,
                best.score,
                self.config.match_threshold,
            )
            best.transaction = None
            best.auto_link = False
        else:
            logger.info(
                "Matched '%s' to transaction %s (score: %.2f)",
                candidate.merchant_name,
                best.transaction.id if best.transaction else None,
                best.score,
            )

        return best

    def rank_matches(
        self,
        candidate: Candidate,
        ledger: Iterable[LedgerTransaction],
        max_results: int = 5,
        min_score: float = 0.0,
    ) -> list[MatchResult]:
        """Score every transaction and return the best ones for review.

        Args:
            candidate: Candidate extracted from a document.
            ledger: Ledger snapshot.
            max_results: Maximum number of results.
            min_score: Drop results scoring below this.

        Returns:
            List of MatchResult sorted by score descending (stable).
        """
        results = [self.score_transaction(candidate, tx) for tx in ledger]
        results = [r for r in results if r.score >= min_score]
        results.sort(key=lambda r: r.score, reverse=True)
        return results[:max_results]

    def score_transaction(
        self,
        candidate: Candidate,
        transaction: LedgerTransaction,
    ) -> MatchResult:
        """Score a single ledger transaction against a candidate.

        Returns:
            MatchResult with score breakdown; transaction is always set.
        """
        candidate_name = normalize(candidate.merchant_name)
        transaction_name = normalize(transaction.description)

        amount_score = self._score_amount(candidate.amount, transaction.amount)
        time_score, hours = self._score_time(candidate.date, transaction.date)
        merchant_score = self._score_merchant(candidate_name, transaction_name)
        substring_score = self._score_substring(candidate_name, transaction_name)

        signals = [amount_score, time_score, merchant_score, substring_score]
        total = min(1.0, sum(s.weighted_score for s in signals))

        details = (
            f"Total: {total * 100:.1f}% "
            f"[Amt: {amount_score.score * 100:.0f}%, "
            f"Time: {time_score.score * 100:.0f}% ({hours:.1f}h), "
            f"Name: {merchant_score.score * 100:.0f}%, "
            f"Sub: {substring_score.score * 100:.0f}%]"
        )

        return MatchResult(
            transaction=transaction,
            score=total,
            details=details,
            signals=signals,
            hours_apart=hours,
            auto_link=total >= self.config.auto_link_threshold,
        )

    def _score_amount(self, candidate: Decimal, transaction: Decimal) -> MatchScore:
        """Score amount similarity with exact decimal arithmetic.

        Magnitudes are compared so an unsigned receipt total still matches
        its signed ledger expense.
        """
        weight = self.config.weight_amount
        diff = abs(abs(transaction) - abs(candidate))
        tolerance = Decimal(str(self.config.exact_amount_tolerance))

        if diff < tolerance:
            return MatchScore(signal="amount", score=1.0, weight=weight, detail=f"exact: {candidate}")

        if candidate == 0:
            return MatchScore(
                signal="amount",
                score=0.0,
                weight=weight,
                detail=f"mismatch: {candidate} vs {transaction}",
            )

        ratio = diff / abs(candidate)
        factor = Decimal(str(self.config.amount_decay_factor))
        score = max(Decimal("0"), Decimal("1") - ratio * factor)
        return MatchScore(
            signal="amount",
            score=float(score),
            weight=weight,
            detail=f"{ratio * 100:.1f}% off: {candidate} vs {transaction}",
        )

    def _score_time(
        self,
        candidate: datetime,
        transaction: datetime,
    ) -> tuple[MatchScore, float]:
        """Score time proximity with Gaussian decay.

        Returns:
            The MatchScore and the absolute hour difference.
        """
        delta = _as_utc_naive(transaction) - _as_utc_naive(candidate)
        hours = abs(delta.total_seconds()) / 3600
        sigma = self.config.sigma_hours
        score = math.exp(-(hours**2) / (2 * sigma**2))
        return (
            MatchScore(
                signal="time",
                score=score,
                weight=self.config.weight_time,
                detail=f"{hours:.1f}h apart",
            ),
            hours,
        )

    def _score_merchant(self, candidate: str, transaction: str) -> MatchScore:
        """Score normalized merchant similarity (Jaro-Winkler)."""
        score = jaro_winkler(transaction, candidate)
        return MatchScore(
            signal="merchant",
            score=score,
            weight=self.config.weight_merchant,
            detail="missing" if not candidate or not transaction else f"jaro-winkler {score:.2f}",
        )

    def _score_substring(self, candidate: str, transaction: str) -> MatchScore:
        """Bonus when one normalized name contains the other."""
        shorter = min(len(candidate), len(transaction))
        contains = candidate in transaction or transaction in candidate
        if contains and shorter > self.config.min_substring_length:
            return MatchScore(
                signal="substring",
                score=1.0,
                weight=self.config.weight_substring,
                detail="contains",
            )
        return MatchScore(
            signal="substring",
            score=0.0,
            weight=self.config.weight_substring,
            detail="no containment",
        )
