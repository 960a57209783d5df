"""Ledger matching and reversal detection for scanned candidates."""

from ledger_scan.matching.engine import MatchResult, MatchScore, MatchScorer
from ledger_scan.matching.reversals import ReversalDetector, ReversalResult

__all__ = ["MatchResult", "MatchScore", "MatchScorer", "ReversalDetector", "ReversalResult"]
