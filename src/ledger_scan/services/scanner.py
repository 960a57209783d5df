"""Document scan orchestration service.

Runs one document through the full pipeline, synchronously:
- Reads positioned text through a TextLayerProvider
- Rebuilds lines and parses transaction candidates
- Drops reversal pairs (voided purchases)
- Suggests a category per surviving candidate
- Matches a single candidate against the ledger snapshot
- Turns the outcome into a ledger decision (link or create)

The service holds no state between scans; starting a new scan simply
discards the previous result.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from ledger_scan.categorization import CategorizationResult, Categorizer, CategoryDirectory
from ledger_scan.config import Config
from ledger_scan.extractors import (
    DocumentLayoutExtractor,
    DocumentReadError,
    PdfTextLayerProvider,
    TransactionCandidateParser,
)
from ledger_scan.matching import MatchResult, MatchScorer, ReversalDetector
from ledger_scan.schemas.decisions import (
    LedgerDecision,
    ReviewState,
    build_create_decision,
    build_link_decision,
    build_receipt,
)

if TYPE_CHECKING:
    from ledger_scan.extractors import TextLayerProvider
    from ledger_scan.schemas.categories import CategoryRule
    from ledger_scan.schemas.documents import Line, TextFragment
    from ledger_scan.schemas.transactions import Candidate, LedgerTransaction

logger = logging.getLogger(__name__)


@dataclass
class ScanResult:
    """Outcome of scanning one document."""

    filename: str
    candidates: list[Candidate] = field(default_factory=list)
    categorizations: list[CategorizationResult] = field(default_factory=list)
    reversals_removed: int = 0
    match: MatchResult | None = None
    review_state: ReviewState = ReviewState.REVIEW
    lines_extracted: int = 0
    duration_ms: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def single_candidate(self) -> Candidate | None:
        """The candidate when the document yielded exactly one."""
        return self.candidates[0] if len(self.candidates) == 1 else None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "filename": self.filename,
            "candidates": [c.to_dict() for c in self.candidates],
            "categorizations": [c.to_dict() for c in self.categorizations],
            "reversals_removed": self.reversals_removed,
            "match": self.match.to_dict() if self.match else None,
            "review_state": self.review_state.value,
            "lines_extracted": self.lines_extracted,
            "duration_ms": self.duration_ms,
            "errors": self.errors,
        }


class ScanService:
    """Orchestrates extraction → parsing → reversal filtering → categorization → matching.

    Usage:
        service = ScanService(config)
        result = service.scan_file(Path("statement.pdf"), ledger=transactions)
        decisions = service.decide(result)
    """

    def __init__(
        self,
        config: Config | None = None,
        provider: TextLayerProvider | None = None,
        directory: CategoryDirectory | None = None,
    ) -> None:
        """Initialize the scan service.

        Args:
            config: Application configuration.
            provider: Text-layer source (defaults to the PDF provider).
            directory: Category name → id table (defaults to built-in).
        """
        self.config = config or Config()
        self.provider = provider or PdfTextLayerProvider()

        self.layout = DocumentLayoutExtractor(self.config.layout)
        self.parser = TransactionCandidateParser(self.config.parser)
        self.reversals = ReversalDetector(self.config.reversal)
        self.categorizer = Categorizer(self.config.categorization, directory)
        self.scorer = MatchScorer(self.config.matching)

    def scan_file(
        self,
        path: Path,
        ledger: Sequence[LedgerTransaction] = (),
        rules: Sequence[CategoryRule] | None = None,
        password: str | None = None,
        default_password: str | None = None,
        reference_time: datetime | None = None,
        allow_placeholder: bool = True,
    ) -> ScanResult:
        """Scan a document file.

        Args:
            path: Document to scan.
            ledger: Ledger snapshot to match against and learn categories from.
            rules: Category rule table (None = built-in defaults).
            password: Password entered for this attempt.
            default_password: Stored password tried when none was entered
                (e.g. the account's statement password).
            reference_time: "Now" for candidates without a date.
            allow_placeholder: Degrade unreadable documents to a placeholder
                candidate instead of raising DocumentReadError.

        Raises:
            PasswordRequiredError: Always propagated so the caller can
                re-prompt and retry with another password.
            DocumentReadError: When allow_placeholder is False.
        """
        path = Path(path)
        start_time = time.time()

        if not self.provider.can_read(path):
            logger.info("No text layer reader for %s, using placeholder candidate", path.name)
            result = self._finish(
                path.name,
                [self.parser.placeholder_candidate(path.name, reference_time)],
                ledger,
                rules,
                lines_extracted=0,
            )
            result.duration_ms = int((time.time() - start_time) * 1000)
            return result

        errors: list[str] = []
        try:
            pages = self.provider.extract_pages(
                path,
                password=password or default_password,
                max_pages=self.config.layout.max_pages,
            )
        except DocumentReadError as e:
            if not allow_placeholder:
                raise
            logger.warning("Could not read %s: %s", path.name, e.reason)
            errors.append(str(e))
            pages = []

        result = self.scan_fragments(pages, path.name, ledger, rules, reference_time)
        result.errors.extend(errors)
        result.duration_ms = int((time.time() - start_time) * 1000)
        return result

    def scan_fragments(
        self,
        pages: Sequence[Sequence[TextFragment]],
        filename: str,
        ledger: Sequence[LedgerTransaction] = (),
        rules: Sequence[CategoryRule] | None = None,
        reference_time: datetime | None = None,
    ) -> ScanResult:
        """Scan fragments already produced by an external text-layer source."""
        lines = self.layout.extract_lines(pages)
        return self.scan_lines(lines, filename, ledger, rules, reference_time)

    def scan_lines(
        self,
        lines: Sequence[Line | str],
        filename: str,
        ledger: Sequence[LedgerTransaction] = (),
        rules: Sequence[CategoryRule] | None = None,
        reference_time: datetime | None = None,
    ) -> ScanResult:
        """Scan already reconstructed text lines."""
        candidates = self.parser.parse_candidates(lines, filename, reference_time)
        return self._finish(filename, candidates, ledger, rules, lines_extracted=len(lines))

    def decide(
        self,
        result: ScanResult,
        account_id: str | None = None,
        storage_url: str = "",
    ) -> list[LedgerDecision]:
        """Turn a scan result into ledger decisions.

        A matched single candidate links to its transaction; every other
        candidate becomes a new pending transaction.
        """
        decisions: list[LedgerDecision] = []

        if result.match and result.match.transaction:
            receipt = build_receipt(f"rcpt_{uuid.uuid4().hex[:12]}", storage_url)
            decisions.append(build_link_decision(result.match.transaction, receipt))
            return decisions

        for candidate in result.candidates:
            receipt = build_receipt(f"rcpt_{uuid.uuid4().hex[:12]}", storage_url)
            decisions.append(build_create_decision(candidate, receipt, account_id=account_id))
        return decisions

    def _finish(
        self,
        filename: str,
        candidates: list[Candidate],
        ledger: Sequence[LedgerTransaction],
        rules: Sequence[CategoryRule] | None,
        lines_extracted: int,
    ) -> ScanResult:
        result = ScanResult(filename=filename, lines_extracted=lines_extracted)

        reversal = self.reversals.detect(candidates)
        result.reversals_removed = reversal.removed_count
        result.candidates = reversal.survivors

        for candidate in result.candidates:
            categorization = self.categorizer.categorize(
                candidate.merchant_name, rules=rules, history=ledger
            )
            candidate.category_id = categorization.category_id
            result.categorizations.append(categorization)

        single = result.single_candidate
        if single is not None and not single.needs_review:
            result.match = self.scorer.find_best_match(single, ledger)

        result.review_state = self._review_state(result)

        logger.info(
            "Scanned %s: %d lines, %d candidates, %d reversals removed, match=%s",
            filename,
            lines_extracted,
            len(result.candidates),
            result.reversals_removed,
            result.match.transaction.id if result.match and result.match.transaction else None,
        )
        return result

    def _review_state(self, result: ScanResult) -> ReviewState:
        if any(c.needs_review for c in result.candidates):
            return ReviewState.MANUAL
        if result.match and result.match.transaction and result.match.auto_link:
            return ReviewState.AUTO
        return ReviewState.REVIEW
