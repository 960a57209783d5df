"""
Statement and receipt parsing: text lines → transaction candidates.

Two strategies:
- Tabular: bank statement rows (date, description, amount, running balance)
- Fallback: single-purchase receipts without a table (fuel slips, tills)

Supported formats:
- Dates: d/m/y family and y/m/d family, separated by / - . or space
- Amounts: exactly two fraction digits, optional thousands commas (1,234.56),
  optional leading sign (+2,500.00) or attached DR/CR marker (45.00DR)
- Currency: $, USD, €, EUR, £, GBP, ₹, INR, CHF
"""

import logging
import re
from collections.abc import Sequence
from datetime import datetime
from decimal import Decimal, InvalidOperation
from pathlib import PurePath
from typing import Optional, Union

from ..config import ParserConfig
from ..schemas.documents import Line
from ..schemas.transactions import Candidate, CandidateSource

logger = logging.getLogger(__name__)

# Statement table header keywords (substring, case-insensitive)
HEADER_KEYWORDS = (
    "date",
    "transaction",
    "description",
    "particulars",
    "debit",
    "credit",
    "amount",
    "balance",
)

# Footer and summary rows that never carry a transaction
FOOTER_KEYWORDS = ("total", "balance b/f", "balance c/f", "page", "ending balance")

# Sign markers (whole words, case-insensitive)
DEBIT_TOKENS = re.compile(r"\b(?:dr|debit|withdrawal)\b", re.IGNORECASE)
CREDIT_TOKENS = re.compile(r"\b(?:cr|credit|deposit)\b", re.IGNORECASE)

# d/m/y (or m/d/y) and y/m/d shapes; never part of a longer number or amount
DATE_PATTERN = re.compile(
    r"(?<![\d.,])"
    r"(?:\d{1,2}[/\-. ]\d{1,2}[/\-. ]\d{2,4}|\d{4}[/\-. ]\d{1,2}[/\-. ]\d{1,2})"
    r"(?![\d]|[.,]\d)"
)
DATE_SEPARATORS = re.compile(r"[/\-. ]")

# Money: exactly two fraction digits, with an optional leading sign and an
# optional attached DR/CR marker ("-45.00", "+2,500.00", "2,500.00CR")
MONEY_PATTERN = re.compile(
    r"(?:(?<![\w.,+-])(?P<sign>[-+]))?"
    r"(?<![\d.,])(?P<value>(?:\d{1,3}(?:,\d{3})+|\d+)\.\d{2})"
    r"(?:(?P<marker>dr|cr)\b)?"
    r"(?![\d]|[.,]\d)",
    re.IGNORECASE,
)

# Tokens removed from a row to leave its description
NUMERIC_TOKEN = re.compile(r"(?<!\w)[-+]?[\d,]*\d(?:\.\d+)?(?:dr|cr)?(?!\w)", re.IGNORECASE)
SIGN_TOKEN = re.compile(r"(?<!\w)(?:dr|cr|[-+])(?!\w)", re.IGNORECASE)
CURRENCY_SYMBOLS = re.compile(r"[$€£₹]")
WHITESPACE = re.compile(r"\s+")

CURRENCY_PATTERNS = [
    (r"\bEUR\b", "EUR"),
    (r"€", "EUR"),
    (r"\bGBP\b", "GBP"),
    (r"£", "GBP"),
    (r"\bINR\b", "INR"),
    (r"₹", "INR"),
    (r"\bCHF\b", "CHF"),
    (r"\bUSD\b", "USD"),
    (r"\$", "USD"),
]


def parse_money(text: str) -> Decimal:
    """Parse an English-format amount (1,234.56) to Decimal."""
    return Decimal(text.replace(",", ""))


def parse_date_text(text: str, day_first: bool = True) -> Optional[datetime]:
    """
    Parse a date-shaped substring.

    Four-digit leading years are read as y/m/d. Otherwise the configured
    order is tried first and the other order second, so "12/25/2024" still
    parses when day_first is set. Two-digit years pivot like strptime's %y.
    """
    parts = DATE_SEPARATORS.split(text.strip())
    if len(parts) != 3 or not all(p.isdigit() for p in parts):
        return None

    if len(parts[0]) == 4:
        orders = [(int(parts[0]), int(parts[1]), int(parts[2]))]
    else:
        if len(parts[2]) == 3:
            return None
        year = int(parts[2])
        if len(parts[2]) == 2:
            year += 2000 if year < 69 else 1900
        first, second = int(parts[0]), int(parts[1])
        if day_first:
            orders = [(year, second, first), (year, first, second)]
        else:
            orders = [(year, first, second), (year, second, first)]

    for year, month, day in orders:
        try:
            return datetime(year, month, day)
        except ValueError:
            continue
    return None


def find_date(text: str, day_first: bool = True) -> Optional[tuple[datetime, re.Match]]:
    """Return the first date-shaped substring that is a real calendar date."""
    for match in DATE_PATTERN.finditer(text):
        parsed = parse_date_text(match.group(0), day_first)
        if parsed:
            return parsed, match
    return None


def detect_currency(text: str, default: str = "USD") -> str:
    """Detect the document currency from symbols or ISO codes."""
    for pattern, currency in CURRENCY_PATTERNS:
        if re.search(pattern, text):
            return currency
    return default


def filename_stem(filename: str) -> str:
    """Filename without directory and extension ("Scanned Receipt" if empty)."""
    stem = PurePath(filename).stem if filename else ""
    return stem or "Scanned Receipt"


def resolve_sign(
    row: str,
    value: Decimal,
    sign: Optional[str] = None,
    marker: Optional[str] = None,
) -> Decimal:
    """
    Apply the sign convention to an amount.

    In order: a DR/CR marker attached to the amount, debit/credit words in
    the row, a literal leading sign, and finally the expense default.
    Debits are negative, credits positive.
    """
    if marker:
        return abs(value) if marker.lower() == "cr" else -abs(value)
    if DEBIT_TOKENS.search(row):
        return -abs(value)
    if CREDIT_TOKENS.search(row):
        return abs(value)
    if sign == "+":
        return abs(value)
    return -abs(value)


def _line_text(line: Union[Line, str]) -> str:
    return line.text if isinstance(line, Line) else line


class TransactionCandidateParser:
    """
    Turn ordered text lines into transaction candidates.

    Callers choose a contract:
    - parse_candidates: every row of a multi-row statement
    - parse_best_candidate: one candidate for single-receipt flows
    """

    def __init__(self, config: Optional[ParserConfig] = None):
        self.config = config or ParserConfig()

    # --- public contracts -------------------------------------------------

    def parse_candidates(
        self,
        lines: Sequence[Union[Line, str]],
        filename: str = "",
        reference_time: Optional[datetime] = None,
    ) -> list[Candidate]:
        """
        Parse all candidates from a document.

        Falls back to the non-tabular receipt parser when no row carries an
        amount (dated lines alone do not make a statement table), and to a
        placeholder candidate when there is no text at all.
        """
        now = reference_time or datetime.now()
        texts = [t.strip() for t in map(_line_text, lines) if t and t.strip()]

        if not texts:
            logger.info("No text lines in %s, using placeholder candidate", filename or "document")
            return [self.placeholder_candidate(filename, now)]

        currency = detect_currency("\n".join(texts), self.config.default_currency)
        candidates = self._parse_rows(texts, filename, currency, now)
        if any(c.amount for c in candidates):
            logger.debug("Parsed %d tabular candidates from %s", len(candidates), filename)
            return candidates

        logger.debug("No tabular amounts in %s, using receipt fallback", filename)
        return [self.parse_simple_receipt("\n".join(texts), filename, now)]

    def parse_best_candidate(
        self,
        lines: Sequence[Union[Line, str]],
        filename: str = "",
        reference_time: Optional[datetime] = None,
    ) -> Candidate:
        """
        Parse a single candidate (receipt total or largest purchase).

        Picks the row with the largest absolute amount; the first such row
        wins ties.
        """
        now = reference_time or datetime.now()
        texts = [t.strip() for t in map(_line_text, lines) if t and t.strip()]
        if not texts:
            return self.placeholder_candidate(filename, now)

        currency = detect_currency("\n".join(texts), self.config.default_currency)
        rows = self._parse_rows(texts, filename, currency, now)

        best = rows[0] if rows else None
        for row in rows[1:]:
            if abs(row.amount) > abs(best.amount):
                best = row

        if best is None or best.amount == 0:
            return self.parse_simple_receipt("\n".join(texts), filename, now)

        limit = self.config.best_candidate_name_length
        best.merchant_name = best.merchant_name[:limit].strip() or filename_stem(filename)
        return best

    def parse_simple_receipt(
        self,
        text: str,
        filename: str = "",
        reference_time: Optional[datetime] = None,
    ) -> Candidate:
        """
        Parse a non-tabular receipt.

        - Date: first date anywhere in the text
        - Amount: largest two-decimal value below amount_ceiling (the total)
        - Merchant: first line without digits of plausible length, else the
          filename stem
        """
        now = reference_time or datetime.now()
        ceiling = Decimal(str(self.config.amount_ceiling))

        found = find_date(text, self.config.day_first)
        date = found[0] if found else now

        total = Decimal("0")
        for match in MONEY_PATTERN.finditer(text):
            try:
                value = parse_money(match.group("value"))
            except InvalidOperation:
                continue
            if total < value < ceiling:
                total = value

        merchant = filename_stem(filename)
        for raw in text.split("\n"):
            line = raw.strip()
            if (
                self.config.merchant_min_length <= len(line) <= self.config.merchant_max_length
                and not any(c.isdigit() for c in line)
            ):
                merchant = line
                break

        return Candidate(
            merchant_name=merchant,
            date=date,
            amount=-total if total else Decimal("0.00"),
            currency=detect_currency(text, self.config.default_currency),
            source=CandidateSource.FALLBACK,
            needs_review=total == 0,
        )

    def placeholder_candidate(
        self,
        filename: str,
        reference_time: Optional[datetime] = None,
        currency: Optional[str] = None,
    ) -> Candidate:
        """Zero-amount candidate named after the file, always flagged for review."""
        return Candidate(
            merchant_name=filename_stem(filename),
            date=reference_time or datetime.now(),
            amount=Decimal("0.00"),
            currency=currency or self.config.default_currency,
            source=CandidateSource.PLACEHOLDER,
            needs_review=True,
        )

    # --- tabular parsing --------------------------------------------------

    def find_table_start(self, texts: Sequence[str]) -> int:
        """
        Index of the first table row.

        The header is the first line naming a column keyword; a line that
        already carries an amount is a data row, not a header. Without a
        header, every line is a candidate row.
        """
        for index, text in enumerate(texts):
            lowered = text.lower()
            if any(kw in lowered for kw in HEADER_KEYWORDS) and not MONEY_PATTERN.search(text):
                return index + 1
        return 0

    def parse_row(
        self,
        row: str,
        filename: str = "",
        currency: Optional[str] = None,
        reference_time: Optional[datetime] = None,
    ) -> Optional[Candidate]:
        """Parse one statement row, or return None if it carries no transaction."""
        row = row.strip()
        lowered = row.lower()
        if not row or any(kw in lowered for kw in FOOTER_KEYWORDS):
            return None

        found = find_date(row, self.config.day_first)
        remainder = row
        if found:
            _, match = found
            remainder = row[: match.start()] + " " + row[match.end() :]

        amounts: list[tuple[Decimal, re.Match]] = []
        for match in MONEY_PATTERN.finditer(remainder):
            try:
                amounts.append((parse_money(match.group("value")), match))
            except InvalidOperation:
                continue

        amount = Decimal("0")
        balance = None
        amount_match = None
        if len(amounts) >= 2:
            # Last column is the running balance
            amount, amount_match = amounts[-2]
            balance = amounts[-1][0]
        elif amounts:
            amount, amount_match = amounts[0]
        if amount:
            amount = resolve_sign(
                row, amount, amount_match.group("sign"), amount_match.group("marker")
            )

        if not found and amount == 0:
            return None

        description = CURRENCY_SYMBOLS.sub(" ", remainder)
        description = NUMERIC_TOKEN.sub(" ", description)
        description = SIGN_TOKEN.sub(" ", description)
        description = WHITESPACE.sub(" ", description).strip(" -|,:;")

        return Candidate(
            merchant_name=description or filename_stem(filename),
            date=found[0] if found else (reference_time or datetime.now()),
            amount=amount,
            currency=currency or self.config.default_currency,
            source=CandidateSource.TABLE,
            raw_line=row,
            balance=balance,
        )

    def _parse_rows(
        self,
        texts: Sequence[str],
        filename: str,
        currency: str,
        now: datetime,
    ) -> list[Candidate]:
        start = self.find_table_start(texts)
        candidates = []
        for text in texts[start:]:
            candidate = self.parse_row(text, filename, currency, now)
            if candidate is not None:
                candidates.append(candidate)
        return candidates
