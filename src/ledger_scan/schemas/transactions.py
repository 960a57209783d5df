"""
Canonical transaction objects (SSOT).

Candidate is the ephemeral, unconfirmed transaction read from a document.
LedgerTransaction is the confirmed record owned by the external ledger store;
this package only reads it.

Sign convention (both types): negative = expense, positive = income.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional


class TransactionStatus(str, Enum):
    """Ledger transaction lifecycle."""

    PENDING = "PENDING"
    CLEARED = "CLEARED"
    RECONCILED = "RECONCILED"
    DISPUTED = "DISPUTED"


class CandidateSource(str, Enum):
    """Which parsing path produced a candidate."""

    TABLE = "table"
    FALLBACK = "fallback"
    PLACEHOLDER = "placeholder"


@dataclass
class Candidate:
    """
    Provisional transaction extracted from a scanned document.

    Exists only between scan and user confirmation; never persisted as-is.
    """

    merchant_name: str
    date: datetime
    amount: Decimal
    currency: str = "USD"
    category_id: Optional[str] = None

    source: CandidateSource = CandidateSource.TABLE
    raw_line: Optional[str] = None
    balance: Optional[Decimal] = None  # Running balance column, when present
    needs_review: bool = False

    def to_dict(self) -> dict:
        """Serialize to dictionary for JSON output."""
        return {
            "merchant_name": self.merchant_name,
            "date": self.date.isoformat(),
            "amount": str(self.amount),
            "currency": self.currency,
            "category_id": self.category_id,
            "source": self.source.value,
            "raw_line": self.raw_line,
            "balance": str(self.balance) if self.balance is not None else None,
            "needs_review": self.needs_review,
        }


@dataclass(frozen=True)
class Receipt:
    """Evidence attached to a ledger transaction."""

    id: str
    storage_url: str = ""
    uploaded_at: str = ""


@dataclass
class LedgerTransaction:
    """Confirmed ledger transaction (read-only to this package)."""

    id: str
    date: datetime
    amount: Decimal
    description_raw: str = ""
    description_enriched: str = ""
    category_id: Optional[str] = None
    status: TransactionStatus = TransactionStatus.PENDING
    currency: str = "USD"
    receipts: list[Receipt] = field(default_factory=list)

    @property
    def description(self) -> str:
        """Text used for comparisons: raw description, else enriched."""
        return self.description_raw or self.description_enriched or ""

    def to_dict(self) -> dict:
        """Serialize to dictionary for JSON storage."""
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "amount": str(self.amount),
            "description_raw": self.description_raw,
            "description_enriched": self.description_enriched,
            "category_id": self.category_id,
            "status": self.status.value,
            "currency": self.currency,
            "receipts": [
                {
                    "id": r.id,
                    "storage_url": r.storage_url,
                    "uploaded_at": r.uploaded_at,
                }
                for r in self.receipts
            ],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LedgerTransaction":
        """
        Deserialize from a ledger snapshot entry.

        Accepts both snake_case and the camelCase keys used by the ledger
        store (descriptionRaw, categoryId, ...). The date may be an ISO
        string, a datetime, or a `timestamp` in epoch milliseconds.
        """
        def pick(*keys: str, default: Any = None) -> Any:
            for key in keys:
                if key in data and data[key] is not None:
                    return data[key]
            return default

        raw_date = pick("date")
        if raw_date is None and pick("timestamp") is not None:
            date = datetime.fromtimestamp(int(pick("timestamp")) / 1000, tz=timezone.utc)
        else:
            date = _parse_datetime(raw_date)

        receipts = [
            Receipt(
                id=str(r.get("id", "")),
                storage_url=r.get("storage_url") or r.get("storageUrl") or "",
                uploaded_at=r.get("uploaded_at") or r.get("uploadedAt") or "",
            )
            for r in pick("receipts", default=[])
        ]

        return cls(
            id=str(pick("id")),
            date=date,
            amount=_parse_decimal(pick("amount", default="0")),
            description_raw=pick("description_raw", "descriptionRaw", default=""),
            description_enriched=pick(
                "description_enriched", "descriptionEnriched", default=""
            ),
            category_id=pick("category_id", "categoryId"),
            status=TransactionStatus(pick("status", default="PENDING")),
            currency=pick("currency", default="USD"),
            receipts=receipts,
        )


def _parse_decimal(value: Any) -> Decimal:
    try:
        if isinstance(value, str):
            return Decimal(value.replace(",", "").strip())
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"Invalid amount: {value!r}") from e


def _parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value:
        raise ValueError(f"Invalid date: {value!r}")
    # fromisoformat rejects a trailing "Z" before Python 3.11
    return datetime.fromisoformat(value.replace("Z", "+00:00"))
