"""
Ledger decisions (canonical output schema).

The core never writes to the ledger. A scan ends in exactly one decision
that the external ledger store applies:

- LINK: attach the scanned document to an existing transaction and mark it
  cleared.
- CREATE: record a new pending transaction built from the candidate.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from .transactions import Candidate, LedgerTransaction, Receipt, TransactionStatus


class DecisionAction(str, Enum):
    """What the ledger store should do with a candidate."""

    LINK = "LINK"
    CREATE = "CREATE"


class ReviewState(str, Enum):
    """
    Review requirement for a scan outcome.

    AUTO: Match score above the auto-link threshold, can be applied directly
    REVIEW: Plausible result, user should confirm
    MANUAL: Placeholder or unreadable data, user must review and edit
    """

    AUTO = "AUTO"
    REVIEW = "REVIEW"
    MANUAL = "MANUAL"


class TransactionType(str, Enum):
    """Direction of a newly created transaction."""

    EXPENSE = "EXPENSE"
    INCOME = "INCOME"


@dataclass
class LedgerDecision:
    """Instruction for the external ledger store."""

    action: DecisionAction
    status: TransactionStatus
    receipt: Receipt
    transaction_id: Optional[str] = None  # LINK only
    new_transaction: dict = field(default_factory=dict)  # CREATE only

    def to_dict(self) -> dict:
        """Serialize to dictionary for JSON output."""
        return {
            "action": self.action.value,
            "status": self.status.value,
            "transaction_id": self.transaction_id,
            "receipt": {
                "id": self.receipt.id,
                "storage_url": self.receipt.storage_url,
                "uploaded_at": self.receipt.uploaded_at,
            },
            "new_transaction": self.new_transaction,
        }


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def build_receipt(receipt_id: str, storage_url: str = "", uploaded_at: str = "") -> Receipt:
    """Build the receipt reference attached by either decision."""
    return Receipt(id=receipt_id, storage_url=storage_url, uploaded_at=uploaded_at or _utc_now_iso())


def build_link_decision(transaction: LedgerTransaction, receipt: Receipt) -> LedgerDecision:
    """Link the scanned document to an existing transaction and clear it."""
    return LedgerDecision(
        action=DecisionAction.LINK,
        status=TransactionStatus.CLEARED,
        receipt=receipt,
        transaction_id=transaction.id,
    )


def build_create_decision(
    candidate: Candidate,
    receipt: Receipt,
    account_id: Optional[str] = None,
    category_id: Optional[str] = None,
) -> LedgerDecision:
    """
    Create a new pending transaction from the candidate.

    The candidate amount is carried with its sign (negative = expense).
    An explicit category_id overrides the one stored on the candidate.
    """
    transaction_type = TransactionType.INCOME if candidate.amount > 0 else TransactionType.EXPENSE
    new_transaction = {
        "account_id": account_id,
        "date": candidate.date.isoformat(),
        "amount": str(candidate.amount),
        "currency": candidate.currency,
        "description_raw": candidate.merchant_name,
        "description_enriched": candidate.merchant_name,
        "type": transaction_type.value,
        "status": TransactionStatus.PENDING.value,
        "category_id": category_id or candidate.category_id,
    }
    return LedgerDecision(
        action=DecisionAction.CREATE,
        status=TransactionStatus.PENDING,
        receipt=receipt,
        new_transaction=new_transaction,
    )
