"""
Scanned document → Candidate transactions → Ledger reconciliation

A deterministic, testable core that turns receipts and bank statements into
candidate transactions, drops voided purchase pairs, suggests categories and
matches candidates against an existing ledger without ever writing to it.
"""

__version__ = "0.1.0"
