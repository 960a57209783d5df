"""Scan orchestration services."""

from ledger_scan.services.scanner import ScanResult, ScanService

__all__ = ["ScanResult", "ScanService"]
