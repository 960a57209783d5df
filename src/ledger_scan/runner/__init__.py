"""
CLI runner module.

Provides commands:
- scan: Scan a statement or receipt and propose a ledger decision
- categorize: Suggest a category for a description
- init-config: Write a default configuration file
"""

from .main import create_cli, main

__all__ = [
    "create_cli",
    "main",
]
