"""
CLI main entry point.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

import yaml

from ..categorization import CATEGORY_SYNONYMS, Categorizer, CategoryDirectory
from ..config import Config, create_default_config, load_config
from ..extractors import PasswordRequiredError
from ..schemas.categories import Category, CategoryRule
from ..schemas.transactions import LedgerTransaction
from ..services import ScanService

logger = logging.getLogger(__name__)

# Errors raised by the data file loaders below
DATA_FILE_ERRORS = (OSError, ValueError, KeyError, TypeError, yaml.YAMLError)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def create_cli() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="ledger-scan",
        description="Turn bank statements and receipts into categorized, ledger-matched transactions",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=Path("config.yaml"),
        help="Path to config file (default: config.yaml)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # scan command
    scan_parser = subparsers.add_parser("scan", help="Scan a statement or receipt")
    scan_parser.add_argument("file", type=Path, help="Document to scan")
    scan_parser.add_argument(
        "--ledger",
        type=Path,
        help="JSON file with the ledger snapshot (list of transactions)",
    )
    scan_parser.add_argument(
        "--rules",
        type=Path,
        help="YAML file with category rules (default: built-in rules)",
    )
    scan_parser.add_argument(
        "--categories",
        type=Path,
        help="YAML file with the category table (default: built-in categories)",
    )
    scan_parser.add_argument(
        "--password",
        type=str,
        help="Password for protected PDFs",
    )
    scan_parser.add_argument(
        "--account",
        type=str,
        help="Account id used for newly created transactions",
    )
    scan_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the scan result and decisions as JSON",
    )

    # categorize command
    categorize_parser = subparsers.add_parser(
        "categorize", help="Suggest a category for a transaction description"
    )
    categorize_parser.add_argument("text", type=str, help="Merchant name or description")
    categorize_parser.add_argument(
        "--ledger",
        type=Path,
        help="JSON file with the ledger snapshot used as history",
    )
    categorize_parser.add_argument(
        "--rules",
        type=Path,
        help="YAML file with category rules (default: built-in rules)",
    )
    categorize_parser.add_argument(
        "--categories",
        type=Path,
        help="YAML file with the category table (default: built-in categories)",
    )

    # init-config command
    subparsers.add_parser("init-config", help="Write a default config file")

    return parser


def load_ledger(path: Path | None) -> list[LedgerTransaction]:
    """Load a ledger snapshot from JSON (a list, or {"transactions": [...]})."""
    if path is None:
        return []
    with open(path) as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("transactions", [])
    return [LedgerTransaction.from_dict(item) for item in data]


def load_rules(path: Path | None) -> list[CategoryRule] | None:
    """Load a rule table from YAML. None keeps the built-in rules."""
    if path is None:
        return None
    with open(path) as f:
        data = yaml.safe_load(f) or []
    if isinstance(data, dict):
        data = data.get("rules", [])
    return [CategoryRule.from_dict(item) for item in data]


def load_directory(path: Path | None) -> CategoryDirectory:
    """Load the category table (and optional synonyms) from YAML."""
    if path is None:
        return CategoryDirectory()
    with open(path) as f:
        data = yaml.safe_load(f) or []

    synonyms = None
    if isinstance(data, dict):
        if "synonyms" in data:
            synonyms = {**CATEGORY_SYNONYMS, **data["synonyms"]}
        data = data.get("categories", [])
    return CategoryDirectory([Category.from_dict(item) for item in data], synonyms)


def cmd_scan(
    config: Config,
    file: Path,
    ledger_path: Path | None = None,
    rules_path: Path | None = None,
    categories_path: Path | None = None,
    password: str | None = None,
    account_id: str | None = None,
    as_json: bool = False,
) -> int:
    """Scan one document and print the proposed decision(s)."""
    if not file.exists():
        print(f"❌ File not found: {file}")
        return 1

    try:
        ledger = load_ledger(ledger_path)
        rules = load_rules(rules_path or config.rules_path)
        directory = load_directory(categories_path or config.categories_path)
    except DATA_FILE_ERRORS as e:
        print(f"❌ Failed to load input data: {e}")
        return 1

    service = ScanService(config, directory=directory)
    try:
        result = service.scan_file(file, ledger=ledger, rules=rules, password=password)
    except PasswordRequiredError as e:
        if e.password_supplied:
            print(f"🔒 Wrong password for {file.name}")
        else:
            print(f"🔒 {file.name} is password protected, retry with --password")
        return 2

    decisions = service.decide(result, account_id=account_id)

    if as_json:
        output = result.to_dict()
        output["decisions"] = [d.to_dict() for d in decisions]
        print(json.dumps(output, indent=2))
        return 0

    print(f"📄 {result.filename}: {result.lines_extracted} line(s), {len(result.candidates)} candidate(s)")
    if result.reversals_removed:
        print(f"  ↩️  {result.reversals_removed} reversed transaction(s) dropped")
    for candidate, categorization in zip(result.candidates, result.categorizations):
        category = categorization.category_name or categorization.category_id or "-"
        print(
            f"  {candidate.date:%Y-%m-%d}  {candidate.amount:>12} {candidate.currency}  "
            f"{candidate.merchant_name:<30}  [{category}]"
        )
    if result.match:
        if result.match.transaction:
            print(f"\n🔗 Match {result.match.transaction.id}: {result.match.details}")
        else:
            print(f"\n➕ No match: {result.match.details}")
    for error in result.errors:
        print(f"  ⚠️  {error}")
    print(f"\n✓ Review state: {result.review_state.value}, {len(decisions)} decision(s)")
    return 0


def cmd_categorize(
    config: Config,
    text: str,
    ledger_path: Path | None = None,
    rules_path: Path | None = None,
    categories_path: Path | None = None,
) -> int:
    """Suggest a category for free text."""
    try:
        directory = load_directory(categories_path or config.categories_path)
        rules = load_rules(rules_path or config.rules_path)
        history = load_ledger(ledger_path)
    except DATA_FILE_ERRORS as e:
        print(f"❌ Failed to load input data: {e}")
        return 1

    categorizer = Categorizer(config.categorization, directory)
    result = categorizer.categorize(text, rules=rules, history=history)
    print(json.dumps(result.to_dict(), indent=2))
    return 0 if result.category_id else 1


def cmd_init_config(config_path: Path) -> int:
    """Write a default configuration file."""
    if config_path.exists():
        print(f"❌ {config_path} already exists")
        return 1
    create_default_config(config_path)
    print(f"✓ Wrote {config_path}")
    return 0


def main(args: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_cli()
    parsed = parser.parse_args(args)

    setup_logging(parsed.verbose)

    if not parsed.command:
        parser.print_help()
        return 1

    if parsed.command == "init-config":
        return cmd_init_config(parsed.config)

    # Load config
    try:
        config = load_config(parsed.config)
    except Exception as e:
        print(f"❌ Failed to load config: {e}")
        return 1

    # Route to command
    if parsed.command == "scan":
        return cmd_scan(
            config,
            parsed.file,
            ledger_path=parsed.ledger,
            rules_path=parsed.rules,
            categories_path=parsed.categories,
            password=parsed.password,
            account_id=parsed.account,
            as_json=parsed.json,
        )
    elif parsed.command == "categorize":
        return cmd_categorize(
            config,
            parsed.text,
            ledger_path=parsed.ledger,
            rules_path=parsed.rules,
            categories_path=parsed.categories,
        )
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
