"""
Configuration management (SSOT).

This module defines ALL tunable constants for ledger-scan.
All config keys are defined here; no other module should invent config keys.

Key invariants:
- Matching weights sum to 1.0
- auto_link_threshold >= match_threshold
- Every component receives its section explicitly (no ambient globals)
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    pass


@dataclass
class LayoutConfig:
    """Layout reconstruction settings."""

    # Pages read per document (cost control)
    max_pages: int = 2
    # Fragments within this many layout units of a line's y join that line
    y_tolerance: float = 4.0


@dataclass
class ParserConfig:
    """Statement/receipt parsing settings."""

    # Largest plausible receipt total for the non-tabular fallback
    amount_ceiling: float = 100_000.0
    # Interpret 01/02/2024 as 1 February (True) or 2 January (False)
    day_first: bool = True
    # Currency assumed when the document names none
    default_currency: str = "USD"
    # Merchant guess length bounds for the fallback (inclusive)
    merchant_min_length: int = 4
    merchant_max_length: int = 29
    # Truncation applied to the merchant of the single best candidate
    best_candidate_name_length: int = 30


@dataclass
class ReversalConfig:
    """Voided purchase (reversal pair) detection settings."""

    # Amounts cancel when |a + b| is below this
    amount_epsilon: float = 0.01
    # Normalized merchant names must be more similar than this
    name_similarity_threshold: float = 0.6


@dataclass
class MatchingConfig:
    """Ledger matching settings."""

    weight_amount: float = 0.4
    weight_time: float = 0.3
    weight_merchant: float = 0.2
    weight_substring: float = 0.1
    # Gaussian time decay standard deviation (hours)
    sigma_hours: float = 12.0
    # Amount score hits 0 at 1 / amount_decay_factor relative deviation
    amount_decay_factor: float = 5.0
    # Absolute difference treated as an exact amount match
    exact_amount_tolerance: float = 0.01
    # Minimum substring length for the containment bonus (exclusive)
    min_substring_length: int = 2
    # Minimum total score to report a match
    match_threshold: float = 0.7
    # Matches at or above this may be linked without review
    auto_link_threshold: float = 0.9


@dataclass
class CategorizationConfig:
    """Category suggestion settings."""

    rule_confidence: float = 0.95
    history_confidence: float = 0.85


@dataclass
class Config:
    """Application configuration (SSOT).

    All configuration is centralized here. No other module should define
    configuration keys or defaults.
    """

    layout: LayoutConfig = field(default_factory=LayoutConfig)
    parser: ParserConfig = field(default_factory=ParserConfig)
    reversal: ReversalConfig = field(default_factory=ReversalConfig)
    matching: MatchingConfig = field(default_factory=MatchingConfig)
    categorization: CategorizationConfig = field(default_factory=CategorizationConfig)

    # Optional per-user data files
    rules_path: Path | None = None
    categories_path: Path | None = None

    def validate(self) -> list[str]:
        """Validate configuration completeness and consistency.

        Returns:
            List of validation errors (empty if valid)
        """
        errors: list[str] = []

        if self.layout.max_pages < 1:
            errors.append("layout.max_pages must be >= 1")
        if self.layout.y_tolerance < 0:
            errors.append("layout.y_tolerance must be >= 0")

        if self.parser.amount_ceiling <= 0:
            errors.append("parser.amount_ceiling must be > 0")
        if self.parser.merchant_min_length > self.parser.merchant_max_length:
            errors.append("parser.merchant_min_length must be <= merchant_max_length")

        if not 0.0 <= self.reversal.name_similarity_threshold <= 1.0:
            errors.append("reversal.name_similarity_threshold must be within [0, 1]")

        m = self.matching
        weight_sum = m.weight_amount + m.weight_time + m.weight_merchant + m.weight_substring
        if abs(weight_sum - 1.0) > 1e-6:
            errors.append(f"matching weights must sum to 1.0 (got {weight_sum:.3f})")
        if m.sigma_hours <= 0:
            errors.append("matching.sigma_hours must be > 0")
        if m.amount_decay_factor <= 0:
            errors.append("matching.amount_decay_factor must be > 0")
        if m.auto_link_threshold < m.match_threshold:
            errors.append("auto_link_threshold must be >= match_threshold")

        for name in ("rule_confidence", "history_confidence"):
            value = getattr(self.categorization, name)
            if not 0.0 <= value <= 1.0:
                errors.append(f"categorization.{name} must be within [0, 1]")

        return errors


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "")
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r", name, raw)
        return default


def load_config(config_path: Path) -> Config:
    """
    Load configuration from YAML file.

    Environment variables can override config values:
    - LEDGER_SCAN_MATCH_THRESHOLD
    - LEDGER_SCAN_AUTO_LINK_THRESHOLD
    - LEDGER_SCAN_REVERSAL_THRESHOLD
    - LEDGER_SCAN_SIGMA_HOURS
    - LEDGER_SCAN_Y_TOLERANCE
    - LEDGER_SCAN_DEFAULT_CURRENCY

    Raises:
        ConfigValidationError: If the resulting configuration is invalid.
    """
    if config_path.exists():
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    else:
        data = {}

    # Layout config
    layout_data = data.get("layout", {})
    layout = LayoutConfig(
        max_pages=layout_data.get("max_pages", 2),
        y_tolerance=_env_float(
            "LEDGER_SCAN_Y_TOLERANCE", layout_data.get("y_tolerance", 4.0)
        ),
    )

    # Parser config
    parser_data = data.get("parser", {})
    parser = ParserConfig(
        amount_ceiling=parser_data.get("amount_ceiling", 100_000.0),
        day_first=parser_data.get("day_first", True),
        default_currency=os.environ.get(
            "LEDGER_SCAN_DEFAULT_CURRENCY", parser_data.get("default_currency", "USD")
        ),
        merchant_min_length=parser_data.get("merchant_min_length", 4),
        merchant_max_length=parser_data.get("merchant_max_length", 29),
        best_candidate_name_length=parser_data.get("best_candidate_name_length", 30),
    )

    # Reversal config
    reversal_data = data.get("reversal", {})
    reversal = ReversalConfig(
        amount_epsilon=reversal_data.get("amount_epsilon", 0.01),
        name_similarity_threshold=_env_float(
            "LEDGER_SCAN_REVERSAL_THRESHOLD",
            reversal_data.get("name_similarity_threshold", 0.6),
        ),
    )

    # Matching config
    matching_data = data.get("matching", {})
    weights = matching_data.get("weights", {})
    matching = MatchingConfig(
        weight_amount=weights.get("amount", 0.4),
        weight_time=weights.get("time", 0.3),
        weight_merchant=weights.get("merchant", 0.2),
        weight_substring=weights.get("substring", 0.1),
        sigma_hours=_env_float("LEDGER_SCAN_SIGMA_HOURS", matching_data.get("sigma_hours", 12.0)),
        amount_decay_factor=matching_data.get("amount_decay_factor", 5.0),
        exact_amount_tolerance=matching_data.get("exact_amount_tolerance", 0.01),
        min_substring_length=matching_data.get("min_substring_length", 2),
        match_threshold=_env_float(
            "LEDGER_SCAN_MATCH_THRESHOLD", matching_data.get("match_threshold", 0.7)
        ),
        auto_link_threshold=_env_float(
            "LEDGER_SCAN_AUTO_LINK_THRESHOLD", matching_data.get("auto_link_threshold", 0.9)
        ),
    )

    # Categorization config
    cat_data = data.get("categorization", {})
    categorization = CategorizationConfig(
        rule_confidence=cat_data.get("rule_confidence", 0.95),
        history_confidence=cat_data.get("history_confidence", 0.85),
    )

    rules_path = data.get("rules_path")
    categories_path = data.get("categories_path")

    config = Config(
        layout=layout,
        parser=parser,
        reversal=reversal,
        matching=matching,
        categorization=categorization,
        rules_path=Path(rules_path) if rules_path else None,
        categories_path=Path(categories_path) if categories_path else None,
    )

    errors = config.validate()
    if errors:
        raise ConfigValidationError("; ".join(errors))

    return config


def create_default_config(config_path: Path) -> None:
    """Create a default configuration file."""
    default_config = """# ledger-scan configuration
#
# Every tunable constant of the scan → categorize → match pipeline.
# Environment variables LEDGER_SCAN_* override selected keys.

layout:
  max_pages: 2                 # Pages read per document
  y_tolerance: 4.0             # Line clustering tolerance (layout units)

parser:
  amount_ceiling: 100000.0     # Largest plausible receipt total (fallback parser)
  day_first: true              # 01/02/2024 = 1 February
  default_currency: "USD"
  merchant_min_length: 4
  merchant_max_length: 29
  best_candidate_name_length: 30

reversal:
  amount_epsilon: 0.01         # |a + b| below this cancels
  name_similarity_threshold: 0.6

matching:
  weights:
    amount: 0.4
    time: 0.3
    merchant: 0.2
    substring: 0.1
  sigma_hours: 12.0            # Gaussian time decay
  amount_decay_factor: 5.0     # Score 0 at 20% relative deviation
  exact_amount_tolerance: 0.01
  min_substring_length: 2
  match_threshold: 0.7         # Below: offer to create a new transaction
  auto_link_threshold: 0.9     # Above: link without review

categorization:
  rule_confidence: 0.95
  history_confidence: 0.85

# Optional per-user data
rules_path: null               # YAML list of {pattern, category}
categories_path: null          # YAML list of {id, name}
"""

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        f.write(default_config)
