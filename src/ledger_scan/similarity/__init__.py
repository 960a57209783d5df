"""Text normalization and fuzzy string similarity shared by every component."""

from .strings import STOP_TERMS, jaro_winkler, normalize

__all__ = ["STOP_TERMS", "jaro_winkler", "normalize"]
