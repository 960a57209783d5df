"""
Category rule and category table types.

Both are per-user configuration supplied by the caller as plain data.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class CategoryRule:
    """Map descriptions containing `pattern` to a human-readable category name."""

    pattern: str
    category: str

    @classmethod
    def from_dict(cls, data: dict) -> "CategoryRule":
        return cls(pattern=str(data["pattern"]), category=str(data["category"]))


@dataclass(frozen=True)
class Category:
    """Entry of the category name → id table."""

    id: str
    name: str

    @classmethod
    def from_dict(cls, data: dict) -> "Category":
        return cls(id=str(data["id"]), name=str(data["name"]))
