"""
Positioned text as delivered by a text-layer source.

Coordinates follow PDF conventions: origin at the bottom-left of the page,
so a larger y is higher on the page.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class TextFragment:
    """A run of text anchored at (x, y) on a page."""

    text: str
    x: float
    y: float
    width: float = 0.0
    height: float = 0.0
    end_of_line: bool = False


@dataclass
class Line:
    """Fragments sharing a y-cluster, ordered left to right."""

    y: float
    text: str
    fragments: list[TextFragment] = field(default_factory=list)
    page: int = 1
