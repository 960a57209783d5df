"""
Layout reconstruction: positioned fragments → ordered text lines.
"""

import logging
from collections.abc import Sequence
from typing import Optional

from ..config import LayoutConfig
from ..schemas.documents import Line, TextFragment

logger = logging.getLogger(__name__)


class DocumentLayoutExtractor:
    """
    Cluster text fragments into lines by vertical position.

    Fragments are sorted top to bottom (descending y), then left to right.
    A fragment joins the current line when its y is within `y_tolerance` of
    the line's y; otherwise it starts a new line. Each page is clustered on
    its own and pages are emitted in order.
    """

    def __init__(self, config: Optional[LayoutConfig] = None):
        self.config = config or LayoutConfig()

    def extract_lines(self, pages: Sequence[Sequence[TextFragment]]) -> list[Line]:
        """Build ordered lines from up to `max_pages` pages of fragments."""
        lines: list[Line] = []
        for page_number, fragments in enumerate(pages[: self.config.max_pages], start=1):
            lines.extend(self._cluster_page(fragments, page_number))

        if len(pages) > self.config.max_pages:
            logger.debug(
                "Ignored %d pages beyond max_pages=%d",
                len(pages) - self.config.max_pages,
                self.config.max_pages,
            )
        return lines

    def extract_text_lines(self, pages: Sequence[Sequence[TextFragment]]) -> list[str]:
        """Convenience wrapper returning only the joined line texts."""
        return [line.text for line in self.extract_lines(pages)]

    def _cluster_page(self, fragments: Sequence[TextFragment], page_number: int) -> list[Line]:
        ordered = sorted(fragments, key=lambda f: (-f.y, f.x))
        groups: list[tuple[float, list[TextFragment]]] = []

        for fragment in ordered:
            if not fragment.text.strip():
                continue
            if groups and abs(fragment.y - groups[-1][0]) <= self.config.y_tolerance:
                groups[-1][1].append(fragment)
            else:
                groups.append((fragment.y, [fragment]))

        lines = []
        for y, members in groups:
            # Slightly different baselines can break x order during the sort
            members.sort(key=lambda f: f.x)
            text = " ".join(f.text.strip() for f in members).strip()
            if text:
                lines.append(Line(y=y, text=text, fragments=members, page=page_number))
        return lines
