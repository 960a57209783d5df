"""
PDF text layer provider backed by pdfplumber.

Reads word boxes from the embedded text layer of digital statements and
receipts. Scanned images without a text layer yield no fragments; the scan
service then degrades to a placeholder candidate.
"""

import logging
from pathlib import Path
from typing import Optional

import pdfplumber
from pdfminer.pdfdocument import PDFPasswordIncorrect
from pdfplumber.utils.exceptions import PdfminerException

from ..schemas.documents import TextFragment
from .base import DocumentReadError, PasswordRequiredError, TextLayerProvider

logger = logging.getLogger(__name__)


def _root_cause(error: Exception) -> Exception:
    """pdfplumber wraps pdfminer failures; return the original error."""
    if isinstance(error, PdfminerException) and error.args and isinstance(error.args[0], Exception):
        return error.args[0]
    return error


class PdfTextLayerProvider(TextLayerProvider):
    """Extract positioned words from PDF files."""

    @property
    def name(self) -> str:
        return "pdf_text_layer"

    def can_read(self, path: Path) -> bool:
        return Path(path).suffix.lower() == ".pdf"

    def extract_pages(
        self,
        path: Path,
        password: Optional[str] = None,
        max_pages: int = 2,
    ) -> list[list[TextFragment]]:
        path = Path(path)
        pages: list[list[TextFragment]] = []

        try:
            with pdfplumber.open(path, password=password or "") as pdf:
                total = len(pdf.pages)
                for page in pdf.pages[:max_pages]:
                    pages.append(self._page_fragments(page))
                logger.debug(
                    "Read %d of %d pages from %s", len(pages), total, path.name
                )
        except (PDFPasswordIncorrect, PdfminerException) as e:
            cause = _root_cause(e)
            if isinstance(cause, PDFPasswordIncorrect):
                raise PasswordRequiredError(path, password_supplied=bool(password)) from e
            raise DocumentReadError(path, f"unreadable PDF: {cause}") from e
        except OSError as e:
            raise DocumentReadError(path, str(e)) from e

        return pages

    def _page_fragments(self, page) -> list[TextFragment]:
        """Convert pdfplumber word boxes (top-left origin) to fragments."""
        fragments = []
        for word in page.extract_words() or []:
            fragments.append(
                TextFragment(
                    text=word["text"],
                    x=float(word["x0"]),
                    # Flip to bottom-left origin: higher y = higher on page
                    y=float(page.height - word["bottom"]),
                    width=float(word["x1"] - word["x0"]),
                    height=float(word["bottom"] - word["top"]),
                )
            )
        return fragments
