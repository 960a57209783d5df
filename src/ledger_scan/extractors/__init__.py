"""
Document text extraction and parsing.

Provides:
- TextLayerProvider: boundary to the external text-layer source
- PdfTextLayerProvider: pdfplumber-backed provider for PDF files
- DocumentLayoutExtractor: positioned fragments → ordered lines
- TransactionCandidateParser: lines → transaction candidates

Strategies are pluggable and testable.
"""

from .base import DocumentReadError, PasswordRequiredError, TextLayerError, TextLayerProvider
from .layout import DocumentLayoutExtractor
from .pdf_text_layer import PdfTextLayerProvider
from .statement_parser import TransactionCandidateParser

__all__ = [
    "DocumentLayoutExtractor",
    "DocumentReadError",
    "PasswordRequiredError",
    "PdfTextLayerProvider",
    "TextLayerError",
    "TextLayerProvider",
    "TransactionCandidateParser",
]
