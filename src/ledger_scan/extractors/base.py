"""
Text-layer provider interface and error types.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from ..schemas.documents import TextFragment


class TextLayerError(Exception):
    """Base class for text-layer failures."""

    pass


class PasswordRequiredError(TextLayerError):
    """
    The document is encrypted and the password is missing or wrong.

    Distinct from DocumentReadError so callers can re-prompt and retry the
    same file with a new password.
    """

    def __init__(self, path: Path | str, password_supplied: bool = False):
        self.path = Path(path)
        self.password_supplied = password_supplied
        reason = "incorrect password" if password_supplied else "password required"
        super().__init__(f"{self.path.name}: {reason}")


class DocumentReadError(TextLayerError):
    """The document is corrupt, truncated, or not a readable format."""

    def __init__(self, path: Path | str, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"{self.path.name}: {reason}")


class TextLayerProvider(ABC):
    """
    Source of positioned text for a document.

    Implementations turn a file into per-page fragment lists. Character
    recognition, when needed, happens behind this interface.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name for logging and provenance."""
        pass

    @abstractmethod
    def can_read(self, path: Path) -> bool:
        """Return True if this provider handles the file type."""
        pass

    @abstractmethod
    def extract_pages(
        self,
        path: Path,
        password: Optional[str] = None,
        max_pages: int = 2,
    ) -> list[list[TextFragment]]:
        """
        Extract positioned text, one fragment list per page.

        Args:
            path: Document path
            password: Optional decryption password
            max_pages: Pages to read from the start of the document

        Raises:
            PasswordRequiredError: Encrypted and password missing or wrong
            DocumentReadError: Anything else that prevents reading
        """
        pass
