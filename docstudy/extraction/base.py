from abc import ABC, abstractmethod
from typing import ClassVar

PDF_MIME_TYPE = "application/pdf"
IMAGE_MIME_TYPES = frozenset({"image/jpeg", "image/png"})
SUPPORTED_MIME_TYPES = frozenset({PDF_MIME_TYPE}) | IMAGE_MIME_TYPES


class BaseTextExtractor(ABC):
    """Contract for all document text extraction adapters.

    `supported_mime_types` lists what the adapter can read; uploads are
    validated against the configured adapter's set.
    """

    supported_mime_types: ClassVar[frozenset[str]] = frozenset({PDF_MIME_TYPE})

    @abstractmethod
    def extract(self, content: bytes, mime_type: str) -> str:
        """Extract plain text from a document.

        Args:
            content: Raw file content.
            mime_type: One of `supported_mime_types`.

        Returns:
            Extracted text as a single stripped string. May be empty.

        Raises:
            TextExtractionError: if extraction fails for any reason.
        """
