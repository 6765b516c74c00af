import io

import pdfplumber

from docstudy.extraction.base import BaseTextExtractor
from docstudy.extraction.exceptions import TextExtractionError


class PdfPlumberAdapter(BaseTextExtractor):
    """Extracts the text layer of a PDF using pdfplumber. Images are not supported."""

    def extract(self, content: bytes, mime_type: str) -> str:
        if mime_type not in self.supported_mime_types:
            raise TextExtractionError(f"pdfplumber cannot read '{mime_type}'")
        try:
            with pdfplumber.open(io.BytesIO(content)) as pdf:
                pages = [page.extract_text() or "" for page in pdf.pages]
            return "\n".join(pages).strip()
        except Exception as exc:
            raise TextExtractionError(f"pdfplumber extraction failed: {exc}") from exc
