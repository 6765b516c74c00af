import pymupdf

from docstudy.extraction.base import BaseTextExtractor
from docstudy.extraction.exceptions import TextExtractionError


class PyMuPdfAdapter(BaseTextExtractor):
    """Extracts the text layer of a PDF using PyMuPDF."""

    def extract(self, content: bytes, mime_type: str) -> str:
        if mime_type not in self.supported_mime_types:
            raise TextExtractionError(f"pymupdf cannot read '{mime_type}'")
        try:
            with pymupdf.open(stream=content, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                pages = [page.get_text() for page in doc]
            return "\n".join(pages).strip()
        except Exception as exc:
            raise TextExtractionError(f"pymupdf extraction failed: {exc}") from exc
