from collections.abc import Callable
from typing import ClassVar

from docstudy.config.settings import Settings
from docstudy.extraction.base import BaseTextExtractor
from docstudy.extraction.document_ai_adapter import DocumentAiAdapter
from docstudy.extraction.pdfplumber_adapter import PdfPlumberAdapter
from docstudy.extraction.pymupdf_adapter import PyMuPdfAdapter


def _document_ai(settings: Settings) -> BaseTextExtractor:
    return DocumentAiAdapter(
        endpoint=settings.document_ai_endpoint,
        api_key=settings.document_ai_api_key,
        timeout_seconds=settings.document_ai_timeout_seconds,
    )


class TextExtractorFactory:
    """Creates the correct text extractor based on settings."""

    ADAPTERS: ClassVar[dict[str, Callable[[Settings], BaseTextExtractor]]] = {
        "pdfplumber": lambda _settings: PdfPlumberAdapter(),
        "pymupdf": lambda _settings: PyMuPdfAdapter(),
        "document_ai": _document_ai,
    }

    ADAPTER_TYPES: ClassVar[dict[str, type[BaseTextExtractor]]] = {
        "pdfplumber": PdfPlumberAdapter,
        "pymupdf": PyMuPdfAdapter,
        "document_ai": DocumentAiAdapter,
    }

    @classmethod
    def create(cls, settings: Settings) -> BaseTextExtractor:
        return cls.ADAPTERS[cls._engine(settings)](settings)

    @classmethod
    def supported_mime_types(cls, settings: Settings) -> frozenset[str]:
        """File types the configured engine can read, without building it."""
        return cls.ADAPTER_TYPES[cls._engine(settings)].supported_mime_types

    @classmethod
    def _engine(cls, settings: Settings) -> str:
        engine = settings.extraction_engine.lower()
        if engine not in cls.ADAPTERS:
            raise ValueError(
                f"Unknown extraction engine '{engine}'. Choose from: {list(cls.ADAPTERS)}"
            )
        return engine
