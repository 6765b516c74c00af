from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class Document:
    """Domain model for an uploaded document (subset of DB columns)."""

    id: str
    user_id: str
    filename: str
    file_key: str
    mime_type: str
    file_size: int
    storage_disk: str = "local"
    extracted_text: str | None = None
    category_id: int | None = None
    ocr_processed: bool = False


class ProcessingState(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass(frozen=True)
class DocumentStatus:
    """What a polling client sees for a document."""

    document_id: str
    status: ProcessingState
    ocr_processed: bool
    has_translation: bool
    has_flashcards: bool
    has_quiz: bool
    flashcard_count: int = 0
    question_count: int = 0
    category_id: int | None = None


@dataclass(frozen=True)
class TranslationView:
    """Document text in one language, from the durable row or the quick preview."""

    document_id: str
    language: str
    text: str
    text_english: str
    preview: bool = False


class FinalizeOutcome(str, Enum):
    ALREADY_COMPLETED = "already_completed"
    OCR_TIMEOUT = "ocr_timeout"
    COMPLETED = "completed"


@dataclass(frozen=True)
class FinalizeResult:
    outcome: FinalizeOutcome
    document_id: str
    flashcard_count: int = 0
    question_count: int = 0


@dataclass(frozen=True)
class Upload:
    """A file handed to intake by the HTTP layer."""

    user_id: str
    filename: str
    mime_type: str
    content: bytes
    category_id: int | None = None


@dataclass(frozen=True)
class SubmittedDocument:
    document: Document
    job_id: int | None
