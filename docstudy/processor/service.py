from pathlib import Path

from docstudy.cache.cache import Cache, build_cache
from docstudy.config.settings import Settings
from docstudy.database.repositories.document_repository import DocumentRepository
from docstudy.database.repositories.job_repository import JobRepository
from docstudy.extraction.factory import TextExtractorFactory
from docstudy.processor.file_loader import FileLoader
from docstudy.processor.finalizer import Finalizer
from docstudy.processor.intake import DocumentIntake
from docstudy.processor.models import (
    DocumentStatus,
    FinalizeResult,
    SubmittedDocument,
    TranslationView,
    Upload,
)
from docstudy.processor.processor import build_processor
from docstudy.processor.status import DocumentStatusReader
from docstudy.study.languages import Language


class DocumentService:
    """Client-facing operations: upload, status polling, translation and synchronous finalize.

    The worker processes queued jobs; this is what an API layer calls.
    """

    def __init__(
        self,
        intake: DocumentIntake,
        status_reader: DocumentStatusReader,
        finalizer: Finalizer,
    ) -> None:
        self._intake = intake
        self._status_reader = status_reader
        self._finalizer = finalizer

    def submit(self, upload: Upload) -> SubmittedDocument:
        return self._intake.submit(upload)

    def status(self, document_id: str) -> DocumentStatus:
        return self._status_reader.read(document_id)

    def translation(self, document_id: str, language: Language) -> TranslationView | None:
        return self._status_reader.read_translation(document_id, language)

    def finalize(
        self, document_id: str, user_id: str, category_id: int | None = None
    ) -> FinalizeResult:
        return self._finalizer.finalize(document_id, user_id, category_id=category_id)


def build_document_service(
    settings: Settings,
    files_root: Path | None = None,
    cache: Cache | None = None,
) -> DocumentService:
    """Build a DocumentService sharing one cache and repository set."""
    cache = cache if cache is not None else build_cache(settings)
    files_root = files_root if files_root is not None else Path(settings.files_root)
    doc_repo = DocumentRepository()
    job_repo = JobRepository(
        settings.max_job_attempts,
        settings.job_retry_backoff_seconds,
        settings.job_lock_timeout_seconds,
    )
    intake = DocumentIntake(
        doc_repo,
        job_repo,
        FileLoader(files_root=files_root),
        cache,
        max_upload_bytes=settings.max_upload_bytes,
        accepted_mime_types=TextExtractorFactory.supported_mime_types(settings),
    )
    finalizer = Finalizer(
        doc_repo,
        build_processor(settings, files_root=files_root, cache=cache),
        poll_attempts=settings.finalize_poll_attempts,
        poll_delay_seconds=settings.finalize_poll_delay_seconds,
    )
    return DocumentService(intake, DocumentStatusReader(doc_repo, cache), finalizer)
