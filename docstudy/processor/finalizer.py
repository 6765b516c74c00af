import time
from collections.abc import Callable

from docstudy.database.repositories.document_repository import DocumentRepository
from docstudy.logging.logger import Log
from docstudy.processor.models import FinalizeOutcome, FinalizeResult
from docstudy.processor.processor import Processor


class Finalizer:
    """Synchronous generation for a document whose text is still being extracted.

    Waits for extracted text to appear, then runs the generation pipeline
    in the caller's thread.
    """

    def __init__(
        self,
        doc_repo: DocumentRepository,
        processor: Processor,
        poll_attempts: int = 60,
        poll_delay_seconds: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._doc_repo = doc_repo
        self._processor = processor
        self._poll_attempts = poll_attempts
        self._poll_delay_seconds = poll_delay_seconds
        self._sleep = sleep

    def finalize(
        self,
        document_id: str,
        user_id: str,
        category_id: int | None = None,
    ) -> FinalizeResult:
        existing = self._doc_repo.count_flashcards(document_id)
        if existing > 0:
            Log.info(f"Document {document_id} already finalized with {existing} terms")
            return FinalizeResult(
                outcome=FinalizeOutcome.ALREADY_COMPLETED,
                document_id=document_id,
                flashcard_count=existing,
            )

        if not self._wait_for_text(document_id):
            Log.warning(f"Timed out waiting for extracted text of document {document_id}")
            return FinalizeResult(outcome=FinalizeOutcome.OCR_TIMEOUT, document_id=document_id)

        if category_id is not None:
            self._doc_repo.update_category(document_id, category_id)

        context = self._processor.process(document_id, user_id, category_id=category_id)
        if context.skipped:
            return FinalizeResult(
                outcome=FinalizeOutcome.ALREADY_COMPLETED,
                document_id=document_id,
                flashcard_count=self._doc_repo.count_flashcards(document_id),
            )

        persisted = context.persisted
        return FinalizeResult(
            outcome=FinalizeOutcome.COMPLETED,
            document_id=document_id,
            flashcard_count=len(persisted.term_ids) if persisted else 0,
            question_count=len(persisted.question_ids) if persisted else 0,
        )

    def _wait_for_text(self, document_id: str) -> bool:
        for attempt in range(self._poll_attempts):
            document = self._doc_repo.find_by_id(document_id)
            if document.extracted_text and document.extracted_text.strip():
                return True
            if document.ocr_processed:
                return False
            if attempt < self._poll_attempts - 1:
                self._sleep(self._poll_delay_seconds)
        return False
