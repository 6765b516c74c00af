from typing import Any

from docstudy.cache.cache import Cache
from docstudy.cache.keys import CacheKeys
from docstudy.database.repositories.document_repository import DocumentRepository
from docstudy.processor.models import DocumentStatus, ProcessingState, TranslationView
from docstudy.study.languages import CANONICAL_LANGUAGE, Language
from docstudy.study.models import QuickTranslation


def derive_state(
    ocr_processed: bool,
    has_translation: bool,
    has_flashcards: bool,
    has_quiz: bool,
) -> ProcessingState:
    """processing until the document is flagged; then completed only if every artifact exists."""
    if not ocr_processed:
        return ProcessingState.PROCESSING
    if has_translation and has_flashcards and has_quiz:
        return ProcessingState.COMPLETED
    return ProcessingState.ERROR


class DocumentStatusReader:
    """Answers client polling from the durable store, falling back to the quick preview."""

    def __init__(self, doc_repo: DocumentRepository, cache: Cache) -> None:
        self._doc_repo = doc_repo
        self._cache = cache

    def read(self, document_id: str) -> DocumentStatus:
        """Raises DocumentNotFoundError for an unknown document."""
        document = self._doc_repo.find_by_id(document_id)
        counts = self._doc_repo.generation_counts(document_id)

        flashcards = counts["flashcards"]
        questions = counts["questions"]
        has_quiz = counts["quizzes"] > 0
        has_translation = counts["translations"] > 0

        if flashcards == 0:
            quick, quick_translation = self._cache.get_many(
                [
                    CacheKeys.quick_flashcards(document_id),
                    CacheKeys.quick_translation(document_id),
                ]
            )
            flashcards, questions = _preview_counts(quick)
            has_quiz = has_quiz or questions > 0
            has_translation = has_translation or quick_translation is not None

        return DocumentStatus(
            document_id=document_id,
            status=derive_state(
                document.ocr_processed, has_translation, flashcards > 0, has_quiz
            ),
            ocr_processed=document.ocr_processed,
            has_translation=has_translation,
            has_flashcards=flashcards > 0,
            has_quiz=has_quiz,
            flashcard_count=flashcards,
            question_count=questions,
            category_id=document.category_id,
        )

    def read_translation(self, document_id: str, language: Language) -> TranslationView | None:
        """Document text in `language`: the stored translation, else the quick preview."""
        stored = self._doc_repo.find_translation(document_id, language)
        if stored is not None:
            text, text_english = stored
            return TranslationView(
                document_id=document_id,
                language=language.value,
                text=text,
                text_english=text_english,
            )

        raw = self._cache.get(CacheKeys.quick_translation(document_id))
        if not isinstance(raw, dict):
            return None
        quick = QuickTranslation.from_payload(raw)
        if language is CANONICAL_LANGUAGE:
            text = quick.text_english
        elif language is quick.language:
            text = quick.text
        else:
            return None
        return TranslationView(
            document_id=document_id,
            language=language.value,
            text=text,
            text_english=quick.text_english,
            preview=True,
        )


def _preview_counts(raw: Any) -> tuple[int, int]:
    if not isinstance(raw, dict):
        return 0, 0
    terms = raw.get("terms")
    questions = raw.get("questions")
    return (
        len(terms) if isinstance(terms, list) else 0,
        len(questions) if isinstance(questions, list) else 0,
    )
