from concurrent.futures import ThreadPoolExecutor

from docstudy.cache.cache import Cache, get_or_compute
from docstudy.cache.keys import CacheKeys
from docstudy.database.repositories.document_repository import DocumentRepository
from docstudy.database.repositories.generation_repository import GenerationRepository
from docstudy.database.repositories.user_repository import UserRepository
from docstudy.database.repositories.vocabulary_repository import VocabularyRepository
from docstudy.extraction.base import BaseTextExtractor
from docstudy.extraction.exceptions import TextExtractionError
from docstudy.logging.logger import Log
from docstudy.notifications.base import BaseNotifier, document_ready
from docstudy.processor.exceptions import DocumentAlreadyGeneratedError, ExtractionFailedError
from docstudy.processor.file_loader import FileLoader
from docstudy.processor.models import Document
from docstudy.processor.pipeline import PipelineContext, PipelineStep
from docstudy.study.categorizer import Categorizer
from docstudy.study.extractor import TermExtractor, make_exclusion_set
from docstudy.study.models import GenerationPlan, QuickFlashcards, QuickTranslation
from docstudy.study.translator import Translator


def _require_document(context: PipelineContext) -> Document:
    if context.document is None:
        raise ValueError("PipelineContext.document must be set by LoadDocumentStep")
    return context.document


def _require_text(context: PipelineContext) -> str:
    if not context.extracted_text:
        raise ValueError("PipelineContext.extracted_text must be set by ExtractTextStep")
    return context.extracted_text


class LoadDocumentStep(PipelineStep):
    """Loads the document, its existing terms and the user's vocabulary concurrently.

    A document that already has terms ends the run as a no-op.
    """

    def __init__(
        self,
        doc_repo: DocumentRepository,
        vocabulary_repo: VocabularyRepository,
        cache: Cache,
        existing_terms_ttl_seconds: int = 60,
    ) -> None:
        self._doc_repo = doc_repo
        self._vocabulary_repo = vocabulary_repo
        self._cache = cache
        self._existing_terms_ttl_seconds = existing_terms_ttl_seconds

    def run(self, context: PipelineContext) -> PipelineContext:
        with ThreadPoolExecutor(max_workers=3) as pool:
            document_future = pool.submit(self._doc_repo.find_by_id, context.document_id)
            own_terms_future = pool.submit(self._doc_repo.list_terms, context.document_id)
            vocabulary_future = pool.submit(self._existing_terms, context.user_id)
            document = document_future.result()
            own_terms = own_terms_future.result()
            vocabulary = vocabulary_future.result()

        context.document = document
        context.existing_term_count = len(own_terms)
        if own_terms:
            context.skipped = True
            Log.info(
                f"Document {context.document_id} already has {len(own_terms)} terms, skipping"
            )
            return context

        own = make_exclusion_set(own_terms)
        context.exclusion = [term for term in vocabulary if term.strip().lower() not in own]
        Log.info(
            f"Loaded document {context.document_id} with "
            f"{len(context.exclusion)} known terms for user {context.user_id}"
        )
        return context

    def _existing_terms(self, user_id: str) -> list[str]:
        return get_or_compute(
            self._cache,
            CacheKeys.existing_terms(user_id),
            self._existing_terms_ttl_seconds,
            lambda: self._vocabulary_repo.existing_terms(user_id),
        )


class ExtractTextStep(PipelineStep):
    """Reuses stored text or runs OCR through the memo cache and stores the result."""

    def __init__(
        self,
        file_loader: FileLoader,
        extractor: BaseTextExtractor,
        doc_repo: DocumentRepository,
        cache: Cache,
        ocr_ttl_seconds: int = 30 * 24 * 3600,
    ) -> None:
        self._file_loader = file_loader
        self._extractor = extractor
        self._doc_repo = doc_repo
        self._cache = cache
        self._ocr_ttl_seconds = ocr_ttl_seconds

    def run(self, context: PipelineContext) -> PipelineContext:
        document = _require_document(context)
        if document.extracted_text and document.extracted_text.strip():
            context.extracted_text = document.extracted_text
            Log.info(f"Reusing stored text for document {context.document_id}")
            return context

        try:
            content = self._file_loader.load(document)
            key = CacheKeys.ocr(content)
            text = self._cache.get(key)
            if not isinstance(text, str) or not text.strip():
                text = self._extractor.extract(content, document.mime_type)
                if text.strip():
                    self._cache.set(key, text, self._ocr_ttl_seconds)
        except (TextExtractionError, FileNotFoundError) as exc:
            self._doc_repo.mark_processed(context.document_id)
            raise ExtractionFailedError(
                f"Text extraction failed for document {context.document_id}: {exc}"
            ) from exc

        if not text.strip():
            self._doc_repo.mark_processed(context.document_id)
            raise ExtractionFailedError(f"No text found in document {context.document_id}")

        self._doc_repo.update_extracted_text(context.document_id, text)
        context.extracted_text = text
        Log.info(f"Extracted {len(text)} chars from document {context.document_id}")
        return context


class _CategoryResolver:
    """Explicit choice, then the document's own category, then the quick preview, then the LLM."""

    def __init__(self, categorizer: Categorizer) -> None:
        self._categorizer = categorizer

    def resolve(self, context: PipelineContext, text: str) -> int:
        if context.category_id is not None:
            return context.category_id
        if context.document is not None and context.document.category_id is not None:
            return context.document.category_id
        if context.quick is not None:
            return context.quick.category_id
        return self._categorizer.categorize(text)


class QuickPhaseStep(PipelineStep):
    """Builds a single-language preview and publishes it to the cache. Writes nothing durable."""

    def __init__(
        self,
        user_repo: UserRepository,
        extractor: TermExtractor,
        translator: Translator,
        categorizer: Categorizer,
        cache: Cache,
        quick_ttl_seconds: int = 300,
    ) -> None:
        self._user_repo = user_repo
        self._extractor = extractor
        self._translator = translator
        self._categories = _CategoryResolver(categorizer)
        self._cache = cache
        self._quick_ttl_seconds = quick_ttl_seconds

    def run(self, context: PipelineContext) -> PipelineContext:
        text = _require_text(context)
        cached = _read_quick(self._cache, context.document_id)
        if cached is not None:
            context.quick = cached
            Log.info(f"Quick preview for document {context.document_id} already cached")
            return context

        context.language = self._user_repo.get_language(context.user_id)
        with ThreadPoolExecutor(max_workers=3) as pool:
            draft_future = pool.submit(self._extractor.extract, text, context.exclusion)
            document_future = pool.submit(
                self._translator.translate_document, text, context.language
            )
            category_future = pool.submit(self._categories.resolve, context, text)
            draft = draft_future.result()
            translated_text = document_future.result()
            category_id = category_future.result()

        preview = self._translator.translate_single(draft, context.language)
        quick = QuickFlashcards(
            document_id=context.document_id,
            language=context.language,
            category_id=category_id,
            draft=draft,
            preview=preview,
        )
        self._cache.set(
            CacheKeys.quick_flashcards(context.document_id),
            quick.to_payload(),
            self._quick_ttl_seconds,
        )
        self._cache.set(
            CacheKeys.quick_translation(context.document_id),
            QuickTranslation(
                language=context.language,
                text=translated_text,
                text_english=text,
            ).to_payload(),
            self._quick_ttl_seconds,
        )
        context.quick = quick
        Log.info(
            f"Quick preview for document {context.document_id}: "
            f"{len(draft.terms)} terms in {context.language.value}"
        )
        return context


class FullPhaseStep(PipelineStep):
    """Translates the batch and the document into every language and assembles the plan."""

    def __init__(
        self,
        extractor: TermExtractor,
        translator: Translator,
        categorizer: Categorizer,
        cache: Cache,
        points_per_question: int = 10,
    ) -> None:
        self._extractor = extractor
        self._translator = translator
        self._categories = _CategoryResolver(categorizer)
        self._cache = cache
        self._points_per_question = points_per_question

    def run(self, context: PipelineContext) -> PipelineContext:
        document = _require_document(context)
        text = _require_text(context)

        if context.quick is None:
            context.quick = _read_quick(self._cache, context.document_id)
        if context.quick is not None:
            draft = context.quick.draft
            Log.info(f"Reusing quick draft for document {context.document_id}")
        else:
            draft = self._extractor.extract(text, context.exclusion)

        with ThreadPoolExecutor(max_workers=2) as pool:
            batch_future = pool.submit(self._translator.translate_all, draft)
            document_future = pool.submit(self._translator.translate_document_all, text)
            translated = batch_future.result()
            document_translation = document_future.result()

        category_id = self._categories.resolve(context, text)
        context.draft = draft
        context.translated = translated
        context.document_translation = document_translation
        context.resolved_category_id = category_id
        context.plan = GenerationPlan(
            document_id=context.document_id,
            user_id=context.user_id,
            quiz_name=document.filename,
            category_id=category_id,
            draft=draft,
            translated=translated,
            document_text=document_translation,
            points_per_question=self._points_per_question,
        )
        Log.info(
            f"Full translation ready for document {context.document_id}: "
            f"{len(translated.terms)} terms, {len(translated.questions)} questions"
        )
        return context


class PersistGenerationStep(PipelineStep):
    """Writes the plan. Losing a race with another run for the document ends the run as a no-op."""

    def __init__(self, generation_repo: GenerationRepository) -> None:
        self._generation_repo = generation_repo

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.plan is None:
            raise ValueError("PipelineContext.plan must be set by FullPhaseStep")
        try:
            context.persisted = self._generation_repo.persist(context.plan)
        except DocumentAlreadyGeneratedError:
            Log.info(
                f"Document {context.document_id} was generated by another run, discarding batch"
            )
            context.skipped = True
            return context
        Log.info(
            f"Persisted quiz {context.persisted.quiz_id} with "
            f"{len(context.persisted.term_ids)} terms for document {context.document_id}"
        )
        return context


class InvalidateCachesStep(PipelineStep):
    def __init__(self, cache: Cache) -> None:
        self._cache = cache

    def run(self, context: PipelineContext) -> PipelineContext:
        self._cache.delete(
            CacheKeys.quick_flashcards(context.document_id),
            CacheKeys.quick_translation(context.document_id),
        )
        patterns = CacheKeys.invalidation_patterns(
            context.user_id, context.document_id, context.resolved_category_id
        )
        deleted = sum(self._cache.delete_pattern(pattern) for pattern in patterns)
        Log.debug(f"Invalidated {deleted} cached entries for document {context.document_id}")
        return context


class NotifyStep(PipelineStep):
    def __init__(self, notifier: BaseNotifier) -> None:
        self._notifier = notifier

    def run(self, context: PipelineContext) -> PipelineContext:
        document = _require_document(context)
        term_count = len(context.persisted.term_ids) if context.persisted else 0
        self._notifier.notify(
            document_ready(context.user_id, context.document_id, document.filename, term_count)
        )
        return context


class MarkDocumentProcessedStep(PipelineStep):
    """Failure path: flags the document as processed so clients stop polling."""

    def __init__(self, doc_repo: DocumentRepository) -> None:
        self._doc_repo = doc_repo

    def run(self, context: PipelineContext) -> PipelineContext:
        self._doc_repo.mark_processed(context.document_id)
        Log.error(
            f"Generation failed for document {context.document_id}: {context.error_message}"
        )
        return context


def _read_quick(cache: Cache, document_id: str) -> QuickFlashcards | None:
    raw = cache.get(CacheKeys.quick_flashcards(document_id))
    if raw is None:
        return None
    try:
        return QuickFlashcards.from_payload(raw)
    except (KeyError, TypeError, ValueError) as exc:
        Log.warning(f"Ignoring malformed quick preview for document {document_id}: {exc}")
        return None

