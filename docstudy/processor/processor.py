from pathlib import Path

from docstudy.cache.cache import Cache, build_cache
from docstudy.config.settings import Settings
from docstudy.database.repositories.document_repository import DocumentRepository
from docstudy.database.repositories.generation_repository import GenerationRepository
from docstudy.database.repositories.notification_repository import NotificationRepository
from docstudy.database.repositories.user_repository import UserRepository
from docstudy.database.repositories.vocabulary_repository import VocabularyRepository
from docstudy.extraction.factory import TextExtractorFactory
from docstudy.generation.factory import GenerativeTextFactory
from docstudy.logging.logger import Log
from docstudy.notifications.base import BaseNotifier
from docstudy.notifications.database_notifier import DatabaseNotifier
from docstudy.processor.exceptions import GenerationFailedError
from docstudy.processor.file_loader import FileLoader
from docstudy.processor.pipeline import PipelineContext, PipelineStep
from docstudy.processor.steps import (
    ExtractTextStep,
    FullPhaseStep,
    InvalidateCachesStep,
    LoadDocumentStep,
    MarkDocumentProcessedStep,
    NotifyStep,
    PersistGenerationStep,
    QuickPhaseStep,
)
from docstudy.study.categorizer import DEFAULT_TAXONOMY, Categorizer
from docstudy.study.extractor import TermExtractor
from docstudy.study.translator import Translator


class Processor:
    """Orchestrates one generation run for a document.

    Pipeline: load -> extract text -> quick phase -> full phase -> persist
    -> invalidate caches -> notify.

    Any failure while generating or persisting marks the document processed
    and surfaces as a terminal GenerationFailedError. Failures after the data
    is committed are only logged.
    """

    def __init__(
        self,
        prepare_steps: list[PipelineStep],
        generation_steps: list[PipelineStep],
        followup_steps: list[PipelineStep],
        failed_step: PipelineStep,
    ) -> None:
        self._prepare_steps = prepare_steps
        self._generation_steps = generation_steps
        self._followup_steps = followup_steps
        self._failed_step = failed_step

    def process(
        self,
        document_id: str,
        user_id: str,
        category_id: int | None = None,
        job_id: int | None = None,
    ) -> PipelineContext:
        """Run the full pipeline. Returns the final context (skipped=True for a no-op run)."""
        Log.info(f"Processing document {document_id} for user {user_id}")
        context = PipelineContext(
            document_id=document_id,
            user_id=user_id,
            category_id=category_id,
            job_id=job_id,
        )

        for step in self._prepare_steps:
            context = step.run(context)
            if context.skipped:
                return context

        try:
            for step in self._generation_steps:
                context = step.run(context)
                if context.skipped:
                    return context
        except Exception as exc:
            context.error_message = str(exc)
            self._run_failed_step(context)
            raise GenerationFailedError(
                f"Generation failed for document {document_id}: {exc}"
            ) from exc

        for step in self._followup_steps:
            try:
                context = step.run(context)
            except Exception as exc:
                Log.warning(
                    f"{type(step).__name__} failed for document {document_id}: {exc}"
                )

        Log.info(f"Document {document_id} processed")
        return context

    def _run_failed_step(self, context: PipelineContext) -> None:
        try:
            self._failed_step.run(context)
        except Exception as exc:
            Log.error(f"Could not flag document {context.document_id} as processed: {exc}")


def build_processor(
    settings: Settings,
    files_root: Path | None = None,
    cache: Cache | None = None,
    notifier: BaseNotifier | None = None,
) -> Processor:
    """Build a Processor with all required adapters."""
    cache = cache if cache is not None else build_cache(settings)
    notifier = notifier if notifier is not None else DatabaseNotifier(NotificationRepository())
    file_loader = FileLoader(
        files_root=files_root if files_root is not None else Path(settings.files_root)
    )
    doc_repo = DocumentRepository()
    generator = GenerativeTextFactory.create(settings)

    extractor = TermExtractor(
        generator,
        batch_size=settings.batch_size,
        candidate_count=settings.candidate_count,
        min_usable_terms=settings.min_usable_terms,
        char_budget=settings.extraction_char_budget,
        exclusion_prompt_limit=settings.exclusion_prompt_limit,
        backfill_attempts=settings.extraction_backfill_attempts,
        allow_short_batch=settings.allow_short_batch,
        category_names=DEFAULT_TAXONOMY.names,
    )
    translator = Translator(
        generator,
        cache,
        document_char_budget=settings.document_translation_char_budget,
        translation_ttl_seconds=settings.translation_cache_ttl_seconds,
    )
    categorizer = Categorizer(
        generator,
        cache,
        char_budget=settings.categorization_char_budget,
        ttl_seconds=settings.category_cache_ttl_seconds,
    )

    return Processor(
        prepare_steps=[
            LoadDocumentStep(
                doc_repo,
                VocabularyRepository(),
                cache,
                existing_terms_ttl_seconds=settings.existing_terms_cache_ttl_seconds,
            ),
            ExtractTextStep(
                file_loader,
                TextExtractorFactory.create(settings),
                doc_repo,
                cache,
                ocr_ttl_seconds=settings.ocr_cache_ttl_seconds,
            ),
        ],
        generation_steps=[
            QuickPhaseStep(
                UserRepository(),
                extractor,
                translator,
                categorizer,
                cache,
                quick_ttl_seconds=settings.quick_cache_ttl_seconds,
            ),
            FullPhaseStep(
                extractor,
                translator,
                categorizer,
                cache,
                points_per_question=settings.points_per_question,
            ),
            PersistGenerationStep(GenerationRepository()),
        ],
        followup_steps=[
            InvalidateCachesStep(cache),
            NotifyStep(notifier),
        ],
        failed_step=MarkDocumentProcessedStep(doc_repo),
    )
