from unittest.mock import MagicMock

import pytest

from docstudy.cache.cache import Cache
from docstudy.cache.keys import CacheKeys
from docstudy.extraction.exceptions import TextExtractionError
from docstudy.generation.generative_text import GenerativeText
from docstudy.notifications.base import NotificationType
from docstudy.processor.exceptions import DocumentAlreadyGeneratedError, ExtractionFailedError
from docstudy.processor.models import Document
from docstudy.processor.pipeline import PipelineContext
from docstudy.processor.steps import (
    ExtractTextStep,
    FullPhaseStep,
    InvalidateCachesStep,
    LoadDocumentStep,
    NotifyStep,
    PersistGenerationStep,
    QuickPhaseStep,
)
from docstudy.study.categorizer import Categorizer
from docstudy.study.extractor import TermExtractor
from docstudy.study.languages import Language
from docstudy.study.models import QuickFlashcards
from docstudy.study.translator import Translator
from tests.fakes import ScriptedClient, make_terms

EXTRACTION_MARKER = "From the OCR text"
CATEGORY_MARKER = "categorize it into ONE"
BATCH_MARKER = "English terms, definitions"
DOCUMENT_MARKER = "Translate the following text into"


def _document(**overrides: object) -> Document:
    fields: dict[str, object] = {
        "id": "doc-1",
        "user_id": "user-1",
        "filename": "site-safety.pdf",
        "file_key": "user-1/site-safety.pdf",
        "mime_type": "application/pdf",
        "file_size": 1024,
    }
    fields.update(overrides)
    return Document(**fields)  # type: ignore[arg-type]


def _context(**overrides: object) -> PipelineContext:
    context = PipelineContext(document_id="doc-1", user_id="user-1")
    context.document = _document()
    context.extracted_text = "Wear a hard hat. Report every hazard."
    for name, value in overrides.items():
        setattr(context, name, value)
    return context


def _client() -> ScriptedClient:
    names = [f"Term {i}" for i in range(1, 16)]
    return ScriptedClient(
        [
            (EXTRACTION_MARKER, make_terms(*names)),
            (CATEGORY_MARKER, "Safety"),
            (BATCH_MARKER, {"terms": [], "questions": []}),
            (DOCUMENT_MARKER, "Texte traduit"),
        ]
    )


def _services(client: ScriptedClient, cache: Cache) -> tuple[TermExtractor, Translator, Categorizer]:
    generator = GenerativeText(client=client, model="m")
    return TermExtractor(generator), Translator(generator, cache), Categorizer(generator, cache)


class TestLoadDocumentStep:
    def _make_step(
        self, cache: Cache, own_terms: list[str], vocabulary: list[str]
    ) -> tuple[LoadDocumentStep, MagicMock, MagicMock]:
        doc_repo = MagicMock()
        doc_repo.find_by_id.return_value = _document()
        doc_repo.list_terms.return_value = own_terms
        vocabulary_repo = MagicMock()
        vocabulary_repo.existing_terms.return_value = vocabulary
        return LoadDocumentStep(doc_repo, vocabulary_repo, cache), doc_repo, vocabulary_repo

    def test_loads_document_and_exclusion_set(self, cache: Cache) -> None:
        step, _doc_repo, _vocab = self._make_step(cache, [], ["Hazard", "Guardrail"])

        context = step.run(PipelineContext(document_id="doc-1", user_id="user-1"))

        assert context.document == _document()
        assert context.exclusion == ["Hazard", "Guardrail"]
        assert context.skipped is False

    def test_document_with_terms_is_skipped(self, cache: Cache) -> None:
        step, _doc_repo, _vocab = self._make_step(cache, ["Hazard"], ["Hazard"])

        context = step.run(PipelineContext(document_id="doc-1", user_id="user-1"))

        assert context.skipped is True
        assert context.existing_term_count == 1

    def test_vocabulary_is_cached_per_user(self, cache: Cache) -> None:
        step, _doc_repo, vocabulary_repo = self._make_step(cache, [], ["Hazard"])

        step.run(PipelineContext(document_id="doc-1", user_id="user-1"))
        step.run(PipelineContext(document_id="doc-1", user_id="user-1"))

        vocabulary_repo.existing_terms.assert_called_once_with("user-1")
        assert cache.get(CacheKeys.existing_terms("user-1")) == ["Hazard"]


class TestExtractTextStep:
    def _make_step(self, cache: Cache, text: str = "Extracted") -> tuple[ExtractTextStep, MagicMock, MagicMock]:
        file_loader = MagicMock()
        file_loader.load.return_value = b"%PDF"
        extractor = MagicMock()
        extractor.extract.return_value = text
        doc_repo = MagicMock()
        return ExtractTextStep(file_loader, extractor, doc_repo, cache), extractor, doc_repo

    def test_reuses_stored_text(self, cache: Cache) -> None:
        step, extractor, _doc_repo = self._make_step(cache)
        context = _context(document=_document(extracted_text="Stored"), extracted_text="")

        context = step.run(context)

        assert context.extracted_text == "Stored"
        extractor.extract.assert_not_called()

    def test_extracts_and_stores_text(self, cache: Cache) -> None:
        step, extractor, doc_repo = self._make_step(cache)

        context = step.run(_context(extracted_text=""))

        assert context.extracted_text == "Extracted"
        extractor.extract.assert_called_once_with(b"%PDF", "application/pdf")
        doc_repo.update_extracted_text.assert_called_once_with("doc-1", "Extracted")
        doc_repo.mark_processed.assert_not_called()

    def test_ocr_result_is_memoized_by_content(self, cache: Cache) -> None:
        step, extractor, _doc_repo = self._make_step(cache)

        step.run(_context(extracted_text=""))
        step.run(_context(extracted_text=""))

        extractor.extract.assert_called_once()

    def test_empty_text_marks_processed_and_raises(self, cache: Cache) -> None:
        step, _extractor, doc_repo = self._make_step(cache, text="  ")

        with pytest.raises(ExtractionFailedError):
            step.run(_context(extracted_text=""))

        doc_repo.mark_processed.assert_called_once_with("doc-1")
        doc_repo.update_extracted_text.assert_not_called()

    def test_extractor_error_marks_processed_and_raises(self, cache: Cache) -> None:
        step, extractor, doc_repo = self._make_step(cache)
        extractor.extract.side_effect = TextExtractionError("corrupt")

        with pytest.raises(ExtractionFailedError, match="corrupt") as exc_info:
            step.run(_context(extracted_text=""))

        assert exc_info.value.retryable is True
        doc_repo.mark_processed.assert_called_once_with("doc-1")


class TestQuickPhaseStep:
    def _make_step(self, cache: Cache, client: ScriptedClient, language: Language) -> QuickPhaseStep:
        user_repo = MagicMock()
        user_repo.get_language.return_value = language
        extractor, translator, categorizer = _services(client, cache)
        return QuickPhaseStep(user_repo, extractor, translator, categorizer, cache)

    def test_writes_preview_entries(self, cache: Cache) -> None:
        step = self._make_step(cache, _client(), Language.FRENCH)

        context = step.run(_context())

        quick = cache.get(CacheKeys.quick_flashcards("doc-1"))
        translation = cache.get(CacheKeys.quick_translation("doc-1"))
        assert quick["language"] == "french"
        assert quick["category_id"] == 1
        assert len(quick["terms"]) == 10
        assert len(quick["draft"]["questions"]) == 10
        assert translation == {
            "language": "french",
            "text": "Texte traduit",
            "text_english": "Wear a hard hat. Report every hazard.",
        }
        assert context.quick is not None
        assert context.language is Language.FRENCH

    def test_english_user_needs_no_batch_translation(self, cache: Cache) -> None:
        client = _client()
        step = self._make_step(cache, client, Language.ENGLISH)

        step.run(_context())

        assert client.count(BATCH_MARKER) == 0
        assert client.count(DOCUMENT_MARKER) == 0

    def test_explicit_category_skips_categorizer(self, cache: Cache) -> None:
        client = _client()
        step = self._make_step(cache, client, Language.ENGLISH)

        context = step.run(_context(category_id=4))

        assert context.quick is not None
        assert context.quick.category_id == 4
        assert client.count(CATEGORY_MARKER) == 0

    def test_existing_preview_is_reused(self, cache: Cache) -> None:
        client = _client()
        step = self._make_step(cache, client, Language.FRENCH)
        step.run(_context())
        calls = len(client.prompts)

        step.run(_context())

        assert len(client.prompts) == calls


class TestFullPhaseStep:
    def _make_step(self, cache: Cache, client: ScriptedClient) -> FullPhaseStep:
        extractor, translator, categorizer = _services(client, cache)
        return FullPhaseStep(extractor, translator, categorizer, cache, points_per_question=10)

    def test_quick_cache_reuse_skips_extractor(self, cache: Cache) -> None:
        client = _client()
        QuickPhaseStep(
            MagicMock(get_language=MagicMock(return_value=Language.ENGLISH)),
            *_services(client, cache),
            cache,
        ).run(_context())
        extraction_calls = client.count(EXTRACTION_MARKER)

        context = self._make_step(cache, client).run(_context())

        assert client.count(EXTRACTION_MARKER) == extraction_calls
        assert context.plan is not None
        assert len(context.plan.translated.terms) == 10

    def test_extracts_when_no_preview(self, cache: Cache) -> None:
        client = _client()

        context = self._make_step(cache, client).run(_context())

        assert client.count(EXTRACTION_MARKER) == 1
        assert context.plan is not None
        assert context.plan.quiz_name == "site-safety.pdf"
        assert context.plan.category_id == 1

    def test_translates_everything_into_every_language(self, cache: Cache) -> None:
        client = _client()

        context = self._make_step(cache, client).run(_context())

        assert client.count(BATCH_MARKER) == 6
        assert client.count(DOCUMENT_MARKER) == 6
        assert context.plan is not None
        assert context.plan.document_text is not None
        assert context.plan.document_text.get(Language.TAGALOG) == "Texte traduit"
        assert context.plan.translated.terms[0].term.get(Language.KOREAN) == "Term 1"

    def test_category_precedence(self, cache: Cache) -> None:
        client = _client()
        step = self._make_step(cache, client)

        from_document = step.run(_context(document=_document(category_id=3)))
        explicit = step.run(_context(document=_document(category_id=3), category_id=5))

        assert from_document.resolved_category_id == 3
        assert explicit.resolved_category_id == 5
        assert client.count(CATEGORY_MARKER) == 0

    def test_category_from_quick_preview(self, cache: Cache) -> None:
        client = _client()
        step = self._make_step(cache, client)
        quick = QuickFlashcards.from_payload(
            {
                "document_id": "doc-1",
                "language": "english",
                "category_id": 2,
                "draft": make_terms("Torque"),
            }
        )

        context = step.run(_context(quick=quick))

        assert context.resolved_category_id == 2
        assert client.count(CATEGORY_MARKER) == 0


class TestFollowupSteps:
    def test_persist_uses_plan(self) -> None:
        repo = MagicMock()
        plan = MagicMock()
        context = PersistGenerationStep(repo).run(_context(plan=plan))
        repo.persist.assert_called_once_with(plan)
        assert context.persisted is repo.persist.return_value

    def test_persist_already_generated_marks_skipped(self) -> None:
        repo = MagicMock()
        repo.persist.side_effect = DocumentAlreadyGeneratedError("taken")

        context = PersistGenerationStep(repo).run(_context(plan=MagicMock()))

        assert context.skipped is True
        assert context.persisted is None

    def test_persist_requires_plan(self) -> None:
        with pytest.raises(ValueError, match="plan"):
            PersistGenerationStep(MagicMock()).run(_context())

    def test_invalidate_drops_quick_and_derived_keys(self, cache: Cache) -> None:
        cache.set(CacheKeys.quick_flashcards("doc-1"), {"x": 1}, 60)
        cache.set(CacheKeys.quick_translation("doc-1"), {"x": 1}, 60)
        cache.set("custom:user:user-1:flashcards", [1], 60)
        cache.set("documents:category:user-1:1", [1], 60)
        cache.set("custom:document:doc-1:flashcards", [1], 60)
        cache.set("questions:document:doc-1:list", [1], 60)
        cache.set("quizzes:user:user-1:list", [1], 60)
        cache.set("custom:user:other:flashcards", [1], 60)

        InvalidateCachesStep(cache).run(_context(resolved_category_id=1))

        assert cache.get(CacheKeys.quick_flashcards("doc-1")) is None
        assert cache.get(CacheKeys.quick_translation("doc-1")) is None
        assert cache.get("custom:user:user-1:flashcards") is None
        assert cache.get("documents:category:user-1:1") is None
        assert cache.get("custom:document:doc-1:flashcards") is None
        assert cache.get("questions:document:doc-1:list") is None
        assert cache.get("quizzes:user:user-1:list") is None
        assert cache.get("custom:user:other:flashcards") == [1]

    def test_notify_sends_document_ready(self) -> None:
        notifier = MagicMock()
        persisted = MagicMock(term_ids=["t"] * 10)

        NotifyStep(notifier).run(_context(persisted=persisted))

        notification = notifier.notify.call_args.args[0]
        assert notification.type is NotificationType.DOCUMENT_READY
        assert notification.action_url == "/learning/documents/doc-1/study"
        assert notification.data["term_count"] == 10
