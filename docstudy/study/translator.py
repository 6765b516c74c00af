"""Translation of term batches and document text into the supported languages."""

import json
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from docstudy.cache.cache import Cache, get_or_compute
from docstudy.cache.keys import CacheKeys
from docstudy.generation.exceptions import GenerationParseError, GenerationValidationError
from docstudy.generation.generative_text import GenerativeText
from docstudy.generation.prompt_loader import load_prompt_template
from docstudy.logging.logger import Log
from docstudy.study.languages import (
    CANONICAL_LANGUAGE,
    TARGET_LANGUAGES,
    Language,
    LocalizedText,
)
from docstudy.study.models import (
    ExtractionDraft,
    TranslatedBatch,
    TranslatedQuestion,
    TranslatedTerm,
)


class Translator:
    """Translates extraction drafts and document text.

    Single-language mode feeds the quick preview; all-languages mode fans out
    one request per target language concurrently and merges the answers.
    A missing or malformed translation always falls back to the canonical
    value.
    """

    def __init__(
        self,
        generator: GenerativeText,
        cache: Cache,
        *,
        document_char_budget: int = 8000,
        translation_ttl_seconds: int = 24 * 3600,
        max_workers: int = len(TARGET_LANGUAGES),
    ) -> None:
        self._generator = generator
        self._cache = cache
        self._document_char_budget = document_char_budget
        self._translation_ttl_seconds = translation_ttl_seconds
        self._max_workers = max(1, max_workers)
        self._batch_template = load_prompt_template("term_translation.txt")
        self._document_template = load_prompt_template("document_translation.txt")

    def translate_single(self, draft: ExtractionDraft, language: Language) -> TranslatedBatch:
        """Translate a draft into one language. Canonical target is a no-op."""
        if language is CANONICAL_LANGUAGE:
            return _untranslated(draft)
        return self._translate_batch(draft, language)

    def translate_all(self, draft: ExtractionDraft) -> TranslatedBatch:
        """Translate a draft into every target language, filling gaps with canonical values."""
        with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
            futures = {
                language: pool.submit(self._translate_batch, draft, language)
                for language in TARGET_LANGUAGES
            }
            results = {language: future.result() for language, future in futures.items()}

        merged = _untranslated(draft)
        for language, batch in results.items():
            merged = _merge_language(merged, batch, language)
        return TranslatedBatch(
            terms=[
                TranslatedTerm(term=t.term.filled(), definition=t.definition.filled())
                for t in merged.terms
            ],
            questions=[TranslatedQuestion(prompt=q.prompt.filled()) for q in merged.questions],
        )

    def translate_document(self, text: str, language: Language) -> str:
        """Translate document text into one language, memoized by content hash."""
        if language is CANONICAL_LANGUAGE:
            return text
        source = text[: self._document_char_budget]
        translated = get_or_compute(
            self._cache,
            CacheKeys.translation(language, source),
            self._translation_ttl_seconds,
            lambda: self._generator.generate_text(
                self._document_template.format(language=language.value, text=source)
            ),
        )
        return translated.strip() or text

    def translate_document_all(self, text: str) -> LocalizedText:
        """Translate document text into every target language concurrently."""
        with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
            futures = {
                language: pool.submit(self.translate_document, text, language)
                for language in TARGET_LANGUAGES
            }
            translations = {language: future.result() for language, future in futures.items()}
        return LocalizedText(canonical=text, translations=translations).filled()

    def _translate_batch(self, draft: ExtractionDraft, language: Language) -> TranslatedBatch:
        source = {
            "terms": [{"english": t.term, "definition": t.definition} for t in draft.terms],
            "questions": [{"prompt": q.prompt} for q in draft.questions],
        }
        prompt = self._batch_template.format(
            language=language.value,
            source=json.dumps(source, ensure_ascii=False, indent=2),
        )
        try:
            data = self._generator.generate_json(prompt)
        except (GenerationParseError, GenerationValidationError) as exc:
            Log.warning(f"Malformed {language.value} translation, using canonical values: {exc}")
            data = {}
        return _read_batch(draft, data, language)


def _untranslated(draft: ExtractionDraft) -> TranslatedBatch:
    return TranslatedBatch(
        terms=[
            TranslatedTerm(
                term=LocalizedText(canonical=t.term),
                definition=LocalizedText(canonical=t.definition),
            )
            for t in draft.terms
        ],
        questions=[TranslatedQuestion(prompt=LocalizedText(canonical=q.prompt)) for q in draft.questions],
    )


def _read_batch(draft: ExtractionDraft, data: dict[str, Any], language: Language) -> TranslatedBatch:
    raw_terms = data.get("terms") if isinstance(data.get("terms"), list) else []
    raw_questions = data.get("questions") if isinstance(data.get("questions"), list) else []

    by_english: dict[str, dict[str, Any]] = {}
    for item in raw_terms:
        if isinstance(item, dict) and isinstance(item.get("english"), str):
            by_english.setdefault(item["english"].strip().lower(), item)

    terms: list[TranslatedTerm] = []
    for index, candidate in enumerate(draft.terms):
        item = by_english.get(candidate.term.lower())
        if item is None and index < len(raw_terms) and isinstance(raw_terms[index], dict):
            item = raw_terms[index]
        item = item or {}
        terms.append(
            TranslatedTerm(
                term=LocalizedText(candidate.term).merged(
                    language, _pick(item.get("term"), language) or candidate.term
                ),
                definition=LocalizedText(candidate.definition).merged(
                    language, _pick(item.get("definition"), language) or candidate.definition
                ),
            )
        )

    questions: list[TranslatedQuestion] = []
    for index, candidate in enumerate(draft.questions):
        item = raw_questions[index] if index < len(raw_questions) else {}
        value = _pick(item.get("prompt"), language) if isinstance(item, dict) else ""
        questions.append(
            TranslatedQuestion(
                prompt=LocalizedText(candidate.prompt).merged(language, value or candidate.prompt)
            )
        )
    return TranslatedBatch(terms=terms, questions=questions)


def _merge_language(base: TranslatedBatch, batch: TranslatedBatch, language: Language) -> TranslatedBatch:
    return TranslatedBatch(
        terms=[
            TranslatedTerm(
                term=b.term.merged(language, t.term.get(language)),
                definition=b.definition.merged(language, t.definition.get(language)),
            )
            for b, t in zip(base.terms, batch.terms)
        ],
        questions=[
            TranslatedQuestion(prompt=b.prompt.merged(language, q.prompt.get(language)))
            for b, q in zip(base.questions, batch.questions)
        ],
    )


def _pick(value: Any, language: Language) -> str:
    """Accept either a bare string or a `{language: text}` map."""
    if isinstance(value, dict):
        value = value.get(language.value)
    return value.strip() if isinstance(value, str) else ""
