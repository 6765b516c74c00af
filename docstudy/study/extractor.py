"""LLM-driven extraction of study terms and quiz questions."""

from collections.abc import Iterable

from docstudy.generation.generative_text import GenerativeText
from docstudy.generation.prompt_loader import load_prompt_template
from docstudy.logging.logger import Log
from docstudy.study.exceptions import NoUsableTermsError
from docstudy.study.models import ExtractionDraft, QuestionCandidate, TermCandidate
from docstudy.study.validator import build_question_candidates, build_term_candidates

FILLER_PROMPT = "Which term matches this definition: {definition}?"


def make_exclusion_set(terms: Iterable[str]) -> set[str]:
    """Lower-cased, trimmed set used for case-insensitive deduplication."""
    return {t.strip().lower() for t in terms if t and t.strip()}


def clean_terms(
    candidates: list[TermCandidate],
    exclude: set[str],
    limit: int,
) -> list[TermCandidate]:
    """Trim, drop empty/excluded/repeated terms and keep at most `limit`."""
    seen: set[str] = set()
    cleaned: list[TermCandidate] = []
    for candidate in candidates:
        term = candidate.term.strip()
        key = term.lower()
        if not term or key in exclude or key in seen:
            continue
        seen.add(key)
        cleaned.append(
            TermCandidate(
                term=term,
                definition=candidate.definition.strip(),
                category=candidate.category or "General",
            )
        )
        if len(cleaned) >= limit:
            break
    return cleaned


def align_questions(
    questions: list[QuestionCandidate],
    terms: list[TermCandidate],
) -> list[QuestionCandidate]:
    """Return exactly one question per term, in term order.

    LLM questions whose answer is not a kept term are dropped. Terms without
    a question get a filler built from their own definition.
    """
    by_answer: dict[str, QuestionCandidate] = {}
    for question in questions:
        key = question.answer.strip().lower()
        if key and key not in by_answer:
            by_answer[key] = question

    aligned: list[QuestionCandidate] = []
    for term in terms:
        question = by_answer.get(term.term.lower())
        if question is None:
            question = QuestionCandidate(
                prompt=FILLER_PROMPT.format(definition=term.definition or term.term),
                answer=term.term,
            )
        else:
            question = QuestionCandidate(prompt=question.prompt, answer=term.term)
        aligned.append(question)
    return aligned


class TermExtractor:
    """Asks the LLM for candidate terms and questions and cleans them into a batch."""

    def __init__(
        self,
        generator: GenerativeText,
        *,
        batch_size: int = 10,
        candidate_count: int = 15,
        min_usable_terms: int = 1,
        char_budget: int = 6000,
        exclusion_prompt_limit: int = 200,
        backfill_attempts: int = 3,
        allow_short_batch: bool = False,
        category_names: list[str] | None = None,
    ) -> None:
        self._generator = generator
        self._batch_size = batch_size
        self._candidate_count = max(candidate_count, batch_size)
        self._min_usable_terms = max(1, min_usable_terms)
        self._char_budget = char_budget
        self._exclusion_prompt_limit = exclusion_prompt_limit
        self._backfill_attempts = backfill_attempts
        self._allow_short_batch = allow_short_batch
        self._category_names = category_names or ["General"]
        self._template = load_prompt_template("term_extraction.txt")

    def extract(self, text: str, exclude: Iterable[str]) -> ExtractionDraft:
        """Produce a full batch of terms with exactly one question per term.

        Short batches are backfilled with up to `backfill_attempts` extra
        requests. A batch still short after that is an error unless
        `allow_short_batch` is set, in which case anything from
        `min_usable_terms` up is accepted.

        Raises:
            NoUsableTermsError: if nothing usable survives cleaning, or the
                batch stays short under the strict policy.
            GenerationError: on any upstream AI failure.
        """
        exclusion = make_exclusion_set(exclude)
        terms, questions = self._request(text, exclusion)
        kept = clean_terms(terms, exclusion, self._batch_size)

        attempts = 0
        while len(kept) < self._batch_size and attempts < self._backfill_attempts and kept:
            attempts += 1
            Log.info(
                f"Only {len(kept)}/{self._batch_size} usable terms, requesting more "
                f"(backfill {attempts}/{self._backfill_attempts})"
            )
            chosen = {t.term.lower() for t in kept}
            more_terms, more_questions = self._request(text, exclusion | chosen)
            extra = clean_terms(more_terms, exclusion | chosen, self._batch_size - len(kept))
            kept.extend(extra)
            questions.extend(more_questions)

        if not kept:
            raise NoUsableTermsError("No usable terms after deduplication")
        if len(kept) < self._batch_size:
            if not self._allow_short_batch:
                raise NoUsableTermsError(
                    f"Only {len(kept)}/{self._batch_size} usable terms after "
                    f"{attempts} backfill attempts"
                )
            if len(kept) < self._min_usable_terms:
                raise NoUsableTermsError(
                    f"Too few usable terms ({len(kept)} left, minimum {self._min_usable_terms})"
                )
            Log.warning(f"Extraction produced a short batch: {len(kept)}/{self._batch_size}")

        aligned = align_questions(questions, kept)
        Log.info(f"Extracted {len(kept)} terms and {len(aligned)} questions")
        return ExtractionDraft(terms=kept, questions=aligned)

    def _request(
        self,
        text: str,
        exclusion: set[str],
    ) -> tuple[list[TermCandidate], list[QuestionCandidate]]:
        excluded = sorted(exclusion)[: self._exclusion_prompt_limit]
        prompt = self._template.format(
            candidate_count=self._candidate_count,
            excluded_terms=", ".join(excluded) if excluded else "(none)",
            categories=", ".join(self._category_names),
            text=text[: self._char_budget],
        )
        data = self._generator.generate_json(prompt)
        return build_term_candidates(data), build_question_candidates(data)
