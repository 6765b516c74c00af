import pytest

from docstudy.generation.exceptions import GenerationNetworkError
from docstudy.generation.generative_text import GenerativeText
from docstudy.study.exceptions import NoUsableTermsError
from docstudy.study.extractor import (
    FILLER_PROMPT,
    TermExtractor,
    align_questions,
    clean_terms,
    make_exclusion_set,
)
from docstudy.study.models import QuestionCandidate, TermCandidate
from tests.fakes import ScriptedClient, make_terms

EXTRACTION_MARKER = "From the OCR text"


def _make_extractor(
    *responses: object,
    backfill_attempts: int = 1,
    min_usable_terms: int = 1,
    allow_short_batch: bool = False,
) -> tuple[TermExtractor, ScriptedClient]:
    queue = list(responses)

    def answer(_prompt: str) -> object:
        return queue.pop(0) if len(queue) > 1 else queue[0]

    client = ScriptedClient([(EXTRACTION_MARKER, answer)])
    extractor = TermExtractor(
        GenerativeText(client=client, model="m"),
        batch_size=10,
        candidate_count=15,
        min_usable_terms=min_usable_terms,
        backfill_attempts=backfill_attempts,
        allow_short_batch=allow_short_batch,
    )
    return extractor, client


def _names(count: int, prefix: str = "Term") -> list[str]:
    return [f"{prefix} {i}" for i in range(1, count + 1)]


class TestCleanTerms:
    def test_trims_and_drops_empty(self) -> None:
        cleaned = clean_terms(
            [TermCandidate("  Hazard ", " Danger "), TermCandidate("   ", "x")],
            set(),
            10,
        )
        assert [t.term for t in cleaned] == ["Hazard"]
        assert cleaned[0].definition == "Danger"

    def test_drops_excluded_case_insensitively(self) -> None:
        cleaned = clean_terms(
            [TermCandidate("HAZARD", "d"), TermCandidate("Guardrail", "d")],
            make_exclusion_set(["hazard"]),
            10,
        )
        assert [t.term for t in cleaned] == ["Guardrail"]

    def test_drops_in_batch_duplicates(self) -> None:
        cleaned = clean_terms(
            [TermCandidate("Hazard", "a"), TermCandidate("hazard", "b")],
            set(),
            10,
        )
        assert [t.definition for t in cleaned] == ["a"]

    def test_caps_at_limit(self) -> None:
        cleaned = clean_terms([TermCandidate(n, "d") for n in _names(15)], set(), 10)
        assert len(cleaned) == 10


class TestAlignQuestions:
    def test_one_question_per_term_in_term_order(self) -> None:
        terms = [TermCandidate("A", "alpha"), TermCandidate("B", "beta")]
        questions = [QuestionCandidate("What is b?", "b"), QuestionCandidate("What is a?", "A")]

        aligned = align_questions(questions, terms)

        assert [q.answer for q in aligned] == ["A", "B"]
        assert aligned[1].prompt == "What is b?"

    def test_missing_question_gets_filler(self) -> None:
        aligned = align_questions([], [TermCandidate("A", "alpha")])
        assert aligned[0].prompt == FILLER_PROMPT.format(definition="alpha")
        assert aligned[0].answer == "A"

    def test_drops_questions_for_unknown_terms(self) -> None:
        aligned = align_questions(
            [QuestionCandidate("Other?", "Z")], [TermCandidate("A", "alpha")]
        )
        assert len(aligned) == 1
        assert aligned[0].answer == "A"


class TestTermExtractor:
    def test_produces_ten_terms_and_ten_questions(self) -> None:
        extractor, _client = _make_extractor(make_terms(*_names(15)))

        draft = extractor.extract("text", [])

        assert len(draft.terms) == 10
        assert len(draft.questions) == 10
        assert [q.answer for q in draft.questions] == [t.term for t in draft.terms]

    def test_three_known_terms_are_excluded(self) -> None:
        names = _names(15)
        known = [names[0].upper(), names[4], names[9].lower()]
        extractor, client = _make_extractor(make_terms(*names))

        draft = extractor.extract("text", known)

        kept = {t.term.lower() for t in draft.terms}
        assert len(draft.terms) == 10
        assert not kept & {k.lower() for k in known}
        assert "term 10" in client.prompts[0]

    def test_backfill_requests_more_terms(self) -> None:
        extractor, client = _make_extractor(
            make_terms(*_names(4)),
            make_terms(*_names(4), *_names(8, prefix="Extra")),
        )

        draft = extractor.extract("text", [])

        assert client.count(EXTRACTION_MARKER) == 2
        assert len(draft.terms) == 10
        assert len({t.term.lower() for t in draft.terms}) == 10

    def test_short_batch_is_rejected_by_default(self) -> None:
        extractor, client = _make_extractor(make_terms(*_names(3)), backfill_attempts=3)

        with pytest.raises(NoUsableTermsError, match="Only 3/10 usable terms after 3 backfill"):
            extractor.extract("text", [])

        assert client.count(EXTRACTION_MARKER) == 4

    def test_short_batch_allowed_by_policy(self) -> None:
        extractor, _client = _make_extractor(
            make_terms(*_names(3)), backfill_attempts=0, allow_short_batch=True
        )

        draft = extractor.extract("text", [])

        assert len(draft.terms) == 3
        assert len(draft.questions) == 3

    def test_backfill_keeps_asking_until_full(self) -> None:
        extractor, client = _make_extractor(
            make_terms(*_names(4)),
            make_terms(*_names(3, prefix="Extra")),
            make_terms(*_names(3, prefix="More")),
            backfill_attempts=3,
        )

        draft = extractor.extract("text", [])

        assert client.count(EXTRACTION_MARKER) == 3
        assert len(draft.terms) == 10
        assert len(draft.questions) == 10

    def test_no_usable_terms_raises(self) -> None:
        extractor, _client = _make_extractor(make_terms("Hazard"))

        with pytest.raises(NoUsableTermsError):
            extractor.extract("text", ["hazard"])

    def test_below_minimum_raises(self) -> None:
        extractor, _client = _make_extractor(
            make_terms(*_names(2)),
            backfill_attempts=0,
            min_usable_terms=5,
            allow_short_batch=True,
        )

        with pytest.raises(NoUsableTermsError, match="minimum 5"):
            extractor.extract("text", [])

    def test_text_is_truncated_in_prompt(self) -> None:
        extractor, client = _make_extractor(make_terms(*_names(10)))

        extractor.extract("x" * 7000 + "TAIL", [])

        assert "TAIL" not in client.prompts[0]

    def test_ai_failure_propagates(self) -> None:
        client = ScriptedClient([], default=GenerationNetworkError("down"))
        extractor = TermExtractor(GenerativeText(client=client, model="m"))

        with pytest.raises(GenerationNetworkError):
            extractor.extract("text", [])
