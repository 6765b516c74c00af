import pytest

from docstudy.generation.exceptions import GenerationValidationError
from docstudy.study.validator import build_question_candidates, build_term_candidates


class TestBuildTermCandidates:
    def test_builds_candidates(self) -> None:
        terms = build_term_candidates(
            {"terms": [{"term": " Hazard ", "definition": "Danger", "category": "Safety"}]}
        )
        assert terms[0].term == "Hazard"
        assert terms[0].category == "Safety"

    def test_defaults_category(self) -> None:
        terms = build_term_candidates({"terms": [{"term": "Hazard", "definition": "Danger"}]})
        assert terms[0].category == "General"

    def test_skips_non_objects(self) -> None:
        assert build_term_candidates({"terms": ["Hazard", 3, None]}) == []

    def test_missing_terms_list_raises(self) -> None:
        with pytest.raises(GenerationValidationError, match="'terms' must be a list"):
            build_term_candidates({"terms": "Hazard"})


class TestBuildQuestionCandidates:
    def test_builds_candidates(self) -> None:
        questions = build_question_candidates(
            {"questions": [{"prompt": "What is danger?", "answer": "Hazard"}]}
        )
        assert questions[0].answer == "Hazard"

    def test_missing_list_yields_nothing(self) -> None:
        assert build_question_candidates({}) == []

    def test_drops_incomplete_items(self) -> None:
        questions = build_question_candidates(
            {"questions": [{"prompt": "No answer"}, {"answer": "No prompt"}, "junk"]}
        )
        assert questions == []
