"""Turns raw parsed LLM JSON into typed candidates, dropping malformed items."""

from typing import Any

from docstudy.generation.exceptions import GenerationValidationError
from docstudy.study.models import QuestionCandidate, TermCandidate


def build_term_candidates(data: dict[str, Any]) -> list[TermCandidate]:
    """Build term candidates from an extraction response.

    Raises:
        GenerationValidationError: if 'terms' is missing or not a list.
    """
    raw_terms = data.get("terms")
    if not isinstance(raw_terms, list):
        raise GenerationValidationError("'terms' must be a list")
    candidates: list[TermCandidate] = []
    for item in raw_terms:
        if not isinstance(item, dict):
            continue
        term = _text(item.get("term"))
        definition = _text(item.get("definition"))
        category = _text(item.get("category")) or "General"
        candidates.append(TermCandidate(term=term, definition=definition, category=category))
    return candidates


def build_question_candidates(data: dict[str, Any]) -> list[QuestionCandidate]:
    """Build question candidates; a missing or malformed list yields no questions."""
    raw_questions = data.get("questions")
    if not isinstance(raw_questions, list):
        return []
    candidates: list[QuestionCandidate] = []
    for item in raw_questions:
        if not isinstance(item, dict):
            continue
        prompt = _text(item.get("prompt"))
        answer = _text(item.get("answer"))
        if prompt and answer:
            candidates.append(QuestionCandidate(prompt=prompt, answer=answer))
    return candidates


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""
