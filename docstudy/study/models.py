from dataclasses import dataclass
from typing import Any

from docstudy.study.languages import Language, LocalizedText, normalize_language


@dataclass(frozen=True)
class TermCandidate:
    """A canonical-language term proposed by the LLM."""

    term: str
    definition: str
    category: str = "General"


@dataclass(frozen=True)
class QuestionCandidate:
    """A canonical-language question whose answer is one term of the batch."""

    prompt: str
    answer: str


@dataclass(frozen=True)
class ExtractionDraft:
    """Cleaned extraction output handed from the quick phase to the full phase.

    `questions[i]` always answers `terms[i]`.
    """

    terms: list[TermCandidate]
    questions: list[QuestionCandidate]

    def to_payload(self) -> dict[str, Any]:
        return {
            "terms": [
                {"term": t.term, "definition": t.definition, "category": t.category}
                for t in self.terms
            ],
            "questions": [
                {"prompt": q.prompt, "answer": q.answer} for q in self.questions
            ],
        }

    @classmethod
    def from_payload(cls, raw: dict[str, Any]) -> "ExtractionDraft":
        return cls(
            terms=[
                TermCandidate(
                    term=item["term"],
                    definition=item["definition"],
                    category=item.get("category", "General"),
                )
                for item in raw["terms"]
            ],
            questions=[
                QuestionCandidate(prompt=item["prompt"], answer=item["answer"])
                for item in raw["questions"]
            ],
        )


@dataclass(frozen=True)
class TranslatedTerm:
    term: LocalizedText
    definition: LocalizedText


@dataclass(frozen=True)
class TranslatedQuestion:
    prompt: LocalizedText


@dataclass(frozen=True)
class TranslatedBatch:
    """Translator output, aligned by position with the source draft."""

    terms: list[TranslatedTerm]
    questions: list[TranslatedQuestion]


@dataclass(frozen=True)
class QuickFlashcards:
    """Quick-phase cache payload: a single-language preview plus the draft."""

    document_id: str
    language: Language
    category_id: int
    draft: ExtractionDraft
    preview: TranslatedBatch

    def to_payload(self) -> dict[str, Any]:
        return {
            "document_id": self.document_id,
            "language": self.language.value,
            "category_id": self.category_id,
            "draft": self.draft.to_payload(),
            "terms": [
                {"term": t.term.to_dict(), "definition": t.definition.to_dict()}
                for t in self.preview.terms
            ],
            "questions": [{"prompt": q.prompt.to_dict()} for q in self.preview.questions],
        }

    @classmethod
    def from_payload(cls, raw: dict[str, Any]) -> "QuickFlashcards":
        return cls(
            document_id=str(raw["document_id"]),
            language=normalize_language(raw.get("language")),
            category_id=int(raw["category_id"]),
            draft=ExtractionDraft.from_payload(raw["draft"]),
            preview=TranslatedBatch(
                terms=[
                    TranslatedTerm(
                        term=LocalizedText.from_dict(item["term"]),
                        definition=LocalizedText.from_dict(item["definition"]),
                    )
                    for item in raw.get("terms", [])
                ],
                questions=[
                    TranslatedQuestion(prompt=LocalizedText.from_dict(item["prompt"]))
                    for item in raw.get("questions", [])
                ],
            ),
        )


@dataclass(frozen=True)
class QuickTranslation:
    """Quick-phase document translation preview (never persisted)."""

    language: Language
    text: str
    text_english: str

    def to_payload(self) -> dict[str, str]:
        return {
            "language": self.language.value,
            "text": self.text,
            "text_english": self.text_english,
        }

    @classmethod
    def from_payload(cls, raw: dict[str, Any]) -> "QuickTranslation":
        return cls(
            language=normalize_language(raw.get("language")),
            text=str(raw.get("text", "")),
            text_english=str(raw.get("text_english", "")),
        )


@dataclass(frozen=True)
class Category:
    id: int
    name: str


@dataclass
class GenerationPlan:
    """Everything the persistence transaction needs for one generation run."""

    document_id: str
    user_id: str
    quiz_name: str
    category_id: int
    draft: ExtractionDraft
    translated: TranslatedBatch
    document_text: LocalizedText | None = None
    points_per_question: int = 10
