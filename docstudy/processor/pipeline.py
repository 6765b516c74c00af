from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from docstudy.database.repositories.generation_repository import PersistedGeneration
from docstudy.processor.models import Document
from docstudy.study.languages import CANONICAL_LANGUAGE, Language, LocalizedText
from docstudy.study.models import (
    ExtractionDraft,
    GenerationPlan,
    QuickFlashcards,
    TranslatedBatch,
)


@dataclass(slots=True)
class PipelineContext:
    document_id: str
    user_id: str
    category_id: int | None = None
    job_id: int | None = None
    document: Document | None = None
    exclusion: list[str] = field(default_factory=list)
    existing_term_count: int = 0
    skipped: bool = False
    extracted_text: str = ""
    language: Language = CANONICAL_LANGUAGE
    quick: QuickFlashcards | None = None
    draft: ExtractionDraft | None = None
    translated: TranslatedBatch | None = None
    document_translation: LocalizedText | None = None
    resolved_category_id: int | None = None
    plan: GenerationPlan | None = None
    persisted: PersistedGeneration | None = None
    error_message: str = ""


class PipelineStep(ABC):
    @abstractmethod
    def run(self, context: PipelineContext) -> PipelineContext:
        raise NotImplementedError
