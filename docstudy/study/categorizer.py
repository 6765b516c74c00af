"""Classifies document text into the fixed category taxonomy."""

from dataclasses import dataclass, field

from docstudy.cache.cache import Cache, get_or_compute
from docstudy.cache.keys import CacheKeys
from docstudy.generation.exceptions import GenerationError
from docstudy.generation.generative_text import GenerativeText
from docstudy.generation.prompt_loader import load_prompt_template
from docstudy.logging.logger import Log
from docstudy.study.models import Category

_DEFAULT_CATEGORIES = (
    Category(id=1, name="Safety"),
    Category(id=2, name="Technical"),
    Category(id=3, name="Training"),
    Category(id=4, name="Workplace"),
    Category(id=5, name="Professional"),
    Category(id=6, name="General"),
)

_DESCRIPTIONS = {
    "Safety": "Safety procedures, hazard warnings, protective equipment",
    "Technical": "Technical specifications, engineering, machinery",
    "Training": "Training materials, educational content, learning guides",
    "Workplace": "Workplace policies, HR, general office procedures",
    "Professional": "Professional development, career guidance, business skills",
    "General": "General information that doesn't fit other categories",
}


@dataclass(frozen=True)
class CategoryTaxonomy:
    """Closed category list with a default used whenever nothing matches."""

    categories: tuple[Category, ...] = field(default=_DEFAULT_CATEGORIES)
    default_name: str = "General"

    @property
    def default(self) -> Category:
        for category in self.categories:
            if category.name == self.default_name:
                return category
        raise ValueError(f"Default category '{self.default_name}' is not in the taxonomy")

    @property
    def names(self) -> list[str]:
        return [c.name for c in self.categories]

    def match(self, answer: str) -> Category:
        """Resolve a free-form answer: exact, then case-insensitive, then substring, then default."""
        normalized = answer.strip()
        for category in self.categories:
            if normalized == category.name:
                return category
        lowered = normalized.lower()
        for category in self.categories:
            if lowered == category.name.lower():
                return category
        for category in self.categories:
            if category.name.lower() in lowered:
                return category
        return self.default

    def by_name(self, name: str) -> Category:
        return self.match(name)


DEFAULT_TAXONOMY = CategoryTaxonomy()


class Categorizer:
    """Asks the LLM for a bare category name and maps it onto the taxonomy."""

    def __init__(
        self,
        generator: GenerativeText,
        cache: Cache,
        *,
        taxonomy: CategoryTaxonomy = DEFAULT_TAXONOMY,
        char_budget: int = 3000,
        ttl_seconds: int = 30 * 24 * 3600,
    ) -> None:
        self._generator = generator
        self._cache = cache
        self._taxonomy = taxonomy
        self._char_budget = char_budget
        self._ttl_seconds = ttl_seconds
        self._template = load_prompt_template("categorization.txt")

    def categorize(self, text: str) -> int:
        """Return the category id for document text. Never raises on AI failure."""
        source = text[: self._char_budget]
        try:
            answer = get_or_compute(
                self._cache,
                CacheKeys.category(source),
                self._ttl_seconds,
                lambda: self._ask(source),
            )
        except GenerationError as exc:
            Log.warning(f"Categorization failed, using default category: {exc}")
            return self._taxonomy.default.id
        category = self._taxonomy.match(answer)
        Log.info(f"Categorized document as {category.name} (id {category.id})")
        return category.id

    def _ask(self, source: str) -> str:
        lines = [
            f"- {name}: {_DESCRIPTIONS[name]}" if name in _DESCRIPTIONS else f"- {name}"
            for name in self._taxonomy.names
        ]
        prompt = self._template.format(categories="\n".join(lines), text=source)
        return self._generator.generate_text(prompt)
