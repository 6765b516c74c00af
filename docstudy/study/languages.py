"""Supported study languages and per-language values."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Language(str, Enum):
    ENGLISH = "english"
    FRENCH = "french"
    CHINESE = "chinese"
    SPANISH = "spanish"
    TAGALOG = "tagalog"
    PUNJABI = "punjabi"
    KOREAN = "korean"


CANONICAL_LANGUAGE = Language.ENGLISH

TARGET_LANGUAGES: tuple[Language, ...] = tuple(
    language for language in Language if language is not CANONICAL_LANGUAGE
)


def normalize_language(raw: str | None) -> Language:
    """Map a stored preference to a Language; unknown values become canonical."""
    if not raw:
        return CANONICAL_LANGUAGE
    try:
        return Language(raw.strip().lower())
    except ValueError:
        return CANONICAL_LANGUAGE


@dataclass(frozen=True)
class LocalizedText:
    """One text value per supported language.

    The canonical value is always present. Other languages may be missing
    until translated; `filled()` replaces every missing or blank value with
    the canonical one.
    """

    canonical: str
    translations: dict[Language, str] = field(default_factory=dict)

    def get(self, language: Language) -> str:
        if language is CANONICAL_LANGUAGE:
            return self.canonical
        return self.translations.get(language, "")

    def filled(self) -> "LocalizedText":
        values = {
            language: (self.translations.get(language) or "").strip() or self.canonical
            for language in TARGET_LANGUAGES
        }
        return LocalizedText(canonical=self.canonical, translations=values)

    def merged(self, language: Language, value: str) -> "LocalizedText":
        if language is CANONICAL_LANGUAGE:
            return self
        return LocalizedText(
            canonical=self.canonical,
            translations={**self.translations, language: value},
        )

    def to_dict(self) -> dict[str, str]:
        values = {CANONICAL_LANGUAGE.value: self.canonical}
        for language, value in self.translations.items():
            values[language.value] = value
        return values

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "LocalizedText":
        translations: dict[Language, str] = {}
        for language in TARGET_LANGUAGES:
            value = raw.get(language.value)
            if isinstance(value, str):
                translations[language] = value
        return cls(
            canonical=str(raw.get(CANONICAL_LANGUAGE.value, "")),
            translations=translations,
        )
