"""Per-language column names. Language-specific columns are only ever addressed through these maps."""

from docstudy.study.languages import Language

DOCUMENT_TEXT_COLUMNS: dict[Language, str] = {
    Language.ENGLISH: "text_english",
    Language.FRENCH: "text_french",
    Language.CHINESE: "text_chinese",
    Language.SPANISH: "text_spanish",
    Language.TAGALOG: "text_tagalog",
    Language.PUNJABI: "text_punjabi",
    Language.KOREAN: "text_korean",
}

TERM_COLUMNS: dict[Language, str] = {
    Language.ENGLISH: "term_english",
    Language.FRENCH: "term_french",
    Language.CHINESE: "term_chinese",
    Language.SPANISH: "term_spanish",
    Language.TAGALOG: "term_tagalog",
    Language.PUNJABI: "term_punjabi",
    Language.KOREAN: "term_korean",
}

DEFINITION_COLUMNS: dict[Language, str] = {
    Language.ENGLISH: "definition_english",
    Language.FRENCH: "definition_french",
    Language.CHINESE: "definition_chinese",
    Language.SPANISH: "definition_spanish",
    Language.TAGALOG: "definition_tagalog",
    Language.PUNJABI: "definition_punjabi",
    Language.KOREAN: "definition_korean",
}

PROMPT_COLUMNS: dict[Language, str] = {
    Language.ENGLISH: "prompt_english",
    Language.FRENCH: "prompt_french",
    Language.CHINESE: "prompt_chinese",
    Language.SPANISH: "prompt_spanish",
    Language.TAGALOG: "prompt_tagalog",
    Language.PUNJABI: "prompt_punjabi",
    Language.KOREAN: "prompt_korean",
}
