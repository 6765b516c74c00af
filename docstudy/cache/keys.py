import hashlib

from docstudy.study.languages import Language


def content_hash(text: str | bytes) -> str:
    data = text.encode("utf-8") if isinstance(text, str) else text
    return hashlib.sha256(data).hexdigest()


class CacheKeys:
    """Cache key builders. Every key the pipeline reads or writes is built here."""

    @staticmethod
    def quick_flashcards(document_id: str) -> str:
        return f"quick-flashcards:{document_id}"

    @staticmethod
    def quick_translation(document_id: str) -> str:
        return f"quick-translation:{document_id}"

    @staticmethod
    def ocr(content: bytes) -> str:
        return f"ocr:{content_hash(content)}"

    @staticmethod
    def translation(language: Language, text: str) -> str:
        return f"translation:{language.value}:{content_hash(text)}"

    @staticmethod
    def category(text: str) -> str:
        return f"category:{content_hash(text)}"

    @staticmethod
    def existing_terms(user_id: str) -> str:
        return f"terms:existing:{user_id}"

    @staticmethod
    def user_documents(user_id: str) -> str:
        return f"documents:user:{user_id}"

    @staticmethod
    def user_category_documents(user_id: str, category_id: int | str) -> str:
        return f"documents:category:{user_id}:{category_id}"

    @staticmethod
    def invalidation_patterns(user_id: str, document_id: str, category_id: int | None) -> list[str]:
        """Derived list/detail keys to drop once a document's material is persisted."""
        patterns = [
            f"custom:user:{user_id}:*",
            f"custom:category:{user_id}:*",
            f"custom:document:{document_id}:*",
            f"questions:user:{user_id}:*",
            f"questions:document:{document_id}:*",
            f"quizzes:user:{user_id}:*",
            CacheKeys.user_documents(user_id),
            f"document:status:{document_id}",
            f"document:translation:{document_id}:*",
            CacheKeys.existing_terms(user_id),
        ]
        if category_id is not None:
            patterns.append(CacheKeys.user_category_documents(user_id, category_id))
        return patterns
