from typing import Any

from psycopg import sql
from psycopg.rows import dict_row

from docstudy.database.columns import DOCUMENT_TEXT_COLUMNS
from docstudy.database.connection import get_connection
from docstudy.processor.exceptions import DocumentNotFoundError
from docstudy.processor.models import Document
from docstudy.study.languages import CANONICAL_LANGUAGE, Language

_DOCUMENT_COLUMNS = """
    id, user_id, filename, file_key, mime_type, file_size, storage_disk,
    extracted_text, category_id, ocr_processed
"""


class DocumentRepository:
    """Database operations for the documents table and per-document counts."""

    def find_by_id(self, document_id: str) -> Document:
        """Find a document by ID.

        Raises:
            DocumentNotFoundError: if no document with this ID exists.
        """
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_DOCUMENT_COLUMNS} FROM documents WHERE id = %s",
                    (document_id,),
                )
                row = cur.fetchone()

        if row is None:
            raise DocumentNotFoundError(f"Document {document_id} not found")
        return _to_document(row)

    def create(
        self,
        *,
        user_id: str,
        filename: str,
        file_key: str,
        mime_type: str,
        file_size: int,
        category_id: int | None = None,
    ) -> Document:
        """Insert a freshly uploaded document (not yet processed)."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    INSERT INTO documents
                        (user_id, filename, file_key, mime_type, file_size, category_id)
                    VALUES (%s, %s, %s, %s, %s, %s)
                    RETURNING {_DOCUMENT_COLUMNS}
                    """,
                    (user_id, filename, file_key, mime_type, file_size, category_id),
                )
                row = cur.fetchone()
            conn.commit()
        assert row is not None
        return _to_document(row)

    def update_extracted_text(self, document_id: str, extracted_text: str) -> None:
        """Store OCR output. ocr_processed is only set by the final transaction.

        Raises:
            DocumentNotFoundError: if no document with this ID exists.
        """
        self._update(
            document_id,
            "UPDATE documents SET extracted_text = %s, updated_at = NOW() WHERE id = %s",
            (extracted_text, document_id),
        )

    def mark_processed(self, document_id: str) -> None:
        """Flag a document as done processing without storing any content.

        Used on failure so polling clients stop waiting.
        """
        self._update(
            document_id,
            "UPDATE documents SET ocr_processed = TRUE, updated_at = NOW() WHERE id = %s",
            (document_id,),
        )

    def update_category(self, document_id: str, category_id: int) -> None:
        self._update(
            document_id,
            "UPDATE documents SET category_id = %s, updated_at = NOW() WHERE id = %s",
            (category_id, document_id),
        )

    def list_terms(self, document_id: str) -> list[str]:
        """Canonical terms already generated for this document."""
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "SELECT term_english FROM custom_flashcards WHERE document_id = %s",
                    (document_id,),
                )
                rows = cur.fetchall()
        return [row[0] for row in rows]

    def count_flashcards(self, document_id: str) -> int:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "SELECT COUNT(*) FROM custom_flashcards WHERE document_id = %s",
                    (document_id,),
                )
                row = cur.fetchone()
        return int(row[0]) if row else 0

    def generation_counts(self, document_id: str) -> dict[str, int]:
        """Flashcard, question, quiz and translation counts in one round trip."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT
                        (SELECT COUNT(*) FROM custom_flashcards
                         WHERE document_id = %(id)s) AS flashcards,
                        (SELECT COUNT(*) FROM custom_questions q
                         JOIN custom_quizzes z ON z.id = q.quiz_id
                         WHERE z.document_id = %(id)s) AS questions,
                        (SELECT COUNT(*) FROM custom_quizzes
                         WHERE document_id = %(id)s) AS quizzes,
                        (SELECT COUNT(*) FROM document_translations
                         WHERE document_id = %(id)s) AS translations
                    """,
                    {"id": document_id},
                )
                row = cur.fetchone()
        assert row is not None
        return {key: int(value) for key, value in row.items()}

    def find_translation(self, document_id: str, language: Language) -> tuple[str, str] | None:
        """Return (text in language, canonical text) from the durable translation row."""
        query = sql.SQL(
            "SELECT {text}, {canonical} FROM document_translations WHERE document_id = %s"
        ).format(
            text=sql.Identifier(DOCUMENT_TEXT_COLUMNS[language]),
            canonical=sql.Identifier(DOCUMENT_TEXT_COLUMNS[CANONICAL_LANGUAGE]),
        )
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(query, (document_id,))
                row = cur.fetchone()
        if row is None:
            return None
        return row[0], row[1]

    @staticmethod
    def _update(document_id: str, query: str, params: tuple[Any, ...]) -> None:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(query, params)
                if cur.rowcount == 0:
                    raise DocumentNotFoundError(f"Document {document_id} not found")
            conn.commit()


def _to_document(row: dict[str, Any]) -> Document:
    return Document(
        id=str(row["id"]),
        user_id=str(row["user_id"]),
        filename=row["filename"],
        file_key=row["file_key"],
        mime_type=row["mime_type"],
        file_size=row["file_size"],
        storage_disk=row["storage_disk"],
        extracted_text=row["extracted_text"],
        category_id=row["category_id"],
        ocr_processed=row["ocr_processed"],
    )
