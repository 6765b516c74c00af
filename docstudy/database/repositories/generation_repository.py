from dataclasses import dataclass
from typing import Any

import psycopg
from psycopg import sql

from docstudy.database.columns import (
    DEFINITION_COLUMNS,
    DOCUMENT_TEXT_COLUMNS,
    PROMPT_COLUMNS,
    TERM_COLUMNS,
)
from docstudy.database.connection import get_connection
from docstudy.processor.exceptions import DocumentAlreadyGeneratedError, DocumentNotFoundError
from docstudy.study.languages import Language, LocalizedText
from docstudy.study.models import GenerationPlan

_LANGUAGES: tuple[Language, ...] = tuple(Language)


@dataclass(frozen=True)
class PersistedGeneration:
    quiz_id: str
    term_ids: list[str]
    question_ids: list[str]


class GenerationRepository:
    """Writes one generation run (translation, quiz, terms, questions) as a single transaction."""

    def persist(self, plan: GenerationPlan) -> PersistedGeneration:
        """Persist everything in `plan` atomically.

        The document row is locked first, so two concurrent runs for the same
        document serialize here and the second one sees the first one's terms.
        Terms are inserted before questions and their ids collected by batch
        index, so each question references the term it was generated for.

        Raises:
            ValueError: if the plan's terms and questions are not aligned.
            DocumentNotFoundError: if the document row no longer exists.
            DocumentAlreadyGeneratedError: if the document already has terms;
                nothing is written.
            psycopg.Error: on any database failure; nothing is written.
        """
        if len(plan.translated.terms) != len(plan.translated.questions):
            raise ValueError(
                f"Plan has {len(plan.translated.terms)} terms but "
                f"{len(plan.translated.questions)} questions"
            )

        with get_connection() as conn:
            with conn.transaction():
                self._lock_document(conn, plan.document_id)
                if plan.document_text is not None:
                    self._insert_translation(conn, plan.document_id, plan.user_id, plan.document_text)
                self._finish_document(conn, plan)
                quiz_id = self._insert_quiz(conn, plan)
                term_ids = [
                    self._insert_term(conn, plan, term.term, term.definition)
                    for term in plan.translated.terms
                ]
                question_ids = [
                    self._insert_question(conn, plan, quiz_id, term_ids[index], question.prompt)
                    for index, question in enumerate(plan.translated.questions)
                ]

        return PersistedGeneration(quiz_id=quiz_id, term_ids=term_ids, question_ids=question_ids)

    def _lock_document(self, conn: psycopg.Connection[Any], document_id: str) -> None:
        row = conn.execute(
            "SELECT id FROM documents WHERE id = %s FOR UPDATE", (document_id,)
        ).fetchone()
        if row is None:
            raise DocumentNotFoundError(f"Document {document_id} not found")
        existing = conn.execute(
            "SELECT 1 FROM custom_flashcards WHERE document_id = %s LIMIT 1", (document_id,)
        ).fetchone()
        if existing is not None:
            raise DocumentAlreadyGeneratedError(
                f"Document {document_id} already has generated terms"
            )

    def _insert_translation(
        self,
        conn: psycopg.Connection[Any],
        document_id: str,
        user_id: str,
        text: LocalizedText,
    ) -> None:
        columns = [DOCUMENT_TEXT_COLUMNS[language] for language in _LANGUAGES]
        query = sql.SQL(
            "INSERT INTO document_translations (document_id, user_id, {columns}) "
            "VALUES (%s, %s, {values}) ON CONFLICT (document_id) DO NOTHING"
        ).format(
            columns=sql.SQL(", ").join(map(sql.Identifier, columns)),
            values=sql.SQL(", ").join(sql.Placeholder() * len(columns)),
        )
        conn.execute(query, (document_id, user_id, *(text.get(lang) for lang in _LANGUAGES)))

    def _finish_document(self, conn: psycopg.Connection[Any], plan: GenerationPlan) -> None:
        extracted = plan.document_text.canonical if plan.document_text is not None else None
        cur = conn.execute(
            """
            UPDATE documents
            SET category_id = %s,
                extracted_text = COALESCE(%s, extracted_text),
                ocr_processed = TRUE,
                updated_at = NOW()
            WHERE id = %s
            """,
            (plan.category_id, extracted, plan.document_id),
        )
        if cur.rowcount == 0:
            raise DocumentNotFoundError(f"Document {plan.document_id} not found")

    def _insert_quiz(self, conn: psycopg.Connection[Any], plan: GenerationPlan) -> str:
        row = conn.execute(
            """
            INSERT INTO custom_quizzes
                (document_id, user_id, name, category_id, points_per_question)
            VALUES (%s, %s, %s, %s, %s)
            RETURNING id
            """,
            (
                plan.document_id,
                plan.user_id,
                plan.quiz_name,
                plan.category_id,
                plan.points_per_question,
            ),
        ).fetchone()
        assert row is not None
        return str(row[0])

    def _insert_term(
        self,
        conn: psycopg.Connection[Any],
        plan: GenerationPlan,
        term: LocalizedText,
        definition: LocalizedText,
    ) -> str:
        term_columns = [TERM_COLUMNS[language] for language in _LANGUAGES]
        definition_columns = [DEFINITION_COLUMNS[language] for language in _LANGUAGES]
        columns = ["document_id", "user_id", "category_id", *term_columns, *definition_columns]
        query = sql.SQL(
            "INSERT INTO custom_flashcards ({columns}) VALUES ({values}) RETURNING id"
        ).format(
            columns=sql.SQL(", ").join(map(sql.Identifier, columns)),
            values=sql.SQL(", ").join(sql.Placeholder() * len(columns)),
        )
        params = (
            plan.document_id,
            plan.user_id,
            plan.category_id,
            *(term.get(language) for language in _LANGUAGES),
            *(definition.get(language) for language in _LANGUAGES),
        )
        row = conn.execute(query, params).fetchone()
        assert row is not None
        return str(row[0])

    def _insert_question(
        self,
        conn: psycopg.Connection[Any],
        plan: GenerationPlan,
        quiz_id: str,
        term_id: str,
        prompt: LocalizedText,
    ) -> str:
        prompt_columns = [PROMPT_COLUMNS[language] for language in _LANGUAGES]
        columns = [
            "quiz_id",
            "user_id",
            "category_id",
            "correct_term_id",
            "points_worth",
            *prompt_columns,
        ]
        query = sql.SQL(
            "INSERT INTO custom_questions ({columns}) VALUES ({values}) RETURNING id"
        ).format(
            columns=sql.SQL(", ").join(map(sql.Identifier, columns)),
            values=sql.SQL(", ").join(sql.Placeholder() * len(columns)),
        )
        params = (
            quiz_id,
            plan.user_id,
            plan.category_id,
            term_id,
            plan.points_per_question,
            *(prompt.get(language) for language in _LANGUAGES),
        )
        row = conn.execute(query, params).fetchone()
        assert row is not None
        return str(row[0])
