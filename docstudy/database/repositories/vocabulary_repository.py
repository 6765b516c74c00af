from docstudy.database.connection import get_connection


class VocabularyRepository:
    """Read access to the terms a user is already studying."""

    def existing_terms(self, user_id: str) -> list[str]:
        """Platform vocabulary plus every custom term the user owns, canonical language."""
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT term_english FROM flashcards
                    UNION
                    SELECT term_english FROM custom_flashcards WHERE user_id = %s
                    """,
                    (user_id,),
                )
                rows = cur.fetchall()
        return [row[0] for row in rows if row[0]]
