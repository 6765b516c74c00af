from docstudy.database.connection import get_connection
from docstudy.study.languages import Language, normalize_language


class UserRepository:
    """Identity lookups the pipeline needs. Users are owned by another service."""

    def get_language(self, user_id: str) -> Language:
        """Preferred study language. Unknown users and values map to the canonical language."""
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT language FROM users WHERE id = %s", (user_id,))
                row = cur.fetchone()
        return normalize_language(row[0] if row else None)
