import os
from collections.abc import Generator
from pathlib import Path
from typing import Any

import psycopg
import pytest

from docstudy.config.settings import Settings
from docstudy.database.connection import close_pool, get_connection, init_pool
from docstudy.processor.models import Document
from docstudy.database.repositories.document_repository import DocumentRepository

SCHEMA_PATH = Path(__file__).resolve().parents[2] / "docstudy" / "database" / "schema.sql"


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "docstudy_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        init_pool(test_settings)
    except Exception as e:
        pytest.skip(
            f"PostgreSQL test DB not available: {e}. "
            "Set DB_* env to point at a disposable database"
        )
    try:
        with get_connection() as conn:
            conn.execute(SCHEMA_PATH.read_text())
            conn.commit()
        yield
    finally:
        close_pool()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        yield conn


@pytest.fixture
def seed_user(db_conn: psycopg.Connection[Any]) -> Generator[str, None, None]:
    """A fresh user. Deleting it cascades to every row created for it."""
    with db_conn.cursor() as cur:
        cur.execute("INSERT INTO users (language) VALUES ('french') RETURNING id")
        row = cur.fetchone()
    db_conn.commit()
    assert row is not None
    user_id = str(row[0])
    try:
        yield user_id
    finally:
        with db_conn.cursor() as cur:
            cur.execute("DELETE FROM document_jobs WHERE user_id = %s", (user_id,))
            cur.execute("DELETE FROM notifications WHERE user_id = %s", (user_id,))
            cur.execute("DELETE FROM users WHERE id = %s", (user_id,))
        db_conn.commit()


@pytest.fixture
def seed_document(seed_user: str) -> Document:
    return DocumentRepository().create(
        user_id=seed_user,
        filename="manual.pdf",
        file_key=f"{seed_user}/manual.pdf",
        mime_type="application/pdf",
        file_size=1024,
    )
