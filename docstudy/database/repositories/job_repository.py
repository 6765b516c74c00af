from typing import Any

import psycopg
from psycopg.rows import dict_row

from docstudy.database.connection import get_connection
from docstudy.database.models import JOB_PENDING, JOB_PROCESSING, DocumentJob, JobRecord, job_key_for
from docstudy.logging.logger import Log

_JOB_COLUMNS = """
    id, job_key, document_id, user_id, file_key, filename, category_id,
    status, attempts, error_message, available_at, locked_at, created_at, updated_at
"""


class JobRepository:
    """Database operations for the document_jobs table."""

    def __init__(
        self,
        max_attempts: int,
        retry_backoff_seconds: int = 2,
        lock_timeout_seconds: int = 900,
    ) -> None:
        self._max_attempts = max_attempts
        self._retry_backoff_seconds = retry_backoff_seconds
        self._lock_timeout_seconds = lock_timeout_seconds

    def enqueue(self, job: DocumentJob) -> int | None:
        """Queue a generation job keyed by document id.

        A job that already exists in a terminal state, or whose worker died
        mid-run, is reset to pending. A job that is pending or actively
        processing is left alone and None is returned.
        """
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO document_jobs
                        (job_key, document_id, user_id, file_key, filename, category_id)
                    VALUES (%s, %s, %s, %s, %s, %s)
                    ON CONFLICT (job_key) DO UPDATE
                    SET status = 'pending',
                        attempts = 0,
                        error_message = NULL,
                        locked_at = NULL,
                        available_at = NOW(),
                        file_key = EXCLUDED.file_key,
                        filename = EXCLUDED.filename,
                        category_id = EXCLUDED.category_id,
                        updated_at = NOW()
                    WHERE document_jobs.status IN ('done', 'failed')
                       OR (
                         document_jobs.status = 'processing'
                         AND document_jobs.locked_at
                             < NOW() - make_interval(secs => %s::double precision)
                       )
                    RETURNING id
                    """,
                    (
                        job.job_key,
                        job.document_id,
                        job.user_id,
                        job.file_key,
                        job.filename,
                        job.category_id,
                        self._lock_timeout_seconds,
                    ),
                )
                row = cur.fetchone()
            conn.commit()
        return None if row is None else int(row[0])

    def claim_next_job(self, conn: psycopg.Connection[Any]) -> JobRecord | None:
        """Claim the next due job using SELECT FOR UPDATE SKIP LOCKED.

        A job left in processing longer than the lock timeout belongs to a
        worker that died mid-run. It is claimed again, and the lost run counts
        as one attempt.
        """
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                f"""
                SELECT {_JOB_COLUMNS}
                FROM document_jobs
                WHERE attempts < %s
                  AND (
                    (status = 'pending' AND available_at <= NOW())
                    OR (
                      status = 'processing'
                      AND locked_at < NOW() - make_interval(secs => %s::double precision)
                    )
                  )
                ORDER BY available_at, id
                LIMIT 1
                FOR UPDATE SKIP LOCKED
                """,
                (self._max_attempts, self._lock_timeout_seconds),
            )
            row = cur.fetchone()

        if row is None:
            conn.commit()
            return None

        claimed = conn.execute(
            """
            UPDATE document_jobs
            SET status = 'processing',
                attempts = attempts + CASE WHEN status = 'processing' THEN 1 ELSE 0 END,
                locked_at = NOW(),
                updated_at = NOW()
            WHERE id = %s
            RETURNING attempts
            """,
            (row["id"],),
        ).fetchone()
        conn.commit()

        record = _to_record(row)
        if row["status"] == JOB_PROCESSING:
            Log.warning(f"Reclaiming job {row['id']} abandoned by a lost worker")
        record.status = JOB_PROCESSING
        if claimed is not None:
            record.attempts = claimed[0]
        return record

    def mark_done(self, job_id: int) -> None:
        """Mark a job as done."""
        with get_connection() as conn:
            conn.execute(
                """
                UPDATE document_jobs
                SET status = 'done', locked_at = NULL, updated_at = NOW()
                WHERE id = %s
                """,
                (job_id,),
            )
            conn.commit()

    def mark_failed(self, job_id: int, error: str) -> None:
        """Mark a job as permanently failed."""
        with get_connection() as conn:
            conn.execute(
                """
                UPDATE document_jobs
                SET status = 'failed', error_message = %s, locked_at = NULL,
                    updated_at = NOW()
                WHERE id = %s
                """,
                (error, job_id),
            )
            conn.commit()

    def increment_attempts(self, job_id: int, error: str | None = None) -> None:
        """Increment attempt count and return job to pending after an exponential backoff."""
        with get_connection() as conn:
            conn.execute(
                """
                UPDATE document_jobs
                SET attempts = attempts + 1,
                    status = 'pending',
                    error_message = %s,
                    locked_at = NULL,
                    available_at = NOW() + make_interval(
                        secs => %s::double precision * power(2, attempts)
                    ),
                    updated_at = NOW()
                WHERE id = %s
                """,
                (error, self._retry_backoff_seconds, job_id),
            )
            conn.commit()

    def find_by_id(self, job_id: int) -> JobRecord | None:
        """Find a job by ID."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_JOB_COLUMNS} FROM document_jobs WHERE id = %s",
                    (job_id,),
                )
                row = cur.fetchone()
        return None if row is None else _to_record(row)

    def find_by_document(self, document_id: str) -> JobRecord | None:
        """Find the generation job for a document, if one was ever queued."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_JOB_COLUMNS} FROM document_jobs WHERE job_key = %s",
                    (job_key_for(document_id),),
                )
                row = cur.fetchone()
        return None if row is None else _to_record(row)

    def is_pending(self, document_id: str) -> bool:
        job = self.find_by_document(document_id)
        return job is not None and job.status in (JOB_PENDING, JOB_PROCESSING)


def _to_record(row: dict[str, Any]) -> JobRecord:
    return JobRecord(
        id=row["id"],
        job_key=row["job_key"],
        document_id=str(row["document_id"]),
        user_id=str(row["user_id"]),
        status=row["status"],
        attempts=row["attempts"],
        file_key=row["file_key"],
        filename=row["filename"],
        category_id=row["category_id"],
        error_message=row["error_message"],
        available_at=row["available_at"],
        locked_at=row["locked_at"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
