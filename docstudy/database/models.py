from dataclasses import dataclass
from datetime import datetime

JOB_PENDING = "pending"
JOB_PROCESSING = "processing"
JOB_DONE = "done"
JOB_FAILED = "failed"


def job_key_for(document_id: str) -> str:
    """Stable job identity: at most one live generation job per document."""
    return f"generate-{document_id}"


@dataclass(frozen=True)
class DocumentJob:
    """Payload a producer hands to the job queue."""

    document_id: str
    user_id: str
    file_key: str
    filename: str
    category_id: int | None = None

    @property
    def job_key(self) -> str:
        return job_key_for(self.document_id)


@dataclass
class JobRecord:
    """Represents a row from the document_jobs table."""

    id: int
    job_key: str
    document_id: str
    user_id: str
    status: str
    attempts: int
    file_key: str = ""
    filename: str = ""
    category_id: int | None = None
    error_message: str | None = None
    available_at: datetime | None = None
    locked_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
