import uuid
from pathlib import PurePosixPath

from docstudy.cache.cache import Cache
from docstudy.cache.keys import CacheKeys
from docstudy.database.models import DocumentJob
from docstudy.database.repositories.document_repository import DocumentRepository
from docstudy.database.repositories.job_repository import JobRepository
from docstudy.extraction.base import SUPPORTED_MIME_TYPES
from docstudy.logging.logger import Log
from docstudy.processor.exceptions import InvalidUploadError
from docstudy.processor.file_loader import FileLoader
from docstudy.processor.models import SubmittedDocument, Upload

_EXTENSIONS = {
    "application/pdf": ".pdf",
    "image/jpeg": ".jpg",
    "image/png": ".png",
}


def validate_upload(
    upload: Upload,
    max_upload_bytes: int,
    accepted_mime_types: frozenset[str] = SUPPORTED_MIME_TYPES,
) -> None:
    """Raises InvalidUploadError for a missing, oversized or unreadable file.

    `accepted_mime_types` should be what the configured extraction engine
    can read, so nothing is queued that the worker would fail on.
    """
    if not upload.content:
        raise InvalidUploadError("No file uploaded")
    if upload.mime_type not in accepted_mime_types:
        raise InvalidUploadError(
            f"Unsupported file type '{upload.mime_type}'. "
            f"Allowed: {sorted(accepted_mime_types)}"
        )
    if len(upload.content) > max_upload_bytes:
        raise InvalidUploadError(
            f"File is {len(upload.content)} bytes, limit is {max_upload_bytes}"
        )


def make_file_key(user_id: str, mime_type: str) -> str:
    return str(PurePosixPath(user_id) / f"{uuid.uuid4().hex}{_EXTENSIONS[mime_type]}")


class DocumentIntake:
    """Accepts an upload, stores it, records the document and queues generation."""

    def __init__(
        self,
        doc_repo: DocumentRepository,
        job_repo: JobRepository,
        file_loader: FileLoader,
        cache: Cache,
        max_upload_bytes: int,
        accepted_mime_types: frozenset[str] = SUPPORTED_MIME_TYPES,
    ) -> None:
        self._doc_repo = doc_repo
        self._job_repo = job_repo
        self._file_loader = file_loader
        self._cache = cache
        self._max_upload_bytes = max_upload_bytes
        self._accepted_mime_types = accepted_mime_types

    def submit(self, upload: Upload) -> SubmittedDocument:
        validate_upload(upload, self._max_upload_bytes, self._accepted_mime_types)

        file_key = make_file_key(upload.user_id, upload.mime_type)
        self._file_loader.store(file_key, upload.content)
        document = self._doc_repo.create(
            user_id=upload.user_id,
            filename=upload.filename,
            file_key=file_key,
            mime_type=upload.mime_type,
            file_size=len(upload.content),
            category_id=upload.category_id,
        )

        self._cache.delete(CacheKeys.user_documents(upload.user_id))
        self._cache.delete_pattern(CacheKeys.user_category_documents(upload.user_id, "*"))

        job_id = self._job_repo.enqueue(
            DocumentJob(
                document_id=document.id,
                user_id=upload.user_id,
                file_key=file_key,
                filename=upload.filename,
                category_id=upload.category_id,
            )
        )
        Log.info(f"Queued document {document.id} for user {upload.user_id} (job {job_id})")
        return SubmittedDocument(document=document, job_id=job_id)
