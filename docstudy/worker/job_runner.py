from docstudy.config.settings import Settings
from docstudy.database.models import JobRecord
from docstudy.database.repositories.document_repository import DocumentRepository
from docstudy.database.repositories.job_repository import JobRepository
from docstudy.logging.logger import Log
from docstudy.notifications.base import BaseNotifier, document_error
from docstudy.processor.exceptions import PipelineError
from docstudy.processor.processor import Processor


class JobRunner:
    """Run one job, catch exceptions, and apply retry logic."""

    def __init__(
        self,
        processor: Processor,
        job_repo: JobRepository,
        doc_repo: DocumentRepository,
        settings: Settings,
        notifier: BaseNotifier,
    ) -> None:
        self._processor = processor
        self._job_repo = job_repo
        self._doc_repo = doc_repo
        self._settings = settings
        self._notifier = notifier

    def run(self, job: JobRecord) -> None:
        """Execute a single job with error handling."""
        Log.info(
            f"Running job {job.id} for document {job.document_id} "
            f"(attempt {job.attempts + 1})"
        )
        if job.attempts >= self._settings.max_job_attempts:
            self._handle_failure(
                job, RuntimeError(f"Worker lost while processing, {job.attempts} attempts used")
            )
            return
        try:
            self._processor.process(
                job.document_id,
                job.user_id,
                category_id=job.category_id,
                job_id=job.id,
            )
            self._job_repo.mark_done(job.id)
            Log.info(f"Job {job.id} completed successfully")
        except Exception as exc:
            self._handle_failure(job, exc)

    def _handle_failure(self, job: JobRecord, exc: Exception) -> None:
        """Terminal errors fail immediately; others retry until max attempts.

        A permanently failed job also flags its document as processed, so
        status readers report it failed instead of pending forever.
        """
        Log.error(f"Job {job.id} failed: {exc}")
        terminal = isinstance(exc, PipelineError) and not exc.retryable
        if terminal or job.attempts + 1 >= self._settings.max_job_attempts:
            self._job_repo.mark_failed(job.id, str(exc))
            Log.error(f"Job {job.id} permanently failed after {job.attempts + 1} attempts")
            self._flag_document(job)
            self._notifier.notify(
                document_error(job.user_id, job.document_id, job.filename, str(exc))
            )
        else:
            self._job_repo.increment_attempts(job.id, str(exc))
            Log.warning(f"Job {job.id} will be retried (attempt {job.attempts + 1})")

    def _flag_document(self, job: JobRecord) -> None:
        try:
            self._doc_repo.mark_processed(job.document_id)
        except Exception as exc:
            Log.warning(f"Could not flag document {job.document_id} as failed: {exc}")
