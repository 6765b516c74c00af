import threading

from docstudy.cache.cache import build_cache
from docstudy.config.settings import Settings
from docstudy.database.connection import close_pool, init_pool
from docstudy.database.repositories.document_repository import DocumentRepository
from docstudy.database.repositories.job_repository import JobRepository
from docstudy.database.repositories.notification_repository import NotificationRepository
from docstudy.logging.logger import Log
from docstudy.notifications.database_notifier import DatabaseNotifier
from docstudy.processor.processor import build_processor
from docstudy.worker.job_runner import JobRunner
from docstudy.worker.worker import Worker


def main() -> None:
    """Entry point: initialize pool -> build dependencies -> start worker threads."""
    settings = Settings()
    Log.configure(settings.log_level)
    init_pool(settings)

    stop_event = threading.Event()
    try:
        cache = build_cache(settings)
        notifier = DatabaseNotifier(NotificationRepository())
        processor = build_processor(settings, cache=cache, notifier=notifier)
        job_repo = JobRepository(
            settings.max_job_attempts,
            settings.job_retry_backoff_seconds,
            settings.job_lock_timeout_seconds,
        )
        job_runner = JobRunner(processor, job_repo, DocumentRepository(), settings, notifier)

        threads = [
            threading.Thread(
                target=Worker(job_repo, job_runner, settings, stop_event).run,
                name=f"worker-{index}",
                daemon=True,
            )
            for index in range(max(1, settings.worker_concurrency))
        ]
        for thread in threads:
            thread.start()
        Log.info(f"Started {len(threads)} workers")

        try:
            while any(thread.is_alive() for thread in threads):
                for thread in threads:
                    thread.join(timeout=1.0)
        except KeyboardInterrupt:
            Log.info("Shutting down workers")
            stop_event.set()
            for thread in threads:
                thread.join()
    finally:
        close_pool()


if __name__ == "__main__":
    main()
