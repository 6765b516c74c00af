import pytest
from pydantic import ValidationError

from docstudy.config.settings import Settings


class TestSettingsDefaults:
    def test_default_app_env(self) -> None:
        s = Settings()
        assert s.app_env == "dev"

    def test_default_db_port(self) -> None:
        s = Settings()
        assert s.db_port == 5432

    def test_default_max_job_attempts(self) -> None:
        s = Settings()
        assert s.max_job_attempts == 3
        assert s.job_lock_timeout_seconds == 900

    def test_default_batch_policy(self) -> None:
        s = Settings()
        assert s.batch_size == 10
        assert s.candidate_count == 15
        assert s.min_usable_terms == 1
        assert s.extraction_backfill_attempts == 3
        assert s.allow_short_batch is False

    def test_default_cache_ttls(self) -> None:
        s = Settings()
        assert s.quick_cache_ttl_seconds == 300
        assert s.ocr_cache_ttl_seconds == 30 * 24 * 3600
        assert s.translation_cache_ttl_seconds == 24 * 3600
        assert s.existing_terms_cache_ttl_seconds == 60

    def test_default_extraction_engine(self) -> None:
        s = Settings()
        assert s.extraction_engine == "pdfplumber"

    def test_default_generation_provider(self) -> None:
        s = Settings()
        assert s.generation_provider == "openai"

    def test_default_finalize_polling(self) -> None:
        s = Settings()
        assert s.finalize_poll_attempts == 60
        assert s.finalize_poll_delay_seconds == 2.0


class TestSettingsFromEnv:
    def test_loads_app_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("APP_ENV", "production")
        s = Settings()
        assert s.app_env == "production"

    def test_loads_db_port(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DB_PORT", "5433")
        s = Settings()
        assert s.db_port == 5433

    def test_loads_redis_url(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("REDIS_URL", "redis://cache:6379/2")
        s = Settings()
        assert s.redis_url == "redis://cache:6379/2"

    def test_loads_cache_enabled_flag(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CACHE_ENABLED", "false")
        s = Settings()
        assert s.cache_enabled is False

    def test_loads_worker_concurrency(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WORKER_CONCURRENCY", "4")
        s = Settings()
        assert s.worker_concurrency == 4

    def test_invalid_int_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BATCH_SIZE", "ten")
        with pytest.raises(ValidationError):
            Settings()
