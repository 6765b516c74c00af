from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "docstudy"
    db_username: str = "docstudy"
    db_password: str = "secret"
    db_pool_max_size: int = 10

    max_job_attempts: int = 3
    job_poll_interval_seconds: int = 5
    job_retry_backoff_seconds: int = 2
    job_lock_timeout_seconds: int = 900
    worker_concurrency: int = 2

    files_root: str = "/app/files"
    max_upload_bytes: int = 20 * 1024 * 1024

    redis_url: str = "redis://localhost:6379/0"
    redis_socket_timeout_seconds: float = 2.0
    cache_enabled: bool = True

    extraction_engine: str = "pdfplumber"
    document_ai_endpoint: str = ""
    document_ai_api_key: str = ""
    document_ai_timeout_seconds: int = 60

    generation_provider: str = "openai"
    generation_openai_api_key: str = ""
    generation_openai_model_name: str = "gpt-4o-mini"
    generation_openai_timeout_seconds: int = 60
    generation_openai_temperature: float = 0.2
    generation_openai_compatible_base_url: str = ""
    generation_openai_compatible_api_key: str = ""
    generation_openai_compatible_model_name: str = ""
    generation_openai_compatible_timeout_seconds: int = 60

    batch_size: int = 10
    candidate_count: int = 15
    min_usable_terms: int = 1
    extraction_backfill_attempts: int = 3
    allow_short_batch: bool = False
    extraction_char_budget: int = 6000
    categorization_char_budget: int = 3000
    document_translation_char_budget: int = 8000
    exclusion_prompt_limit: int = 200
    points_per_question: int = 10

    quick_cache_ttl_seconds: int = 300
    ocr_cache_ttl_seconds: int = 30 * 24 * 3600
    category_cache_ttl_seconds: int = 30 * 24 * 3600
    translation_cache_ttl_seconds: int = 24 * 3600
    existing_terms_cache_ttl_seconds: int = 60

    finalize_poll_attempts: int = 60
    finalize_poll_delay_seconds: float = 2.0
