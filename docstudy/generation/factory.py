from typing import ClassVar

from docstudy.config.settings import Settings
from docstudy.generation.example_client_adapter import ExampleClientAdapter
from docstudy.generation.generative_text import GenerativeText
from docstudy.generation.openai_client_adapter import OpenAIClientAdapter


class GenerativeTextFactory:
    """Creates the configured generative-text service."""

    OPENAI_COMPATIBLE_BASE_URLS: ClassVar[dict[str, str]] = {
        "openrouter": "https://openrouter.ai/api/v1",
        "groq": "https://api.groq.com/openai/v1",
        "together": "https://api.together.xyz/v1",
        "deepseek": "https://api.deepseek.com/v1",
        "ollama": "http://localhost:11434/v1",
    }

    @classmethod
    def create(cls, settings: Settings) -> GenerativeText:
        """Create a configured generative-text service from application settings."""
        provider = settings.generation_provider.lower()
        if provider == "example":
            return GenerativeText(client=ExampleClientAdapter(), model="example", temperature=0.0)

        base_url = cls._resolve_base_url(provider, settings)
        if provider == "openai":
            client = OpenAIClientAdapter(
                api_key=settings.generation_openai_api_key,
                timeout_seconds=settings.generation_openai_timeout_seconds,
                base_url=base_url,
            )
            return GenerativeText(
                client=client,
                model=settings.generation_openai_model_name,
                temperature=settings.generation_openai_temperature,
            )

        client = OpenAIClientAdapter(
            api_key=settings.generation_openai_compatible_api_key,
            timeout_seconds=settings.generation_openai_compatible_timeout_seconds,
            base_url=base_url,
        )
        return GenerativeText(
            client=client,
            model=settings.generation_openai_compatible_model_name,
            temperature=settings.generation_openai_temperature,
        )

    @classmethod
    def _resolve_base_url(cls, provider: str, settings: Settings) -> str | None:
        if provider == "openai":
            return None
        if provider == "openai_compatible":
            url = settings.generation_openai_compatible_base_url.strip()
            if not url:
                raise ValueError(
                    "generation_openai_compatible_base_url is required for "
                    "generation_provider=openai_compatible"
                )
            return url
        default_base_url = cls.OPENAI_COMPATIBLE_BASE_URLS.get(provider)
        if default_base_url is not None:
            return default_base_url
        supported = [
            "example",
            "openai",
            "openai_compatible",
            *sorted(cls.OPENAI_COMPATIBLE_BASE_URLS),
        ]
        raise ValueError(f"Unknown generation provider '{provider}'. Choose from: {supported}")
