from abc import ABC, abstractmethod


class BaseGenerationClient(ABC):
    """Contract for provider-specific generative-text clients."""

    @abstractmethod
    def create_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
        json_mode: bool,
    ) -> str:
        """Return provider response as plain text."""
