class GenerationError(Exception):
    """Raised when a generative-text call fails."""


class GenerationNetworkError(GenerationError):
    """Raised when the AI provider call fails due to network/infrastructure issues."""


class GenerationParseError(GenerationError):
    """Raised when the AI response cannot be parsed as a JSON object."""


class GenerationValidationError(GenerationError):
    """Raised when a parsed AI response does not have the expected shape."""
