class TextExtractionError(Exception):
    """Raised when an extraction adapter cannot read a document."""
