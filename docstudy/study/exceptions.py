class StudyMaterialError(Exception):
    """Base exception for term, question and category generation."""


class NoUsableTermsError(StudyMaterialError):
    """Raised when deduplication leaves too few terms to build a batch."""
