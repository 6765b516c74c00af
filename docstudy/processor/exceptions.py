class ProcessorError(Exception):
    """Base exception for all processor-related errors."""


class DocumentNotFoundError(ProcessorError):
    """Raised when a document cannot be found in the database."""


class UnsupportedStorageDiskError(ProcessorError):
    """Raised when a document uses an unsupported storage disk type."""


class InvalidUploadError(ProcessorError):
    """Raised when an upload is rejected before any job is queued."""


class PipelineError(ProcessorError):
    """A pipeline run that did not produce study material.

    `retryable` tells the job runner whether another attempt may succeed.
    """

    retryable: bool = True


class ExtractionFailedError(PipelineError):
    """No text could be extracted from the document. Retryable."""

    retryable = True


class GenerationFailedError(PipelineError):
    """Term generation, translation or persistence failed. Terminal."""

    retryable = False


class DocumentAlreadyGeneratedError(ProcessorError):
    """Raised when another run already persisted terms for the document."""
