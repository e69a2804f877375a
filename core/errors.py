"""
Error taxonomy shared by the API, the job store and the worker.

Every error carries the HTTP status it maps to and the message that is safe to
show a client. Upstream failures (media resolution, transcription,
summarization) are recorded on the job as ``error`` and never retried.
"""


class ServiceError(Exception):
    """Base class for every error the service raises on purpose."""

    status_code = 500
    public_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.public_message
        super().__init__(self.message)


class InvalidInput(ServiceError):
    status_code = 400
    public_message = "URL is required"


class NotFound(ServiceError):
    status_code = 404
    public_message = "Job not found"


class ConflictError(ServiceError):
    status_code = 409
    public_message = "Job already exists"


class InvalidTransition(ServiceError):
    """Raised by the store when a status change would leave a terminal state."""

    status_code = 409
    public_message = "Invalid status transition"


class InternalError(ServiceError):
    """Store or queue failure. Details are logged, never sent to the client."""


class UpstreamFailure(ServiceError):
    """A collaborator (resolver, transcriber, summarizer) failed."""

    status_code = 502
    public_message = "Upstream service failed"


class ResolutionError(UpstreamFailure):
    public_message = "No playable media found"


class TranscriptionError(UpstreamFailure):
    public_message = "No transcript available"


class SummarizationError(UpstreamFailure):
    public_message = "Summary generation failed"
