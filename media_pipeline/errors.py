"""
Error taxonomy for the upload pipeline.

Every failure that can reach an UploadItem is reduced to a single
``Failure(code, message, retriable)`` value at the point where it is raised,
so callers never have to inspect exception types or response shapes again.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Failure:
    """Normalized description of why a file did not make it to storage."""
    code: str
    message: str
    retriable: bool = False


class PipelineError(Exception):
    """Base class for all client-side pipeline errors."""

    code = "error"
    retriable = False

    def __init__(self, message: str, code: str | None = None, retriable: bool | None = None):
        self.message = message
        if code is not None:
            self.code = code
        if retriable is not None:
            self.retriable = retriable
        super().__init__(message)

    def failure(self) -> Failure:
        return Failure(code=self.code, message=self.message, retriable=self.retriable)


class AdmissionError(PipelineError):
    """File rejected before entering the batch (bad type or oversize)."""

    code = "invalid_type"

    def __init__(self, message: str, filename: str, code: str | None = None):
        self.filename = filename
        super().__init__(message, code=code)


class CompressionError(PipelineError):
    """Re-encoding failed. Always recovered by keeping the original payload."""

    code = "compression_failed"


class ConfigurationError(PipelineError):
    """Destination folder (or another required setting) is missing."""

    code = "configuration"


class TransportError(PipelineError):
    """Network failure, abort or timeout before a response arrived."""

    code = "network"
    retriable = True


class ServerResponseError(PipelineError):
    """Non-2xx status, malformed body, or a body without success/id."""

    code = "server_error"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        code: str | None = None,
        retriable: bool | None = None,
    ):
        self.status_code = status_code
        super().__init__(message, code=code, retriable=retriable)
