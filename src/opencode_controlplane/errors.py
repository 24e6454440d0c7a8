"""Error handling for the control plane.

Error Response Format:
{
    "error": "Upstream server unavailable",
    "code": "UPSTREAM_UNAVAILABLE"
}
"""

from enum import Enum

from pydantic import BaseModel


class ErrorCode(str, Enum):
    """Error codes for the control-plane API."""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    WORKER_ERROR = "WORKER_ERROR"
    UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"


class ErrorResponse(BaseModel):
    """Error response format."""

    error: str
    code: str


class ControlPlaneError(Exception):
    """Base exception for the control plane."""

    def __init__(self, code: ErrorCode, message: str, status_code: int) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(error=self.message, code=self.code.value)


class WorkerError(ControlPlaneError):
    """500 Internal Server Error - Worker process could not be spawned."""

    def __init__(self, message: str = "Failed to start worker") -> None:
        super().__init__(ErrorCode.WORKER_ERROR, message, 500)


class UpstreamUnavailableError(ControlPlaneError):
    """502 Bad Gateway - Worker is not reachable."""

    def __init__(self, message: str = "Upstream server unavailable") -> None:
        super().__init__(ErrorCode.UPSTREAM_UNAVAILABLE, message, 502)
