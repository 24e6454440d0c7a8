"""Error handling module for the panel.

Every error raised by the service layer derives from PanelError and is
turned into a JSON body by the FastAPI exception handler in main.py.

Error Response Format:
{
    "error": "El proyecto \"demo\" ya existe",
    "code": "CONFLICT"
}

Usage:
    from opencode_panel.errors import ConflictError

    raise ConflictError(f'El proyecto "{name}" ya existe')
"""

from enum import Enum

from pydantic import BaseModel


class ErrorCode(str, Enum):
    """Error codes for the panel API."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    RESOURCE_EXHAUSTED = "RESOURCE_EXHAUSTED"
    CONFIG_ERROR = "CONFIG_ERROR"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"


class ErrorResponse(BaseModel):
    """Error response format."""

    error: str
    code: str


class PanelError(Exception):
    """Base exception for the panel.

    Attributes:
        code: The error code from ErrorCode enum.
        message: Human-readable error message.
        status_code: HTTP status code to return.
    """

    def __init__(self, code: ErrorCode, message: str, status_code: int) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert exception to ErrorResponse model."""
        return ErrorResponse(error=self.message, code=self.code.value)


class ValidationError(PanelError):
    """400 Bad Request - Missing or invalid input."""

    def __init__(self, message: str = "Datos inválidos") -> None:
        super().__init__(ErrorCode.VALIDATION_ERROR, message, 400)


class NotFoundError(PanelError):
    """404 Not Found - Unknown provider or project."""

    def __init__(self, message: str = "No encontrado") -> None:
        super().__init__(ErrorCode.NOT_FOUND, message, 404)


class ConflictError(PanelError):
    """409 Conflict - Project name already taken."""

    def __init__(self, message: str = "El proyecto ya existe") -> None:
        super().__init__(ErrorCode.CONFLICT, message, 409)


class ResourceExhaustedError(PanelError):
    """503 Service Unavailable - No free host port."""

    def __init__(self, message: str = "No hay puertos disponibles") -> None:
        super().__init__(ErrorCode.RESOURCE_EXHAUSTED, message, 503)


class ConfigError(PanelError):
    """500 Internal Server Error - Required server credential missing."""

    def __init__(self, message: str = "Configuración incompleta") -> None:
        super().__init__(ErrorCode.CONFIG_ERROR, message, 500)


class ExternalServiceError(PanelError):
    """500 Internal Server Error - Docker, git or GitHub call failed."""

    def __init__(self, message: str = "Error en servicio externo") -> None:
        super().__init__(ErrorCode.EXTERNAL_SERVICE_ERROR, message, 500)
