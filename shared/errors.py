"""
Shared error handling for the Users Access Layer.

Every error surfaced over HTTP uses the same envelope: ``{"error": <message>}``.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: str


class AccessLayerException(Exception):
    """Base exception for Access Layer services."""

    status_code: int = 500

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(error=self.message)


class ClientInputError(AccessLayerException):
    """Malformed or invalid request parameters."""

    status_code = 400

    def __init__(self, message: str = "Invalid request", details: Optional[Dict[str, Any]] = None):
        super().__init__("CLIENT_INPUT_ERROR", message, details)


class NotFoundError(AccessLayerException):
    """The target entity does not exist."""

    status_code = 404

    def __init__(self, message: str = "Not found", details: Optional[Dict[str, Any]] = None):
        super().__init__("NOT_FOUND", message, details)


class ConflictError(AccessLayerException):
    """Duplicate insert. Reported as 400 to match the public contract."""

    status_code = 400

    def __init__(self, message: str = "Already exists", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFLICT", message, details)


class UpstreamFailure(AccessLayerException):
    """Record store or ingestion source failed."""

    status_code = 500

    def __init__(self, service: str, message: str = "Upstream failure", details: Optional[Dict[str, Any]] = None):
        self.service = service
        super().__init__("UPSTREAM_FAILURE", message, details)
