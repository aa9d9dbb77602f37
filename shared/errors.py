"""
Shared error handling for the master server.

Errors here describe why a call to a remote dependency did not succeed. The
user-service facade never raises them to its callers; they travel inside
result values so callers can branch on the failure kind.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    code: str
    message: str
    details: Dict[str, Any] = {}


class AccessLayerException(Exception):
    """Base exception for master server dependencies."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            code=self.code,
            message=self.message,
            details=self.details
        )


class ServiceUnavailableError(AccessLayerException):
    """The liveness gate is closed; no network attempt was made."""

    def __init__(self, service: str, message: str = "Service unavailable", details: Optional[Dict[str, Any]] = None):
        super().__init__("SERVICE_UNAVAILABLE", f"{service}: {message}", details)


class CredentialsRejectedError(AccessLayerException):
    """The remote authority returned a well-formed rejection."""

    def __init__(self, message: str = "Invalid credentials", details: Optional[Dict[str, Any]] = None):
        super().__init__("CREDENTIALS_REJECTED", message, details)


class TransportFailureError(AccessLayerException):
    """Connection error, timeout, unexpected status or malformed payload."""

    def __init__(self, service: str, message: str = "Transport failure", details: Optional[Dict[str, Any]] = None):
        super().__init__("TRANSPORT_FAILURE", f"{service}: {message}", details)
