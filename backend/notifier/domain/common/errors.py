"""Domain error types, mapped to HTTP responses in main."""
from typing import Any, Optional


class DomainError(Exception):
    """Base domain error."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidRecordError(DomainError):
    """Inbound event record is missing fields or has the wrong shape."""

    def __init__(self, details: Optional[list[dict[str, Any]]] = None):
        self.details = details or []
        super().__init__("Invalid notification record")


class AuthorizationError(DomainError):
    """Caller did not present the shared webhook secret."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)
