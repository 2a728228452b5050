from typing import Any

from fastapi import HTTPException, status


class PortalError(HTTPException):
    """HTTPException carrying an optional data payload for the response envelope."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, data: Any = None):
        super().__init__(status_code=type(self).status_code, detail=message or self.default_message)
        self.data = data

    @property
    def message(self) -> str:
        return self.detail


class ValidationError(PortalError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class AuthenticationError(PortalError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required"


class AuthorizationError(PortalError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied"


class NotFoundError(PortalError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class ConflictError(PortalError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Resource already exists"


class PreconditionError(PortalError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Precondition failed"


class RateLimitError(PortalError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "Too many requests. Please try again later."


class StorageError(PortalError):
    default_message = "Failed to save file. Please try again."


class PersistenceError(PortalError):
    default_message = "Internal server error"


class ExternalServiceError(PortalError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Upstream service unavailable"
