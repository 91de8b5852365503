"""
Application exception hierarchy.

Services raise these; the handlers registered in ``vms.main`` turn them into
the ``{"success": false, "error": ...}`` envelope.
"""
from fastapi import HTTPException, status


class AppError(HTTPException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(status_code=self.status_code, detail=self.message)


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class Unauthenticated(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class Conflict(AppError):
    # State conflicts are reported as bad requests to clients
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Conflict"


class InternalError(AppError):
    default_message = "Internal server error"
