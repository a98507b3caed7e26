"""
Error taxonomy shared by services and routes.

Services raise these; ``exception_handling`` maps them to HTTP responses.
"""

from typing import Dict, Optional

from fastapi import status


class LibraryError(Exception):
    """Base error with an HTTP status and a user-facing message"""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, headers: Optional[Dict[str, str]] = None):
        self.message = message or self.default_message
        self.headers = headers
        super().__init__(self.message)


class NotFoundError(LibraryError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class ValidationError(LibraryError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class ConflictError(LibraryError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource already exists"


class UnauthenticatedError(LibraryError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class ForbiddenError(LibraryError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Insufficient permissions"


class TransactionFailure(LibraryError):
    """Storage failure inside a transaction; always rolled back"""

    default_message = "Could not complete the operation"


class BookNotFoundError(NotFoundError):
    default_message = "Book not found"


class FileMissingError(NotFoundError):
    """Metadata points at a file that is not in storage"""

    default_message = "File not found"
