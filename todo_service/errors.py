"""Service errors translated into JSON responses by the API layer."""
from __future__ import annotations

from fastapi import status


class TodoServiceError(Exception):
    """Base class for failures that map onto a client-facing status code."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UnauthorizedError(TodoServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED


class MissingCredentialError(UnauthorizedError):
    """Raised when no usable ``Authorization: Bearer`` header was supplied."""

    def __init__(self, message: str = "Invalid or no authentication header") -> None:
        super().__init__(message)


class ForbiddenError(TodoServiceError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(TodoServiceError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(TodoServiceError):
    status_code = status.HTTP_400_BAD_REQUEST


__all__ = [
    "ConflictError",
    "ForbiddenError",
    "MissingCredentialError",
    "NotFoundError",
    "TodoServiceError",
    "UnauthorizedError",
]
