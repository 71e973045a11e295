"""
Domain exceptions raised by the todo operations.

The HTTP layer turns every TodoAppError into a JSON body of the form
``{"error": <message>}`` with the exception's status code.
"""
from __future__ import annotations

from typing import Optional


class TodoAppError(Exception):
    """Base exception for todo operation failures."""

    message: str = "Internal server error"
    status_code: int = 500

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.message
        super().__init__(self.message)


class InvalidContentError(TodoAppError):
    """Raised when a todo's content is missing, not a string, or blank."""

    message = "Content is required and must be a string"
    status_code = 400


class TodoNotFoundError(TodoAppError):
    """Raised when deleting an id that is not in the user's collection."""

    message = "Todo not found"
    status_code = 404


class InternalError(TodoAppError):
    """Unexpected failure inside a guarded operation."""


class UnauthorizedError(TodoAppError):
    """Raised when the bearer token is missing, invalid, or cannot be verified."""

    message = "Invalid token"
    status_code = 401
