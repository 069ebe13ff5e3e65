from __future__ import annotations

from typing import Optional

from fastapi import status


class TaskApiError(Exception):
    """
    Base class for errors raised by the authentication and task core.

    Each subclass carries the HTTP status it maps to and a default message.
    The message is safe to return to clients as-is.
    """

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Request failed"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(TaskApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation failed"


class DuplicateEmailError(TaskApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "User already exists with this email"


class InvalidCredentialsError(TaskApiError):
    # Same message whether the email is unknown or the password is wrong.
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid email or password"


class MissingTokenError(TaskApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authorized, no token provided"


class InvalidTokenError(TaskApiError):
    # Covers bad signature, expiry, unparseable payload and deleted users alike.
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authorized, invalid token"


class InvalidStatusError(TaskApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid status. Must be: pending, in-progress, or completed"


class NotFoundError(TaskApiError):
    # Covers both "no such task" and "task owned by someone else".
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Task not found"
