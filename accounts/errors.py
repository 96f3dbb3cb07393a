"""Errors raised by the account service.

Each error carries a human readable ``message``, a coarse ``code`` that
clients can branch on, and the HTTP ``status_code`` the API answers with.
Storage and transport failures are wrapped before they leave the service so
that driver messages never reach a caller.
"""
from fastapi import status


class AccountError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code = "AccountError"

    def __init__(self, message: str, code: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        if status_code is not None:
            self.status_code = status_code


class ValidationError(AccountError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "MissingFields"


class NotFoundError(AccountError):
    status_code = status.HTTP_404_NOT_FOUND
    default_code = "NotFound"


class ConflictError(AccountError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "DuplicateUser"


class AuthError(AccountError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_code = "BadCredentials"


class PersistenceError(AccountError):
    default_code = "PersistenceError"


class NotificationError(AccountError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_code = "NotificationError"


class DuplicateKeyError(Exception):
    """Raised by the repository when a unique field is already taken."""

    def __init__(self, field: str | None):
        super().__init__(f"duplicate value for {field or 'unique field'}")
        self.field = field
