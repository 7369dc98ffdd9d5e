"""Domain errors raised by the services and rendered by the API layer.

Every error carries the HTTP status it maps to and a user-facing ``message``.
"""
from typing import Dict, List, Optional


class AppError(Exception):
    status_code = 500
    message = "Server error"

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"message": self.message}


class ValidationError(AppError):
    status_code = 400
    message = "Validation error"

    def __init__(self, errors: Optional[Dict[str, List[str]]] = None, message: Optional[str] = None):
        super().__init__(message)
        self.errors = errors or {}

    def to_dict(self) -> dict:
        body = super().to_dict()
        if self.errors:
            body["errors"] = self.errors
        return body


class ConflictError(AppError):
    status_code = 409
    message = "Email already in use"


class NotFoundError(AppError):
    """Missing resource, or one the caller is not allowed to see."""
    status_code = 404
    message = "Not found"


class UnauthorizedError(AppError):
    status_code = 401
    message = "No token provided"


class InvalidTokenError(AppError):
    status_code = 401
    message = "Invalid or expired token"


class InvalidCredentialsError(AppError):
    status_code = 401
    message = "Invalid credentials"


class ForbiddenError(AppError):
    status_code = 403
    message = "Forbidden"


class UnverifiedError(ForbiddenError):
    message = "Please verify your email before logging in"

    def __init__(self, email: str):
        super().__init__()
        self.email = email

    def to_dict(self) -> dict:
        return {"message": self.message, "email": self.email}


class AlreadyVerifiedError(AppError):
    status_code = 400
    message = "Email is already verified"


class InvalidCodeError(AppError):
    status_code = 400
    message = "Invalid verification code"


class ExpiredCodeError(AppError):
    status_code = 400
    message = "Verification code has expired. Request a new one."


class InvalidOrExpiredTokenError(AppError):
    status_code = 400
    message = "Invalid or expired reset link"
