"""
API error types
===============
Every failure surfaced to a caller carries a stable kind (the class name),
an HTTP code and an optional field-level ``details`` mapping.
"""


class ApiError(Exception):
    """Base class for errors that are reported to the API caller"""

    code = 500
    default_message = "Internal server error"

    def __init__(self, message=None, details=None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    @property
    def kind(self):
        return type(self).__name__


class ValidationError(ApiError):
    """Malformed, missing or out-of-enumeration input"""

    code = 400
    default_message = "Validation failed"


class AuthenticationError(ApiError):
    code = 401
    default_message = "Authentication required"


class ForbiddenError(ApiError):
    """Actor lacks ownership or role for the requested operation"""

    code = 403
    default_message = "Not authorized"


class NotFoundError(ApiError):
    code = 404
    default_message = "Resource not found"


class StoreError(ApiError):
    """Persistence failure. The message stays opaque to the caller."""

    code = 500
    default_message = "Storage operation failed"


__all__ = [
    "ApiError",
    "ValidationError",
    "AuthenticationError",
    "ForbiddenError",
    "NotFoundError",
    "StoreError",
]
