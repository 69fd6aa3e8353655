"""Normalized client errors.

Every transport converts backend and transport failures into one of these
before they reach callers, so screens only ever deal with
``{message, code, details}``.
"""


class ApiError(Exception):
    """Base class for all errors surfaced by an API client."""

    default_code = "UNKNOWN_ERROR"
    default_message = "Unknown error"

    def __init__(
        self,
        message: str | None = None,
        code: str | None = None,
        details: dict[str, object] | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, object]:
        """Return the normalized error shape."""
        result: dict[str, object] = {"message": self.message, "code": self.code}
        if self.details:
            result["details"] = self.details
        return result


class NotAuthenticatedError(ApiError):
    """Raised when an operation needs a session and none is active."""

    default_code = "NOT_AUTHENTICATED"
    default_message = "Not authenticated"


class InvalidCredentialsError(ApiError):
    """Raised for an unknown email or a wrong password alike."""

    default_code = "INVALID_CREDENTIALS"
    default_message = "Invalid email or password"


class DuplicateEmailError(ApiError):
    """Raised when registering an email that already exists."""

    default_code = "DUPLICATE_EMAIL"
    default_message = "Email is already registered"


class ValidationError(ApiError):
    """Raised when request fields are malformed."""

    default_code = "VALIDATION_ERROR"
    default_message = "Invalid request"


class NotFoundError(ApiError):
    """Raised when a requested resource does not exist."""

    default_code = "NOT_FOUND"
    default_message = "Resource not found"


class RequestTimeoutError(ApiError):
    """Raised when a request exceeds the configured timeout."""

    default_code = "TIMEOUT"
    default_message = "Request timeout"


class NetworkError(ApiError):
    """Raised on connection-level failures."""

    default_code = "NETWORK_ERROR"
    default_message = "Network error"


class HttpError(ApiError):
    """Raised when the backend answers with a non-2xx status."""

    def __init__(
        self,
        status: int,
        message: str | None = None,
        code: str | None = None,
        details: dict[str, object] | None = None,
    ) -> None:
        self.status = status
        super().__init__(
            message or f"HTTP Error: {status}",
            code=code or f"HTTP_{status}",
            details=details,
        )

    def to_dict(self) -> dict[str, object]:
        result = super().to_dict()
        result["status"] = self.status
        return result


class DatabaseError(ApiError):
    """Raised when the managed backend rejects a query."""

    default_code = "DATABASE_ERROR"
    default_message = "Database error"


class FeatureNotImplementedError(ApiError):
    """Raised by transports that do not support an operation."""

    default_code = "NOT_IMPLEMENTED"
    default_message = "Not implemented yet"


class UploadError(ApiError):
    """Raised when a direct-to-storage upload is rejected."""

    default_code = "UPLOAD_ERROR"
    default_message = "Failed to upload file"
