class ServiceError(Exception):
    """Base exception for service layer failures."""

    def __init__(self, message: str, *, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class DownstreamServiceError(ServiceError):
    """Raised when an external service returns an error response."""

    def __init__(self, message: str, status_code: int | None = None, *, cause: Exception | None = None):
        super().__init__(message, cause=cause)
        self.status_code = status_code


class NotFoundError(ServiceError):
    """Raised when a requested record does not exist."""


class ConflictError(ServiceError):
    """Raised when an operation would leave records in an inconsistent state."""


class ValidationFailedError(ServiceError):
    """Raised when a request is well-formed but cannot be acted upon."""
