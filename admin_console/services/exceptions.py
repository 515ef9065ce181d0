class ServiceError(Exception):
    """Base exception for service layer failures."""

    def __init__(self, message: str, *, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class DownstreamServiceError(ServiceError):
    """Raised when the admin API returns an error response or cannot be reached."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        *,
        server_message: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message, cause=cause)
        self.status_code = status_code
        self.server_message = server_message


class UnexpectedResponseError(ServiceError):
    """Raised when a successful response does not carry the expected payload."""

    def __init__(
        self,
        message: str,
        *,
        server_message: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message, cause=cause)
        self.server_message = server_message


class InvoiceValidationError(ServiceError):
    """Raised when an invoice draft is not ready to be submitted."""
