"""
Base exception classes for backoff runner operations.

Each exception carries a `kind` tag used for error-kind matching and a
`retryable` flag describing whether the failure may be attempted again.
"""

NON_RETRYABLE = "non_retryable"


class BackoffError(Exception):
    """Base exception for all backoff runner errors."""

    kind: str | None = None

    def __init__(
        self,
        message: str,
        *,
        kind: str | None = None,
        retryable: bool = True,
    ):
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind
        self.retryable = retryable and self.kind != NON_RETRYABLE


class NonRetryableError(BackoffError):
    """
    Raised from inside a unit of work to stop retrying immediately.

    Matches the default non-retryable error kind, so the runner reports it
    as the terminal outcome regardless of the remaining attempt budget.
    """

    kind = NON_RETRYABLE

    def __init__(self, message: str = "Operation must not be retried"):
        super().__init__(message, retryable=False)


class ConfigurationError(BackoffError, ValueError):
    """Raised when a retry configuration is malformed. Not retryable."""

    def __init__(self, message: str = "Invalid retry configuration"):
        super().__init__(message, retryable=False)


class HTTPStatusError(BackoffError):
    """Raised when an HTTP response carries an error status."""

    def __init__(
        self,
        message: str = "HTTP error",
        *,
        status_code: int,
        response=None,
        retryable: bool = True,
    ):
        super().__init__(
            message,
            kind=None if retryable else NON_RETRYABLE,
            retryable=retryable,
        )
        self.status_code = status_code
        self.response = response

    def __str__(self) -> str:
        return f"{self.message} (status: {self.status_code})"
