"""Error taxonomy shared by the API client, cache, session and services."""


class BazaarError(Exception):
    """Base class for client errors."""


class AuthRequiredError(BazaarError):
    """
    Raised on a 401 from the backend, or when an action needs a session and none exists.

    Callers route this to the login redirect instead of showing an error banner.
    """

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class ValidationFailedError(BazaarError):
    """Raised when local input constraints fail. No network call has been made."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class OperationFailedError(BazaarError):
    """Raised for any non-2xx response other than 401, or a transport failure."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code  # None for transport errors
        super().__init__(message)
