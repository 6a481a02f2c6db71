"""Exception classes for the storefront session layer."""

import httpx


class ConfigurationError(ValueError):
    """Raised when configuration validation fails."""


class StorefrontClientError(Exception):
    """Base exception for storefront API call failures."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ApiConnectionError(StorefrontClientError):
    """Raised when the storefront API cannot be reached."""

    def __init__(self, original_error: str) -> None:
        self.original_error = original_error
        super().__init__(f"Failed to connect to storefront API: {original_error}")


class ApiTimeoutError(StorefrontClientError):
    """Raised when a storefront API request times out."""

    def __init__(self, original_error: str) -> None:
        self.original_error = original_error
        super().__init__(f"Storefront API request timed out: {original_error}")


class ApiHTTPError(StorefrontClientError):
    """Raised when the storefront API returns a non-success status."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        response: httpx.Response | None = None,
    ) -> None:
        self.detail = detail
        self.response = response
        super().__init__(f"Storefront API error ({status_code}): {detail}", status_code=status_code)


class SessionExpiredError(StorefrontClientError):
    """Raised when the session could not be refreshed.

    The refresh endpoint rejected the refresh-token cookie (or could not be
    reached), so the user has to log in again.
    """

    def __init__(self, status_code: int | None = None) -> None:
        super().__init__("Session expired. Please log in again.", status_code=status_code)


class ApiResponseError(StorefrontClientError):
    """Raised when a successful response carries a body that cannot be decoded."""

    def __init__(self, path: str, detail: str, status_code: int | None = None) -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"Unexpected response from {path}: {detail}", status_code=status_code)
