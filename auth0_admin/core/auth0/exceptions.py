"""Auth0-specific exceptions for error handling."""


class Auth0Error(Exception):
    """Base exception for all Auth0 Management API operations."""
    pass


class Auth0APIError(Auth0Error):
    """HTTP error from Auth0 Management API.

    Attributes:
        status_code: HTTP status code
        message: Error message from response
        endpoint: API endpoint that failed
        error_code: Auth0 ``errorCode`` field when the body carries one
    """

    def __init__(self, status_code: int, message: str, endpoint: str, error_code: str | None = None):
        self.status_code = status_code
        self.message = message
        self.endpoint = endpoint
        self.error_code = error_code
        super().__init__(f"[{status_code}] {endpoint}: {message}")


class TokenUnavailableError(Auth0Error):
    """No Management API access token could be obtained."""
    pass


class UserNotFoundError(Auth0Error):
    """User lookup failed - user id does not exist."""
    pass


class RoleNotFoundError(Auth0Error):
    """Role does not exist in the tenant."""
    pass
