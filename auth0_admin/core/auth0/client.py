"""Low-level HTTP client for Auth0 Management API.

Handles bearer authentication, URL building, and HTTP operations.
"""
from __future__ import annotations
from typing import Optional, Dict, Any
from urllib.parse import quote

import requests

from .exceptions import Auth0APIError
from .tokens import TokenProvider, StaticTokenProvider

REQUEST_TIMEOUT = 10


def encode_id(value: str) -> str:
    """Percent-encode an identifier for use as a single path segment.

    Auth0 user ids contain ``|`` and resource server identifiers are URLs.
    """
    return quote(value, safe="")


class Auth0Client:
    """HTTP client for Auth0 Management API v2.

    Features:
    - Bearer token read from a shared TokenProvider on every call
    - Centralized error handling
    - Per-request timeout (no retries)

    Usage:
        client = Auth0Client("tenant.eu.auth0.com", token_provider)
        response = client.get("/users", params={"page": 0, "per_page": 20})
    """

    def __init__(self, domain: str, token_provider: TokenProvider):
        """Initialize Auth0 client.

        Args:
            domain: Auth0 tenant domain (e.g., "tenant.eu.auth0.com")
            token_provider: Source of the Management API access token
        """
        self.domain = domain.rstrip("/")
        self.base_url = f"https://{self.domain}/api/v2"
        self.token_provider = token_provider

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = dict(extra or {})
        headers["Authorization"] = f"Bearer {self.token_provider.access_token}"
        return headers

    def get(self, path: str, params: Optional[Dict[str, Any]] = None, **kwargs) -> requests.Response:
        """Execute GET request with bearer authentication.

        Args:
            path: API endpoint path (e.g., "/users")
            params: Query parameters
            **kwargs: Additional arguments for requests.get

        Returns:
            Response object

        Raises:
            Auth0APIError: On HTTP error
        """
        url = f"{self.base_url}{path}"
        headers = self._headers(kwargs.pop("headers", None))

        resp = requests.get(url, params=params, headers=headers, timeout=REQUEST_TIMEOUT, **kwargs)
        self._handle_error(resp)
        return resp

    def post(self, path: str, json: Optional[Any] = None, params: Optional[Dict[str, Any]] = None, **kwargs) -> requests.Response:
        """Execute POST request with bearer authentication.

        Raises:
            Auth0APIError: On HTTP error
        """
        url = f"{self.base_url}{path}"
        headers = self._headers(kwargs.pop("headers", None))

        resp = requests.post(url, json=json, params=params, headers=headers, timeout=REQUEST_TIMEOUT, **kwargs)
        self._handle_error(resp)
        return resp

    def patch(self, path: str, json: Optional[Any] = None, **kwargs) -> requests.Response:
        """Execute PATCH request with bearer authentication.

        Raises:
            Auth0APIError: On HTTP error
        """
        url = f"{self.base_url}{path}"
        headers = self._headers(kwargs.pop("headers", None))

        resp = requests.patch(url, json=json, headers=headers, timeout=REQUEST_TIMEOUT, **kwargs)
        self._handle_error(resp)
        return resp

    def delete(self, path: str, json: Optional[Any] = None, **kwargs) -> requests.Response:
        """Execute DELETE request with bearer authentication.

        Some Management API deletes (role and permission unassignment) carry a body.

        Raises:
            Auth0APIError: On HTTP error
        """
        url = f"{self.base_url}{path}"
        headers = self._headers(kwargs.pop("headers", None))

        resp = requests.delete(url, json=json, headers=headers, timeout=REQUEST_TIMEOUT, **kwargs)
        self._handle_error(resp)
        return resp

    def _handle_error(self, resp: requests.Response) -> None:
        """Centralized error handling for HTTP responses.

        Auth0 error bodies look like
        ``{"statusCode": 404, "error": "Not Found", "message": "...", "errorCode": "inexistent_user"}``.

        Raises:
            Auth0APIError: If response status indicates error
        """
        if resp.status_code < 400:
            return

        message = resp.text
        error_code = None
        try:
            body = resp.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            message = body.get("message") or message
            error_code = body.get("errorCode")
        raise Auth0APIError(resp.status_code, message, resp.url, error_code)


def create_client_with_token(domain: str, token: str) -> Auth0Client:
    """Create an Auth0Client bound to a pre-obtained token.

    Useful for CLI runs and scripts that already hold a Management API token.
    """
    return Auth0Client(domain, StaticTokenProvider(token))
