"""Management API credential lifecycle.

Every request against the Management API reads the bearer token from a
``TokenProvider``. In production that is a ``ManagementTokenProvider`` shared
by the whole process: it is filled once at startup and replaced on a fixed
wall-clock interval by a background thread. Tests and one-off CLI calls use a
``StaticTokenProvider`` instead.
"""
from __future__ import annotations
import logging
import threading
from datetime import datetime
from typing import Optional

import requests

from .exceptions import Auth0APIError, TokenUnavailableError

logger = logging.getLogger(__name__)

TOKEN_REQUEST_TIMEOUT = 10
DEFAULT_REFRESH_SECONDS = 6 * 60 * 60


class TokenProvider:
    """Source of the current Management API access token."""

    @property
    def access_token(self) -> str:
        raise NotImplementedError


class StaticTokenProvider(TokenProvider):
    """Token provider returning a fixed, pre-obtained token."""

    def __init__(self, token: str):
        if not token:
            raise TokenUnavailableError("Static token must not be empty")
        self._token = token

    @property
    def access_token(self) -> str:
        return self._token


class ManagementTokenProvider(TokenProvider):
    """Client-credentials token for the Auth0 Management API with periodic refresh.

    Features:
    - Fixed-interval refresh on a daemon thread (not per call)
    - Readers always see the most recently stored token
    - Failed refreshes are logged and the previous token stays in use

    Usage:
        provider = ManagementTokenProvider("tenant.eu.auth0.com", client_id, client_secret)
        provider.start(interval=21600)
        client = Auth0Client("tenant.eu.auth0.com", provider)
    """

    def __init__(
        self,
        domain: str,
        client_id: str,
        client_secret: str,
        audience: Optional[str] = None,
    ):
        """Initialize token provider.

        Args:
            domain: Auth0 tenant domain (e.g., "tenant.eu.auth0.com")
            client_id: Machine-to-machine application client ID
            client_secret: Machine-to-machine application client secret
            audience: Management API audience (defaults to https://{domain}/api/v2/)
        """
        self.domain = domain.rstrip("/")
        self.client_id = client_id
        self.client_secret = client_secret
        self.audience = audience or f"https://{self.domain}/api/v2/"
        self._token: Optional[str] = None
        self._refreshed_at: Optional[datetime] = None
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def token_url(self) -> str:
        return f"https://{self.domain}/oauth/token"

    @property
    def refreshed_at(self) -> Optional[datetime]:
        return self._refreshed_at

    @property
    def access_token(self) -> str:
        """Return the most recently refreshed token.

        Makes one synchronous fetch when no token has been obtained yet.

        Raises:
            TokenUnavailableError: If no token exists and the fetch fails
        """
        token = self._token
        if token:
            return token
        if not self.refresh():
            raise TokenUnavailableError("Auth0 Management API token is not available")
        return self._token  # type: ignore[return-value]

    def fetch_token(self) -> str:
        """Request a new token via the client credentials grant.

        Raises:
            Auth0APIError: If Auth0 rejects the request
        """
        payload = {
            "grant_type": "client_credentials",
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "audience": self.audience,
        }
        resp = requests.post(self.token_url, json=payload, timeout=TOKEN_REQUEST_TIMEOUT)
        if resp.status_code != 200:
            raise Auth0APIError(resp.status_code, resp.text, self.token_url)
        return resp.json()["access_token"]

    def refresh(self) -> bool:
        """Replace the stored token. Returns False (and keeps the old one) on failure."""
        try:
            token = self.fetch_token()
        except Exception as exc:
            logger.error("Error refreshing Auth0 Management API token: %s", exc, exc_info=True)
            return False

        self._token = token
        self._refreshed_at = datetime.now()
        logger.info("Auth0 Management API token refreshed successfully.")
        return True

    def start(self, interval: int = DEFAULT_REFRESH_SECONDS) -> None:
        """Fetch an initial token and schedule refreshes every ``interval`` seconds."""
        if self._thread and self._thread.is_alive():
            return

        if self.refresh():
            logger.info("Initial Auth0 Management API token obtained.")

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run,
            args=(interval,),
            name="auth0-token-refresh",
            daemon=True,
        )
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the refresh thread."""
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout)
            self._thread = None

    def _run(self, interval: int) -> None:
        while not self._stop_event.wait(interval):
            self.refresh()
