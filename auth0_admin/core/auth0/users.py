"""Auth0 user management operations."""
from __future__ import annotations
import logging
from typing import Optional, List, Iterable

from .client import Auth0Client, encode_id
from .exceptions import Auth0APIError

logger = logging.getLogger(__name__)

PASSWORD_TICKET_TTL_SECONDS = 24 * 60 * 60


class UserService:
    """Service for managing Auth0 users."""

    def __init__(self, client: Auth0Client):
        """Initialize user service.

        Args:
            client: Authenticated Auth0 client
        """
        self.client = client

    def create_user(self, connection: str, email: str, password: str, email_verified: bool = False) -> dict:
        """Create a database user.

        Args:
            connection: Identity provider connection name
            email: Email address
            password: Initial password (required by the API for database connections)
            email_verified: Mark the email as verified

        Returns:
            Created user representation (contains ``user_id``)
        """
        payload = {
            "connection": connection,
            "email": email,
            "password": password,
            "email_verified": email_verified,
        }
        resp = self.client.post("/users", json=payload)
        user = resp.json()
        logger.info("Auth0 user created with ID: %s", user.get("user_id"))
        return user

    def get_user(self, user_id: str) -> Optional[dict]:
        """Return the user representation, or None when it does not exist."""
        try:
            resp = self.client.get(f"/users/{encode_id(user_id)}")
        except Auth0APIError as exc:
            if exc.status_code == 404:
                return None
            raise
        return resp.json()

    def list_users(self, page: int, per_page: int) -> dict:
        """Return one page of users with totals.

        Returns:
            Dict with ``users``, ``start``, ``limit``, ``total``
        """
        resp = self.client.get(
            "/users",
            params={"page": page, "per_page": per_page, "include_totals": "true"},
        )
        return resp.json()

    def delete_user(self, user_id: str) -> None:
        self.client.delete(f"/users/{encode_id(user_id)}")
        logger.info("Deleted Auth0 user with ID: %s", user_id)

    def list_user_roles(self, user_id: str) -> List[dict]:
        resp = self.client.get(f"/users/{encode_id(user_id)}/roles")
        return resp.json() or []

    def add_roles(self, user_id: str, role_ids: Iterable[str]) -> None:
        roles = sorted(role_ids)
        self.client.post(f"/users/{encode_id(user_id)}/roles", json={"roles": roles})
        logger.info("Assigned roles %s to user %s", roles, user_id)

    def remove_roles(self, user_id: str, role_ids: Iterable[str]) -> None:
        roles = sorted(role_ids)
        self.client.delete(f"/users/{encode_id(user_id)}/roles", json={"roles": roles})
        logger.info("Removed roles %s from user %s", roles, user_id)

    def create_password_change_ticket(
        self,
        user_id: str,
        result_url: Optional[str],
        ttl_sec: int = PASSWORD_TICKET_TTL_SECONDS,
        mark_email_as_verified: bool = False,
        include_email_in_redirect: bool = False,
    ) -> str:
        """Create a time-boxed password change ticket.

        Args:
            user_id: Target user ID
            result_url: Where the user lands after setting the password
            ttl_sec: Ticket lifetime in seconds
            mark_email_as_verified: Verify the email when the password is set
            include_email_in_redirect: Append the email to the result URL

        Returns:
            Ticket URL
        """
        payload = {
            "user_id": user_id,
            "ttl_sec": ttl_sec,
            "mark_email_as_verified": mark_email_as_verified,
            "includeEmailInRedirect": include_email_in_redirect,
        }
        if result_url:
            payload["result_url"] = result_url
        resp = self.client.post("/tickets/password-change", json=payload)
        logger.info("Generated password change ticket URL for user %s", user_id)
        return resp.json()["ticket"]
