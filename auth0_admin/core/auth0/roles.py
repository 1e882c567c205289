"""Auth0 role management operations."""
from __future__ import annotations
import logging
from typing import Optional, List

from .client import Auth0Client, encode_id
from .exceptions import Auth0APIError

logger = logging.getLogger(__name__)

PERMISSIONS_PAGE_SIZE = 100


class RoleService:
    """Service for managing Auth0 roles and their permission assignments."""

    def __init__(self, client: Auth0Client):
        """Initialize role service.

        Args:
            client: Authenticated Auth0 client
        """
        self.client = client

    def create_role(self, name: str, description: Optional[str] = None) -> dict:
        payload = {"name": name}
        if description is not None:
            payload["description"] = description
        resp = self.client.post("/roles", json=payload)
        role = resp.json()
        logger.info("Created Auth0 role: %s", role.get("id"))
        return role

    def get_role(self, role_id: str) -> Optional[dict]:
        """Return the role representation, or None when it does not exist."""
        try:
            resp = self.client.get(f"/roles/{encode_id(role_id)}")
        except Auth0APIError as exc:
            if exc.status_code == 404:
                return None
            raise
        return resp.json()

    def list_roles(self, page: int, per_page: int) -> dict:
        """Return one page of roles with totals.

        Returns:
            Dict with ``roles``, ``start``, ``limit``, ``total``
        """
        resp = self.client.get(
            "/roles",
            params={"page": page, "per_page": per_page, "include_totals": "true"},
        )
        return resp.json()

    def update_role(self, role_id: str, name: Optional[str] = None, description: Optional[str] = None) -> dict:
        """Patch role name and/or description."""
        payload = {}
        if name is not None:
            payload["name"] = name
        if description is not None:
            payload["description"] = description
        resp = self.client.patch(f"/roles/{encode_id(role_id)}", json=payload)
        logger.info("Updated Auth0 role base details: %s", role_id)
        return resp.json()

    def delete_role(self, role_id: str) -> None:
        self.client.delete(f"/roles/{encode_id(role_id)}")
        logger.info("Deleted Auth0 role with ID: %s", role_id)

    def list_role_permissions(self, role_id: str) -> List[dict]:
        """Return every permission assigned to the role, following pages."""
        permissions: List[dict] = []
        page = 0
        while True:
            resp = self.client.get(
                f"/roles/{encode_id(role_id)}/permissions",
                params={"page": page, "per_page": PERMISSIONS_PAGE_SIZE, "include_totals": "true"},
            )
            body = resp.json() or {}
            # Without include_totals the API answers with a bare list
            if isinstance(body, list):
                return permissions + body

            items = body.get("permissions") or []
            permissions.extend(items)
            total = body.get("total", len(permissions))
            if not items or len(permissions) >= total:
                return permissions
            page += 1

    def add_role_permissions(self, role_id: str, permissions: List[dict]) -> None:
        """Assign permissions ({resource_server_identifier, permission_name}) to a role."""
        self.client.post(f"/roles/{encode_id(role_id)}/permissions", json={"permissions": permissions})
        logger.info(
            "Role %s: Successfully added permissions: %s",
            role_id,
            [p["permission_name"] for p in permissions],
        )

    def remove_role_permissions(self, role_id: str, permissions: List[dict]) -> None:
        self.client.delete(f"/roles/{encode_id(role_id)}/permissions", json={"permissions": permissions})
        logger.info(
            "Role %s: Successfully removed permissions: %s",
            role_id,
            [p["permission_name"] for p in permissions],
        )
