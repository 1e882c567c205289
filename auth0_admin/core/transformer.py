"""Auth0 ↔ REST response transformations.

This module converts Management API representations into the response
bodies of the REST facade and builds paginated envelopes.

Usage:
    # Auth0 → REST
    body = DtoTransformer.user_to_response(auth0_user, roles)

    # REST → Auth0
    scope = DtoTransformer.permission_to_scope({"permissionName": "read:data"})
"""
from __future__ import annotations
import math
from typing import Any, Callable, Dict, List, Optional


class DtoTransformer:
    """Converters between Auth0 representations and REST DTOs."""

    @staticmethod
    def user_to_response(user: Dict[str, Any], roles: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
        """Convert an Auth0 user (plus its roles) to a UserResponse.

        Example:
            >>> DtoTransformer.user_to_response(
            ...     {"user_id": "auth0|1", "email": "a@example.com", "name": "A"},
            ...     [{"id": "rol_1", "name": "admin", "description": "x"}],
            ... )["roles"]
            [{'id': 'rol_1', 'name': 'admin'}]
        """
        return {
            "id": user.get("user_id"),
            "email": user.get("email"),
            "name": user.get("name"),
            "picture": user.get("picture"),
            "lastLogin": user.get("last_login"),
            "roles": [{"id": role.get("id"), "name": role.get("name")} for role in roles or []],
        }

    @staticmethod
    def role_to_response(role: Dict[str, Any], permissions: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
        """Convert an Auth0 role (plus its permissions) to a RoleResponse."""
        return {
            "id": role.get("id"),
            "name": role.get("name"),
            "description": role.get("description"),
            "permissions": [p.get("permission_name") for p in permissions or []],
        }

    @staticmethod
    def scope_to_permission(scope: Dict[str, Any]) -> Dict[str, Any]:
        # Scope value is the permission name
        return {
            "permissionName": scope.get("value"),
            "description": scope.get("description"),
        }

    @staticmethod
    def permission_to_scope(permission: Dict[str, Any]) -> Dict[str, Any]:
        scope = {"value": permission.get("permissionName")}
        description = permission.get("description")
        if description is not None:
            scope["description"] = description
        return scope


def sort_nulls_first_case_insensitive(items: List[Dict[str, Any]], key: str) -> List[Dict[str, Any]]:
    """Sort dicts by a string field, case-insensitively, with None values first."""
    def _key(item: Dict[str, Any]):
        value = item.get(key)
        return (value is not None, (value or "").lower())

    return sorted(items, key=_key)


def paginate(
    content: List[Dict[str, Any]],
    current_page: int,
    page_size: int,
    total_elements: int,
) -> Dict[str, Any]:
    """Build the paginated envelope shared by every list endpoint."""
    if page_size > 0:
        total_pages = math.ceil(total_elements / page_size)
    else:
        total_pages = 1 if total_elements > 0 else 0

    return {
        "content": content,
        "currentPage": current_page,
        "pageSize": page_size,
        "totalPages": total_pages,
        "totalElements": total_elements,
    }


def safe_lookup(fetch: Callable[[], List[Dict[str, Any]]], on_error: Callable[[Exception], None]) -> List[Dict[str, Any]]:
    """Run a secondary lookup; report failures through ``on_error`` and return []."""
    try:
        return fetch() or []
    except Exception as exc:
        on_error(exc)
        return []
