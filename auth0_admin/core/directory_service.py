"""
Directory Service Layer: users, roles and permissions

This module provides the operations behind the REST endpoints. Each one maps
almost directly onto Management API calls; the work done here is payload
validation, DTO shaping, pagination bookkeeping and audit logging.

Architecture:
    REST API (/api/v1/*) ──┐
                           ├──> directory_service.py ──> auth0_admin.core.auth0 ──> Auth0
    CLI (scripts/provision.py) ┘

User creation is delegated to provisioning_service (create, assign roles,
issue ticket, rollback). Role permission updates are delegated to
role_reconciler.
"""

from __future__ import annotations
import logging
from typing import Any, Optional

from auth0_admin.core.auth0 import UserNotFoundError, RoleNotFoundError
from auth0_admin.core.context import ServiceContext
from auth0_admin.core.provisioning_service import build_provision_request, provision_user
from auth0_admin.core.role_reconciler import reconcile_role_permissions, reconcile_user_roles
from auth0_admin.core.transformer import (
    DtoTransformer,
    paginate,
    safe_lookup,
    sort_nulls_first_case_insensitive,
)
from auth0_admin.core.validators import (
    ValidationError,
    DESCRIPTION_MAX_LENGTH,
    validate_id_list,
    validate_optional_text,
    validate_role_name,
)
from scripts import audit

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20


def normalize_paging(page: Any, size: Any) -> tuple[int, int]:
    """Coerce query parameters: negative page -> 0, size < 1 -> default."""
    try:
        page = int(page)
    except (TypeError, ValueError):
        page = 0
    try:
        size = int(size)
    except (TypeError, ValueError):
        size = DEFAULT_PAGE_SIZE

    if size < 1:
        size = DEFAULT_PAGE_SIZE
    if page < 0:
        page = 0
    return page, size


def _require_object(payload: Any) -> dict:
    if not isinstance(payload, dict):
        raise ValidationError("body", "Request body must be a JSON object")
    return payload


# ─────────────────────────────────────────────────────────────────────────────
# Users
# ─────────────────────────────────────────────────────────────────────────────

def create_user(ctx: ServiceContext, payload: Any, operator: str = "system") -> dict:
    """Provision a user and return ``{"ticketUrl": ...}``.

    Raises:
        ValidationError: On invalid payload
        ProvisioningFailed: If any provisioning stage fails
    """
    request = build_provision_request(payload, ctx.default_connection)
    result = provision_user(
        request,
        ctx.users,
        ticket_ttl_seconds=ctx.ticket_ttl_seconds,
        operator=operator,
        tenant=ctx.tenant,
    )
    return {"ticketUrl": result.ticket_url}


def _user_with_roles(ctx: ServiceContext, user: dict) -> dict:
    user_id = user.get("user_id")

    def _log(exc: Exception) -> None:
        logger.error("Error fetching roles for user %s: %s", user_id, exc)

    roles = safe_lookup(lambda: ctx.users.list_user_roles(user_id), _log)
    return DtoTransformer.user_to_response(user, roles)


def list_users(ctx: ServiceContext, page: int, size: int) -> dict:
    """Return one page of users, each with its role list."""
    body = ctx.users.list_users(page, size)
    users = body.get("users") or []
    content = [_user_with_roles(ctx, user) for user in users]
    return paginate(content, page, size, body.get("total", len(content)))


def get_user(ctx: ServiceContext, user_id: str) -> Optional[dict]:
    """Return the user response, or None when the user does not exist."""
    user = ctx.users.get_user(user_id)
    if user is None:
        return None
    return _user_with_roles(ctx, user)


def update_user_roles(ctx: ServiceContext, user_id: str, payload: Any, operator: str = "system") -> None:
    """Replace the user's role assignments with ``payload["roleIds"]``.

    Raises:
        ValidationError: On invalid payload
        UserNotFoundError: If the user does not exist
        ReconciliationFailed: If an add/remove call fails
    """
    payload = _require_object(payload)
    # An explicit [] removes every role; a missing key is a client error
    if payload.get("roleIds") is None:
        raise ValidationError("roleIds", "roleIds is required")
    role_ids = validate_id_list(payload["roleIds"], "roleIds")

    if ctx.users.get_user(user_id) is None:
        raise UserNotFoundError(f"User '{user_id}' not found")

    diff = reconcile_user_roles(user_id, role_ids, ctx.users)
    audit.safe_log_event(
        "user_roles_updated",
        user_id,
        operator=operator,
        tenant=ctx.tenant,
        details={"added": sorted(diff.to_add), "removed": sorted(diff.to_remove)},
        success=True,
    )


def delete_user(ctx: ServiceContext, user_id: str, operator: str = "system") -> None:
    ctx.users.delete_user(user_id)
    audit.safe_log_event("user_deleted", user_id, operator=operator, tenant=ctx.tenant)


# ─────────────────────────────────────────────────────────────────────────────
# Roles
# ─────────────────────────────────────────────────────────────────────────────

def _role_with_permissions(ctx: ServiceContext, role: dict) -> dict:
    role_id = role.get("id")

    def _log(exc: Exception) -> None:
        logger.error("Error fetching permissions for role %s: %s", role_id, exc)

    permissions = safe_lookup(lambda: ctx.roles.list_role_permissions(role_id), _log)
    return DtoTransformer.role_to_response(role, permissions)


def get_role(ctx: ServiceContext, role_id: str) -> Optional[dict]:
    """Return the role response, or None when the role does not exist."""
    role = ctx.roles.get_role(role_id)
    if role is None:
        return None
    return _role_with_permissions(ctx, role)


def list_roles(ctx: ServiceContext, page: int, size: int) -> dict:
    """Return one page of roles sorted by name, each with its permission names."""
    body = ctx.roles.list_roles(page, size)
    content = [_role_with_permissions(ctx, role) for role in body.get("roles") or []]
    content = sort_nulls_first_case_insensitive(content, "name")

    page_size = body.get("limit") or len(content)
    start = body.get("start") or 0
    current_page = start // max(1, page_size)
    return paginate(content, current_page, page_size, body.get("total", len(content)))


def create_role(ctx: ServiceContext, payload: Any, operator: str = "system") -> dict:
    """Create a role. Permissions are assigned through ``update_role``."""
    payload = _require_object(payload)
    name = validate_role_name(payload.get("name"))
    description = validate_optional_text(payload.get("description"), "description", DESCRIPTION_MAX_LENGTH)

    role = ctx.roles.create_role(name, description)
    audit.safe_log_event(
        "role_created",
        role.get("id", name),
        operator=operator,
        tenant=ctx.tenant,
        details={"name": name},
    )
    return get_role(ctx, role["id"]) or DtoTransformer.role_to_response(role)


def update_role(ctx: ServiceContext, role_id: str, payload: Any, operator: str = "system") -> dict:
    """Patch name/description and, when given, reconcile the permission set.

    Raises:
        ValidationError: On invalid payload
        RoleNotFoundError: If the role does not exist
        ReconciliationFailed: If a permission add/remove call fails
    """
    payload = _require_object(payload)
    name = payload.get("name")
    if name is not None:
        name = validate_role_name(name)
    description = validate_optional_text(payload.get("description"), "description", DESCRIPTION_MAX_LENGTH)
    permissions = payload.get("permissions")
    if permissions is not None:
        permissions = validate_id_list(permissions, "permissions")

    if ctx.roles.get_role(role_id) is None:
        raise RoleNotFoundError(f"Role '{role_id}' not found")

    if name is not None or description is not None:
        ctx.roles.update_role(role_id, name=name, description=description)
        audit.safe_log_event(
            "role_updated",
            role_id,
            operator=operator,
            tenant=ctx.tenant,
            details={"name": name, "description": description},
        )

    if permissions is not None:
        diff = reconcile_role_permissions(
            role_id,
            permissions,
            ctx.roles,
            ctx.resource_servers,
            ctx.api_identifier,
        )
        audit.safe_log_event(
            "role_permissions_reconciled",
            role_id,
            operator=operator,
            tenant=ctx.tenant,
            details={"added": sorted(diff.to_add), "removed": sorted(diff.to_remove)},
        )

    role = get_role(ctx, role_id)
    if role is None:
        raise RoleNotFoundError(f"Role '{role_id}' not found")
    return role


def delete_role(ctx: ServiceContext, role_id: str, operator: str = "system") -> None:
    ctx.roles.delete_role(role_id)
    audit.safe_log_event("role_deleted", role_id, operator=operator, tenant=ctx.tenant)


# ─────────────────────────────────────────────────────────────────────────────
# Permissions (resource server scopes)
# ─────────────────────────────────────────────────────────────────────────────

def list_permissions(ctx: ServiceContext) -> dict:
    """Return every scope of the configured API as a single page."""
    scopes = ctx.resource_servers.get_scopes(ctx.api_identifier)
    content = sort_nulls_first_case_insensitive(
        [DtoTransformer.scope_to_permission(scope) for scope in scopes],
        "permissionName",
    )
    total = len(content)
    return paginate(content, 0, total, total)


def update_permissions(ctx: ServiceContext, payload: Any, operator: str = "system") -> None:
    """Replace the API's whole scope catalogue.

    Body: ``{"permissions": [{"permissionName": ..., "description": ...}]}``
    """
    payload = _require_object(payload)
    items = payload.get("permissions")
    if not isinstance(items, list):
        raise ValidationError("permissions", "permissions must be a list")

    scopes = []
    for item in items:
        if not isinstance(item, dict):
            raise ValidationError("permissions", "permissions must contain objects")
        name = item.get("permissionName")
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("permissions", "permissionName is required")
        description = validate_optional_text(item.get("description"), "description", DESCRIPTION_MAX_LENGTH)
        scopes.append(DtoTransformer.permission_to_scope({"permissionName": name.strip(), "description": description}))

    ctx.resource_servers.update_scopes(ctx.api_identifier, scopes)
    audit.safe_log_event(
        "permissions_updated",
        ctx.api_identifier,
        operator=operator,
        tenant=ctx.tenant,
        details={"permissions": [scope["value"] for scope in scopes]},
    )
