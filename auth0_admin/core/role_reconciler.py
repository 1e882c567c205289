"""Diff-based reconciliation of role assignments.

Brings a role's permission set (or a user's role set) to exactly the
requested state with the minimum number of add/remove calls. Removal is
issued before addition and an empty side is skipped. Unlike provisioning,
a failure here is not compensated: whatever the vendor applied stays applied.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Iterable, List

from auth0_admin.core.auth0 import RoleService, ResourceServerService, UserService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoleDiff:
    to_add: frozenset[str]
    to_remove: frozenset[str]

    @property
    def is_empty(self) -> bool:
        return not self.to_add and not self.to_remove


class ReconciliationFailed(Exception):
    """Applying a role diff failed.

    Attributes:
        role_id: Role (or user, for role assignment) being reconciled
        cause: Underlying exception
    """

    def __init__(self, role_id: str, cause: BaseException):
        self.role_id = role_id
        self.cause = cause
        super().__init__(f"Failed to reconcile assignments of {role_id}: {cause}")

    def to_dict(self) -> dict:
        return {"error": "Reconciliation Failed", "message": str(self), "roleId": self.role_id}


def compute_role_diff(current: Iterable[str], requested: Iterable[str]) -> RoleDiff:
    """Return what to add and remove so ``current`` becomes ``requested``.

    Example:
        >>> diff = compute_role_diff({"read:a", "write:a"}, {"write:a", "read:b"})
        >>> sorted(diff.to_remove), sorted(diff.to_add)
        (['read:a'], ['read:b'])
    """
    current_set = frozenset(current)
    requested_set = frozenset(requested)
    return RoleDiff(
        to_add=requested_set - current_set,
        to_remove=current_set - requested_set,
    )


def _to_permissions(names: Iterable[str], catalogue: set[str], api_identifier: str) -> List[dict]:
    return [
        {"resource_server_identifier": api_identifier, "permission_name": name}
        for name in sorted(names)
        if name in catalogue
    ]


def reconcile_role_permissions(
    role_id: str,
    requested_names: Iterable[str],
    roles: RoleService,
    resource_servers: ResourceServerService,
    api_identifier: str,
) -> RoleDiff:
    """Make the role's permissions on ``api_identifier`` equal ``requested_names``.

    Requested names missing from the API's scope catalogue are dropped with a
    warning.

    Returns:
        The diff that was applied (after dropping unknown names)

    Raises:
        ReconciliationFailed: If any lookup or add/remove call fails
    """
    try:
        current_names = {
            p["permission_name"]
            for p in roles.list_role_permissions(role_id)
            if p.get("resource_server_identifier", api_identifier) == api_identifier
        }
        catalogue = {scope["value"] for scope in resource_servers.get_scopes(api_identifier)}

        requested = set(requested_names)
        diff = compute_role_diff(current_names, requested)

        unknown = diff.to_add - catalogue
        if unknown:
            logger.warning(
                "Role %s: requested permissions not registered on %s, ignoring: %s",
                role_id,
                api_identifier,
                sorted(unknown),
            )

        to_remove = [
            {"resource_server_identifier": api_identifier, "permission_name": name}
            for name in sorted(diff.to_remove)
        ]
        to_add = _to_permissions(diff.to_add, catalogue, api_identifier)
        applied = RoleDiff(
            to_add=frozenset(p["permission_name"] for p in to_add),
            to_remove=diff.to_remove,
        )

        logger.debug("Role %s: Current permissions: %s, Requested permissions: %s",
                     role_id, sorted(current_names), sorted(requested))

        if to_remove:
            logger.info("Role %s: Attempting to remove permissions: %s", role_id, sorted(applied.to_remove))
            roles.remove_role_permissions(role_id, to_remove)
        if to_add:
            logger.info("Role %s: Attempting to add permissions: %s", role_id, sorted(applied.to_add))
            roles.add_role_permissions(role_id, to_add)
    except Exception as exc:
        logger.error("Failed to update permissions for role %s: %s", role_id, exc, exc_info=True)
        raise ReconciliationFailed(role_id, exc) from exc

    return applied


def reconcile_user_roles(user_id: str, requested_role_ids: Iterable[str], users: UserService) -> RoleDiff:
    """Make the user's role assignments equal ``requested_role_ids``.

    Raises:
        ReconciliationFailed: If any lookup or add/remove call fails
    """
    try:
        current = {role["id"] for role in users.list_user_roles(user_id)}
        diff = compute_role_diff(current, requested_role_ids)
        if diff.to_remove:
            users.remove_roles(user_id, diff.to_remove)
        if diff.to_add:
            users.add_roles(user_id, diff.to_add)
    except Exception as exc:
        logger.error("Failed to update roles for user %s: %s", user_id, exc, exc_info=True)
        raise ReconciliationFailed(user_id, exc) from exc

    return diff
