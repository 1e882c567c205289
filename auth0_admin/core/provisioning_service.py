"""
User Provisioning Service

Creates an Auth0 user, assigns its roles and issues a password change ticket
so the user sets their own password. The three remote calls run strictly in
sequence. When role assignment or ticket issuance fails, the freshly created
user is deleted again (once, best effort) and the caller receives the error of
the stage that failed.

Workflow:
    create_user ──> assign_roles (if any) ──> issue_ticket ──> ticket URL
                          │                        │
                          └──────── failure ───────┴──> rollback (delete user)
"""

from __future__ import annotations
import base64
import logging
import secrets
from dataclasses import dataclass, field
from typing import Any, Optional

from auth0_admin.core.auth0 import UserService, PASSWORD_TICKET_TTL_SECONDS
from auth0_admin.core.validators import (
    ValidationError,
    validate_email,
    validate_connection,
    validate_result_url,
    validate_id_list,
)
from scripts import audit

logger = logging.getLogger(__name__)

STAGE_CREATE_USER = "create_user"
STAGE_ASSIGN_ROLES = "assign_roles"
STAGE_ISSUE_TICKET = "issue_ticket"

# 32 random bytes -> 256 bits of entropy
TEMP_PASSWORD_BYTES = 32


# ─────────────────────────────────────────────────────────────────────────────
# Data Model
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ProvisionRequest:
    """Input of the provisioning workflow."""
    email: str
    connection: str
    role_ids: frozenset[str] = field(default_factory=frozenset)
    result_url: Optional[str] = None


@dataclass(frozen=True)
class ProvisionedUser:
    """User created in step 1; drives rollback."""
    user_id: str
    email: str


@dataclass(frozen=True)
class ProvisionResult:
    ticket_url: str


# ─────────────────────────────────────────────────────────────────────────────
# Exceptions
# ─────────────────────────────────────────────────────────────────────────────

class ProvisioningFailed(Exception):
    """A remote call of the provisioning workflow failed.

    Attributes:
        stage: create_user, assign_roles or issue_ticket
        cause: Underlying exception
        user_id: Auth0 user id when the user had already been created
    """

    def __init__(self, stage: str, cause: BaseException, user_id: Optional[str] = None):
        self.stage = stage
        self.cause = cause
        self.user_id = user_id
        target = f" (user {user_id})" if user_id else ""
        super().__init__(f"Provisioning failed at stage '{stage}'{target}: {cause}")

    def to_dict(self) -> dict:
        body = {
            "error": "Provisioning Failed",
            "message": str(self),
            "stage": self.stage,
        }
        if self.user_id:
            body["userId"] = self.user_id
        return body


class RollbackFailed(Exception):
    """Compensating delete failed; the user is orphaned. Logged, never raised to callers."""

    def __init__(self, user_id: str, cause: BaseException):
        self.user_id = user_id
        self.cause = cause
        super().__init__(f"Rollback of Auth0 user {user_id} failed, user is orphaned: {cause}")


# ─────────────────────────────────────────────────────────────────────────────
# Utility Functions
# ─────────────────────────────────────────────────────────────────────────────

def generate_temp_password(num_bytes: int = TEMP_PASSWORD_BYTES) -> bytearray:
    """Generate a throwaway password in a mutable buffer so it can be wiped.

    Returns:
        URL-safe base64 characters (no padding) from ``num_bytes`` random bytes
    """
    return bytearray(base64.urlsafe_b64encode(secrets.token_bytes(num_bytes)).rstrip(b"="))


def _wipe(buffer: bytearray) -> None:
    for index in range(len(buffer)):
        buffer[index] = 0


def build_provision_request(payload: Any, default_connection: Optional[str] = None) -> ProvisionRequest:
    """Validate a JSON body ``{email, connection, roleIds[], resultUrl}``.

    Raises:
        ValidationError: On missing or malformed fields
    """
    if not isinstance(payload, dict):
        raise ValidationError("body", "Request body must be a JSON object")

    connection = payload.get("connection") or default_connection
    return ProvisionRequest(
        email=validate_email(payload.get("email") or ""),
        connection=validate_connection(connection or ""),
        role_ids=frozenset(validate_id_list(payload.get("roleIds"), "roleIds")),
        result_url=validate_result_url(payload.get("resultUrl")),
    )


# ─────────────────────────────────────────────────────────────────────────────
# Workflow
# ─────────────────────────────────────────────────────────────────────────────

def _create_identity(request: ProvisionRequest, users: UserService) -> ProvisionedUser:
    """Step 1: create the user with a random password nobody will ever know."""
    password = generate_temp_password()
    try:
        created = users.create_user(
            request.connection,
            request.email,
            password.decode("ascii"),
            email_verified=False,
        )
        user_id = created["user_id"]
    except Exception as exc:
        raise ProvisioningFailed(STAGE_CREATE_USER, exc) from exc
    finally:
        _wipe(password)

    return ProvisionedUser(user_id=user_id, email=created.get("email") or request.email)


def rollback_user(
    user: ProvisionedUser,
    users: UserService,
    *,
    operator: str = "system",
    tenant: str = "",
) -> bool:
    """Delete a partially provisioned user. Attempted once; never raises.

    Returns:
        True if the user was deleted
    """
    logger.warning("Rolling back Auth0 user %s (%s)", user.user_id, user.email)
    try:
        users.delete_user(user.user_id)
    except Exception as exc:
        failure = RollbackFailed(user.user_id, exc)
        logger.error("%s", failure, exc_info=True)
        audit.safe_log_event(
            "user_rollback_failed",
            user.email,
            operator=operator,
            tenant=tenant,
            details={"user_id": user.user_id, "error": str(exc)},
            success=False,
        )
        return False

    logger.info("Rolled back Auth0 user %s", user.user_id)
    return True


def provision_user(
    request: ProvisionRequest,
    users: UserService,
    *,
    ticket_ttl_seconds: int = PASSWORD_TICKET_TTL_SECONDS,
    operator: str = "system",
    tenant: str = "",
) -> ProvisionResult:
    """Create a user, assign roles and return a password change ticket URL.

    Args:
        request: Validated provisioning request
        users: Auth0 user operations
        ticket_ttl_seconds: Password change ticket lifetime
        operator: Caller identity for the audit trail
        tenant: Auth0 tenant domain for the audit trail

    Returns:
        ProvisionResult with the ticket URL

    Raises:
        ProvisioningFailed: If any stage fails (after rollback for stages 2-3)
    """
    try:
        user = _create_identity(request, users)
    except ProvisioningFailed as failure:
        logger.error("Error creating Auth0 user for email %s: %s", request.email, failure.cause)
        audit.safe_log_event(
            "user_provision_failed",
            request.email,
            operator=operator,
            tenant=tenant,
            details={"stage": failure.stage, "error": str(failure.cause)},
            success=False,
        )
        raise

    stage = STAGE_ASSIGN_ROLES
    try:
        if request.role_ids:
            users.add_roles(user.user_id, request.role_ids)

        stage = STAGE_ISSUE_TICKET
        ticket_url = users.create_password_change_ticket(
            user.user_id,
            request.result_url,
            ttl_sec=ticket_ttl_seconds,
            mark_email_as_verified=False,
            include_email_in_redirect=False,
        )
    except Exception as exc:
        logger.error("Provisioning of %s failed at stage '%s': %s", user.user_id, stage, exc)
        rolled_back = rollback_user(user, users, operator=operator, tenant=tenant)
        audit.safe_log_event(
            "user_provision_failed",
            request.email,
            operator=operator,
            tenant=tenant,
            details={
                "stage": stage,
                "user_id": user.user_id,
                "rolled_back": rolled_back,
                "error": str(exc),
            },
            success=False,
        )
        raise ProvisioningFailed(stage, exc, user_id=user.user_id) from exc

    audit.safe_log_event(
        "user_provisioned",
        request.email,
        operator=operator,
        tenant=tenant,
        details={
            "user_id": user.user_id,
            "connection": request.connection,
            "role_ids": sorted(request.role_ids),
        },
        success=True,
    )
    return ProvisionResult(ticket_url=ticket_url)
