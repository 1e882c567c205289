"""
Unit tests for auth0_admin/core/provisioning_service.py

Covers the create → assign roles → issue ticket sequence and the rollback
that deletes the user when a later stage fails.
"""
import json
import logging
from unittest.mock import MagicMock, call

import pytest

from auth0_admin.core import provisioning_service
from auth0_admin.core.auth0 import Auth0APIError, UserService
from auth0_admin.core.provisioning_service import (
    ProvisionRequest,
    ProvisioningFailed,
    STAGE_ASSIGN_ROLES,
    STAGE_CREATE_USER,
    STAGE_ISSUE_TICKET,
    build_provision_request,
    generate_temp_password,
    provision_user,
)
from auth0_admin.core.validators import ValidationError


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def users():
    svc = MagicMock(spec=UserService)
    svc.create_user.return_value = {"user_id": "u1", "email": "a@x.io"}
    svc.create_password_change_ticket.return_value = "https://t/abc"
    return svc


def _request(role_ids=("r1", "r2"), result_url="https://app.example.com/welcome"):
    return ProvisionRequest(
        email="a@x.io",
        connection="Username-Password-Authentication",
        role_ids=frozenset(role_ids),
        result_url=result_url,
    )


def _read_events(audit_file):
    return [json.loads(line) for line in audit_file.read_text().splitlines() if line.strip()]


# ============================================================================
# Happy path
# ============================================================================

def test_provision_user_returns_ticket_and_calls_each_stage_once(users):
    result = provision_user(_request(), users)

    assert result.ticket_url == "https://t/abc"
    assert users.create_user.call_count == 1
    users.add_roles.assert_called_once_with("u1", frozenset({"r1", "r2"}))
    users.create_password_change_ticket.assert_called_once()
    users.delete_user.assert_not_called()


def test_provision_user_runs_stages_in_order(users):
    provision_user(_request(), users)

    names = [c[0] for c in users.mock_calls]
    assert names == ["create_user", "add_roles", "create_password_change_ticket"]


def test_provision_user_without_roles_skips_assignment(users):
    result = provision_user(_request(role_ids=()), users)

    assert result.ticket_url == "https://t/abc"
    users.add_roles.assert_not_called()
    users.create_password_change_ticket.assert_called_once()


def test_ticket_is_requested_for_created_user_with_ttl(users):
    provision_user(_request(), users, ticket_ttl_seconds=86400)

    users.create_password_change_ticket.assert_called_once_with(
        "u1",
        "https://app.example.com/welcome",
        ttl_sec=86400,
        mark_email_as_verified=False,
        include_email_in_redirect=False,
    )


def test_user_is_created_unverified_with_random_password(users):
    provision_user(_request(), users)
    provision_user(_request(), users)

    first, second = users.create_user.call_args_list
    assert first.args[0] == "Username-Password-Authentication"
    assert first.args[1] == "a@x.io"
    assert first.kwargs["email_verified"] is False
    # 32 random bytes, base64url without padding
    assert len(first.args[2]) == 43
    assert first.args[2] != second.args[2]


def test_password_buffer_is_wiped_after_creation(users, monkeypatch):
    buffer = bytearray(b"known-password-value")
    monkeypatch.setattr(provisioning_service, "generate_temp_password", lambda: buffer)

    provision_user(_request(), users)

    assert users.create_user.call_args.args[2] == "known-password-value"
    assert buffer == bytearray(len(buffer))


def test_password_buffer_is_wiped_when_creation_fails(users, monkeypatch):
    buffer = bytearray(b"known-password-value")
    monkeypatch.setattr(provisioning_service, "generate_temp_password", lambda: buffer)
    users.create_user.side_effect = Auth0APIError(409, "The user already exists.", "/users")

    with pytest.raises(ProvisioningFailed):
        provision_user(_request(), users)

    assert buffer == bytearray(len(buffer))


def test_generate_temp_password_is_mutable_and_urlsafe():
    password = generate_temp_password()
    assert isinstance(password, bytearray)
    assert b"=" not in password
    assert all(chr(c).isalnum() or chr(c) in "-_" for c in password)


def test_successful_provisioning_is_audited(users, _isolated_audit_log):
    provision_user(_request(), users, operator="client-123", tenant="tenant.test.auth0.com")

    events = _read_events(_isolated_audit_log)
    assert len(events) == 1
    assert events[0]["event_type"] == "user_provisioned"
    assert events[0]["subject"] == "a@x.io"
    assert events[0]["operator"] == "client-123"
    assert events[0]["details"]["user_id"] == "u1"
    assert events[0]["details"]["role_ids"] == ["r1", "r2"]


# ============================================================================
# Failures and rollback
# ============================================================================

def test_create_failure_does_not_rollback(users):
    users.create_user.side_effect = Auth0APIError(409, "The user already exists.", "/users")

    with pytest.raises(ProvisioningFailed) as exc:
        provision_user(_request(), users)

    assert exc.value.stage == STAGE_CREATE_USER
    assert exc.value.user_id is None
    assert isinstance(exc.value.cause, Auth0APIError)
    users.add_roles.assert_not_called()
    users.create_password_change_ticket.assert_not_called()
    users.delete_user.assert_not_called()


def test_create_response_without_user_id_fails_creation(users):
    users.create_user.return_value = {"email": "a@x.io"}

    with pytest.raises(ProvisioningFailed) as exc:
        provision_user(_request(), users)

    assert exc.value.stage == STAGE_CREATE_USER
    users.delete_user.assert_not_called()


def test_role_assignment_failure_deletes_user_once(users):
    error = Auth0APIError(400, "Role does not exist", "/users/u1/roles")
    users.add_roles.side_effect = error

    with pytest.raises(ProvisioningFailed) as exc:
        provision_user(_request(), users)

    assert exc.value.stage == STAGE_ASSIGN_ROLES
    assert exc.value.user_id == "u1"
    assert exc.value.cause is error
    users.delete_user.assert_called_once_with("u1")
    users.create_password_change_ticket.assert_not_called()


def test_ticket_failure_deletes_user_once(users):
    error = Auth0APIError(500, "Internal error", "/tickets/password-change")
    users.create_password_change_ticket.side_effect = error

    with pytest.raises(ProvisioningFailed) as exc:
        provision_user(_request(), users)

    assert exc.value.stage == STAGE_ISSUE_TICKET
    assert exc.value.cause is error
    assert users.delete_user.call_args_list == [call("u1")]


def test_rollback_failure_surfaces_original_error(users, caplog):
    original = Auth0APIError(400, "Role does not exist", "/users/u1/roles")
    users.add_roles.side_effect = original
    users.delete_user.side_effect = Auth0APIError(503, "Service unavailable", "/users/u1")

    with caplog.at_level(logging.ERROR, logger="auth0_admin.core.provisioning_service"):
        with pytest.raises(ProvisioningFailed) as exc:
            provision_user(_request(), users)

    assert exc.value.cause is original
    assert exc.value.stage == STAGE_ASSIGN_ROLES
    # Rollback is attempted exactly once, never retried
    users.delete_user.assert_called_once_with("u1")
    assert any("orphaned" in record.getMessage() for record in caplog.records)


def test_rollback_failure_is_audited(users, _isolated_audit_log):
    users.create_password_change_ticket.side_effect = RuntimeError("timeout")
    users.delete_user.side_effect = RuntimeError("still down")

    with pytest.raises(ProvisioningFailed):
        provision_user(_request(), users)

    events = _read_events(_isolated_audit_log)
    types = [e["event_type"] for e in events]
    assert types == ["user_rollback_failed", "user_provision_failed"]
    assert events[1]["details"]["rolled_back"] is False
    assert events[1]["details"]["stage"] == STAGE_ISSUE_TICKET


def test_provisioning_failed_to_dict():
    failure = ProvisioningFailed(STAGE_ISSUE_TICKET, RuntimeError("boom"), user_id="u1")
    body = failure.to_dict()
    assert body["error"] == "Provisioning Failed"
    assert body["stage"] == "issue_ticket"
    assert body["userId"] == "u1"
    assert "boom" in body["message"]


# ============================================================================
# Request validation
# ============================================================================

def test_build_provision_request_normalizes_payload():
    request = build_provision_request({
        "email": "  Alice@Example.COM ",
        "connection": "db",
        "roleIds": ["r1", "r1", "r2"],
        "resultUrl": "https://app.example.com/done",
    })
    assert request.email == "alice@example.com"
    assert request.connection == "db"
    assert request.role_ids == frozenset({"r1", "r2"})
    assert request.result_url == "https://app.example.com/done"


def test_build_provision_request_uses_default_connection():
    request = build_provision_request({"email": "a@x.io"}, "Username-Password-Authentication")
    assert request.connection == "Username-Password-Authentication"
    assert request.role_ids == frozenset()
    assert request.result_url is None


@pytest.mark.parametrize("payload, field", [
    ({"email": "not-an-email", "connection": "db"}, "email"),
    ({"email": "a@x.io"}, "connection"),
    ({"email": "a@x.io", "connection": "db", "roleIds": "r1"}, "roleIds"),
    ({"email": "a@x.io", "connection": "db", "resultUrl": "javascript:alert(1)"}, "resultUrl"),
    (["a@x.io"], "body"),
])
def test_build_provision_request_rejects_invalid_payload(payload, field):
    with pytest.raises(ValidationError) as exc:
        build_provision_request(payload)
    assert exc.value.field == field
