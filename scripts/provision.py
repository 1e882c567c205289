"""Command-line access to the provisioning and reconciliation workflows.

This module is a CLI wrapper around auth0_admin.core; it uses the same
services as the REST API.
"""
from __future__ import annotations
import argparse
import os
import sys
from pathlib import Path

SCRIPT_DIR = Path(__file__).parent
PROJECT_ROOT = SCRIPT_DIR.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from auth0_admin.core.auth0 import (
    Auth0APIError,
    Auth0Client,
    ManagementTokenProvider,
    StaticTokenProvider,
    TokenUnavailableError,
)
from auth0_admin.core.context import ServiceContext
from auth0_admin.core.provisioning_service import ProvisioningFailed, build_provision_request, provision_user
from auth0_admin.core.role_reconciler import ReconciliationFailed, reconcile_role_permissions
from auth0_admin.core.validators import ValidationError
from auth0_admin.core import directory_service
from scripts import audit


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Auth0 user provisioning helper")
    parser.add_argument("--domain", default=os.environ.get("AUTH0_DOMAIN"))
    parser.add_argument("--client-id", default=os.environ.get("AUTH0_CLIENT_ID"))
    parser.add_argument("--client-secret", default=os.environ.get("AUTH0_CLIENT_SECRET"))
    parser.add_argument("--api-identifier", default=os.environ.get("AUTH0_API_IDENTIFIER"))
    parser.add_argument("--token", default=os.environ.get("AUTH0_MANAGEMENT_TOKEN"),
                        help="Pre-obtained Management API token (skips client credentials)")
    parser.add_argument("--operator", default="automation",
                        help="Operator identifier for audit logs (default: automation)")

    sub = parser.add_subparsers(dest="cmd")

    sp = sub.add_parser("provision")
    sp.add_argument("--email", required=True)
    sp.add_argument("--connection",
                    default=os.environ.get("AUTH0_DEFAULT_CONNECTION", "Username-Password-Authentication"))
    sp.add_argument("--role-id", action="append", default=[], dest="role_ids")
    sp.add_argument("--result-url")
    sp.add_argument("--ttl", type=int,
                    default=int(os.environ.get("PASSWORD_TICKET_TTL_SECONDS", "86400")))

    sd = sub.add_parser("delete-user")
    sd.add_argument("--user-id", required=True)

    sr = sub.add_parser("sync-role-permissions")
    sr.add_argument("--role-id", required=True)
    sr.add_argument("--permission", action="append", default=[], dest="permissions")
    sr.add_argument("--clear", action="store_true",
                    help="Remove every permission from the role (no --permission given)")

    sub.add_parser("list-permissions")
    return parser


def _build_context(parser: argparse.ArgumentParser, args) -> ServiceContext:
    if not args.domain:
        parser.error("Missing --domain (or AUTH0_DOMAIN)")

    if args.token:
        provider = StaticTokenProvider(args.token)
    else:
        if not args.client_id or not args.client_secret:
            parser.error("Missing client credentials (--client-id/--client-secret) or --token")
        provider = ManagementTokenProvider(args.domain, args.client_id, args.client_secret)

    return ServiceContext.from_client(Auth0Client(args.domain, provider), args.api_identifier or "")


def main(argv: list[str] | None = None) -> None:
    """Command-line entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.cmd:
        parser.print_help()
        return

    if args.cmd in ("sync-role-permissions", "list-permissions") and not args.api_identifier:
        parser.error("Command requires --api-identifier (or AUTH0_API_IDENTIFIER)")

    if args.cmd == "sync-role-permissions":
        if args.clear and args.permissions:
            parser.error("--clear cannot be combined with --permission")
        if not args.clear and not args.permissions:
            parser.error("Give at least one --permission, or --clear to remove all")

    ctx = _build_context(parser, args)

    try:
        if args.cmd == "provision":
            request = build_provision_request({
                "email": args.email,
                "connection": args.connection,
                "roleIds": args.role_ids,
                "resultUrl": args.result_url,
            })
            result = provision_user(
                request,
                ctx.users,
                ticket_ttl_seconds=args.ttl,
                operator=args.operator,
                tenant=ctx.tenant,
            )
            print(result.ticket_url)
        elif args.cmd == "delete-user":
            directory_service.delete_user(ctx, args.user_id, operator=args.operator)
        elif args.cmd == "sync-role-permissions":
            diff = reconcile_role_permissions(
                args.role_id,
                args.permissions,
                ctx.roles,
                ctx.resource_servers,
                ctx.api_identifier,
            )
            audit.safe_log_event(
                "role_permissions_reconciled",
                args.role_id,
                operator=args.operator,
                tenant=ctx.tenant,
                details={"added": sorted(diff.to_add), "removed": sorted(diff.to_remove)},
            )
            print(f"added={sorted(diff.to_add)} removed={sorted(diff.to_remove)}")
        elif args.cmd == "list-permissions":
            for permission in directory_service.list_permissions(ctx)["content"]:
                print(permission["permissionName"])
    except ValidationError as e:
        print(f"[{args.cmd}] Invalid {e.field}: {e.message}", file=sys.stderr)
        sys.exit(2)
    except (ProvisioningFailed, ReconciliationFailed, Auth0APIError, TokenUnavailableError) as e:
        print(f"[{args.cmd}] Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
