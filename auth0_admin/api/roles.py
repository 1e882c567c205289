"""Role endpoints (/api/v1/roles)."""
from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from auth0_admin.api.decorators import get_operator, require_oauth_token
from auth0_admin.core import directory_service

bp = Blueprint("roles", __name__, url_prefix="/api/v1/roles")


def _context():
    return current_app.extensions["auth0_admin"]


@bp.route("", methods=["POST"])
@require_oauth_token(scopes=["write:roles"])
def create_role():
    role = directory_service.create_role(_context(), request.get_json(silent=True), operator=get_operator())
    return jsonify(role), 201


@bp.route("", methods=["GET"])
@require_oauth_token(scopes=["read:roles"])
def list_roles():
    page, size = directory_service.normalize_paging(
        request.args.get("page", 0), request.args.get("size", directory_service.DEFAULT_PAGE_SIZE)
    )
    return jsonify(directory_service.list_roles(_context(), page, size)), 200


@bp.route("/<role_id>", methods=["GET"])
@require_oauth_token(scopes=["read:roles"])
def get_role(role_id: str):
    role = directory_service.get_role(_context(), role_id)
    if role is None:
        return jsonify({"error": "Not Found", "message": f"Role '{role_id}' not found"}), 404
    return jsonify(role), 200


@bp.route("/<role_id>", methods=["PUT"])
@require_oauth_token(scopes=["write:roles"])
def update_role(role_id: str):
    """Patch name/description and reconcile the permission set."""
    role = directory_service.update_role(
        _context(), role_id, request.get_json(silent=True), operator=get_operator()
    )
    return jsonify(role), 200


@bp.route("/<role_id>", methods=["DELETE"])
@require_oauth_token(scopes=["write:roles"])
def delete_role(role_id: str):
    directory_service.delete_role(_context(), role_id, operator=get_operator())
    return "", 204
